"""Rule-based normalization of Japanese verb and adjective conjugations.

Inflected surface forms are mapped back to their dictionary form with an
ordered table of suffix rules. There is no morphological analysis: the first
rule whose suffix matches decides, so the table lists the most specific
suffixes first (e.g. "されています" before "しています" before "ています").
A matching rule whose stem would be too short keeps the word unchanged;
only an explicit ``exclude`` hands the word on to later rules.
"""

from collections.abc import Callable
from dataclasses import dataclass

# Stems whose ambiguous "んで" te-form restores to "む" / "ぶ".
_NDE_MU_STEMS = ("呼", "読", "飲", "込", "住")
_NDE_BU_STEMS = ("運", "遊", "学")
# Stems whose ambiguous "って" te-form restores to "つ".
_TTE_TSU_STEMS = ("立", "持", "待")

# (i-row kana, u-row dictionary ending) for godan verbs.
_GODAN_ROWS = (
    ("き", "く"),
    ("ぎ", "ぐ"),
    ("び", "ぶ"),
    ("み", "む"),
    ("り", "る"),
    ("ち", "つ"),
    ("に", "ぬ"),
    ("い", "う"),
)


@dataclass(frozen=True)
class ConjugationRule:
    """A single suffix rewrite.

    ``replacement`` is either the string appended to the stem or a callable
    receiving the stem. ``exact`` rules match the whole word only.
    """

    group: str
    suffix: str
    replacement: str | Callable[[str], str]
    min_stem: int = 1
    exclude: tuple[str, ...] = ()
    exact: bool = False

    def apply(self, word: str) -> str | None:
        """Return the rewritten word, or None when the rule does not match.

        A suffix match whose stem is shorter than ``min_stem`` returns the
        word unchanged, which stops the search.
        """
        if self.exact:
            return self.replacement if word == self.suffix else None
        if not word.endswith(self.suffix):
            return None
        if self.exclude and word.endswith(self.exclude):
            return None
        stem = word[: len(word) - len(self.suffix)]
        if len(stem) < self.min_stem:
            return word
        if callable(self.replacement):
            return self.replacement(stem)
        return stem + self.replacement


def _restore_nde(stem: str) -> str:
    if stem.endswith(_NDE_MU_STEMS):
        return stem + "む"
    if stem.endswith(_NDE_BU_STEMS):
        return stem + "ぶ"
    # unknown stems fall back to "む"
    return stem + "む"


def _restore_tte(stem: str) -> str:
    if stem.endswith(_TTE_TSU_STEMS):
        return stem + "つ"
    return stem + "う"


def _godan(group: str, ending: str) -> list[ConjugationRule]:
    return [ConjugationRule(group, i_kana + ending, u_kana) for i_kana, u_kana in _GODAN_ROWS]


CONJUGATION_RULES: tuple[ConjugationRule, ...] = (
    # Passive forms
    ConjugationRule("passive", "されています", "される"),
    ConjugationRule("passive", "されている", "される"),
    ConjugationRule("passive", "されました", "される"),
    ConjugationRule("passive", "された", "される"),
    # Suru verbs
    ConjugationRule("suru verb", "しています", "する"),
    ConjugationRule("suru verb", "している", "する"),
    ConjugationRule("suru verb", "しました", "する"),
    ConjugationRule("suru verb", "します", "する"),
    ConjugationRule("suru verb", "して", "する"),
    ConjugationRule("suru verb", "した", "する", exclude=("ました", "でした")),
    # Na-adjectives, before the generic "ました" rules
    ConjugationRule("na-adjective", "でした", "だ"),
    ConjugationRule("na-adjective", "ではない", "だ"),
    ConjugationRule("na-adjective", "じゃない", "だ"),
    # Progressive forms whose verb class the suffix alone cannot tell
    ConjugationRule("irregular progressive", "考えています", "考える", min_stem=0),
    ConjugationRule("irregular progressive", "食べています", "食べる", min_stem=0),
    ConjugationRule("irregular progressive", "見ています", "見る", min_stem=0),
    ConjugationRule("irregular progressive", "着ています", "着る", min_stem=0),
    ConjugationRule("irregular progressive", "動いています", "動く", min_stem=0),
    ConjugationRule("irregular progressive", "書いています", "書く", min_stem=0),
    ConjugationRule("irregular progressive", "歩いています", "歩く", min_stem=0),
    *_godan("godan progressive", "ています"),
    ConjugationRule("ichidan progressive", "ています", "る"),
    *_godan("godan past", "ました"),
    ConjugationRule("ichidan past", "ました", "る"),
    ConjugationRule("potential", "できます", "できる"),
    *_godan("godan polite", "ます"),
    ConjugationRule("ichidan polite", "ます", "る"),
    # Te-forms
    ConjugationRule("godan te-form", "いて", "く"),
    ConjugationRule("godan te-form", "いで", "ぐ"),
    ConjugationRule("godan te-form", "んで", _restore_nde),
    ConjugationRule("godan te-form", "って", _restore_tte),
    ConjugationRule("ichidan te-form", "て", "る", min_stem=2),
    # I-adjectives
    ConjugationRule("adjective", "くなかった", "い"),
    ConjugationRule("adjective", "かった", "い"),
    ConjugationRule("adjective", "くない", "い"),
    *(
        ConjugationRule("adverbial", adverb, adverb[:-1] + "い", exact=True)
        for adverb in ("美しく", "早く", "高く", "近く", "遠く", "深く", "強く", "弱く")
    ),
    # Copula
    ConjugationRule("copula", "です", "だ"),
    ConjugationRule("copula", "である", "だ"),
)


def normalize_conjugation(word: str) -> str:
    """Map an inflected Japanese word to its dictionary form.

    Words shorter than two characters, and words no rule matches, are
    returned unchanged.

    >>> normalize_conjugation("修正しました")
    '修正する'
    """
    if not isinstance(word, str) or len(word) < 2:
        return word
    for rule in CONJUGATION_RULES:
        normalized = rule.apply(word)
        if normalized is not None:
            return normalized
    return word


def matching_rule(word: str) -> ConjugationRule | None:
    """Return the rule that decides ``word``, if any.

    This is the first rule whose suffix matches, even when its stem is too
    short and the word comes back unchanged.
    """
    if not isinstance(word, str) or len(word) < 2:
        return None
    for rule in CONJUGATION_RULES:
        if rule.apply(word) is not None:
            return rule
    return None
