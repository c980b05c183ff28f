"""Multilingual (English / Japanese) text utilities shared by the analyzers.

Covers script detection, tokenization, word counting and the cleanup of
Slack markup before analysis.
"""

import re
from collections.abc import Iterable
from typing import Any

from slack_thread_analyzer.models import LanguageContent, as_message

# Hiragana, Katakana and CJK unified ideographs.
JAPANESE_CHAR_CLASS = "\u3040-\u309f\u30a0-\u30ff\u4e00-\u9faf"

_JAPANESE_RE = re.compile(f"[{JAPANESE_CHAR_CLASS}]")
_JAPANESE_RUN_RE = re.compile(f"[{JAPANESE_CHAR_CLASS}]+")
_KANJI_RE = re.compile("[\u4e00-\u9faf]")
_KATAKANA_ONLY_RE = re.compile("^[\u30a0-\u30ff]+$")
_MEANINGFUL_CHAR_RE = re.compile(f"[a-zA-Z0-9{JAPANESE_CHAR_CLASS}]")

# Whitespace (incl. the ideographic space), Japanese punctuation and brackets.
_WORD_SEPARATOR_RE = re.compile(
    "[\\s\u3000\u3001\u3002\uff01\uff1f\u300c\u300d\uff08\uff09"
    "\u3010\u3011\u3008\u3009\u300a\u300b\u3014\u3015\u300e\u300f"
    "\uff5b\uff5d\\[\\]]+"
)

PARTICLES = "のにはをがでともやへ"
_PARTICLE_SPLIT_RE = re.compile(f"(?=[{PARTICLES}])|(?<=[{PARTICLES}])")

ENGLISH_STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "is", "are", "was", "were", "be", "been", "being",
    "have", "has", "had", "do", "does", "did", "will", "would", "could",
    "should", "may", "might", "can", "cannot", "this", "that", "these",
    "those", "i", "you", "he", "she", "it", "we", "they", "what", "which",
    "who", "when", "where", "why", "how", "all", "each", "every", "both",
    "few", "more", "most", "other", "some", "such", "no", "not", "only",
    "own", "same", "so", "than", "too", "very", "just", "as",
})

JAPANESE_STOP_WORDS = frozenset({
    "の", "に", "は", "を", "た", "が", "で", "て", "と", "し", "れ", "さ",
    "ある", "いる", "も", "する", "から", "な", "こと", "として", "い", "や",
    "など", "なり", "へ", "か", "だ", "これ", "それ", "あれ", "この", "その",
    "もの", "ため", "なっ", "なる", "でも", "です", "ます", "ました", "でした",
})


def is_japanese_char(char: Any) -> bool:
    """True if ``char`` is Hiragana, Katakana or a CJK unified ideograph."""
    if not isinstance(char, str) or len(char) != 1:
        return False
    return _JAPANESE_RE.match(char) is not None


def contains_japanese(text: Any) -> bool:
    return isinstance(text, str) and _JAPANESE_RE.search(text) is not None


def has_kanji(text: str) -> bool:
    return _KANJI_RE.search(text) is not None


def is_katakana(text: str) -> bool:
    return _KATAKANA_ONLY_RE.match(text) is not None


def japanese_runs(text: str) -> list[str]:
    """Return the maximal runs of Japanese script in ``text``."""
    return _JAPANESE_RUN_RE.findall(text)


def detect_language_content(text: Any) -> LanguageContent:
    """Classify which scripts ``text`` contains.

    The primary language is the script with more characters; a tie
    (including empty text) counts as English.
    """
    if not isinstance(text, str) or not text:
        return LanguageContent()

    japanese_chars = 0
    english_chars = 0
    for char in text:
        if "a" <= char <= "z" or "A" <= char <= "Z":
            english_chars += 1
        elif is_japanese_char(char):
            japanese_chars += 1

    has_japanese = japanese_chars > 0
    has_english = english_chars > 0
    return LanguageContent(
        has_japanese=has_japanese,
        has_english=has_english,
        mixed_language=has_japanese and has_english,
        primary_language="japanese" if japanese_chars > english_chars else "english",
    )


def split_words(text: Any) -> list[str]:
    """Split on whitespace and Japanese punctuation, dropping empty tokens."""
    if not isinstance(text, str):
        return []
    return [token for token in _WORD_SEPARATOR_RE.split(text) if token]


def split_at_particles(token: str) -> list[str]:
    """Split a Japanese token around single-character particles.

    Each particle becomes its own piece, e.g. "バグを修正" -> ["バグ", "を", "修正"].
    """
    return [piece for piece in _PARTICLE_SPLIT_RE.split(token) if piece]


def tokenize_text(text: Any) -> list[str]:
    """Tokenize mixed English/Japanese text.

    Latin text is split on whitespace; Japanese runs are additionally split
    at particle boundaries, and particle pieces that are stop words are
    dropped.
    """
    tokens: list[str] = []
    for word in split_words(text):
        if not contains_japanese(word):
            tokens.append(word)
            continue
        for piece in split_at_particles(word):
            if len(piece) == 1 and piece in PARTICLES and piece in JAPANESE_STOP_WORDS:
                continue
            tokens.append(piece)
    return tokens


def count_words_in_text(text: Any) -> int:
    """Count meaningful words in English, Japanese or mixed text.

    Single-character tokens only count when they are a letter, a digit or a
    Japanese character, so stray punctuation is ignored.
    """
    if not isinstance(text, str) or not text:
        return 0

    count = 0
    for token in tokenize_text(text):
        if len(token) == 1 and not _MEANINGFUL_CHAR_RE.match(token):
            continue
        count += 1
    return count


def count_words_in_messages(messages: Iterable[Any]) -> int:
    """Sum :func:`count_words_in_text` over the messages' text."""
    total = 0
    for raw in messages:
        message = as_message(raw)
        if message is not None:
            total += count_words_in_text(message.text)
    return total


# -- Slack markup cleanup ------------------------------------------------------


def clean_text(text: str) -> str:
    """Remove Slack links/mentions, emoji codes and URLs; collapse spaces."""
    text = re.sub(r"<[^>]+>", " ", text)
    text = re.sub(r":[a-z_]+:", " ", text)
    text = re.sub(r"https?://\S+", " ", text)
    return re.sub(r"\s+", " ", text).strip()


def remove_slack_formatting(text: str) -> str:
    """Strip Slack mrkdwn while keeping the visible text."""
    text = re.sub(r"```.*?```", "", text, flags=re.DOTALL)
    text = re.sub(r"<@[UW][A-Z0-9]+(\|[^>]+)?>", "", text)
    text = re.sub(r"<#[CD][A-Z0-9]+(\|[^>]+)?>", "", text)
    text = re.sub(r"<![^>]+>", "", text)
    text = re.sub(r"<[^|>]+\|([^>]+)>", r"\1", text)
    text = re.sub(r"<([^>]+)>", r"\1", text)
    text = re.sub(r"\*([^*]+)\*", r"\1", text)
    text = re.sub(r"_([^_]+)_", r"\1", text)
    text = re.sub(r"~([^~]+)~", r"\1", text)
    text = re.sub(r"`([^`]+)`", r"\1", text)
    text = re.sub(r"&gt;\s?", "", text)
    return text.strip()


_NORMALIZE_TABLE = str.maketrans({
    "\u3000": " ",
    "\uff01": "!",
    "\uff1f": "?",
    "\uff08": "(",
    "\uff09": ")",
    "\u2018": "'",
    "\u2019": "'",
    "\u201c": '"',
    "\u201d": '"',
    "\u2013": "-",
    "\u2014": "-",
    "\u2026": "...",
})


def normalize_text(text: str) -> str:
    """Replace full-width punctuation and typographic quotes with ASCII."""
    return text.translate(_NORMALIZE_TABLE).strip()


def extract_plain_text(text: Any) -> str:
    """Return clean, normalized plain text from a raw Slack message body."""
    if not isinstance(text, str) or not text:
        return ""
    return normalize_text(clean_text(remove_slack_formatting(text)))
