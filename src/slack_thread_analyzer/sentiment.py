"""Keyword-based sentiment analysis for English and Japanese messages.

Counts lexicon hits, then adjusts the counts for Japanese negation,
emphasis and mitigation before classifying. Every intermediate counter is
kept on the result so :func:`explain_sentiment` can show its work.
"""

import logging
import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from slack_thread_analyzer.models import (
    Sentiment,
    SentimentAnalysisResult,
    as_message,
)
from slack_thread_analyzer.text_processing import (
    contains_japanese,
    count_words_in_text,
    detect_language_content,
)

logger = logging.getLogger(__name__)


def _empty_patterns() -> Mapping[str, float]:
    return MappingProxyType({})


@dataclass(frozen=True)
class SentimentConfig:
    positive_words: tuple[str, ...] = ()
    negative_words: tuple[str, ...] = ()
    japanese_positive_words: tuple[str, ...] = ()
    japanese_negative_words: tuple[str, ...] = ()
    negation_patterns: tuple[str, ...] = ()
    emphasis_patterns: Mapping[str, float] = field(default_factory=_empty_patterns)
    mitigation_patterns: Mapping[str, float] = field(default_factory=_empty_patterns)
    threshold: float = 1.2  # ratio one side must exceed the other by
    enable_japanese_processing: bool = False


DEFAULT_SENTIMENT_CONFIG = SentimentConfig(
    positive_words=(
        "good", "great", "excellent", "awesome", "perfect", "love", "like",
        "happy", "yes", "agree", "amazing", "fantastic", "wonderful",
        "brilliant", "outstanding", "success", "achieved", "completed",
        "solved", "resolved",
    ),
    negative_words=(
        "bad", "terrible", "awful", "hate", "dislike", "angry", "no",
        "disagree", "problem", "issue", "error", "bug", "broken", "failed",
        "wrong", "difficult", "hard", "stuck", "blocked", "frustrated",
    ),
    japanese_positive_words=(
        "良い", "素晴らしい", "最高", "完璧", "嬉しい", "楽しい", "ありがとう",
        "感謝", "助かり", "助かる", "お疲れ様", "成功", "満足", "順調", "達成",
        "進歩", "成果", "賛成", "良かった", "よかった", "便利",
    ),
    japanese_negative_words=(
        "悪い", "ひどい", "最悪", "問題", "バグ", "エラー", "失敗", "困って",
        "困る", "障害", "不具合", "課題", "遅延", "残念", "申し訳", "心配",
        "不安", "難しい", "大変", "改善が必要", "ダメ", "無理",
    ),
    negation_patterns=("ない", "ません", "じゃない", "ではない"),
    emphasis_patterns=MappingProxyType({
        "めちゃくちゃ": 1.5,
        "めちゃ": 1.3,
        "すごく": 1.5,
        "非常に": 1.5,
        "とても": 1.3,
        "本当に": 1.3,
        "かなり": 1.2,
    }),
    mitigation_patterns=MappingProxyType({
        "少し": 0.8,
        "ちょっと": 0.8,
        "やや": 0.8,
        "まあまあ": 0.9,
        "多少": 0.9,
        "若干": 0.9,
    }),
    threshold=1.2,
    enable_japanese_processing=True,
)


@dataclass
class NegationAdjustment:
    adjusted_positive_count: int
    adjusted_negative_count: int
    negation_adjustments: int


@dataclass
class EmphasisMitigationAdjustment:
    adjusted_positive_count: int
    adjusted_negative_count: int
    emphasis_adjustments: int
    mitigation_adjustments: int


def _round_half_up(value: float) -> int:
    # round() rounds half to even; counts round .5 upwards
    return math.floor(value + 0.5)


def extract_text_from_messages(messages: Iterable[Any]) -> str:
    """Join the messages' text with spaces, lowercased and stripped."""
    texts = []
    for raw in messages:
        message = as_message(raw)
        texts.append(message.text if message is not None else "")
    return " ".join(texts).lower().strip()


def count_word_occurrences(text: str, words: Iterable[str]) -> int:
    """Count whole-word occurrences of each English word in ``text``."""
    count = 0
    for word in words:
        pattern = re.compile(rf"\b{re.escape(word.lower())}\b", re.ASCII)
        count += len(pattern.findall(text))
    return count


def count_japanese_word_occurrences(text: str, words: Iterable[str]) -> int:
    """Count substring occurrences of each Japanese word in ``text``.

    Unsegmented Japanese has no word boundaries, so plain substring counts
    are used.
    """
    return sum(text.count(word) for word in words if word)


def process_negation_patterns(
    text: str,
    negation_patterns: Iterable[str],
    positive_count: int,
    negative_count: int,
) -> NegationAdjustment:
    """Adjust sentiment counts for Japanese negation.

    When negations outnumber (or equal) the sentiment words the counts are
    swapped. Otherwise any negation damps the positive count by
    ``min(0.8, n * 0.3)`` and adds ``floor(n * 0.5)`` to the negative count.
    """
    negations = sum(text.count(pattern) for pattern in negation_patterns if pattern)
    total = positive_count + negative_count

    if total > 0 and negations >= total:
        return NegationAdjustment(negative_count, positive_count, negations)

    if negations > 0 and positive_count > 0:
        reduction = min(0.8, negations * 0.3)
        return NegationAdjustment(
            adjusted_positive_count=_round_half_up(positive_count * (1 - reduction)),
            adjusted_negative_count=negative_count + math.floor(negations * 0.5),
            negation_adjustments=negations,
        )

    return NegationAdjustment(positive_count, negative_count, negations)


def process_emphasis_mitigation(
    text: str,
    emphasis_patterns: Mapping[str, float],
    mitigation_patterns: Mapping[str, float],
    positive_count: int,
    negative_count: int,
) -> EmphasisMitigationAdjustment:
    """Scale both counts by the strongest emphasis and mitigation present."""
    emphasis_found = [m for pattern, m in emphasis_patterns.items() if pattern and pattern in text]
    mitigation_found = [m for pattern, m in mitigation_patterns.items() if pattern and pattern in text]

    multiplier = max(emphasis_found, default=1.0) * min(mitigation_found, default=1.0)

    return EmphasisMitigationAdjustment(
        adjusted_positive_count=_round_half_up(positive_count * multiplier),
        adjusted_negative_count=_round_half_up(negative_count * multiplier),
        emphasis_adjustments=len(emphasis_found),
        mitigation_adjustments=len(mitigation_found),
    )


def classify_sentiment(positive_count: int, negative_count: int, threshold: float) -> Sentiment:
    if positive_count > negative_count * threshold:
        return Sentiment.POSITIVE
    if negative_count > positive_count * threshold:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


def analyze_sentiment(
    messages: Iterable[Any],
    config: SentimentConfig = DEFAULT_SENTIMENT_CONFIG,
) -> SentimentAnalysisResult:
    """Classify the overall sentiment of ``messages``.

    Stages, each feeding the next:
      1. English lexicon counts (whole words)
      2. Japanese lexicon counts (substrings), when enabled and present
      3. negation pass
      4. emphasis / mitigation pass
      5. classification against ``config.threshold``
    """
    text = extract_text_from_messages(messages)
    language_content = detect_language_content(text)

    if not text:
        return SentimentAnalysisResult(
            sentiment=Sentiment.NEUTRAL,
            positive_count=0,
            negative_count=0,
            total_words=0,
            language_content=language_content,
        )

    positive = count_word_occurrences(text, config.positive_words)
    negative = count_word_occurrences(text, config.negative_words)

    japanese_positive = 0
    japanese_negative = 0
    negation_adjustments = 0
    emphasis_adjustments = 0
    mitigation_adjustments = 0

    if config.enable_japanese_processing and contains_japanese(text):
        japanese_positive = count_japanese_word_occurrences(text, config.japanese_positive_words)
        japanese_negative = count_japanese_word_occurrences(text, config.japanese_negative_words)
        positive += japanese_positive
        negative += japanese_negative

        if config.negation_patterns:
            negation = process_negation_patterns(
                text, config.negation_patterns, positive, negative
            )
            positive = negation.adjusted_positive_count
            negative = negation.adjusted_negative_count
            negation_adjustments = negation.negation_adjustments

        emphasis = process_emphasis_mitigation(
            text,
            config.emphasis_patterns,
            config.mitigation_patterns,
            positive,
            negative,
        )
        positive = emphasis.adjusted_positive_count
        negative = emphasis.adjusted_negative_count
        emphasis_adjustments = emphasis.emphasis_adjustments
        mitigation_adjustments = emphasis.mitigation_adjustments

    sentiment = classify_sentiment(positive, negative, config.threshold)
    logger.debug(
        "Sentiment %s: positive=%d negative=%d (ja +%d/-%d)",
        sentiment.value,
        positive,
        negative,
        japanese_positive,
        japanese_negative,
    )

    return SentimentAnalysisResult(
        sentiment=sentiment,
        positive_count=positive,
        negative_count=negative,
        total_words=count_words_in_text(text),
        japanese_positive_count=japanese_positive,
        japanese_negative_count=japanese_negative,
        negation_adjustments=negation_adjustments,
        emphasis_adjustments=emphasis_adjustments,
        mitigation_adjustments=mitigation_adjustments,
        language_content=language_content,
    )


def get_sentiment_score(result: SentimentAnalysisResult) -> float:
    """Return a score in [-1, 1]; 0 when there is no text."""
    if result.total_words == 0:
        return 0.0
    net = (result.positive_count - result.negative_count) / result.total_words
    return max(-1.0, min(1.0, net * 10))


def is_sentiment_reliable(result: SentimentAnalysisResult) -> bool:
    """At least two sentiment words in at least ten words of text."""
    return result.positive_count + result.negative_count >= 2 and result.total_words >= 10


def explain_sentiment(result: SentimentAnalysisResult) -> str:
    """Human-readable summary of a sentiment analysis result."""
    if result.total_words == 0:
        return "No text available for sentiment analysis."

    sentiment_words = result.positive_count + result.negative_count
    if sentiment_words == 0:
        return (
            "Neutral sentiment - no clear positive or negative indicators "
            f"found in {result.total_words} words."
        )

    reliability = "reliable" if is_sentiment_reliable(result) else "limited"
    if result.negative_count > 0:
        ratio = f"{result.positive_count / result.negative_count:.1f}"
    else:
        ratio = "infinite"

    explanation = (
        f"{result.sentiment.value.capitalize()} sentiment ({reliability} analysis) - "
        f"{result.positive_count} positive vs {result.negative_count} negative indicators "
        f"(ratio: {ratio}) in {result.total_words} total words."
    )

    if result.language_content is not None and result.language_content.has_japanese:
        explanation += (
            f" Japanese analysis: {result.japanese_positive_count} positive, "
            f"{result.japanese_negative_count} negative words."
        )

    adjustments = []
    if result.negation_adjustments:
        adjustments.append(f"negation ({result.negation_adjustments})")
    if result.emphasis_adjustments:
        adjustments.append(f"emphasis ({result.emphasis_adjustments})")
    if result.mitigation_adjustments:
        adjustments.append(f"mitigation ({result.mitigation_adjustments})")
    if adjustments:
        explanation += f" Applied adjustments: {', '.join(adjustments)}."

    return explanation
