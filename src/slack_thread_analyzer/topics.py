"""Frequency-ranked topic extraction over mixed English/Japanese text."""

import logging
import re
import string
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from slack_thread_analyzer.conjugation import normalize_conjugation
from slack_thread_analyzer.models import TopicExtractionResult, as_message
from slack_thread_analyzer.text_processing import (
    ENGLISH_STOP_WORDS,
    JAPANESE_STOP_WORDS,
    clean_text,
    contains_japanese,
    detect_language_content,
    has_kanji,
    is_katakana,
    split_at_particles,
    tokenize_text,
)

logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"[a-zA-Z][a-zA-Z0-9_-]{3,}")
_ACRONYM_RE = re.compile(r"[A-Z]{2,}")
_LATIN_RE = re.compile(r"[a-zA-Z]")

# Whole Japanese tokens longer than this are not scored as a unit.
MAX_WHOLE_TOKEN_LENGTH = 10
SPECIAL_PATTERN_WEIGHT = 0.5


@dataclass(frozen=True)
class TopicExtractionConfig:
    max_topics: int = 20
    min_word_length: int = 2
    japanese_stop_words: frozenset[str] = JAPANESE_STOP_WORDS
    english_stop_words: frozenset[str] = ENGLISH_STOP_WORDS
    prefer_kanji: bool = True
    prefer_katakana: bool = True
    enable_conjugation_normalization: bool = True


DEFAULT_TOPIC_CONFIG = TopicExtractionConfig()


def _script_bonus(segment: str, config: TopicExtractionConfig) -> float:
    bonus = 0.0
    if config.prefer_kanji and has_kanji(segment):
        bonus += 0.5
    if config.prefer_katakana and is_katakana(segment):
        bonus += 0.5
    return bonus


def process_japanese_token(token: str, config: TopicExtractionConfig = DEFAULT_TOPIC_CONFIG) -> list[tuple[str, float]]:
    """Weight the whole token and its particle-split segments.

    The whole token scores 2.0 when conjugation normalization changed it
    and 1.5 otherwise, but only if it contains kanji or is all katakana.
    Segments score 1.0. Preferred scripts add 0.5. Each normalized form is
    emitted at most once.
    """
    results: list[tuple[str, float]] = []
    seen: set[str] = set()

    def normalize(word: str) -> str:
        if config.enable_conjugation_normalization:
            return normalize_conjugation(word)
        return word

    if (
        config.min_word_length <= len(token) <= MAX_WHOLE_TOKEN_LENGTH
        and token not in config.japanese_stop_words
    ):
        normalized = normalize(token)
        if normalized not in config.japanese_stop_words and (
            has_kanji(normalized) or is_katakana(normalized)
        ):
            base = 2.0 if normalized != token else 1.5
            results.append((normalized, base + _script_bonus(normalized, config)))
            seen.add(normalized)

    for segment in split_at_particles(token):
        if len(segment) < config.min_word_length or segment in config.japanese_stop_words:
            continue
        normalized = normalize(segment)
        if normalized in seen or normalized in config.japanese_stop_words:
            continue

        meaningful = (
            ((has_kanji(normalized) or is_katakana(normalized)) and len(normalized) >= 2)
            or len(normalized) >= 3
        )
        if meaningful:
            results.append((normalized, 1.0 + _script_bonus(normalized, config)))
            seen.add(normalized)

    return results


def process_english_token(token: str, config: TopicExtractionConfig = DEFAULT_TOPIC_CONFIG) -> tuple[str, float] | None:
    word = token.strip(string.punctuation).lower()
    if len(word) > 3 and word not in config.english_stop_words:
        return word, 1.0
    return None


def extract_special_patterns(text: str, stop_words: Iterable[str] = ENGLISH_STOP_WORDS) -> dict[str, float]:
    """Score technical identifiers and acronyms at 0.5 per occurrence."""
    stop_words = frozenset(stop_words)
    counts: dict[str, float] = {}
    for pattern in (_IDENTIFIER_RE, _ACRONYM_RE):
        for match in pattern.findall(text):
            lowered = match.lower()
            if lowered in stop_words or len(match) > 20:
                continue
            counts[lowered] = counts.get(lowered, 0.0) + SPECIAL_PATTERN_WEIGHT
    return counts


def extract_keywords(text: str, config: TopicExtractionConfig = DEFAULT_TOPIC_CONFIG) -> tuple[list[str], dict[str, float]]:
    """Return ``(keywords, word_counts)`` for ``text``.

    Keywords are ordered by descending weight; ties keep first-seen order.
    """
    cleaned = clean_text(text)
    counts: dict[str, float] = {}

    for token in tokenize_text(cleaned):
        if len(token) < config.min_word_length:
            continue
        if contains_japanese(token):
            weighted = process_japanese_token(token, config)
        else:
            single = process_english_token(token, config)
            weighted = [single] if single is not None else []
        for word, weight in weighted:
            counts[word] = counts.get(word, 0.0) + weight

    for word, weight in extract_special_patterns(cleaned, config.english_stop_words).items():
        counts[word] = counts.get(word, 0.0) + weight

    ranked = sorted(counts, key=counts.__getitem__, reverse=True)
    return ranked[: config.max_topics], counts


def extract_topics_from_thread(
    messages: Iterable[Any], config: TopicExtractionConfig = DEFAULT_TOPIC_CONFIG
) -> TopicExtractionResult:
    texts = []
    for raw in messages:
        message = as_message(raw)
        if message is not None:
            texts.append(message.text)
    text = " ".join(texts)

    if not text.strip():
        return TopicExtractionResult(topics=[], word_counts={})

    topics, counts = extract_keywords(text, config)
    language = detect_language_content(text)
    logger.debug("Extracted %d topics from %d messages", len(topics), len(texts))

    return TopicExtractionResult(
        topics=topics,
        word_counts=counts,
        has_japanese_content=language.has_japanese,
        has_english_content=language.has_english,
    )


def get_topic_relevance(topic: str, analysis: TopicExtractionResult) -> float:
    """Topic weight relative to the heaviest topic, in [0, 1]."""
    frequency = analysis.word_counts.get(topic, 0.0)
    if frequency == 0:
        return 0.0
    highest = max(analysis.word_counts.values())
    return frequency / highest if highest else 0.0


def filter_topics_by_relevance(analysis: TopicExtractionResult, min_relevance: float = 0.1) -> list[str]:
    return [topic for topic in analysis.topics if get_topic_relevance(topic, analysis) >= min_relevance]


def get_topic_summary(analysis: TopicExtractionResult) -> dict[str, Any]:
    distribution = {"japanese": 0, "english": 0, "mixed": 0}
    for topic in analysis.topics:
        japanese = contains_japanese(topic)
        latin = _LATIN_RE.search(topic) is not None
        if japanese and latin:
            distribution["mixed"] += 1
        elif japanese:
            distribution["japanese"] += 1
        else:
            distribution["english"] += 1

    relevances = [get_topic_relevance(topic, analysis) for topic in analysis.topics]
    return {
        "total_topics": len(analysis.topics),
        "total_frequency": sum(analysis.word_counts.values()),
        "average_relevance": sum(relevances) / len(relevances) if relevances else 0.0,
        "language_distribution": distribution,
    }
