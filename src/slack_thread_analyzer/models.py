"""Shared data structures used across all components."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Sentiment(Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


@dataclass
class Message:
    text: str = ""  # message body, "" when Slack sent none
    ts: str = ""
    user: str = ""  # raw user ID
    type: str = "message"
    thread_ts: str | None = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Message":
        """Build a Message from a raw Slack message dict.

        Missing or non-string fields are normalized to empty strings so the
        analyzers never need to check for None.
        """
        text = raw.get("text")
        thread_ts = raw.get("thread_ts")
        return cls(
            text=text if isinstance(text, str) else "",
            ts=str(raw.get("ts") or ""),
            user=str(raw.get("user") or ""),
            type=str(raw.get("type") or "message"),
            thread_ts=str(thread_ts) if thread_ts else None,
        )


def as_message(obj: Any) -> Message | None:
    """Coerce a Message or mapping into a Message; None when malformed."""
    if isinstance(obj, Message):
        return obj
    if isinstance(obj, Mapping):
        return Message.from_dict(obj)
    return None


@dataclass
class LanguageContent:
    has_japanese: bool = False
    has_english: bool = False
    mixed_language: bool = False
    primary_language: str = "english"  # "japanese" or "english"


@dataclass
class SentimentAnalysisResult:
    sentiment: Sentiment
    positive_count: int
    negative_count: int
    total_words: int
    japanese_positive_count: int = 0
    japanese_negative_count: int = 0
    negation_adjustments: int = 0
    emphasis_adjustments: int = 0
    mitigation_adjustments: int = 0
    language_content: LanguageContent | None = None


@dataclass
class Decision:
    text: str
    confidence: float  # 0.0-1.0
    keywords: list[str]
    language: str  # "en" or "ja"
    timestamp: str
    user: str
    message_index: int


@dataclass
class DecisionExtractionResult:
    decisions: list[Decision]
    total_messages: int


@dataclass
class ServiceResult:
    success: bool
    status_code: int
    message: str
    data: Any = None
    error: str | None = None


@dataclass
class ActionItem:
    text: str
    priority: str  # "high", "medium" or "low"
    status: str  # "open", "in_progress" or "completed"
    mentioned_users: list[str] = field(default_factory=list)
    source_message_ts: str = ""
    source_user: str = ""


@dataclass
class ActionItemExtractionResult:
    action_items: list[ActionItem]
    total_action_indicators: int
    action_indicators_found: list[str]


@dataclass
class BulletPointDetectionResult:
    has_bullet_point: bool
    weight: float
    bullet_type: str | None = None  # e.g. "japanese:・", "western:-", "numbered"


@dataclass
class RequestPatternResult:
    has_request_pattern: bool
    weight: float
    patterns: list[str] = field(default_factory=list)


@dataclass
class LineScore:
    score: float
    bullet_point_info: BulletPointDetectionResult
    request_pattern_info: RequestPatternResult
    has_mentions: bool
    has_urgency_keywords: bool
    urgency_keywords: list[str] = field(default_factory=list)


@dataclass
class PriorityAnalysisResult:
    priority: str
    priority_level: int  # 1 = low, 2 = medium, 3 = high
    keywords_found: list[str] = field(default_factory=list)


@dataclass
class StatusAnalysisResult:
    status: str
    confidence: float
    keywords_found: list[str] = field(default_factory=list)


@dataclass
class TopicExtractionResult:
    topics: list[str]
    word_counts: dict[str, float]
    has_japanese_content: bool = False
    has_english_content: bool = False
