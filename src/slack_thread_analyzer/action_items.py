"""Action item extraction.

Messages are scanned line by line. A line becomes an action item when it
contains an action indicator ("todo", "対応", ...) or, with line scoring
enabled, when its combined signal score exceeds ``min_line_score``. The
signals are a leading bullet, a Japanese request phrase, a user mention and
an urgency keyword.
"""

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from slack_thread_analyzer.conjugation import normalize_conjugation
from slack_thread_analyzer.models import (
    ActionItem,
    ActionItemExtractionResult,
    BulletPointDetectionResult,
    LineScore,
    PriorityAnalysisResult,
    RequestPatternResult,
    StatusAnalysisResult,
    as_message,
)
from slack_thread_analyzer.text_processing import JAPANESE_CHAR_CLASS, contains_japanese

logger = logging.getLogger(__name__)

MAX_ACTION_TEXT_LENGTH = 500
# Items need more than five characters after cleaning.
MIN_ACTION_TEXT_LENGTH = 6

_JAPANESE_RUN_RE = re.compile(f"[{JAPANESE_CHAR_CLASS}]+")
_MENTION_RE = re.compile(r"<@(\w+)(?:\|[^>]*)?>")
_WESTERN_BULLET_RE = re.compile(r"^([-*+>])\s")
_NUMBERED_RE = re.compile(r"^(?:\d+[.)](?:\s|$)|[①-⑳])")
_LEADING_MARKER_RE = re.compile(r"^(?:[・●○■□‐－•*+>-]|\d+[.)](?=\s|$)|[①-⑳])\s*")

# Action word + request suffix, e.g. "対応お願いします", "確認ください".
_SPECIFIC_REQUEST_RE = re.compile(
    "(?:対応|確認|レビュー|チェック|修正|テスト|実装|更新|削除|追加|作成)"
    "を?(?:お願いします|お願いいたします|ください)"
)
_ASSIGNMENT_REQUEST_RE = re.compile("(?:を担当してください|の件でお願いします)")
GENERIC_REQUEST_PATTERNS = (
    "お願いします",
    "お願いいたします",
    "お願いできますか",
    "していただけますか",
    "していただきたく",
    "いただけますか",
    "ください",
)
GENERIC_REQUEST_WEIGHT = 1.0
SPECIFIC_REQUEST_WEIGHT = 1.8

PRIORITY_LEVELS = {"low": 1, "medium": 2, "high": 3}


@dataclass(frozen=True)
class BulletPointConfig:
    japanese_bullets: tuple[str, ...] = ("・", "●", "○", "■", "□", "‐", "－")
    western_bullets: tuple[str, ...] = ("-", "*", "+", ">")
    bullet_point_weight: float = 1.5


@dataclass(frozen=True)
class PriorityKeywords:
    high: tuple[str, ...] = ()
    medium: tuple[str, ...] = ()


@dataclass(frozen=True)
class StatusKeywords:
    completed: tuple[str, ...] = ()
    in_progress: tuple[str, ...] = ()


DEFAULT_BULLET_POINT_CONFIG = BulletPointConfig()

DEFAULT_URGENCY_KEYWORDS = (
    "urgent", "immediate", "immediately", "asap", "critical",
    "緊急", "至急", "急ぎ", "今すぐ",
)

BASE_ACTION_INDICATORS = (
    "todo", "action item", "need to", "should", "will", "task", "follow up",
    "next step", "assign", "assigned", "do", "implement", "fix", "update",
    "create", "add", "remove", "delete", "check", "verify", "test", "review",
    "やる", "する", "しなければ", "タスク", "やること", "対応", "作業", "実装",
    "修正", "確認", "レビュー",
)

ENHANCED_ACTION_INDICATORS = BASE_ACTION_INDICATORS + (
    "テスト", "更新", "削除", "追加", "作成", "チェック", "担当",
    "お願いします", "お願いいたします", "ください",
    "していただけますか", "していただきたく",
)

DEFAULT_PRIORITY_KEYWORDS = PriorityKeywords(
    high=(
        "urgent", "critical", "immediately", "asap", "priority", "blocker",
        "blocking", "emergency", "now", "today",
        "緊急", "至急", "重要", "すぐ", "今すぐ",
    ),
    medium=(
        "important", "soon", "this week", "by friday", "deadline", "schedule",
        "planned", "今週", "期限",
    ),
)

DEFAULT_STATUS_KEYWORDS = StatusKeywords(
    completed=(
        "done", "completed", "finished", "resolved", "closed", "fixed",
        "solved", "complete", "ready", "delivered",
        "完了", "完了しました", "完了済み", "終了", "終了しました",
        "解決", "解決しました", "修正済み", "対応済み",
    ),
    in_progress=(
        "working on", "in progress", "started", "began", "ongoing",
        "processing", "handling", "implementing", "developing",
        "作業中", "進行中", "実装中", "対応中", "開発中",
    ),
)


@dataclass(frozen=True)
class ActionItemConfig:
    """Extraction settings.

    Only the first three fields matter for plain indicator matching; the
    rest are opt-in and disabled by default.
    """

    action_indicators: tuple[str, ...] = ()
    priority_keywords: PriorityKeywords = field(default_factory=PriorityKeywords)
    status_keywords: StatusKeywords = field(default_factory=StatusKeywords)
    enable_line_scoring: bool = False
    enable_conjugation_normalization: bool = False
    bullet_point_config: BulletPointConfig = DEFAULT_BULLET_POINT_CONFIG
    urgency_keywords: tuple[str, ...] = DEFAULT_URGENCY_KEYWORDS
    mention_weight: float = 0.5
    urgency_weight: float = 1.0
    min_line_score: float = 1.0


DEFAULT_ACTION_ITEM_CONFIG = ActionItemConfig(
    action_indicators=ENHANCED_ACTION_INDICATORS,
    priority_keywords=DEFAULT_PRIORITY_KEYWORDS,
    status_keywords=DEFAULT_STATUS_KEYWORDS,
    enable_conjugation_normalization=True,
)


# -- signal detectors ----------------------------------------------------------


def detect_bullet_point(
    line: str, config: BulletPointConfig = DEFAULT_BULLET_POINT_CONFIG
) -> BulletPointDetectionResult:
    """Detect a bullet or list number at the start of ``line``.

    Only the leading position counts; a glyph in mid-sentence is ignored.
    """
    stripped = line.lstrip()
    if not stripped:
        return BulletPointDetectionResult(has_bullet_point=False, weight=0)

    first = stripped[0]
    if first in config.japanese_bullets:
        return BulletPointDetectionResult(True, config.bullet_point_weight, f"japanese:{first}")

    match = _WESTERN_BULLET_RE.match(stripped)
    if match and match.group(1) in config.western_bullets:
        return BulletPointDetectionResult(
            True, config.bullet_point_weight, f"western:{match.group(1)}"
        )

    if _NUMBERED_RE.match(stripped):
        return BulletPointDetectionResult(True, config.bullet_point_weight, "numbered")

    return BulletPointDetectionResult(has_bullet_point=False, weight=0)


def detect_japanese_requests(line: str) -> RequestPatternResult:
    """Detect Japanese request phrasing.

    Specific requests ("修正お願いします") and task assignments
    ("〜を担当してください") weigh 1.8; generic polite requests weigh 1.0.
    The strongest tier present sets the weight.
    """
    patterns: list[str] = []
    weight = 0.0

    for regex in (_SPECIFIC_REQUEST_RE, _ASSIGNMENT_REQUEST_RE):
        for match in regex.finditer(line):
            patterns.append(match.group(0))
            weight = SPECIFIC_REQUEST_WEIGHT

    for pattern in GENERIC_REQUEST_PATTERNS:
        if pattern in line:
            patterns.append(pattern)
            weight = max(weight, GENERIC_REQUEST_WEIGHT)

    return RequestPatternResult(
        has_request_pattern=bool(patterns),
        weight=weight,
        patterns=list(dict.fromkeys(patterns)),
    )


def extract_mentions(text: str) -> list[str]:
    """Return the user IDs of ``<@U...>`` mentions in order of appearance."""
    return _MENTION_RE.findall(text)


def _matches_keyword(lowered: str, keyword: str) -> bool:
    keyword = keyword.lower()
    if contains_japanese(keyword):
        return keyword in lowered
    return re.search(rf"\b{re.escape(keyword)}\b", lowered, re.ASCII) is not None


def detect_urgency_keywords(line: str, keywords: Iterable[str] = DEFAULT_URGENCY_KEYWORDS) -> list[str]:
    lowered = line.lower()
    return [keyword for keyword in keywords if _matches_keyword(lowered, keyword)]


def score_action_line(line: str, config: ActionItemConfig = DEFAULT_ACTION_ITEM_CONFIG) -> LineScore:
    """Sum the weights of every signal present on ``line``."""
    bullet = detect_bullet_point(line, config.bullet_point_config)
    request = detect_japanese_requests(line)
    has_mentions = bool(extract_mentions(line))
    urgency_keywords = detect_urgency_keywords(line, config.urgency_keywords)

    score = bullet.weight + request.weight
    if has_mentions:
        score += config.mention_weight
    if urgency_keywords:
        score += config.urgency_weight

    return LineScore(
        score=score,
        bullet_point_info=bullet,
        request_pattern_info=request,
        has_mentions=has_mentions,
        has_urgency_keywords=bool(urgency_keywords),
        urgency_keywords=urgency_keywords,
    )


# -- indicator matching --------------------------------------------------------


def _normalize_japanese_runs(text: str) -> str:
    return _JAPANESE_RUN_RE.sub(lambda m: normalize_conjugation(m.group(0)), text)


def normalize_action_text(text: str, config: ActionItemConfig = DEFAULT_ACTION_ITEM_CONFIG) -> str:
    """Reduce conjugated Japanese runs to dictionary form.

    Non-Japanese text passes through untouched. A no-op unless
    ``config.enable_conjugation_normalization`` is set.
    """
    if not config.enable_conjugation_normalization:
        return text
    return _normalize_japanese_runs(text)


def find_action_indicators(
    text: str,
    indicators: Iterable[str],
    enable_normalization: bool = False,
) -> list[str]:
    """Return the indicators present in ``text``.

    Indicators match as case-insensitive substrings, so "fix" also finds
    "Fixed" and "test" finds "testing". With normalization, a Japanese
    indicator also matches when text and indicator agree after conjugation
    normalization ("修正しました" vs "修正する").
    """
    lowered = text.lower()
    normalized = _normalize_japanese_runs(lowered) if enable_normalization else lowered

    found: list[str] = []
    for indicator in indicators:
        if indicator in found:
            continue
        if indicator.lower() in lowered:
            found.append(indicator)
        elif enable_normalization and contains_japanese(indicator):
            if _normalize_japanese_runs(indicator.lower()) in normalized:
                found.append(indicator)
    return found


def contains_action_indicators(
    text: str,
    indicators: Iterable[str],
    enable_normalization: bool = False,
) -> bool:
    return bool(find_action_indicators(text, indicators, enable_normalization))


# -- priority / status ---------------------------------------------------------


def _find_keywords(text: str, keywords: Iterable[str]) -> list[str]:
    # Whole words, so "now" does not match "know"
    lowered = text.lower()
    return list(dict.fromkeys(kw for kw in keywords if _matches_keyword(lowered, kw)))


def analyze_priority(text: str, keywords: PriorityKeywords) -> PriorityAnalysisResult:
    high = _find_keywords(text, keywords.high)
    if high:
        return PriorityAnalysisResult("high", 3, high)
    medium = _find_keywords(text, keywords.medium)
    if medium:
        return PriorityAnalysisResult("medium", 2, medium)
    return PriorityAnalysisResult("low", 1, [])


def analyze_status(text: str, keywords: StatusKeywords) -> StatusAnalysisResult:
    completed = _find_keywords(text, keywords.completed)
    if completed:
        return StatusAnalysisResult("completed", min(1.0, 0.7 + len(completed) * 0.1), completed)
    in_progress = _find_keywords(text, keywords.in_progress)
    if in_progress:
        return StatusAnalysisResult("in_progress", min(1.0, 0.6 + len(in_progress) * 0.1), in_progress)
    return StatusAnalysisResult("open", 0.5, [])


def clean_action_item_text(text: str) -> str:
    """Strip the list marker, collapse whitespace and cap the length."""
    cleaned = re.sub(r"\s+", " ", text.strip())
    cleaned = _LEADING_MARKER_RE.sub("", cleaned)
    return cleaned[:MAX_ACTION_TEXT_LENGTH]


# -- extraction ----------------------------------------------------------------


def extract_action_items_from_message(
    message: Any, config: ActionItemConfig = DEFAULT_ACTION_ITEM_CONFIG
) -> list[ActionItem]:
    msg = as_message(message)
    if msg is None or not msg.text:
        return []

    scored: list[tuple[float, ActionItem]] = []
    for line in (raw.strip() for raw in msg.text.split("\n")):
        if not line:
            continue

        has_indicator = contains_action_indicators(
            line, config.action_indicators, config.enable_conjugation_normalization
        )
        line_score = score_action_line(line, config) if config.enable_line_scoring else None
        if not has_indicator and not (
            line_score is not None and line_score.score > config.min_line_score
        ):
            continue

        text = clean_action_item_text(line)
        if len(text) < MIN_ACTION_TEXT_LENGTH:
            continue

        priority = analyze_priority(line, config.priority_keywords).priority
        if line_score is not None and line_score.has_urgency_keywords:
            priority = "high"

        item = ActionItem(
            text=text,
            priority=priority,
            status=analyze_status(line, config.status_keywords).status,
            mentioned_users=extract_mentions(line),
            source_message_ts=msg.ts,
            source_user=msg.user,
        )
        scored.append((line_score.score if line_score is not None else 0.0, item))

    if config.enable_line_scoring:
        # sorted() is stable: equal scores keep line order
        scored = sorted(scored, key=lambda pair: pair[0], reverse=True)

    return [item for _, item in scored]


def extract_action_items_from_messages(
    messages: Iterable[Any], config: ActionItemConfig = DEFAULT_ACTION_ITEM_CONFIG
) -> ActionItemExtractionResult:
    items: list[ActionItem] = []
    indicators_found: dict[str, None] = {}

    for message in messages:
        items.extend(extract_action_items_from_message(message, config))
        msg = as_message(message)
        if msg is not None and msg.text:
            for indicator in find_action_indicators(
                msg.text, config.action_indicators, config.enable_conjugation_normalization
            ):
                indicators_found[indicator] = None

    logger.debug("Extracted %d action items", len(items))
    return ActionItemExtractionResult(
        action_items=items,
        total_action_indicators=len(indicators_found),
        action_indicators_found=list(indicators_found),
    )


# -- reporting helpers ---------------------------------------------------------


def group_action_items_by_priority(items: Sequence[ActionItem]) -> dict[str, list[ActionItem]]:
    return {
        priority: [item for item in items if item.priority == priority]
        for priority in ("high", "medium", "low")
    }


def group_action_items_by_status(items: Sequence[ActionItem]) -> dict[str, list[ActionItem]]:
    return {
        status: [item for item in items if item.status == status]
        for status in ("open", "in_progress", "completed")
    }


def get_action_items_for_users(items: Sequence[ActionItem], user_ids: Iterable[str]) -> list[ActionItem]:
    wanted = set(user_ids)
    return [item for item in items if wanted.intersection(item.mentioned_users)]


def get_action_item_statistics(items: Sequence[ActionItem]) -> dict[str, Any]:
    by_priority = group_action_items_by_priority(items)
    by_status = group_action_items_by_status(items)
    assigned = sum(1 for item in items if item.mentioned_users)

    return {
        "total": len(items),
        "by_priority": {key: len(group) for key, group in by_priority.items()},
        "by_status": {key: len(group) for key, group in by_status.items()},
        "assigned_count": assigned,
        "unassigned_count": len(items) - assigned,
        "completion_rate": len(by_status["completed"]) / len(items) if items else 0.0,
    }


def filter_action_items_by_priority(items: Sequence[ActionItem], min_priority: str) -> list[ActionItem]:
    """Keep items at or above ``min_priority`` ("low", "medium" or "high")."""
    min_level = PRIORITY_LEVELS[min_priority]
    return [item for item in items if PRIORITY_LEVELS.get(item.priority, 1) >= min_level]


def get_incomplete_action_items(items: Sequence[ActionItem]) -> list[ActionItem]:
    return [item for item in items if item.status != "completed"]


def generate_action_item_summary(extraction: ActionItemExtractionResult) -> str:
    stats = get_action_item_statistics(extraction.action_items)
    by_priority = stats["by_priority"]
    by_status = stats["by_status"]

    return "\n".join([
        "Action Items Summary:",
        f"- Total: {stats['total']}",
        f"- Priority: {by_priority['high']} high, {by_priority['medium']} medium, {by_priority['low']} low",
        f"- Status: {by_status['open']} open, {by_status['in_progress']} in progress, "
        f"{by_status['completed']} completed",
        f"- Assignment: {stats['assigned_count']} assigned, {stats['unassigned_count']} unassigned",
        f"- Completion rate: {stats['completion_rate'] * 100:.1f}%",
        f"- Action indicators found: {', '.join(extraction.action_indicators_found)}",
    ])
