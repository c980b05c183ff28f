"""Decision extraction from thread messages.

A message is a decision candidate when it mentions any English or Japanese
decision keyword. Candidates are then scored; only those whose confidence
clears the threshold are reported.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from slack_thread_analyzer.models import (
    Decision,
    DecisionExtractionResult,
    Message,
    ServiceResult,
    as_message,
)
from slack_thread_analyzer.text_processing import contains_japanese

logger = logging.getLogger(__name__)

ENGLISH_DECISION_KEYWORDS = (
    "decided", "decide", "decision",
    "approved", "approve", "approval",
    "resolved", "resolve", "resolution",
    "agreed", "agree", "agreement",
    "confirmed", "confirm", "confirmation",
    "concluded", "conclude", "conclusion",
    "settled", "settle", "settlement",
    "finalized", "finalize", "final",
    "chosen", "choose", "choice",
    "selected", "select", "selection",
)

JAPANESE_DECISION_KEYWORDS = (
    "決定", "決めた", "決める",
    "承認", "許可", "認める",
    "解決", "解決した",
    "合意", "同意", "賛成",
    "確認", "確定",
    "結論", "結果",
    "選択", "選んだ",
    "最終", "最終的",
)

# Explicit markers such as "DECISION: ..." at any position.
FORMAL_DECISION_MARKERS = ("decision:", "decision -", "決定：", "結論：")

FORMAL_LANGUAGE_PATTERNS = (
    "officially", "formally", "we have", "team has", "it has been",
    "正式に", "公式に", "しました", "いたします",
)

FORMAL_BASE_CONFIDENCE = 0.85
INFORMAL_BASE_CONFIDENCE = 0.6
DEFAULT_CONFIDENCE_THRESHOLD = 0.7


class DecisionExtractor:
    """Scores messages as decisions.

    Confidence is additive:

    * base 0.85 with a formal marker, 0.6 otherwise
    * +0.05 per distinct keyword beyond the first, at most +0.1
    * +0.1 for text longer than 20 characters
    * +0.1 for formal language ("officially", "正式に", ...)

    capped at 1.0 and rounded to two decimals.
    """

    def __init__(self, confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD) -> None:
        self.confidence_threshold = confidence_threshold

    # -- classification -------------------------------------------------------

    def is_decision_message(self, message: Any) -> bool:
        msg = as_message(message)
        if msg is None or not msg.text:
            return False
        return bool(self.extract_decision_keywords(msg.text))

    def extract_decision_keywords(self, text: str) -> list[str]:
        """Return the decision keywords found in ``text``, first-seen order."""
        lowered = text.lower()
        keywords = [kw for kw in ENGLISH_DECISION_KEYWORDS if kw in lowered]
        keywords.extend(kw for kw in JAPANESE_DECISION_KEYWORDS if kw in text)
        return list(dict.fromkeys(keywords))

    def calculate_confidence(self, text: str) -> float:
        lowered = text.lower()

        if any(marker in lowered for marker in FORMAL_DECISION_MARKERS):
            confidence = FORMAL_BASE_CONFIDENCE
        else:
            confidence = INFORMAL_BASE_CONFIDENCE

        keyword_count = len(self.extract_decision_keywords(text))
        if keyword_count > 1:
            confidence += min(0.1, (keyword_count - 1) * 0.05)

        if len(text) > 20:
            confidence += 0.1

        if any(pattern in lowered for pattern in FORMAL_LANGUAGE_PATTERNS):
            confidence += 0.1

        return round(min(1.0, confidence), 2)

    def detect_language(self, text: str) -> str:
        """``"ja"`` if any Japanese character is present, else ``"en"``."""
        return "ja" if contains_japanese(text) else "en"

    # -- extraction -----------------------------------------------------------

    def extract_decisions(self, messages: Iterable[Any]) -> DecisionExtractionResult:
        """Score every message and keep those above the threshold.

        Malformed messages (not a mapping, or without text) are skipped but
        still counted in ``total_messages``.
        """
        messages = list(messages or [])
        decisions: list[Decision] = []

        for index, raw in enumerate(messages):
            msg = as_message(raw)
            if msg is None or not msg.text:
                continue
            if not self.is_decision_message(msg):
                continue

            confidence = self.calculate_confidence(msg.text)
            if confidence <= self.confidence_threshold:
                logger.debug("Message %d below threshold (%.2f)", index, confidence)
                continue

            decisions.append(
                Decision(
                    text=msg.text,
                    confidence=confidence,
                    keywords=self.extract_decision_keywords(msg.text),
                    language=self.detect_language(msg.text),
                    timestamp=msg.ts,
                    user=msg.user,
                    message_index=index,
                )
            )

        logger.debug("Found %d decisions in %d messages", len(decisions), len(messages))
        return DecisionExtractionResult(decisions=decisions, total_messages=len(messages))

    def extract_decisions_for_thread(
        self,
        channel: str,
        thread_ts: str,
        messages: Iterable[Message | Mapping[str, Any]],
    ) -> dict[str, list[dict[str, Any]]]:
        """Thread-level summary: one entry per retained decision."""
        result = self.extract_decisions(messages)
        logger.debug(
            "Thread %s/%s: %d decisions", channel, thread_ts, len(result.decisions)
        )
        return {
            "decisions_made": [
                {
                    "decision": decision.text,
                    "participant": decision.user,
                    "timestamp": decision.timestamp,
                    "confidence": decision.confidence,
                }
                for decision in result.decisions
            ]
        }

    def extract_decisions_service(self, args: Any) -> ServiceResult:
        """Validate ``args`` and run :meth:`extract_decisions`.

        Never raises: invalid shapes yield status 400, failures during
        extraction yield status 500.
        """
        if not isinstance(args, Mapping):
            return ServiceResult(
                success=False,
                status_code=400,
                message="Invalid request parameters",
                error="Invalid arguments: object expected",
            )

        messages = args.get("messages")
        if not isinstance(messages, (list, tuple)):
            return ServiceResult(
                success=False,
                status_code=400,
                message="Invalid request parameters",
                error="Invalid messages: array expected",
            )

        try:
            result = self.extract_decisions(messages)
        except Exception as exc:
            logger.warning("Decision extraction failed: %s", exc)
            return ServiceResult(
                success=False,
                status_code=500,
                message="Decision extraction failed",
                error=f"Failed to extract decisions: {exc}",
            )

        return ServiceResult(
            success=True,
            status_code=200,
            message="Decisions extracted successfully",
            data=result,
        )
