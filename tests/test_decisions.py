"""Tests for decision extraction."""

import time
from unittest.mock import patch

import pytest

from slack_thread_analyzer.decisions import DecisionExtractor
from slack_thread_analyzer.models import Message


def make_msg(text, **overrides) -> dict:
    """Create a raw Slack message dict, overriding specific fields."""
    msg = {"type": "message", "user": "U_ALICE", "text": text, "ts": "1700000000.000100"}
    msg.update(overrides)
    return msg


@pytest.fixture()
def extractor():
    return DecisionExtractor()


# ── Classification ────────────────────────────────────────────────


class TestIsDecisionMessage:
    @pytest.mark.parametrize("text", [
        "We decided to go with option A",
        "The proposal was APPROVED",
        "Issue resolved after the call",
        "決定：新しいAPIデザインを実装します",
        "チームで合意しました",
        "Should we decide on this tomorrow?",
    ])
    def test_decision_keywords(self, extractor, text):
        assert extractor.is_decision_message(make_msg(text)) is True

    @pytest.mark.parametrize("text", [
        "Let's grab lunch",
        "今日は晴れです",
        "",
    ])
    def test_not_a_decision(self, extractor, text):
        assert extractor.is_decision_message(make_msg(text)) is False

    def test_missing_or_malformed(self, extractor):
        assert extractor.is_decision_message({"user": "U1"}) is False
        assert extractor.is_decision_message({"text": None}) is False
        assert extractor.is_decision_message(None) is False

    def test_pure_function_of_text(self, extractor):
        msg = make_msg("We agreed on the plan")
        assert extractor.is_decision_message(msg) == extractor.is_decision_message(msg)


class TestConfidence:
    @pytest.mark.parametrize("text, expected", [
        ("decide", 0.6),
        ("We decided to go with option A", 0.75),
        ("We have officially decided to proceed with the plan", 0.85),
        ("The team has decided on the new architecture", 0.85),
        ("決定：新しいAPIデザインを実装します", 0.85),
        ("最終的に決定して承認しました", 0.8),
    ])
    def test_scores(self, extractor, text, expected):
        assert extractor.calculate_confidence(text) == pytest.approx(expected)

    def test_capped_at_one(self, extractor):
        text = "DECISION: we have officially approved and finalized the selected agreement"
        assert extractor.calculate_confidence(text) == 1.0

    def test_keyword_bonus_capped(self, extractor):
        # Many keywords still add at most 0.1
        assert extractor.calculate_confidence("決定 承認 合意 確定 結論") == pytest.approx(0.7)


class TestKeywordsAndLanguage:
    def test_keywords_deduplicated_in_order(self, extractor):
        keywords = extractor.extract_decision_keywords("We decided and approved")
        assert keywords == ["decided", "decide", "approved", "approve"]

    def test_japanese_keywords(self, extractor):
        assert extractor.extract_decision_keywords("最終的に決定") == ["決定", "最終", "最終的"]

    def test_detect_language(self, extractor):
        assert extractor.detect_language("We decided") == "en"
        assert extractor.detect_language("決定しました") == "ja"
        assert extractor.detect_language("After discussion, チームで決定") == "ja"


# ── Extraction ────────────────────────────────────────────────────


class TestExtractDecisions:
    def test_threshold_filters_weak_decisions(self, extractor):
        result = extractor.extract_decisions([make_msg("decide")])
        assert result.decisions == []
        assert result.total_messages == 1

    def test_formal_decision_kept(self, extractor):
        result = extractor.extract_decisions(
            [make_msg("We have officially decided to proceed with the plan")]
        )
        assert len(result.decisions) == 1
        decision = result.decisions[0]
        assert decision.confidence > 0.7
        assert decision.language == "en"
        assert decision.user == "U_ALICE"
        assert decision.timestamp == "1700000000.000100"
        assert decision.message_index == 0

    def test_never_returns_low_confidence(self, extractor):
        messages = [make_msg(t) for t in ("decide", "agree?", "We agreed", "決定", "選択")]
        result = extractor.extract_decisions(messages)
        assert all(d.confidence > 0.7 for d in result.decisions)

    def test_mixed_language(self, extractor):
        result = extractor.extract_decisions(
            [make_msg("After discussion, チームで決定しました to proceed")]
        )
        assert len(result.decisions) == 1
        assert result.decisions[0].language == "ja"
        assert result.decisions[0].keywords == ["決定"]

    def test_malformed_messages_counted_not_scored(self, extractor):
        messages = [
            None,
            {"user": "U1"},
            make_msg(None),
            make_msg("The team has decided on the new architecture", ts="2"),
        ]
        result = extractor.extract_decisions(messages)
        assert result.total_messages == 4
        assert len(result.decisions) == 1
        assert result.decisions[0].message_index == 3

    def test_accepts_message_objects(self, extractor):
        result = extractor.extract_decisions(
            [Message(text="DECISION: ship on Friday", ts="1", user="U2")]
        )
        assert result.decisions[0].user == "U2"

    def test_empty_input(self, extractor):
        result = extractor.extract_decisions([])
        assert result.decisions == []
        assert result.total_messages == 0

    def test_custom_threshold(self):
        strict = DecisionExtractor(confidence_threshold=0.9)
        result = strict.extract_decisions([make_msg("We decided to go with option A")])
        assert result.decisions == []


class TestExtractDecisionsForThread:
    def test_maps_decisions(self, extractor):
        messages = [
            make_msg("hello", user="U1", ts="1"),
            make_msg("We have officially decided to proceed with the plan", user="U2", ts="2"),
        ]
        result = extractor.extract_decisions_for_thread("C123", "1", messages)
        assert result == {
            "decisions_made": [
                {
                    "decision": "We have officially decided to proceed with the plan",
                    "participant": "U2",
                    "timestamp": "2",
                    "confidence": 0.85,
                }
            ]
        }


# ── Service wrapper ───────────────────────────────────────────────


class TestExtractDecisionsService:
    def test_success(self, extractor):
        result = extractor.extract_decisions_service(
            {"messages": [make_msg("DECISION: ship on Friday")]}
        )
        assert result.success is True
        assert result.status_code == 200
        assert result.message == "Decisions extracted successfully"
        assert result.error is None
        assert len(result.data.decisions) == 1

    @pytest.mark.parametrize("args", [None, "messages", 42, ["list"]])
    def test_invalid_arguments(self, extractor, args):
        result = extractor.extract_decisions_service(args)
        assert result.success is False
        assert result.status_code == 400
        assert result.error == "Invalid arguments: object expected"
        assert result.data is None

    @pytest.mark.parametrize("args", [{}, {"messages": "nope"}, {"messages": None}])
    def test_invalid_messages(self, extractor, args):
        result = extractor.extract_decisions_service(args)
        assert result.success is False
        assert result.status_code == 400
        assert result.error == "Invalid messages: array expected"

    def test_internal_failure(self, extractor):
        with patch.object(extractor, "extract_decisions", side_effect=RuntimeError("boom")):
            result = extractor.extract_decisions_service({"messages": []})
        assert result.success is False
        assert result.status_code == 500
        assert result.error == "Failed to extract decisions: boom"
        assert result.data is None


class TestPerformance:
    def test_thousand_messages_under_one_second(self, extractor):
        messages = [
            make_msg(f"Message {i}: we decided to use option {i % 3}", ts=str(i))
            for i in range(1000)
        ]
        start = time.perf_counter()
        result = extractor.extract_decisions(messages)
        assert time.perf_counter() - start < 1.0
        assert result.total_messages == 1000

    def test_hundred_messages_under_100ms(self, extractor):
        messages = [make_msg("The team has decided on the new architecture") for _ in range(100)]
        start = time.perf_counter()
        extractor.extract_decisions(messages)
        assert time.perf_counter() - start < 0.1
