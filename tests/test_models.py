"""Tests for the shared data models."""

from slack_thread_analyzer.models import (
    ActionItem,
    LanguageContent,
    Message,
    Sentiment,
    ServiceResult,
    as_message,
)


class TestSentiment:
    def test_enum_members(self):
        assert Sentiment.POSITIVE.value == "positive"
        assert Sentiment.NEGATIVE.value == "negative"
        assert Sentiment.NEUTRAL.value == "neutral"

    def test_lookup_by_value(self):
        assert Sentiment("positive") is Sentiment.POSITIVE
        assert Sentiment("neutral") is Sentiment.NEUTRAL


class TestMessage:
    def test_default_values(self):
        msg = Message()
        assert msg.text == ""
        assert msg.ts == ""
        assert msg.user == ""
        assert msg.type == "message"
        assert msg.thread_ts is None

    def test_from_dict_all_fields(self):
        msg = Message.from_dict({
            "text": "hello",
            "ts": "1700000000.000100",
            "user": "U_ALICE",
            "type": "message",
            "thread_ts": "1700000000.000000",
        })
        assert msg.text == "hello"
        assert msg.ts == "1700000000.000100"
        assert msg.user == "U_ALICE"
        assert msg.thread_ts == "1700000000.000000"

    def test_from_dict_missing_text(self):
        assert Message.from_dict({"ts": "1"}).text == ""

    def test_from_dict_none_text(self):
        assert Message.from_dict({"text": None}).text == ""

    def test_from_dict_non_string_text(self):
        assert Message.from_dict({"text": 12345}).text == ""

    def test_from_dict_does_not_mutate_input(self):
        raw = {"text": None, "user": "U1"}
        Message.from_dict(raw)
        assert raw == {"text": None, "user": "U1"}


class TestAsMessage:
    def test_message_passes_through(self):
        msg = Message(text="hi")
        assert as_message(msg) is msg

    def test_mapping_is_converted(self):
        msg = as_message({"text": "hi", "user": "U1"})
        assert msg == Message(text="hi", user="U1")

    def test_malformed_inputs(self):
        assert as_message(None) is None
        assert as_message("just a string") is None
        assert as_message(42) is None


class TestResultDefaults:
    def test_language_content_defaults(self):
        content = LanguageContent()
        assert content.has_japanese is False
        assert content.has_english is False
        assert content.mixed_language is False
        assert content.primary_language == "english"

    def test_action_item_mentions_not_shared(self):
        a = ActionItem(text="one", priority="low", status="open")
        b = ActionItem(text="two", priority="low", status="open")
        a.mentioned_users.append("U1")
        assert b.mentioned_users == []

    def test_service_result_defaults(self):
        result = ServiceResult(success=True, status_code=200, message="ok")
        assert result.data is None
        assert result.error is None
