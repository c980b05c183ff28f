"""Slack history reader.

Fetches channel history and thread replies through the Web API client of a
bolt ``App`` and converts the raw message dicts into :class:`Message`
instances for analysis.
"""

from __future__ import annotations

import logging
import os

from slack_bolt import App
from slack_sdk.errors import SlackApiError

from slack_thread_analyzer.models import Message

logger = logging.getLogger(__name__)

# Message subtypes that carry no conversational content.
_IGNORED_SUBTYPES = frozenset({
    "channel_join",
    "channel_leave",
    "channel_topic",
    "channel_purpose",
    "channel_name",
    "channel_archive",
    "channel_unarchive",
    "group_join",
    "group_leave",
    "group_topic",
    "group_purpose",
    "group_name",
    "group_archive",
    "group_unarchive",
})

# Largest page size Slack accepts for history calls.
_MAX_PAGE_SIZE = 200


def parse_message(raw: dict) -> Message | None:
    """Convert a raw Slack message dict into a :class:`Message`.

    Returns ``None`` for membership/topic subtypes and for messages without
    a ``ts``.
    """
    subtype = raw.get("subtype")
    if subtype is not None and subtype in _IGNORED_SUBTYPES:
        logger.debug("Ignored subtype %s; dropping", subtype)
        return None

    if not raw.get("ts"):
        logger.debug("Message has no ts; dropping")
        return None

    message = Message.from_dict(raw)
    # bot_message subtypes may lack a "user" field
    if not message.user and raw.get("bot_id"):
        message.user = raw["bot_id"]
    return message


class SlackHistoryReader:
    """Reads messages through a Slack Bolt ``App``'s Web API client."""

    def __init__(self) -> None:
        self._app = App(token=os.environ["SLACK_BOT_TOKEN"])

    @property
    def app(self) -> App:
        """The underlying ``slack_bolt.App`` instance."""
        return self._app

    # -- public API ----------------------------------------------------------

    def fetch_channel_history(self, channel: str, limit: int = 200) -> list[Message]:
        """Return up to ``limit`` recent channel messages, oldest first."""
        raw = self._paginate(
            self._app.client.conversations_history, limit, channel=channel
        )
        # conversations.history pages newest first
        raw.reverse()
        return self._parse_all(raw)

    def fetch_thread(self, channel: str, thread_ts: str, limit: int = 200) -> list[Message]:
        """Return up to ``limit`` messages of a thread, parent first."""
        raw = self._paginate(
            self._app.client.conversations_replies, limit, channel=channel, ts=thread_ts
        )
        return self._parse_all(raw)

    # -- private helpers -----------------------------------------------------

    def _paginate(self, method, limit: int, **kwargs) -> list[dict]:
        """Call ``method`` following ``next_cursor`` until ``limit`` messages."""
        messages: list[dict] = []
        cursor = None

        while len(messages) < limit:
            params = dict(kwargs, limit=min(_MAX_PAGE_SIZE, limit - len(messages)))
            if cursor:
                params["cursor"] = cursor
            try:
                response = method(**params)
            except SlackApiError as exc:
                logger.error(
                    "Slack API call failed for %s: %s",
                    kwargs.get("channel"),
                    exc.response.get("error", exc),
                )
                raise

            messages.extend(response.get("messages", []))
            cursor = (response.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                break

        logger.debug("Fetched %d messages from %s", len(messages), kwargs.get("channel"))
        return messages[:limit]

    @staticmethod
    def _parse_all(raw_messages: list[dict]) -> list[Message]:
        parsed = (parse_message(raw) for raw in raw_messages)
        return [message for message in parsed if message is not None]
