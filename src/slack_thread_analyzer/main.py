"""Entry point and analysis pipeline for slack-thread-analyzer."""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from typing import Any

from slack_sdk.errors import SlackApiError

from slack_thread_analyzer.action_items import (
    extract_action_items_from_messages,
    get_action_item_statistics,
)
from slack_thread_analyzer.config import Config, action_item_config, load_config, sentiment_config
from slack_thread_analyzer.decisions import DecisionExtractor
from slack_thread_analyzer.models import Message, as_message
from slack_thread_analyzer.sentiment import (
    analyze_sentiment,
    explain_sentiment,
    get_sentiment_score,
    is_sentiment_reliable,
)
from slack_thread_analyzer.slack_reader import SlackHistoryReader
from slack_thread_analyzer.topics import extract_topics_from_thread, get_topic_summary

logger = logging.getLogger(__name__)

ANALYSES = ("sentiment", "decisions", "actions", "topics")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="slack-thread-analyzer",
        description="Analyze sentiment, decisions, action items and topics in Slack conversations.",
    )
    parser.add_argument(
        "--channel",
        metavar="ID",
        default=None,
        help="Slack channel ID to read history from",
    )
    parser.add_argument(
        "--thread",
        metavar="TS",
        default=None,
        help="Thread timestamp; analyze only that thread (requires --channel)",
    )
    parser.add_argument(
        "--input",
        metavar="PATH",
        default=None,
        help="JSON file of messages to analyze instead of reading Slack",
    )
    parser.add_argument(
        "--analysis",
        action="append",
        choices=ANALYSES,
        default=None,
        help="Analysis to run; repeat for several (default: all)",
    )
    parser.add_argument(
        "--limit",
        metavar="N",
        type=int,
        default=None,
        help="Maximum number of messages to read (default: history_limit from config)",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        default=None,
        help="Path to config YAML (default: ~/.config/slack-thread-analyzer/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        metavar="LEVEL",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: WARNING)",
    )
    args = parser.parse_args(argv)

    if args.input is None and args.channel is None:
        parser.error("one of --input or --channel is required")
    if args.input is not None and args.channel is not None:
        parser.error("--input and --channel are mutually exclusive")
    if args.thread is not None and args.channel is None:
        parser.error("--thread requires --channel")
    if args.limit is not None and args.limit <= 0:
        parser.error("--limit must be positive")

    return args


def load_messages_file(path: str) -> list[Message]:
    """Read messages from a JSON file.

    The file holds either a list of message objects or a mapping with a
    ``messages`` list, as returned by the Slack history API.
    """
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)

    if isinstance(raw, dict):
        raw = raw.get("messages")
    if not isinstance(raw, list):
        raise ValueError(f"{path} must contain a list of messages")

    messages = []
    for i, entry in enumerate(raw):
        message = as_message(entry)
        if message is None:
            logger.warning("Entry %d in %s is not a message object; skipping", i, path)
            continue
        messages.append(message)
    return messages


def build_report(
    messages: list[Message],
    analyses: list[str] | tuple[str, ...],
    config: Config,
    *,
    channel: str | None = None,
    thread_ts: str | None = None,
) -> dict[str, Any]:
    """Run the selected analyses and return a JSON-serializable report."""
    report: dict[str, Any] = {
        "channel": channel,
        "thread_ts": thread_ts,
        "message_count": len(messages),
    }

    if "sentiment" in analyses:
        result = analyze_sentiment(messages, sentiment_config(config))
        report["sentiment"] = {
            "sentiment": result.sentiment.value,
            "positive_count": result.positive_count,
            "negative_count": result.negative_count,
            "total_words": result.total_words,
            "score": get_sentiment_score(result),
            "reliable": is_sentiment_reliable(result),
            "explanation": explain_sentiment(result),
        }

    if "decisions" in analyses:
        extractor = DecisionExtractor(config.decision_confidence_threshold)
        thread = extractor.extract_decisions_for_thread(channel or "", thread_ts or "", messages)
        report["decisions"] = thread["decisions_made"]

    if "actions" in analyses:
        extraction = extract_action_items_from_messages(messages, action_item_config(config))
        report["action_items"] = [dataclasses.asdict(item) for item in extraction.action_items]
        report["action_item_statistics"] = get_action_item_statistics(extraction.action_items)

    if "topics" in analyses:
        topics = extract_topics_from_thread(messages)
        report["topics"] = topics.topics
        report["topic_summary"] = get_topic_summary(topics)

    return report


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)

    logging.basicConfig(
        format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
        level=getattr(logging, args.log_level),
    )

    try:
        config = load_config(args.config)
    except FileNotFoundError as exc:
        logger.error("Config file not found: %s", exc)
        sys.exit(1)
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        sys.exit(1)

    logger.info("Configuration loaded successfully")
    limit = args.limit or config.history_limit

    try:
        if args.input is not None:
            messages = load_messages_file(args.input)
        else:
            reader = SlackHistoryReader()
            if args.thread is not None:
                messages = reader.fetch_thread(args.channel, args.thread, limit)
            else:
                messages = reader.fetch_channel_history(args.channel, limit)
    except FileNotFoundError as exc:
        logger.error("Input file not found: %s", exc)
        sys.exit(1)
    except ValueError as exc:
        logger.error("Invalid input file: %s", exc)
        sys.exit(1)
    except KeyError as exc:
        logger.error("Missing environment variable: %s", exc)
        sys.exit(1)
    except SlackApiError as exc:
        logger.error("Could not read Slack history: %s", exc)
        sys.exit(1)

    logger.info("Analyzing %d messages", len(messages))
    report = build_report(
        messages,
        args.analysis or ANALYSES,
        config,
        channel=args.channel,
        thread_ts=args.thread,
    )
    print(json.dumps(report, ensure_ascii=False, indent=2))
