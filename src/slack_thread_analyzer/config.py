"""Configuration loading and validation for slack-thread-analyzer."""

import logging
import os
from dataclasses import dataclass, field, replace

import yaml

from slack_thread_analyzer.action_items import DEFAULT_ACTION_ITEM_CONFIG, ActionItemConfig
from slack_thread_analyzer.sentiment import DEFAULT_SENTIMENT_CONFIG, SentimentConfig

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV_VAR = "SLACK_ANALYZER_CONFIG_PATH"
DEFAULT_CONFIG_PATH = "~/.config/slack-thread-analyzer/config.yaml"

KNOWN_KEYS = {
    "history_limit",
    "sentiment_threshold",
    "enable_japanese_processing",
    "decision_confidence_threshold",
    "enable_line_scoring",
    "enable_conjugation_normalization",
    "min_line_score",
    "extra_action_indicators",
    "extra_urgency_keywords",
}

_BOOL_KEYS = (
    "enable_japanese_processing",
    "enable_line_scoring",
    "enable_conjugation_normalization",
)
_STRING_LIST_KEYS = ("extra_action_indicators", "extra_urgency_keywords")


@dataclass
class Config:
    history_limit: int = 200
    sentiment_threshold: float = 1.2
    enable_japanese_processing: bool = True
    decision_confidence_threshold: float = 0.7
    enable_line_scoring: bool = False
    enable_conjugation_normalization: bool = True
    min_line_score: float = 1.0
    extra_action_indicators: list[str] = field(default_factory=list)
    extra_urgency_keywords: list[str] = field(default_factory=list)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate_config(config: Config) -> None:
    """Validate config values, raising ValueError on invalid fields."""
    if not isinstance(config.history_limit, int) or isinstance(config.history_limit, bool):
        raise ValueError(
            f"history_limit must be an integer, got {type(config.history_limit).__name__}"
        )
    if config.history_limit <= 0:
        raise ValueError(f"history_limit must be positive, got {config.history_limit}")

    if not _is_number(config.sentiment_threshold):
        raise ValueError(
            f"sentiment_threshold must be a number, got {type(config.sentiment_threshold).__name__}"
        )
    if config.sentiment_threshold <= 0:
        raise ValueError(
            f"sentiment_threshold must be positive, got {config.sentiment_threshold}"
        )

    if not _is_number(config.decision_confidence_threshold):
        raise ValueError(
            "decision_confidence_threshold must be a number, "
            f"got {type(config.decision_confidence_threshold).__name__}"
        )
    if not 0 <= config.decision_confidence_threshold < 1:
        raise ValueError(
            "decision_confidence_threshold must be in [0, 1), "
            f"got {config.decision_confidence_threshold}"
        )

    if not _is_number(config.min_line_score):
        raise ValueError(
            f"min_line_score must be a number, got {type(config.min_line_score).__name__}"
        )
    if config.min_line_score < 0:
        raise ValueError(f"min_line_score must not be negative, got {config.min_line_score}")

    for key in _BOOL_KEYS:
        value = getattr(config, key)
        if not isinstance(value, bool):
            raise ValueError(f"{key} must be true or false, got {value!r}")


def _parse_string_list(value, key: str) -> list[str]:
    if not isinstance(value, list):
        raise ValueError(f"'{key}' must be a list")
    for i, entry in enumerate(value):
        if not isinstance(entry, str) or not entry:
            raise ValueError(f"{key}[{i}] must be a non-empty string")
    return list(value)


def load_config(path: str | None = None) -> Config:
    """Load configuration from a YAML file.

    Config path resolution order:
    1. Explicit path argument
    2. SLACK_ANALYZER_CONFIG_PATH environment variable
    3. ~/.config/slack-thread-analyzer/config.yaml

    Only the default location may be absent; defaults are used then.
    """
    if path is None:
        path = os.environ.get(CONFIG_PATH_ENV_VAR)
    if path is None:
        path = os.path.expanduser(DEFAULT_CONFIG_PATH)
        if not os.path.exists(path):
            logger.info("No config file at %s; using defaults", path)
            return Config()

    with open(path) as f:
        raw = yaml.safe_load(f)

    if raw is None:
        raw = {}

    if not isinstance(raw, dict):
        raise ValueError(f"Config file must contain a YAML mapping, got {type(raw).__name__}")

    for key in raw:
        if key not in KNOWN_KEYS:
            logger.warning("Unknown config key '%s', ignoring", key)

    config = Config()

    for key in (
        "history_limit",
        "sentiment_threshold",
        "decision_confidence_threshold",
        "min_line_score",
        *_BOOL_KEYS,
    ):
        if key in raw:
            setattr(config, key, raw[key])

    for key in _STRING_LIST_KEYS:
        if key in raw:
            setattr(config, key, _parse_string_list(raw[key], key))

    _validate_config(config)

    return config


def sentiment_config(config: Config) -> SentimentConfig:
    """Default sentiment lexicons with the configured threshold and switches."""
    return replace(
        DEFAULT_SENTIMENT_CONFIG,
        threshold=config.sentiment_threshold,
        enable_japanese_processing=config.enable_japanese_processing,
    )


def action_item_config(config: Config) -> ActionItemConfig:
    """Default action item settings extended with the configured extras."""
    base = DEFAULT_ACTION_ITEM_CONFIG
    return replace(
        base,
        action_indicators=base.action_indicators + tuple(
            kw for kw in config.extra_action_indicators if kw not in base.action_indicators
        ),
        urgency_keywords=base.urgency_keywords + tuple(
            kw for kw in config.extra_urgency_keywords if kw not in base.urgency_keywords
        ),
        enable_line_scoring=config.enable_line_scoring,
        enable_conjugation_normalization=config.enable_conjugation_normalization,
        min_line_score=config.min_line_score,
    )
