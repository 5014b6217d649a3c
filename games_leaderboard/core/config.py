#!/usr/bin/python
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

from .errors import ConfigError

GAMES: Tuple[str, ...] = ("Zip", "Mini Sudoku", "Tango", "Queens")
MESSAGES_FETCH_LIMIT = 500
TRIGGER = "!results"
BOT_MARKER = "Message sent by the bot."
LOOKBACK_HOURS = 24


@dataclass(frozen=True)
class BotConfig:
    # Games reported in the summary, in output order
    games: Tuple[str, ...] = GAMES
    # How many messages to read back from the channel history
    fetch_limit: int = MESSAGES_FETCH_LIMIT
    # Substring (case-insensitive) that starts a run
    trigger: str = TRIGGER
    # Appended to every bot reply so later runs skip it
    bot_marker: str = BOT_MARKER
    lookback_hours: int = LOOKBACK_HOURS
    # Seconds to wait for the history fetch before giving up
    fetch_timeout: float = 30.0
    reply_on_fetch_failure: bool = True
    # When False, summaries are printed to stdout instead of posted
    send_results: bool = True
    failure_notice: str = "Could not read the message history, try again later."
    daily_summary_channel_id: Optional[int] = None
    daily_summary_hour: int = 21
    daily_summary_minute: int = 0


def required_env(name: str) -> str:
    v = os.environ.get(name)
    if v is None or v == "":
        raise ConfigError(f"Missing required env var: {name}")
    return v


def _env_bool(name: str, default: bool = False) -> bool:
    v = os.environ.get(name)
    if v is None:
        return default
    v = v.strip().lower()
    return v in ("1", "true", "t", "yes", "y", "on")


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    v = os.environ.get(name)
    if v is None or v.strip() == "":
        return default
    try:
        return int(v.strip())
    except ValueError:
        raise ConfigError(f"Env var {name} must be an integer, got {v!r}") from None


def _env_str(name: str, default: str) -> str:
    v = os.environ.get(name)
    return default if v is None or v == "" else v


def load_config(dotenv: bool = True) -> BotConfig:
    """
    Build a BotConfig from the environment (and a .env file when dotenv=True).
    The game list is fixed and not read from the environment.
    """
    if dotenv:
        load_dotenv()

    fetch_limit = _env_int("FETCH_LIMIT", MESSAGES_FETCH_LIMIT)
    lookback_hours = _env_int("LOOKBACK_HOURS", LOOKBACK_HOURS)
    fetch_timeout = _env_int("FETCH_TIMEOUT", 30)
    hour = _env_int("DAILY_SUMMARY_HOUR", 21)
    minute = _env_int("DAILY_SUMMARY_MINUTE", 0)

    if fetch_limit <= 0:
        raise ConfigError(f"FETCH_LIMIT must be positive, got {fetch_limit}")
    if lookback_hours <= 0:
        raise ConfigError(f"LOOKBACK_HOURS must be positive, got {lookback_hours}")
    if not 0 <= hour <= 23 or not 0 <= minute <= 59:
        raise ConfigError(f"Invalid daily summary time {hour}:{minute:02d}")

    return BotConfig(
        fetch_limit=fetch_limit,
        trigger=_env_str("TRIGGER", TRIGGER),
        bot_marker=_env_str("BOT_MARKER", BOT_MARKER),
        lookback_hours=lookback_hours,
        fetch_timeout=float(fetch_timeout),
        reply_on_fetch_failure=_env_bool("REPLY_ON_FETCH_FAILURE", default=True),
        send_results=_env_bool("SEND_RESULTS", default=True),
        daily_summary_channel_id=_env_int("DAILY_SUMMARY_CHANNEL_ID", None),
        daily_summary_hour=hour,
        daily_summary_minute=minute,
    )
