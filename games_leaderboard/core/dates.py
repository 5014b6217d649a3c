#!/usr/bin/python
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional


@dataclass(frozen=True)
class LookbackWindow:
    """
    The period before "now" in which messages count towards the leaderboard.
    Timestamps are epoch seconds, matching RawMessage.timestamp.
    """
    hours: int = 24

    def _now(self, now: Optional[datetime] = None) -> datetime:
        if now is None:
            return datetime.now(timezone.utc)
        # If naive, assume UTC
        if now.tzinfo is None:
            return now.replace(tzinfo=timezone.utc)
        return now

    def start(self, now: Optional[datetime] = None) -> float:
        """Epoch seconds of the oldest timestamp still inside the window."""
        return (self._now(now) - timedelta(hours=self.hours)).timestamp()


def in_window(timestamp: Optional[float], window_start: float) -> bool:
    """True for timestamps at or after window_start; missing timestamps never count."""
    if timestamp is None:
        return False
    return timestamp >= window_start


def to_epoch(ts: Optional[datetime]) -> Optional[float]:
    """Convert a datetime (naive treated as UTC) to epoch seconds."""
    if ts is None:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.timestamp()
