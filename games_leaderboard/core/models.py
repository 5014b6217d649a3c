from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


def time_to_seconds(t: str) -> int:
    minutes, seconds = t.split(":")
    return int(minutes) * 60 + int(seconds)


class ConversationOrigin(Enum):
    GROUP = "group"
    DIRECT = "direct"

    @classmethod
    def of(cls, channel) -> "ConversationOrigin":
        # Guild channels carry a guild; DMs and group DMs do not
        return cls.GROUP if getattr(channel, "guild", None) is not None else cls.DIRECT


@dataclass(frozen=True)
class GameResult:
    sender: str
    game: str
    number: int
    time: str

    @property
    def seconds(self) -> int:
        return time_to_seconds(self.time)


@dataclass
class RawMessage:
    timestamp: Optional[float]
    author_id: int
    body: str
    origin: ConversationOrigin = ConversationOrigin.GROUP
    message_id: Optional[int] = None
