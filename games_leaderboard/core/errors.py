"""Exceptions raised by the leaderboard pipeline.

Parse failures are not errors: the parser returns ``None`` for messages that
are not game results.
"""


class LeaderboardError(Exception):
    """Base class for leaderboard errors."""


class ConfigError(LeaderboardError):
    """A setting read at startup is malformed."""


class FetchError(LeaderboardError):
    """Reading the message history failed; the current run is abandoned."""


class SenderResolutionError(LeaderboardError):
    """The author of a message could not be resolved to a display name."""

    def __init__(self, author_id, reason: str = ""):
        self.author_id = author_id
        self.reason = reason
        super().__init__(f"could not resolve sender {author_id}: {reason}" if reason
                         else f"could not resolve sender {author_id}")
