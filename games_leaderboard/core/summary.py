#!/usr/bin/python
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

from .config import BOT_MARKER, GAMES
from .models import GameResult

NO_GAMES_NOTICE = "No games played today."


@dataclass(frozen=True)
class Summary:
    games: Tuple[str, ...]
    results: Tuple[GameResult, ...]
    winners: Mapping[str, Optional[GameResult]]
    # sender -> number of games won, in the order senders first won
    win_counts: Mapping[str, int]
    bot_marker: str = BOT_MARKER

    def __post_init__(self):
        # Read-only views so a built summary cannot change
        object.__setattr__(self, "games", tuple(self.games))
        object.__setattr__(self, "results", tuple(self.results))
        object.__setattr__(self, "winners", MappingProxyType(dict(self.winners)))
        object.__setattr__(self, "win_counts", MappingProxyType(dict(self.win_counts)))

    @property
    def empty(self) -> bool:
        return not self.results

    def render(self) -> str:
        if self.empty:
            return f"{NO_GAMES_NOTICE}\n{self.bot_marker}"

        lines = ["*Daily Summary:*"]
        for game in self.games:
            winner = self.winners.get(game)
            if winner is None:
                lines.append(f"- *{game}*: No games played.")
            else:
                lines.append(f"- *{game}* #{winner.number} Winner: {winner.sender} ({winner.time})")

        lines.append("")
        lines.append("*Win Counts:*")
        for sender, count in self.win_counts.items():
            lines.append(f"- {sender}: {count} {'win' if count == 1 else 'wins'}")

        lines.append("")
        lines.append(self.bot_marker)
        return "\n".join(lines)


def pick_winner(results: Iterable[GameResult]) -> Optional[GameResult]:
    """Fastest result; on equal times the earliest one in iteration order wins."""
    winner = None
    for r in results:
        if winner is None or r.seconds < winner.seconds:
            winner = r
    return winner


def build_summary(
    results: Iterable[GameResult],
    games: Sequence[str] = GAMES,
    bot_marker: str = BOT_MARKER,
) -> Summary:
    """
    Pick a winner per game and tally wins per sender.

    results must be in aggregation order; that order breaks ties.
    """
    results = list(results)
    winners: Dict[str, Optional[GameResult]] = {}
    win_counts: Dict[str, int] = {}

    for game in games:
        winner = pick_winner(r for r in results if r.game == game)
        winners[game] = winner
        if winner is not None:
            win_counts[winner.sender] = win_counts.get(winner.sender, 0) + 1

    return Summary(
        games=tuple(games),
        results=tuple(results),
        winners=winners,
        win_counts=win_counts,
        bot_marker=bot_marker,
    )


def build(
    results: Iterable[GameResult],
    games: Sequence[str] = GAMES,
    bot_marker: str = BOT_MARKER,
) -> str:
    return build_summary(results, games, bot_marker).render()
