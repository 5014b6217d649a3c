#!/usr/bin/python
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Iterable, List, Sequence

from .config import BOT_MARKER, GAMES, TRIGGER
from .dates import in_window
from .errors import SenderResolutionError
from .models import GameResult, RawMessage
from .parser import parse

logger = logging.getLogger(__name__)

SenderResolver = Callable[[RawMessage], Awaitable[str]]


@dataclass
class AggregationState:
    """
    Per-run scratch state. Build a new one for every run; never share it
    between runs.
    """
    current_round_by_game: Dict[str, int] = field(default_factory=dict)
    accumulated: List[GameResult] = field(default_factory=list)

    def offer(self, result: GameResult) -> bool:
        """
        Keep the result unless its number is below the highest number seen so
        far for its game. Returns True if it was kept.
        """
        current = self.current_round_by_game.get(result.game)
        if current is not None and result.number < current:
            logger.debug("offer: stale %s #%s from %s (current #%s)",
                         result.game, result.number, result.sender, current)
            return False
        if current is None or result.number > current:
            self.current_round_by_game[result.game] = result.number
        self.accumulated.append(result)
        return True

    def finalize(self) -> List[GameResult]:
        """Results for the final current round of each game, in append order."""
        return [r for r in self.accumulated
                if r.number == self.current_round_by_game.get(r.game)]


def is_excluded(body: str, trigger: str = TRIGGER, bot_marker: str = BOT_MARKER) -> bool:
    """Trigger commands and the bot's own replies are never game data."""
    if not body:
        return False
    return trigger.lower() in body.lower() or bot_marker in body


async def aggregate(
    messages: Iterable[RawMessage],
    window_start: float,
    resolve_sender: SenderResolver,
    trigger: str = TRIGGER,
    bot_marker: str = BOT_MARKER,
    games: Sequence[str] = GAMES,
) -> List[GameResult]:
    """
    Scan messages (oldest first) and return the results for each game's
    current round, in the order they were seen.

    A message that fails to resolve or process is skipped; it never aborts
    the run.
    """
    state = AggregationState()
    scanned = 0
    parsed = 0

    for message in messages:
        scanned += 1
        if not in_window(message.timestamp, window_start):
            continue
        if is_excluded(message.body, trigger, bot_marker):
            logger.debug("aggregate: skipping command/bot message id=%s", message.message_id)
            continue

        try:
            sender = await resolve_sender(message)
            result = parse(message.body, sender, games)
            if result is None:
                continue
            parsed += 1
            state.offer(result)
        except SenderResolutionError as e:
            logger.warning("aggregate: skipping message id=%s: %s", message.message_id, e)
        except Exception:
            logger.exception("aggregate: failed to process message id=%s", message.message_id)

    results = state.finalize()
    logger.info("aggregate: scanned %s messages, parsed %s results, kept %s (rounds=%s)",
                scanned, parsed, len(results), state.current_round_by_game)
    return results
