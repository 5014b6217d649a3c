import re
from functools import lru_cache
from typing import Optional, Sequence

from .config import GAMES
from .models import GameResult


# Share lines look like:
#   "Zip #5 | 3:12 and flawless"
#   "Queens #214\n0:58 👑"
# Each field is taken from its first match, left to right.
NUMBER_PATTERN = re.compile(r"#?([0-9]+)")
TIME_PATTERN = re.compile(r"([0-9]+:[0-9]+)")


@lru_cache(maxsize=None)
def _game_pattern(games: Sequence[str]) -> "re.Pattern[str]":
    return re.compile("(" + "|".join(re.escape(g) for g in games) + ")")


def parse(body: str, sender: str, games: Sequence[str] = GAMES) -> Optional[GameResult]:
    """
    Turn a message body into a GameResult, or None if it is not a result share.

    A result needs a game name, a puzzle number (optionally prefixed with '#')
    and a m:ss time. When several candidates appear, the first one of each kind
    is used, even if a later one would be a better fit.
    """
    if not isinstance(body, str) or not body or not games:
        return None

    game = _game_pattern(tuple(games)).search(body)
    if game is None:
        return None
    number = NUMBER_PATTERN.search(body)
    if number is None:
        return None
    time = TIME_PATTERN.search(body)
    if time is None:
        return None

    return GameResult(
        sender=sender,
        game=game.group(1),
        number=int(number.group(1)),
        time=time.group(1),
    )
