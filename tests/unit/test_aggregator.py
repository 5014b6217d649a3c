"""Tests for the result aggregator."""

import pytest

from games_leaderboard.core.aggregator import AggregationState, aggregate, is_excluded
from games_leaderboard.core.config import BOT_MARKER
from games_leaderboard.core.errors import SenderResolutionError
from games_leaderboard.core.models import GameResult, RawMessage
from games_leaderboard.core.summary import build

WINDOW_START = 1_000_000.0
NAMES = {1: "Alice", 2: "Bob", 3: "Carol", 4: "Dan"}


async def resolve(message):
    return NAMES[message.author_id]


def msg(author_id, body, offset=60.0):
    """A message `offset` seconds after the window start."""
    ts = None if offset is None else WINDOW_START + offset
    return RawMessage(timestamp=ts, author_id=author_id, body=body)


def test_state_keeps_ties_and_raises_round():
    state = AggregationState()

    assert state.offer(GameResult("Alice", "Zip", 5, "3:12")) is True
    assert state.offer(GameResult("Bob", "Zip", 5, "2:59")) is True
    assert state.offer(GameResult("Carol", "Zip", 6, "4:00")) is True
    assert state.current_round_by_game == {"Zip": 6}


def test_state_drops_stale_rounds_immediately():
    state = AggregationState()
    state.offer(GameResult("Alice", "Zip", 5, "3:12"))

    assert state.offer(GameResult("Carol", "Zip", 4, "1:00")) is False
    assert len(state.accumulated) == 1


def test_state_finalize_removes_superseded_candidates():
    state = AggregationState()
    state.offer(GameResult("Alice", "Zip", 5, "3:12"))
    state.offer(GameResult("Bob", "Zip", 6, "2:00"))
    state.offer(GameResult("Carol", "Queens", 9, "1:00"))

    assert state.finalize() == [
        GameResult("Bob", "Zip", 6, "2:00"),
        GameResult("Carol", "Queens", 9, "1:00"),
    ]


def test_state_round_zero_is_tracked():
    state = AggregationState()
    state.offer(GameResult("Alice", "Zip", 0, "3:12"))

    assert state.current_round_by_game == {"Zip": 0}
    assert state.finalize() == [GameResult("Alice", "Zip", 0, "3:12")]


@pytest.mark.asyncio
async def test_stale_round_is_excluded():
    """Alice and Bob post #5; Carol's #4 is stale."""
    messages = [
        msg(1, "Zip #5 3:12"),
        msg(2, "Zip #5 2:59"),
        msg(3, "Zip #4 1:00"),
    ]

    results = await aggregate(messages, WINDOW_START, resolve)

    assert results == [
        GameResult("Alice", "Zip", 5, "3:12"),
        GameResult("Bob", "Zip", 5, "2:59"),
    ]


@pytest.mark.asyncio
async def test_later_higher_round_supersedes_earlier_candidates():
    messages = [
        msg(1, "Tango #10 0:40"),
        msg(2, "Tango #10 0:35"),
        msg(3, "Tango #11 1:30"),
        msg(4, "Queens #3 2:00"),
    ]

    results = await aggregate(messages, WINDOW_START, resolve)

    assert results == [
        GameResult("Carol", "Tango", 11, "1:30"),
        GameResult("Dan", "Queens", 3, "2:00"),
    ]


@pytest.mark.asyncio
async def test_same_sender_twice_is_kept_twice():
    messages = [
        msg(1, "Zip #5 3:12"),
        msg(1, "Zip #5 2:00"),
    ]

    results = await aggregate(messages, WINDOW_START, resolve)

    assert len(results) == 2
    assert all(r.sender == "Alice" for r in results)


@pytest.mark.asyncio
async def test_messages_outside_window_or_without_timestamp_are_ignored():
    messages = [
        msg(1, "Zip #9 0:10", offset=-1),
        msg(2, "Zip #9 0:20", offset=None),
        msg(3, "Zip #8 0:30", offset=0),
    ]

    results = await aggregate(messages, WINDOW_START, resolve)

    # The old #9 messages must not make #8 look stale
    assert results == [GameResult("Carol", "Zip", 8, "0:30")]


@pytest.mark.asyncio
async def test_trigger_messages_are_not_parsed():
    messages = [
        msg(1, "!results Zip #5 0:01"),
        msg(2, "Zip #5 2:59"),
    ]

    results = await aggregate(messages, WINDOW_START, resolve)

    assert results == [GameResult("Bob", "Zip", 5, "2:59")]


@pytest.mark.asyncio
async def test_trigger_exclusion_ignores_case():
    results = await aggregate([msg(1, "!RESULTS Zip #5 0:01")], WINDOW_START, resolve)

    assert results == []


@pytest.mark.asyncio
async def test_bot_summaries_are_not_parsed():
    """A previous reply contains game names, numbers and times."""
    previous = build([GameResult("Alice", "Zip", 4, "0:05")])
    messages = [
        msg(1, previous),
        msg(2, "Zip #5 2:59"),
    ]

    results = await aggregate(messages, WINDOW_START, resolve)

    assert results == [GameResult("Bob", "Zip", 5, "2:59")]


@pytest.mark.asyncio
async def test_resolution_failure_skips_only_that_message():
    async def flaky(message):
        if message.author_id == 1:
            raise SenderResolutionError(1, "gone")
        return NAMES[message.author_id]

    messages = [
        msg(1, "Zip #6 0:10"),
        msg(2, "Zip #5 2:59"),
    ]

    results = await aggregate(messages, WINDOW_START, flaky)

    # Alice's #6 never counted, so #5 is still the current round
    assert results == [GameResult("Bob", "Zip", 5, "2:59")]


@pytest.mark.asyncio
async def test_unexpected_error_does_not_abort_run():
    async def broken(message):
        if message.author_id == 2:
            raise RuntimeError("boom")
        return NAMES[message.author_id]

    messages = [
        msg(1, "Zip #5 3:00"),
        msg(2, "Zip #5 2:59"),
        msg(3, "Zip #5 2:58"),
    ]

    results = await aggregate(messages, WINDOW_START, broken)

    assert [r.sender for r in results] == ["Alice", "Carol"]


@pytest.mark.asyncio
async def test_non_game_messages_are_skipped():
    messages = [
        msg(1, "morning all"),
        msg(2, "Queens #3 1:00"),
        msg(3, "Wordle 1024 4/6"),
    ]

    results = await aggregate(messages, WINDOW_START, resolve)

    assert results == [GameResult("Bob", "Queens", 3, "1:00")]


@pytest.mark.asyncio
async def test_each_run_starts_fresh():
    first = await aggregate([msg(1, "Zip #9 0:10")], WINDOW_START, resolve)
    second = await aggregate([msg(2, "Zip #5 0:20")], WINDOW_START, resolve)

    assert first == [GameResult("Alice", "Zip", 9, "0:10")]
    assert second == [GameResult("Bob", "Zip", 5, "0:20")]


def test_is_excluded():
    assert is_excluded("please !Results") is True
    assert is_excluded(f"Zip #1 0:01\n{BOT_MARKER}") is True
    assert is_excluded("Zip #1 0:01") is False
    assert is_excluded("") is False
