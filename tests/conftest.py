"""Pytest configuration and fixtures."""

from datetime import timedelta
from typing import Optional

import pytest

from fakes import NOW, FakeMessage, FakeUser
from games_leaderboard.core import runtime
from games_leaderboard.core.config import BotConfig


@pytest.fixture(autouse=True)
def fresh_run_locks():
    """Run locks bind to an event loop; start every test without any."""
    runtime._run_locks.clear()
    yield
    runtime._run_locks.clear()


@pytest.fixture
def config():
    return BotConfig(fetch_timeout=5.0)


@pytest.fixture
def players():
    return {
        1: FakeUser(1, "Alice"),
        2: FakeUser(2, "Bob"),
        3: FakeUser(3, "Carol"),
    }


@pytest.fixture
def make_message():
    def _make(author: FakeUser, content: str, minutes_ago: Optional[float] = 10):
        created = None if minutes_ago is None else NOW - timedelta(minutes=minutes_ago)
        return FakeMessage(author, content, created)
    return _make
