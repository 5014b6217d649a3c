# games_leaderboard/core/scheduler.py
from __future__ import annotations

import logging
from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

logger = logging.getLogger(__name__)

_scheduler: Optional[AsyncIOScheduler] = None


def _ensure_scheduler() -> AsyncIOScheduler:
    global _scheduler
    if _scheduler is None:
        _scheduler = AsyncIOScheduler()
        _scheduler.start()
    return _scheduler


def shutdown_scheduler() -> None:
    global _scheduler
    if _scheduler is not None:
        _scheduler.shutdown(wait=False)
        _scheduler = None


def schedule_daily(coro_func: Callable, *, job_id: str = "daily_summary", hour: int = 21, minute: int = 0):
    """
    Schedule an async task to run daily at the given local time.
    - coro_func must be an async function (or a partial of one).
    - job_id ensures idempotency (replace_existing=True), so re-running
      on_ready after a reconnect does not stack jobs.
    Must be called from within a running event loop.
    """
    sched = _ensure_scheduler()

    # AsyncIOExecutor awaits coroutine functions on the scheduler's loop
    job = sched.add_job(
        coro_func,
        CronTrigger(hour=hour, minute=minute),
        id=job_id,
        replace_existing=True
    )
    logger.info("schedule_daily: job %s scheduled at %02d:%02d", job_id, hour, minute)
    return job
