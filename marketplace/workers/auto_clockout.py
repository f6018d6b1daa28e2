"""
Auto-clockout Job
=================

Invoked by an external scheduler through ``GET /api/v1/cron/auto-clockout``;
nothing inside the API process runs it on a timer.

Each run
--------
1. Find drivers still clocked in after ``MAX_CLOCK_IN_HOURS``.
2. For each one, clear the clock state with a conditional ``UPDATE`` that
   still requires ``is_clocked_in = true AND last_clock_in < threshold``.
3. Close the open time entry with ``reason=auto`` and commit.

A failure on one driver is logged, rolled back and reported; the batch moves
on to the next driver.  A Redis lock keeps two overlapping invocations from
scanning the same batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.config import settings
from marketplace.domain.enums import ClockOutReason
from marketplace.domain.shifts import auto_clockout_note, overdue_threshold
from marketplace.infrastructure.locks import DistributedLock
from marketplace.infrastructure.redis_client import get_redis
from marketplace.infrastructure.repositories import DriverRepository, TimeEntryRepository
from marketplace.services.shifts import close_time_entry

logger = logging.getLogger(__name__)

LOCK_KEY = "auto_clockout"


@dataclass
class ClockoutResult:
    driver_id: int
    name: str
    clocked_in_at: Optional[datetime]
    status: str  # "clocked_out" | "skipped" | "error"
    error: Optional[str] = None


@dataclass
class AutoClockoutReport:
    threshold: datetime
    results: list[ClockoutResult] = field(default_factory=list)
    skipped_run: bool = False

    @property
    def processed(self) -> int:
        return sum(1 for r in self.results if r.status == "clocked_out")


async def run_auto_clockout(
    session: AsyncSession,
    now: Optional[datetime] = None,
    max_hours: Optional[int] = None,
) -> AutoClockoutReport:
    """Clock out every overdue driver.  Commits per driver."""
    now = now or datetime.now(timezone.utc)
    max_hours = max_hours or settings.max_clock_in_hours
    threshold = overdue_threshold(now, max_hours)
    report = AutoClockoutReport(threshold=threshold)

    drivers = DriverRepository(session)
    entries = TimeEntryRepository(session)

    # plain tuples: a rollback below expires every loaded row
    overdue = [
        (d.id, f"{d.first_name} {d.last_name}", d.last_clock_in, d.current_time_entry_id)
        for d in await drivers.get_overdue_clocked_in(threshold)
    ]
    if not overdue:
        logger.info("Auto-clockout: no drivers over %dh", max_hours)
        return report

    for driver_id, name, clocked_in_at, entry_id in overdue:
        try:
            if not await drivers.clock_out(driver_id, now, clocked_in_before=threshold):
                # clocked out manually since the scan
                report.results.append(ClockoutResult(driver_id, name, clocked_in_at, "skipped"))
                continue

            entry = await entries.get_by_id(entry_id)
            if entry is not None and entry.clock_out is None:
                await close_time_entry(
                    session,
                    entry,
                    now=now,
                    reason=ClockOutReason.AUTO,
                    note=auto_clockout_note(max_hours),
                )
            await session.commit()
        except Exception as exc:
            logger.exception("Auto-clockout failed for driver %d", driver_id)
            await session.rollback()
            report.results.append(
                ClockoutResult(driver_id, name, clocked_in_at, "error", error=str(exc))
            )
            continue

        logger.info("Auto clocked out driver %d (%s) after %dh", driver_id, name, max_hours)
        report.results.append(ClockoutResult(driver_id, name, clocked_in_at, "clocked_out"))

    logger.info(
        "Auto-clockout: %d of %d overdue drivers clocked out",
        report.processed,
        len(overdue),
    )
    return report


async def run_with_lock(
    session: AsyncSession, now: Optional[datetime] = None
) -> AutoClockoutReport:
    """Run the job unless another invocation currently holds the lock."""
    now = now or datetime.now(timezone.utc)
    try:
        redis = await get_redis()
        lock = DistributedLock(redis, LOCK_KEY, ttl_seconds=300)
        acquired = await lock.acquire()
    except RedisError:
        logger.warning("Redis unavailable; running auto-clockout without a lock")
        return await run_auto_clockout(session, now)

    if not acquired:
        try:
            holder = await lock.owner()
        except RedisError:
            holder = None
        logger.info("Auto-clockout already running (lease held by %s); skipping", holder)
        return AutoClockoutReport(
            threshold=overdue_threshold(now, settings.max_clock_in_hours), skipped_run=True
        )

    try:
        return await run_auto_clockout(session, now)
    finally:
        try:
            if not await lock.release():
                logger.warning("Auto-clockout lease expired before the run finished")
        except RedisError:
            logger.warning("Could not release auto-clockout lock; it expires on its own")
