"""Driver clock in / clock out."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.domain.entities import Caller
from marketplace.domain.enums import ClockAction, ClockOutReason, Role
from marketplace.domain.errors import Forbidden, InvalidTransition, NotFound, PreconditionFailed
from marketplace.domain.shifts import (
    ShiftState,
    check_clock_action,
    day_bounds,
    shift_duration_minutes,
)
from marketplace.infrastructure.models import DriverModel, TimeEntryModel
from marketplace.infrastructure.repositories import (
    BookingRepository,
    DriverRepository,
    TimeEntryRepository,
)

logger = logging.getLogger(__name__)


@dataclass
class ClockResult:
    action: ClockAction
    at: datetime
    time_entry_id: Optional[int] = None
    duration_minutes: Optional[int] = None
    jobs_completed: Optional[int] = None


async def _own_driver(session: AsyncSession, caller: Caller) -> DriverModel:
    if caller.role != Role.DRIVER:
        raise Forbidden("Only drivers can access this endpoint")
    driver = await DriverRepository(session).get_by_user_id(caller.user_id)
    if driver is None:
        raise NotFound("Driver not found")
    return driver


async def close_time_entry(
    session: AsyncSession,
    entry: TimeEntryModel,
    *,
    now: datetime,
    reason: ClockOutReason,
    note: Optional[str] = None,
) -> TimeEntryModel:
    """Stamp clock-out, duration and the jobs completed during the shift."""
    entry.clock_out = now
    entry.clock_out_reason = reason
    entry.clock_out_note = note
    entry.duration_minutes = shift_duration_minutes(entry.clock_in, now)
    entry.jobs_completed = await BookingRepository(session).count_completed_for_driver(
        entry.driver_id, entry.clock_in, now
    )
    await session.flush()
    return entry


async def clock_status(
    session: AsyncSession, caller: Caller, now: Optional[datetime] = None
) -> tuple[DriverModel, int, int]:
    """Driver plus today's (minutes worked, jobs completed)."""
    now = now or datetime.now(timezone.utc)
    driver = await _own_driver(session, caller)
    start, end = day_bounds(now)

    minutes = 0
    for entry in await TimeEntryRepository(session).entries_since(driver.id, start):
        if entry.duration_minutes is not None:
            minutes += entry.duration_minutes
        elif entry.clock_out is None:
            minutes += shift_duration_minutes(entry.clock_in, now)

    jobs = await BookingRepository(session).count_completed_for_driver(driver.id, start, end)
    return driver, minutes, jobs


async def clock(
    session: AsyncSession,
    caller: Caller,
    action: ClockAction,
    now: Optional[datetime] = None,
) -> ClockResult:
    now = now or datetime.now(timezone.utc)
    driver = await _own_driver(session, caller)
    check_clock_action(
        ShiftState(
            driver_status=driver.status,
            onboarding_status=driver.onboarding_status,
            can_accept_jobs=driver.can_accept_jobs,
            is_clocked_in=driver.is_clocked_in,
        ),
        action,
    )

    drivers = DriverRepository(session)
    entries = TimeEntryRepository(session)

    if action is ClockAction.CLOCK_IN:
        entry = await entries.create(
            TimeEntryModel(driver_id=driver.id, user_id=caller.user_id, clock_in=now, jobs_completed=0)
        )
        if not await drivers.clock_in(driver.id, entry.id, now):
            raise InvalidTransition("Already clocked in")
        logger.info("Driver %d clocked in (entry %d)", driver.id, entry.id)
        return ClockResult(action=action, at=now, time_entry_id=entry.id)

    if await BookingRepository(session).has_active_job(driver.id):
        raise PreconditionFailed(
            "Cannot clock out with an active job. Please complete or reassign the job first."
        )

    entry_id = driver.current_time_entry_id
    if not await drivers.clock_out(driver.id, now):
        raise InvalidTransition("Not currently clocked in")

    entry = await entries.get_by_id(entry_id)
    result = ClockResult(action=action, at=now, time_entry_id=entry_id)
    if entry is not None and entry.clock_out is None:
        await close_time_entry(session, entry, now=now, reason=ClockOutReason.MANUAL)
        result.duration_minutes = entry.duration_minutes
        result.jobs_completed = entry.jobs_completed

    logger.info("Driver %d clocked out", driver.id)
    return result
