"""Driver shift (clock in / clock out) rules."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from .enums import ClockAction, DriverStatus, OnboardingStatus
from .errors import Forbidden, InvalidTransition

MAX_CLOCK_IN_HOURS = 12


@dataclass(frozen=True)
class ShiftState:
    driver_status: DriverStatus
    onboarding_status: OnboardingStatus
    can_accept_jobs: bool
    is_clocked_in: bool


def check_clock_action(state: ShiftState, action: ClockAction) -> None:
    """Raise unless the driver may perform *action* right now."""
    if DriverStatus(state.driver_status) != DriverStatus.APPROVED:
        raise Forbidden("Driver must be approved to clock in")
    if OnboardingStatus(state.onboarding_status) != OnboardingStatus.ACTIVE:
        raise Forbidden("Driver must complete onboarding to clock in")
    if not state.can_accept_jobs:
        raise Forbidden("Driver is not eligible to accept jobs")

    if action is ClockAction.CLOCK_IN and state.is_clocked_in:
        raise InvalidTransition("Already clocked in")
    if action is ClockAction.CLOCK_OUT and not state.is_clocked_in:
        raise InvalidTransition("Not currently clocked in")


def overdue_threshold(now: datetime, max_hours: int = MAX_CLOCK_IN_HOURS) -> datetime:
    """Drivers clocked in before this instant have exceeded the shift limit."""
    return now - timedelta(hours=max_hours)


def shift_duration_minutes(clock_in: datetime, clock_out: datetime) -> int:
    return max(0, int((clock_out - clock_in).total_seconds() // 60))


def auto_clockout_note(max_hours: int = MAX_CLOCK_IN_HOURS) -> str:
    return f"Auto clocked out after {max_hours} hours"


def day_bounds(now: datetime) -> tuple[datetime, datetime]:
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)
