"""
Quote view tracking and lazy expiry.

A quote's 48 h acceptance window only starts when the customer first opens
it.  Expiry is never swept in the background: every read or write path calls
:func:`reconcile_expiry` first and persists the result if it changed.

Rules
-----
* viewed quote   -- expired once ``expires_at`` has passed
* unviewed quote -- expired once ``valid_until`` has passed
* ``expired`` / ``cancelled`` are terminal
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional

from .enums import QUOTE_TERMINAL_STATUSES, QuoteStatus

VIEW_WINDOW_HOURS = 48
EXPIRING_SOON_HOURS = 6


@dataclass(frozen=True)
class QuoteExpiry:
    status: QuoteStatus
    first_viewed_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    valid_until: Optional[datetime] = None

    @classmethod
    def of(cls, quote) -> "QuoteExpiry":
        """Snapshot any object exposing the four expiry attributes."""
        return cls(
            status=QuoteStatus(quote.status),
            first_viewed_at=quote.first_viewed_at,
            expires_at=quote.expires_at,
            valid_until=quote.valid_until,
        )


@dataclass(frozen=True)
class ViewOutcome:
    quote: QuoteExpiry
    is_first_view: bool
    changed: bool
    message: Optional[str] = None


@dataclass(frozen=True)
class TimeRemaining:
    hours: int
    minutes: int
    total_minutes: int
    formatted: str
    is_expired: bool


def calculate_expiry_date(
    first_viewed_at: datetime, window_hours: int = VIEW_WINDOW_HOURS
) -> datetime:
    return first_viewed_at + timedelta(hours=window_hours)


def is_quote_expired(quote: QuoteExpiry, now: datetime) -> bool:
    if quote.status in QUOTE_TERMINAL_STATUSES:
        return True
    if quote.first_viewed_at is not None:
        return quote.expires_at is not None and quote.expires_at < now
    return quote.valid_until is not None and quote.valid_until < now


def reconcile_expiry(quote: QuoteExpiry, now: datetime) -> QuoteExpiry:
    """Return *quote* reclassified as expired if its window has passed."""
    if quote.status in QUOTE_TERMINAL_STATUSES:
        return quote
    if is_quote_expired(quote, now):
        return replace(quote, status=QuoteStatus.EXPIRED)
    return quote


def track_view(
    quote: QuoteExpiry, now: datetime, window_hours: int = VIEW_WINDOW_HOURS
) -> ViewOutcome:
    """Start the acceptance window on first view; idempotent afterwards."""
    if quote.status in QUOTE_TERMINAL_STATUSES:
        return ViewOutcome(
            quote=quote,
            is_first_view=False,
            changed=False,
            message="Quote is no longer active",
        )

    if quote.first_viewed_at is None:
        viewed = replace(
            quote,
            status=QuoteStatus.VIEWED,
            first_viewed_at=now,
            expires_at=calculate_expiry_date(now, window_hours),
        )
        return ViewOutcome(
            quote=viewed,
            is_first_view=True,
            changed=True,
            message="View tracked successfully",
        )

    return ViewOutcome(quote=quote, is_first_view=False, changed=False)


def is_expiring_soon(
    quote: QuoteExpiry, now: datetime, within_hours: int = EXPIRING_SOON_HOURS
) -> bool:
    if quote.expires_at is None or is_quote_expired(quote, now):
        return False
    remaining = quote.expires_at - now
    return timedelta(0) < remaining <= timedelta(hours=within_hours)


def time_remaining(expires_at: datetime, now: datetime) -> TimeRemaining:
    diff = expires_at - now
    if diff <= timedelta(0):
        return TimeRemaining(0, 0, 0, "Expired", True)

    total_minutes = int(diff.total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)

    if hours > 24:
        days = hours // 24
        formatted = f"{days} day{'s' if days != 1 else ''} remaining"
    elif hours > 0:
        formatted = f"{hours}h {minutes}m remaining"
    else:
        formatted = f"{minutes} minute{'s' if minutes != 1 else ''} remaining"

    return TimeRemaining(hours, minutes, total_minutes, formatted, False)


def expiry_label(
    quote: QuoteExpiry, now: datetime, within_hours: int = EXPIRING_SOON_HOURS
) -> str:
    """One of ``not-viewed``, ``expired``, ``expiring-soon``, ``active``."""
    if quote.first_viewed_at is None and quote.status not in QUOTE_TERMINAL_STATUSES:
        return "not-viewed"
    if is_quote_expired(quote, now):
        return "expired"
    if is_expiring_soon(quote, now, within_hours):
        return "expiring-soon"
    return "active"
