"""
Domain entities with business logic.

Patterns used
-------------
- **State Pattern** on ``Inquiry``: enforces the contact workflow
  (new -> in-progress -> resolved, resolved may be re-opened).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .enums import INQUIRY_TRANSITIONS, InquiryStatus, Role
from .errors import InvalidTransition


# ── Value Object ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class Caller:
    """Authenticated identity taken from the session token."""

    user_id: int
    email: str
    role: Role


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class Inquiry:
    id: Optional[int] = None
    status: InquiryStatus = InquiryStatus.NEW
    resolved_at: Optional[datetime] = None

    def transition_to(self, new_status: InquiryStatus, now: datetime) -> None:
        """Move to *new_status* if the transition is legal, else raise."""
        current = InquiryStatus(self.status)
        if new_status == current:
            return
        if new_status not in INQUIRY_TRANSITIONS.get(current, set()):
            raise InvalidTransition(
                f"Cannot transition inquiry from {current.value} to {new_status.value}"
            )
        self.status = new_status
        self.resolved_at = now if new_status == InquiryStatus.RESOLVED else None
