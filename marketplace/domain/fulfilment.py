"""
Booking fulfilment state machine (garage side).

    new ──accept──▶ accepted ──start──▶ in_progress ──complete──▶ completed
     └──decline──▶ declined   (releases the garage's claim)

``next_booking_state`` centralises every guard the garage endpoints need and
returns the column changes, the audit entry to append and the notification
text.  Nothing here touches storage.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from .enums import (
    GARAGE_TRANSITIONS,
    BookingStatus,
    GarageAccountStatus,
    GarageAction,
    GarageStatus,
)
from .errors import InvalidTransition, NotApproved, NotAssigned


@dataclass(frozen=True)
class GarageActor:
    id: int
    business_name: str
    status: GarageAccountStatus
    linked_garage_place_id: Optional[str] = None
    linked_garage_name: Optional[str] = None


@dataclass(frozen=True)
class BookingSnapshot:
    id: int
    garage_status: GarageStatus
    status: BookingStatus = BookingStatus.PENDING
    assigned_garage_id: Optional[int] = None
    assigned_at: Optional[datetime] = None
    garage_place_id: Optional[str] = None
    garage_name: Optional[str] = None
    vehicle_registration: str = ""


@dataclass(frozen=True)
class BookingUpdateEntry:
    stage: str
    timestamp: datetime
    message: str
    updated_by: str


@dataclass(frozen=True)
class BookingTransition:
    action: GarageAction
    previous: GarageStatus
    garage_status: GarageStatus
    update: BookingUpdateEntry
    notification_title: str
    notification_message: str
    changes: dict[str, Any] = field(default_factory=dict)


_ACTION_TEXT = {
    GarageAction.ACCEPT: ("garage_accepted", "Booking accepted by", "Booking Accepted", "You have accepted the booking for {reg}"),
    GarageAction.DECLINE: ("garage_declined", "Booking declined by", "Booking Declined", "You have declined the booking for {reg}"),
    GarageAction.START: ("service_started", "Service started by", "Service Started", "Service has been started for {reg}"),
    GarageAction.COMPLETE: ("service_completed", "Service completed by", "Service Completed", "Service has been completed for {reg}"),
}

_STATE_ERRORS = {
    GarageAction.ACCEPT: "Can only accept new bookings",
    GarageAction.DECLINE: "Can only decline new bookings",
    GarageAction.START: "Can only start accepted bookings",
    GarageAction.COMPLETE: "Can only complete in-progress bookings",
}


def garage_matches_booking(garage: GarageActor, booking: BookingSnapshot) -> bool:
    """Assigned to this garage, or booked against the place it has linked."""
    if booking.assigned_garage_id is not None and booking.assigned_garage_id == garage.id:
        return True
    if garage.linked_garage_place_id and booking.garage_place_id == garage.linked_garage_place_id:
        return True
    return bool(
        garage.linked_garage_name
        and booking.garage_name
        and booking.garage_name.lower() == garage.linked_garage_name.lower()
    )


def next_booking_state(
    booking: BookingSnapshot,
    action: GarageAction,
    garage: GarageActor,
    *,
    actor_id: int,
    now: datetime,
    notes: Optional[str] = None,
) -> BookingTransition:
    if GarageAccountStatus(garage.status) != GarageAccountStatus.APPROVED:
        raise NotApproved("Garage must be approved to take booking actions")
    if not garage_matches_booking(garage, booking):
        raise NotAssigned("This booking is not assigned to your garage")

    required, target = GARAGE_TRANSITIONS[action]
    current = GarageStatus(booking.garage_status)
    if current != required:
        raise InvalidTransition(_STATE_ERRORS[action])

    stage, verb, title, template = _ACTION_TEXT[action]
    suffix = f": {notes}" if notes else ""
    update = BookingUpdateEntry(
        stage=stage,
        timestamp=now,
        message=f"{verb} {garage.business_name}{suffix}",
        updated_by=str(actor_id),
    )

    changes: dict[str, Any] = {"garage_status": target}
    if action in (GarageAction.ACCEPT, GarageAction.DECLINE):
        changes.update(
            garage_responded_at=now,
            garage_responded_by=actor_id,
            garage_response_notes=notes or "",
        )

    if action is GarageAction.ACCEPT:
        changes.update(
            garage_accepted_at=now,
            assigned_garage_id=garage.id,
            assigned_at=booking.assigned_at or now,
        )
    elif action is GarageAction.DECLINE:
        if booking.assigned_garage_id == garage.id:
            changes.update(assigned_garage_id=None, assigned_at=None)
    elif action is GarageAction.START:
        changes.update(
            status=BookingStatus.IN_PROGRESS,
            current_stage="service_in_progress",
            overall_progress=50,
        )
    elif action is GarageAction.COMPLETE:
        changes.update(
            status=BookingStatus.COMPLETED,
            current_stage="service_completed",
            overall_progress=100,
            garage_completed_at=now,
        )

    return BookingTransition(
        action=action,
        previous=current,
        garage_status=target,
        update=update,
        notification_title=title,
        notification_message=template.format(reg=booking.vehicle_registration),
        changes=changes,
    )
