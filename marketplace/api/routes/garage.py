"""
Garage endpoints
================

POST /api/v1/garage/booking-action       -- accept / decline / start / complete
GET  /api/v1/garage/bookings             -- bookings assigned to or matching this garage
GET  /api/v1/garage/notifications        -- notification feed with unread count
POST /api/v1/garage/notifications/read   -- mark notifications read
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api.dependencies import get_db, require_garage
from marketplace.api.middleware import limiter
from marketplace.api.schemas import (
    BookingActionRequest,
    BookingActionResponse,
    BookingResponse,
    BookingUpdateResponse,
    MarkNotificationsReadRequest,
    MarkReadResponse,
    NotificationFeedResponse,
    NotificationResponse,
)
from marketplace.domain.entities import Caller
from marketplace.domain.enums import GarageAction
from marketplace.infrastructure.models import BookingModel, BookingUpdateModel
from marketplace.infrastructure.repositories import BookingRepository
from marketplace.services import fulfilment

router = APIRouter(prefix="/garage", tags=["garage"])

_SUCCESS_MESSAGES = {
    GarageAction.ACCEPT: "Booking accepted successfully",
    GarageAction.DECLINE: "Booking declined successfully",
    GarageAction.START: "Service started successfully",
    GarageAction.COMPLETE: "Service completed successfully",
}


def _booking_view(booking: BookingModel, updates: list[BookingUpdateModel]) -> BookingResponse:
    view = BookingResponse.model_validate(booking)
    view.updates = [BookingUpdateResponse.model_validate(u) for u in updates]
    return view


@router.post(
    "/booking-action",
    response_model=BookingActionResponse,
    summary="Accept, decline, start or complete a booking",
)
@limiter.limit("60/minute")
async def booking_action(
    request: Request,
    body: BookingActionRequest,
    caller: Caller = Depends(require_garage),
    db: AsyncSession = Depends(get_db),
):
    booking, _ = await fulfilment.apply_booking_action(
        db, caller, body.booking_id, body.action, notes=body.notes
    )
    updates = await BookingRepository(db).get_updates(booking.id)
    return BookingActionResponse(
        message=_SUCCESS_MESSAGES[body.action],
        booking=_booking_view(booking, updates),
    )


@router.get(
    "/bookings",
    response_model=list[BookingResponse],
    summary="List this garage's bookings",
)
@limiter.limit("100/minute")
async def list_bookings(
    request: Request,
    caller: Caller = Depends(require_garage),
    db: AsyncSession = Depends(get_db),
):
    rows = await fulfilment.list_garage_bookings(db, caller)
    return [_booking_view(booking, updates) for booking, updates in rows]


@router.get(
    "/notifications",
    response_model=NotificationFeedResponse,
    summary="Garage notification feed",
)
@limiter.limit("100/minute")
async def notifications(
    request: Request,
    unread_only: bool = False,
    limit: int = 50,
    caller: Caller = Depends(require_garage),
    db: AsyncSession = Depends(get_db),
):
    items, unread = await fulfilment.notification_feed(
        db, caller, unread_only=unread_only, limit=min(max(limit, 1), 200)
    )
    return NotificationFeedResponse(
        notifications=[
            NotificationResponse(
                id=n.id,
                booking_id=n.booking_id,
                type=n.type,
                title=n.title,
                message=n.message,
                metadata=n.metadata_ or {},
                is_read=n.is_read,
                created_at=n.created_at,
            )
            for n in items
        ],
        unread_count=unread,
    )


@router.post(
    "/notifications/read",
    response_model=MarkReadResponse,
    summary="Mark notifications as read",
)
@limiter.limit("60/minute")
async def mark_read(
    request: Request,
    body: MarkNotificationsReadRequest,
    caller: Caller = Depends(require_garage),
    db: AsyncSession = Depends(get_db),
):
    updated = await fulfilment.mark_notifications_read(db, caller, body.notification_ids)
    return MarkReadResponse(updated=updated)
