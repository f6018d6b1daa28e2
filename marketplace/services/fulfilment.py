"""Garage-side booking actions and the garage notification feed."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.domain.entities import Caller
from marketplace.domain.enums import GarageAction, Role
from marketplace.domain.errors import Forbidden, InvalidTransition, NotFound
from marketplace.domain.fulfilment import (
    BookingSnapshot,
    BookingTransition,
    GarageActor,
    next_booking_state,
)
from marketplace.infrastructure.models import (
    BookingModel,
    BookingUpdateModel,
    GarageModel,
    GarageNotificationModel,
)
from marketplace.infrastructure.repositories import (
    BookingRepository,
    GarageRepository,
    NotificationRepository,
)
from marketplace.services import notifications

logger = logging.getLogger(__name__)


def snapshot(booking: BookingModel) -> BookingSnapshot:
    return BookingSnapshot(
        id=booking.id,
        garage_status=booking.garage_status,
        status=booking.status,
        assigned_garage_id=booking.assigned_garage_id,
        assigned_at=booking.assigned_at,
        garage_place_id=booking.garage_place_id,
        garage_name=booking.garage_name,
        vehicle_registration=booking.vehicle_registration,
    )


def actor(garage: GarageModel) -> GarageActor:
    return GarageActor(
        id=garage.id,
        business_name=garage.business_name,
        status=garage.status,
        linked_garage_place_id=garage.linked_garage_place_id,
        linked_garage_name=garage.linked_garage_name,
    )


async def require_garage(session: AsyncSession, caller: Caller) -> GarageModel:
    if caller.role != Role.GARAGE:
        raise Forbidden("Not a garage user")
    garage = await GarageRepository(session).get_by_user_id(caller.user_id)
    if garage is None:
        raise NotFound("Garage profile not found")
    return garage


async def apply_booking_action(
    session: AsyncSession,
    caller: Caller,
    booking_id: int,
    action: GarageAction,
    *,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> tuple[BookingModel, BookingTransition]:
    now = now or datetime.now(timezone.utc)
    garage = await require_garage(session, caller)

    repo = BookingRepository(session)
    booking = await repo.get_by_id(booking_id)
    if booking is None:
        raise NotFound("Booking not found")

    transition = next_booking_state(
        snapshot(booking), action, actor(garage), actor_id=caller.user_id, now=now, notes=notes
    )
    if not await repo.transition(booking.id, transition.previous, transition.changes):
        raise InvalidTransition("Booking was updated by another request")
    await repo.append_update(booking.id, transition.update)
    await session.commit()
    await session.refresh(booking)

    logger.info(
        "Garage %d %s booking %d (%s -> %s)",
        garage.id,
        action.value,
        booking.id,
        transition.previous.value,
        transition.garage_status.value,
    )

    garage_id, garage_name = garage.id, garage.business_name
    notified = await notifications.notify_garage(
        session,
        garage_id=garage_id,
        booking=booking,
        title=transition.notification_title,
        message=transition.notification_message,
    )
    if notified is None:
        # the failed side channel was rolled back, which expires loaded rows
        await session.refresh(booking)
    if action is GarageAction.COMPLETE:
        await notifications.notify_customer_service_completed(booking, garage_name)

    return booking, transition


async def list_garage_bookings(
    session: AsyncSession, caller: Caller
) -> list[tuple[BookingModel, list[BookingUpdateModel]]]:
    garage = await require_garage(session, caller)
    repo = BookingRepository(session)
    return [
        (booking, await repo.get_updates(booking.id))
        for booking in await repo.list_for_garage(garage)
    ]


async def notification_feed(
    session: AsyncSession, caller: Caller, *, unread_only: bool = False, limit: int = 50
) -> tuple[list[GarageNotificationModel], int]:
    garage = await require_garage(session, caller)
    repo = NotificationRepository(session)
    items = await repo.list_for_garage(garage.id, unread_only=unread_only, limit=limit)
    return items, await repo.count_unread(garage.id)


async def mark_notifications_read(
    session: AsyncSession, caller: Caller, ids: Optional[Iterable[int]] = None
) -> int:
    garage = await require_garage(session, caller)
    return await NotificationRepository(session).mark_read(garage.id, ids)
