"""
Garage notifications and customer SMS.

Both are side channels of a booking transition.  Callers commit the
transition first; a failure here is logged and rolled back on its own so it
can never undo the state change that triggered it.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.domain.enums import NotificationType
from marketplace.infrastructure.models import BookingModel, GarageNotificationModel
from marketplace.infrastructure.repositories import NotificationRepository
from marketplace.infrastructure.sms import send_sms

logger = logging.getLogger(__name__)


def booking_metadata(booking: BookingModel) -> dict:
    return {
        "vehicle_registration": booking.vehicle_registration,
        "service_type": booking.service_type,
        "pickup_time": booking.pickup_time.isoformat() if booking.pickup_time else None,
        "customer_name": booking.user_name,
    }


async def notify_garage(
    session: AsyncSession,
    *,
    garage_id: int,
    booking: BookingModel,
    title: str,
    message: str,
    type: NotificationType = NotificationType.BOOKING_UPDATE,
) -> Optional[GarageNotificationModel]:
    try:
        notification = await NotificationRepository(session).create(
            GarageNotificationModel(
                garage_id=garage_id,
                booking_id=booking.id,
                type=type,
                title=title,
                message=message,
                metadata_=booking_metadata(booking),
                is_read=False,
            )
        )
        await session.commit()
        return notification
    except SQLAlchemyError:
        logger.exception(
            "Failed to create notification for garage %d (booking %d)", garage_id, booking.id
        )
        await session.rollback()
        return None


async def notify_customer_service_completed(booking: BookingModel, garage_name: str) -> bool:
    sent, error = await send_sms(
        booking.user_phone,
        f"Good news! {garage_name} has completed the service on "
        f"{booking.vehicle_registration}. We'll be in touch about delivery.",
    )
    if not sent:
        logger.info("Completion SMS for booking %d not sent: %s", booking.id, error)
    return sent
