"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.

State changes go through :func:`conditional_update`: a single
``UPDATE ... WHERE id = :id AND <current state matches>`` statement.  A
rowcount of zero means another request changed the row first, so the guard
that was checked in Python no longer holds.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    BookingModel,
    BookingUpdateModel,
    DriverModel,
    GarageModel,
    GarageNotificationModel,
    InquiryModel,
    QuoteModel,
    QuoteRequestModel,
    TimeEntryModel,
    UserModel,
)
from marketplace.domain.enums import (
    BookingStatus,
    DriverStatus,
    InquiryStatus,
    OnboardingStatus,
)
from marketplace.domain.fulfilment import BookingUpdateEntry


async def conditional_update(
    session: AsyncSession,
    model,
    entity_id: int,
    expected: dict[str, Any],
    changes: dict[str, Any],
) -> bool:
    """Apply *changes* only if every column in *expected* still matches."""
    stmt = update(model).where(model.id == entity_id)
    for column, value in expected.items():
        attr = getattr(model, column)
        stmt = stmt.where(attr.is_(None) if value is None else attr == value)
    result = await session.execute(
        stmt.values(**changes).execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: int) -> Optional[UserModel]:
        return await self.session.get(UserModel, user_id)

    async def set_approved(self, user_id: int, approved: bool) -> None:
        await self.session.execute(
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(is_approved=approved)
            .execution_options(synchronize_session=False)
        )


class DriverRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, driver: DriverModel) -> DriverModel:
        self.session.add(driver)
        await self.session.flush()
        await self.session.refresh(driver)
        return driver

    async def get_by_id(self, driver_id: int) -> Optional[DriverModel]:
        return await self.session.get(DriverModel, driver_id)

    async def get_by_user_id(self, user_id: int) -> Optional[DriverModel]:
        result = await self.session.execute(
            select(DriverModel).where(DriverModel.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def list_by_status(self, status: Optional[DriverStatus] = None) -> list[DriverModel]:
        query = select(DriverModel).order_by(DriverModel.submitted_at.desc(), DriverModel.id.desc())
        if status is not None:
            query = query.where(DriverModel.status == status)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_by_status(self) -> dict[str, int]:
        result = await self.session.execute(
            select(DriverModel.status, func.count()).group_by(DriverModel.status)
        )
        counts = {s.value: 0 for s in DriverStatus}
        for status, count in result.all():
            counts[DriverStatus(status).value] = count
        return counts

    async def transition_onboarding(
        self,
        driver_id: int,
        expected: OnboardingStatus,
        changes: dict[str, Any],
        *,
        require: Optional[dict[str, Any]] = None,
    ) -> bool:
        """Apply *changes* if the onboarding status and every *require* column still match."""
        return await conditional_update(
            self.session,
            DriverModel,
            driver_id,
            {"onboarding_status": expected, **(require or {})},
            changes,
        )

    async def record_police_check(
        self, driver_id: int, *, document_url: str, certificate_number: Optional[str]
    ) -> None:
        await self.session.execute(
            update(DriverModel)
            .where(DriverModel.id == driver_id)
            .values(
                police_check_completed=True,
                police_check_document_url=document_url,
                police_check_certificate_number=certificate_number,
            )
            .execution_options(synchronize_session=False)
        )

    async def clock_in(self, driver_id: int, time_entry_id: int, now: datetime) -> bool:
        return await conditional_update(
            self.session,
            DriverModel,
            driver_id,
            {"is_clocked_in": False},
            {
                "is_clocked_in": True,
                "last_clock_in": now,
                "current_time_entry_id": time_entry_id,
            },
        )

    async def clock_out(
        self, driver_id: int, now: datetime, *, clocked_in_before: Optional[datetime] = None
    ) -> bool:
        """Clear the clock state; optionally only if the shift started before a cutoff."""
        stmt = update(DriverModel).where(
            DriverModel.id == driver_id, DriverModel.is_clocked_in.is_(True)
        )
        if clocked_in_before is not None:
            stmt = stmt.where(DriverModel.last_clock_in < clocked_in_before)
        result = await self.session.execute(
            stmt.values(
                is_clocked_in=False, last_clock_out=now, current_time_entry_id=None
            ).execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def get_overdue_clocked_in(self, threshold: datetime) -> list[DriverModel]:
        result = await self.session.execute(
            select(DriverModel)
            .where(
                DriverModel.is_clocked_in.is_(True),
                DriverModel.last_clock_in < threshold,
            )
            .order_by(DriverModel.last_clock_in)
        )
        return list(result.scalars().all())


class TimeEntryRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, entry: TimeEntryModel) -> TimeEntryModel:
        self.session.add(entry)
        await self.session.flush()
        await self.session.refresh(entry)
        return entry

    async def get_by_id(self, entry_id: Optional[int]) -> Optional[TimeEntryModel]:
        if entry_id is None:
            return None
        return await self.session.get(TimeEntryModel, entry_id)

    async def entries_since(self, driver_id: int, since: datetime) -> list[TimeEntryModel]:
        result = await self.session.execute(
            select(TimeEntryModel)
            .where(TimeEntryModel.driver_id == driver_id, TimeEntryModel.clock_in >= since)
            .order_by(TimeEntryModel.clock_in.desc())
        )
        return list(result.scalars().all())


class GarageRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_user_id(self, user_id: int) -> Optional[GarageModel]:
        result = await self.session.execute(
            select(GarageModel).where(GarageModel.user_id == user_id)
        )
        return result.scalar_one_or_none()


class BookingRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, booking: BookingModel) -> BookingModel:
        self.session.add(booking)
        await self.session.flush()
        await self.session.refresh(booking)
        return booking

    async def get_by_id(self, booking_id: int) -> Optional[BookingModel]:
        return await self.session.get(BookingModel, booking_id)

    async def list_for_garage(self, garage: GarageModel) -> list[BookingModel]:
        """Bookings assigned to the garage or booked against its linked place."""
        clauses = [BookingModel.assigned_garage_id == garage.id]
        if garage.linked_garage_place_id:
            clauses.append(BookingModel.garage_place_id == garage.linked_garage_place_id)
        if garage.linked_garage_name:
            clauses.append(
                func.lower(BookingModel.garage_name) == garage.linked_garage_name.lower()
            )
        result = await self.session.execute(
            select(BookingModel).where(or_(*clauses)).order_by(BookingModel.id.desc())
        )
        return list(result.scalars().all())

    async def transition(
        self, booking_id: int, expected_garage_status, changes: dict[str, Any]
    ) -> bool:
        return await conditional_update(
            self.session,
            BookingModel,
            booking_id,
            {"garage_status": expected_garage_status},
            changes,
        )

    async def append_update(self, booking_id: int, entry: BookingUpdateEntry) -> BookingUpdateModel:
        row = BookingUpdateModel(
            booking_id=booking_id,
            stage=entry.stage,
            timestamp=entry.timestamp,
            message=entry.message,
            updated_by=entry.updated_by,
        )
        self.session.add(row)
        await self.session.flush()
        return row

    async def get_updates(self, booking_id: int) -> list[BookingUpdateModel]:
        result = await self.session.execute(
            select(BookingUpdateModel)
            .where(BookingUpdateModel.booking_id == booking_id)
            .order_by(BookingUpdateModel.timestamp, BookingUpdateModel.id)
        )
        return list(result.scalars().all())

    async def count_completed_for_driver(
        self, driver_id: int, since: datetime, until: datetime
    ) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(BookingModel)
            .where(
                BookingModel.driver_id == driver_id,
                BookingModel.status == BookingStatus.COMPLETED,
                BookingModel.updated_at >= since,
                BookingModel.updated_at <= until,
            )
        )
        return result.scalar() or 0

    async def has_active_job(self, driver_id: int) -> bool:
        result = await self.session.execute(
            select(func.count())
            .select_from(BookingModel)
            .where(
                BookingModel.driver_id == driver_id,
                BookingModel.status == BookingStatus.IN_PROGRESS,
            )
        )
        return (result.scalar() or 0) > 0


class NotificationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, notification: GarageNotificationModel) -> GarageNotificationModel:
        self.session.add(notification)
        await self.session.flush()
        await self.session.refresh(notification)
        return notification

    async def list_for_garage(
        self, garage_id: int, *, unread_only: bool = False, limit: int = 50
    ) -> list[GarageNotificationModel]:
        query = (
            select(GarageNotificationModel)
            .where(GarageNotificationModel.garage_id == garage_id)
            .order_by(GarageNotificationModel.id.desc())
            .limit(limit)
        )
        if unread_only:
            query = query.where(GarageNotificationModel.is_read.is_(False))
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_unread(self, garage_id: int) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(GarageNotificationModel)
            .where(
                GarageNotificationModel.garage_id == garage_id,
                GarageNotificationModel.is_read.is_(False),
            )
        )
        return result.scalar() or 0

    async def mark_read(self, garage_id: int, ids: Optional[Iterable[int]] = None) -> int:
        stmt = update(GarageNotificationModel).where(
            GarageNotificationModel.garage_id == garage_id,
            GarageNotificationModel.is_read.is_(False),
        )
        if ids is not None:
            stmt = stmt.where(GarageNotificationModel.id.in_(list(ids)))
        result = await self.session.execute(
            stmt.values(is_read=True).execution_options(synchronize_session=False)
        )
        return result.rowcount


class QuoteRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, quote_id: int) -> Optional[QuoteModel]:
        return await self.session.get(QuoteModel, quote_id)

    async def get_request(self, request_id: int) -> Optional[QuoteRequestModel]:
        return await self.session.get(QuoteRequestModel, request_id)

    async def list_for_request(self, request_id: int) -> list[QuoteModel]:
        result = await self.session.execute(
            select(QuoteModel)
            .where(QuoteModel.quote_request_id == request_id)
            .order_by(QuoteModel.quoted_amount)
        )
        return list(result.scalars().all())

    async def transition(self, quote_id: int, expected_status, changes: dict[str, Any]) -> bool:
        return await conditional_update(
            self.session, QuoteModel, quote_id, {"status": expected_status}, changes
        )


class InquiryRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, inquiry: InquiryModel) -> InquiryModel:
        self.session.add(inquiry)
        await self.session.flush()
        await self.session.refresh(inquiry)
        return inquiry

    async def get_by_id(self, inquiry_id: int) -> Optional[InquiryModel]:
        return await self.session.get(InquiryModel, inquiry_id)

    async def list_by_status(self, status: Optional[InquiryStatus] = None) -> list[InquiryModel]:
        query = select(InquiryModel).order_by(InquiryModel.id.desc())
        if status is not None:
            query = query.where(InquiryModel.status == status)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def transition(
        self, inquiry_id: int, expected_status: InquiryStatus, changes: dict[str, Any]
    ) -> bool:
        return await conditional_update(
            self.session, InquiryModel, inquiry_id, {"status": expected_status}, changes
        )
