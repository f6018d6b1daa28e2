"""
SQLAlchemy ORM models.

Tables
------
* ``users``                 -- identities known to the session provider
* ``drivers``               -- driver applications and onboarding state
* ``time_entries``          -- driver shifts (clock in / clock out)
* ``garages``               -- garage business profiles
* ``bookings``              -- service bookings and garage fulfilment state
* ``booking_updates``       -- append-only booking audit log
* ``garage_notifications``  -- in-app notification feed for garages
* ``quote_requests`` / ``quotes`` -- customer quote flow
* ``inquiries``             -- contact form submissions

Status columns are only written through the transition operations in
``marketplace.services``; see the ``transition`` methods on the repositories.
"""

from datetime import timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    TypeDecorator,
    func,
)

from .database import Base
from marketplace.domain.enums import (
    BookingStatus,
    ClockOutReason,
    DriverStatus,
    EmploymentType,
    GarageAccountStatus,
    GarageStatus,
    InquiryStatus,
    NotificationType,
    OnboardingStatus,
    QuoteRequestStatus,
    QuoteStatus,
    Role,
)


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetimes, normalised to UTC on the way in and out."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def _enum(cls):
    # store the lower-case wire values rather than member names
    return Enum(cls, values_callable=lambda e: [m.value for m in e], name=cls.__name__.lower())


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(32), nullable=True)
    role = Column(_enum(Role), default=Role.CUSTOMER, nullable=False)
    is_approved = Column(Boolean, default=False, nullable=False)
    created_at = Column(UTCDateTime, server_default=func.now())


class DriverModel(Base):
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    first_name = Column(String(80), nullable=False)
    last_name = Column(String(80), nullable=False)
    phone = Column(String(32), nullable=True)

    status = Column(_enum(DriverStatus), default=DriverStatus.PENDING, nullable=False)
    onboarding_status = Column(
        _enum(OnboardingStatus), default=OnboardingStatus.NOT_STARTED, nullable=False
    )
    employment_type = Column(
        _enum(EmploymentType), default=EmploymentType.EMPLOYEE, nullable=False
    )
    can_accept_jobs = Column(Boolean, default=False, nullable=False)

    police_check_completed = Column(Boolean, default=False, nullable=False)
    police_check_document_url = Column(String(500), nullable=True)
    police_check_certificate_number = Column(String(64), nullable=True)

    employment_contract_signed_at = Column(UTCDateTime, nullable=True)
    driver_agreement_signed_at = Column(UTCDateTime, nullable=True)
    work_health_safety_signed_at = Column(UTCDateTime, nullable=True)
    code_of_conduct_signed_at = Column(UTCDateTime, nullable=True)
    employee_start_date = Column(UTCDateTime, nullable=True)
    superannuation_fund = Column(String(120), nullable=True)
    superannuation_member_number = Column(String(64), nullable=True)

    submitted_at = Column(UTCDateTime, server_default=func.now())
    reviewed_at = Column(UTCDateTime, nullable=True)
    reviewed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    is_clocked_in = Column(Boolean, default=False, nullable=False)
    last_clock_in = Column(UTCDateTime, nullable=True)
    last_clock_out = Column(UTCDateTime, nullable=True)
    current_time_entry_id = Column(Integer, nullable=True)

    created_at = Column(UTCDateTime, server_default=func.now())
    updated_at = Column(UTCDateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("idx_drivers_status", "status"),
        Index("idx_drivers_clock", "is_clocked_in", "last_clock_in"),
    )


class TimeEntryModel(Base):
    __tablename__ = "time_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    driver_id = Column(Integer, ForeignKey("drivers.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    clock_in = Column(UTCDateTime, nullable=False)
    clock_out = Column(UTCDateTime, nullable=True)
    clock_out_reason = Column(_enum(ClockOutReason), nullable=True)
    clock_out_note = Column(String(255), nullable=True)
    duration_minutes = Column(Integer, nullable=True)
    jobs_completed = Column(Integer, default=0, nullable=False)

    __table_args__ = (Index("idx_time_entries_driver", "driver_id", "clock_in"),)


class GarageModel(Base):
    __tablename__ = "garages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    business_name = Column(String(200), nullable=False)
    phone = Column(String(32), nullable=True)
    status = Column(
        _enum(GarageAccountStatus), default=GarageAccountStatus.PENDING, nullable=False
    )
    linked_garage_place_id = Column(String(255), nullable=True)
    linked_garage_name = Column(String(200), nullable=True)
    created_at = Column(UTCDateTime, server_default=func.now())


class BookingModel(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    user_name = Column(String(120), nullable=False)
    user_phone = Column(String(32), nullable=True)
    vehicle_registration = Column(String(20), nullable=False)
    service_type = Column(String(120), nullable=False)
    pickup_time = Column(UTCDateTime, nullable=True)

    # Garage the customer picked (may not be a registered partner yet)
    garage_name = Column(String(200), nullable=True)
    garage_place_id = Column(String(255), nullable=True)

    assigned_garage_id = Column(Integer, ForeignKey("garages.id"), nullable=True)
    assigned_at = Column(UTCDateTime, nullable=True)
    driver_id = Column(Integer, ForeignKey("drivers.id"), nullable=True)

    garage_status = Column(_enum(GarageStatus), default=GarageStatus.NEW, nullable=False)
    status = Column(_enum(BookingStatus), default=BookingStatus.PENDING, nullable=False)
    current_stage = Column(String(64), default="booking_confirmed", nullable=False)
    overall_progress = Column(Integer, default=0, nullable=False)

    garage_accepted_at = Column(UTCDateTime, nullable=True)
    garage_completed_at = Column(UTCDateTime, nullable=True)
    garage_responded_at = Column(UTCDateTime, nullable=True)
    garage_responded_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    garage_response_notes = Column(Text, nullable=True)

    created_at = Column(UTCDateTime, server_default=func.now())
    updated_at = Column(UTCDateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("idx_bookings_garage", "assigned_garage_id", "garage_status"),
        Index("idx_bookings_place", "garage_place_id"),
        Index("idx_bookings_driver", "driver_id", "status"),
    )


class BookingUpdateModel(Base):
    """Append-only: rows are inserted, never updated or deleted."""

    __tablename__ = "booking_updates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False)
    stage = Column(String(64), nullable=False)
    timestamp = Column(UTCDateTime, nullable=False)
    message = Column(Text, nullable=False)
    updated_by = Column(String(64), nullable=False)

    __table_args__ = (Index("idx_booking_updates_booking", "booking_id", "timestamp"),)


class GarageNotificationModel(Base):
    __tablename__ = "garage_notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    garage_id = Column(Integer, ForeignKey("garages.id"), nullable=False)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=True)
    type = Column(_enum(NotificationType), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    metadata_ = Column("metadata", JSON, default=dict)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(UTCDateTime, server_default=func.now())

    __table_args__ = (Index("idx_garage_notifications_feed", "garage_id", "is_read"),)


class QuoteRequestModel(Base):
    __tablename__ = "quote_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    customer_email = Column(String(255), nullable=False)
    vehicle_registration = Column(String(20), nullable=False)
    service_description = Column(Text, nullable=False)
    status = Column(
        _enum(QuoteRequestStatus), default=QuoteRequestStatus.OPEN, nullable=False
    )
    expires_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, server_default=func.now())

    __table_args__ = (Index("idx_quote_requests_customer", "customer_id"),)


class QuoteModel(Base):
    __tablename__ = "quotes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    quote_request_id = Column(Integer, ForeignKey("quote_requests.id"), nullable=False)
    garage_id = Column(Integer, ForeignKey("garages.id"), nullable=False)
    garage_name = Column(String(200), nullable=False)
    quoted_amount = Column(Float, nullable=False)
    estimated_duration = Column(String(64), nullable=False)
    status = Column(_enum(QuoteStatus), default=QuoteStatus.PENDING, nullable=False)
    first_viewed_at = Column(UTCDateTime, nullable=True)
    expires_at = Column(UTCDateTime, nullable=True)
    valid_until = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, server_default=func.now())

    __table_args__ = (
        Index("idx_quotes_request", "quote_request_id", "status"),
        Index("idx_quotes_garage", "garage_id", "status"),
    )


class InquiryModel(Base):
    __tablename__ = "inquiries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), nullable=False)
    subject = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(_enum(InquiryStatus), default=InquiryStatus.NEW, nullable=False)
    admin_notes = Column(Text, nullable=True)
    resolved_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, server_default=func.now())

    __table_args__ = (Index("idx_inquiries_status", "status"),)
