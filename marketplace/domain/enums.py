"""Domain enumerations and state-transition rules."""

import enum


class Role(str, enum.Enum):
    CUSTOMER = "customer"
    DRIVER = "driver"
    GARAGE = "garage"
    ADMIN = "admin"


# ── Drivers ───────────────────────────────────────────────────────────


class DriverStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    SUSPENDED = "suspended"
    REJECTED = "rejected"


class OnboardingStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    CONTRACTS_PENDING = "contracts_pending"
    ACTIVE = "active"


class OnboardingEvent(str, enum.Enum):
    ADMIN_APPROVED = "admin_approved"
    ONBOARDING_VIEWED = "onboarding_viewed"
    CONTRACTS_SIGNED = "contracts_signed"


# State machine: (current status, event) -> next status
ONBOARDING_TRANSITIONS: dict[tuple[OnboardingStatus, OnboardingEvent], OnboardingStatus] = {
    (OnboardingStatus.NOT_STARTED, OnboardingEvent.ADMIN_APPROVED): OnboardingStatus.CONTRACTS_PENDING,
    (OnboardingStatus.NOT_STARTED, OnboardingEvent.ONBOARDING_VIEWED): OnboardingStatus.CONTRACTS_PENDING,
    (OnboardingStatus.NOT_STARTED, OnboardingEvent.CONTRACTS_SIGNED): OnboardingStatus.ACTIVE,
    (OnboardingStatus.CONTRACTS_PENDING, OnboardingEvent.CONTRACTS_SIGNED): OnboardingStatus.ACTIVE,
}


class EmploymentType(str, enum.Enum):
    EMPLOYEE = "employee"
    CONTRACTOR = "contractor"


class DriverReviewAction(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"
    SUSPEND = "suspend"
    REACTIVATE = "reactivate"


DRIVER_REVIEW_OUTCOMES: dict[DriverReviewAction, DriverStatus] = {
    DriverReviewAction.APPROVE: DriverStatus.APPROVED,
    DriverReviewAction.REJECT: DriverStatus.REJECTED,
    DriverReviewAction.SUSPEND: DriverStatus.SUSPENDED,
    DriverReviewAction.REACTIVATE: DriverStatus.APPROVED,
}


class ClockAction(str, enum.Enum):
    CLOCK_IN = "clock_in"
    CLOCK_OUT = "clock_out"


class ClockOutReason(str, enum.Enum):
    MANUAL = "manual"
    AUTO = "auto"


# ── Garages & bookings ────────────────────────────────────────────────


class GarageAccountStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    SUSPENDED = "suspended"
    REJECTED = "rejected"


class GarageStatus(str, enum.Enum):
    """Per-booking fulfilment state as seen by the garage."""

    NEW = "new"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class GarageAction(str, enum.Enum):
    ACCEPT = "accept"
    DECLINE = "decline"
    START = "start"
    COMPLETE = "complete"


# State machine: action -> (required current garage status, next garage status)
GARAGE_TRANSITIONS: dict[GarageAction, tuple[GarageStatus, GarageStatus]] = {
    GarageAction.ACCEPT: (GarageStatus.NEW, GarageStatus.ACCEPTED),
    GarageAction.DECLINE: (GarageStatus.NEW, GarageStatus.DECLINED),
    GarageAction.START: (GarageStatus.ACCEPTED, GarageStatus.IN_PROGRESS),
    GarageAction.COMPLETE: (GarageStatus.IN_PROGRESS, GarageStatus.COMPLETED),
}


class NotificationType(str, enum.Enum):
    BOOKING_UPDATE = "booking_update"


# ── Quotes ────────────────────────────────────────────────────────────


class QuoteStatus(str, enum.Enum):
    PENDING = "pending"
    VIEWED = "viewed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


QUOTE_TERMINAL_STATUSES = frozenset({QuoteStatus.EXPIRED, QuoteStatus.CANCELLED})


class QuoteRequestStatus(str, enum.Enum):
    OPEN = "open"
    QUOTED = "quoted"
    ACCEPTED = "accepted"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


# ── Contact inquiries ─────────────────────────────────────────────────


class InquiryStatus(str, enum.Enum):
    NEW = "new"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"


INQUIRY_TRANSITIONS: dict[InquiryStatus, set[InquiryStatus]] = {
    InquiryStatus.NEW: {InquiryStatus.IN_PROGRESS, InquiryStatus.RESOLVED},
    InquiryStatus.IN_PROGRESS: {InquiryStatus.RESOLVED},
    InquiryStatus.RESOLVED: {InquiryStatus.IN_PROGRESS},
}
