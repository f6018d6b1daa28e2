"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from marketplace.domain.enums import (
    BookingStatus,
    ClockAction,
    DriverReviewAction,
    DriverStatus,
    EmploymentType,
    GarageAction,
    GarageStatus,
    InquiryStatus,
    NotificationType,
    OnboardingStatus,
    QuoteStatus,
)


# ── Requests ──────────────────────────────────────────────────────────


class DriverApplicationRequest(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=80)
    last_name: str = Field(..., min_length=1, max_length=80)
    phone: Optional[str] = Field(None, max_length=32)


class PoliceCheckRequest(BaseModel):
    document_url: str = Field(..., min_length=1, max_length=500)
    certificate_number: Optional[str] = Field(None, max_length=64)


class SignContractsRequest(BaseModel):
    employment_contract_accepted: bool = False
    driver_agreement_accepted: bool = False
    work_health_safety_accepted: bool = False
    code_of_conduct_accepted: bool = False
    superannuation_fund: Optional[str] = Field(None, max_length=120)
    superannuation_member_number: Optional[str] = Field(None, max_length=64)

    @property
    def all_accepted(self) -> bool:
        return (
            self.employment_contract_accepted
            and self.driver_agreement_accepted
            and self.work_health_safety_accepted
            and self.code_of_conduct_accepted
        )


class DriverReviewRequest(BaseModel):
    action: DriverReviewAction
    rejection_reason: Optional[str] = Field(None, max_length=1000)


class ClockRequest(BaseModel):
    action: ClockAction


class BookingActionRequest(BaseModel):
    booking_id: int
    action: GarageAction
    notes: Optional[str] = Field(None, max_length=1000)


class MarkNotificationsReadRequest(BaseModel):
    notification_ids: Optional[list[int]] = Field(
        None, description="Omit to mark every unread notification as read."
    )


class InquiryCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    subject: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=5000)


class InquiryUpdateRequest(BaseModel):
    status: Optional[InquiryStatus] = None
    admin_notes: Optional[str] = Field(None, max_length=5000)


# ── Responses ─────────────────────────────────────────────────────────


class DriverResponse(BaseModel):
    id: int
    user_id: int
    first_name: str
    last_name: str
    phone: Optional[str] = None
    status: DriverStatus
    onboarding_status: OnboardingStatus
    employment_type: EmploymentType
    can_accept_jobs: bool
    police_check_completed: bool
    is_clocked_in: bool
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    model_config = {"from_attributes": True}


class DriverListResponse(BaseModel):
    drivers: list[DriverResponse]
    counts: dict[str, int]


class OnboardingStatusResponse(BaseModel):
    driver_id: int
    onboarding_status: OnboardingStatus
    can_accept_jobs: bool
    employment_type: EmploymentType
    police_check_completed: bool
    police_check_document_url: Optional[str] = None
    employment_contract_signed_at: Optional[datetime] = None
    driver_agreement_signed_at: Optional[datetime] = None
    work_health_safety_signed_at: Optional[datetime] = None
    code_of_conduct_signed_at: Optional[datetime] = None
    employee_start_date: Optional[datetime] = None
    insurance_eligible: bool = False


class ClockStatusResponse(BaseModel):
    is_clocked_in: bool
    last_clock_in: Optional[datetime] = None
    last_clock_out: Optional[datetime] = None
    can_accept_jobs: bool
    onboarding_status: OnboardingStatus
    today_minutes: int = 0
    today_jobs_completed: int = 0


class ClockResponse(BaseModel):
    action: ClockAction
    at: datetime
    time_entry_id: Optional[int] = None
    duration_minutes: Optional[int] = None
    jobs_completed: Optional[int] = None

    model_config = {"from_attributes": True}


class BookingUpdateResponse(BaseModel):
    stage: str
    timestamp: datetime
    message: str
    updated_by: str

    model_config = {"from_attributes": True}


class BookingResponse(BaseModel):
    id: int
    vehicle_registration: str
    service_type: str
    user_name: str
    pickup_time: Optional[datetime] = None
    garage_name: Optional[str] = None
    garage_status: GarageStatus
    status: BookingStatus
    current_stage: str
    overall_progress: int
    assigned_garage_id: Optional[int] = None
    assigned_at: Optional[datetime] = None
    garage_accepted_at: Optional[datetime] = None
    garage_completed_at: Optional[datetime] = None
    garage_responded_at: Optional[datetime] = None
    garage_response_notes: Optional[str] = None
    updates: list[BookingUpdateResponse] = []

    model_config = {"from_attributes": True}


class BookingActionResponse(BaseModel):
    success: bool = True
    message: str
    booking: BookingResponse


class NotificationResponse(BaseModel):
    id: int
    booking_id: Optional[int] = None
    type: NotificationType
    title: str
    message: str
    metadata: dict = Field(default_factory=dict)
    is_read: bool
    created_at: Optional[datetime] = None


class NotificationFeedResponse(BaseModel):
    notifications: list[NotificationResponse]
    unread_count: int


class MarkReadResponse(BaseModel):
    updated: int


class TimeRemainingResponse(BaseModel):
    hours: int
    minutes: int
    total_minutes: int
    formatted: str
    is_expired: bool


class QuoteResponse(BaseModel):
    id: int
    quote_request_id: int
    garage_id: int
    garage_name: str
    quoted_amount: float
    estimated_duration: str
    status: QuoteStatus
    first_viewed_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    expiry_label: str
    time_remaining: Optional[TimeRemainingResponse] = None


class TrackViewResponse(BaseModel):
    success: bool = True
    is_first_view: bool
    message: Optional[str] = None
    quote: QuoteResponse


class QuoteListResponse(BaseModel):
    quote_request_id: int
    quotes: list[QuoteResponse]


class InquiryResponse(BaseModel):
    id: int
    name: str
    email: str
    subject: str
    message: str
    status: InquiryStatus
    admin_notes: Optional[str] = None
    resolved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class AutoClockoutResultResponse(BaseModel):
    driver_id: int
    name: str
    clocked_in_at: Optional[datetime] = None
    status: str
    error: Optional[str] = None

    model_config = {"from_attributes": True}


class AutoClockoutResponse(BaseModel):
    success: bool = True
    skipped: bool = False
    processed: int
    threshold: datetime
    results: list[AutoClockoutResultResponse]


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
    error: str
