"""
Driver onboarding state machine.

    not_started ──admin_approved / onboarding_viewed──▶ contracts_pending
    contracts_pending (or legacy not_started) ──contracts_signed──▶ active

``active`` is terminal.  Every function here is pure: it receives the
current state plus the guard facts and returns the field changes to persist,
or raises one of the errors from :mod:`marketplace.domain.errors`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from .enums import (
    DRIVER_REVIEW_OUTCOMES,
    ONBOARDING_TRANSITIONS,
    DriverReviewAction,
    DriverStatus,
    EmploymentType,
    OnboardingEvent,
    OnboardingStatus,
)
from .errors import AlreadyCompleted, InvalidTransition, PreconditionFailed

CONTRACT_SIGNATURE_FIELDS = (
    "employment_contract_signed_at",
    "driver_agreement_signed_at",
    "work_health_safety_signed_at",
    "code_of_conduct_signed_at",
)


@dataclass(frozen=True)
class OnboardingFacts:
    driver_status: DriverStatus
    police_check_completed: bool = False
    police_check_document_url: Optional[str] = None

    @property
    def police_check_ready(self) -> bool:
        return self.police_check_completed and bool(self.police_check_document_url)


@dataclass(frozen=True)
class OnboardingTransition:
    previous: OnboardingStatus
    status: OnboardingStatus
    changes: dict[str, Any] = field(default_factory=dict)

    @property
    def changed(self) -> bool:
        return bool(self.changes)


def insurance_eligible(
    employment_type: EmploymentType, onboarding_status: OnboardingStatus
) -> bool:
    return (
        EmploymentType(employment_type) == EmploymentType.EMPLOYEE
        and OnboardingStatus(onboarding_status) == OnboardingStatus.ACTIVE
    )


def next_onboarding_state(
    current: OnboardingStatus,
    event: OnboardingEvent,
    facts: OnboardingFacts,
    now: datetime,
) -> OnboardingTransition:
    current = OnboardingStatus(current)

    if event is OnboardingEvent.CONTRACTS_SIGNED:
        return _sign_contracts(current, facts, now)

    if event is OnboardingEvent.ONBOARDING_VIEWED and facts.driver_status != DriverStatus.APPROVED:
        return OnboardingTransition(previous=current, status=current)

    target = ONBOARDING_TRANSITIONS.get((current, event))
    if target is None:
        # Approval or a status view on a driver already past not_started.
        return OnboardingTransition(previous=current, status=current)

    return OnboardingTransition(
        previous=current,
        status=target,
        changes={"onboarding_status": target, "can_accept_jobs": False},
    )


def _sign_contracts(
    current: OnboardingStatus, facts: OnboardingFacts, now: datetime
) -> OnboardingTransition:
    if facts.driver_status != DriverStatus.APPROVED:
        raise PreconditionFailed(
            "Driver must be approved before signing contracts", status_code=403
        )
    if not facts.police_check_ready:
        raise PreconditionFailed(
            "Police check must be uploaded before completing onboarding"
        )
    if current == OnboardingStatus.ACTIVE:
        raise AlreadyCompleted("Contracts have already been signed")

    target = ONBOARDING_TRANSITIONS.get((current, OnboardingEvent.CONTRACTS_SIGNED))
    if target is None:
        raise InvalidTransition("Invalid onboarding state")

    changes: dict[str, Any] = {name: now for name in CONTRACT_SIGNATURE_FIELDS}
    changes.update(
        onboarding_status=target,
        can_accept_jobs=True,
        employee_start_date=now,
        employment_type=EmploymentType.EMPLOYEE,
    )
    return OnboardingTransition(previous=current, status=target, changes=changes)


@dataclass(frozen=True)
class DriverReview:
    status: DriverStatus
    changes: dict[str, Any]
    onboarding: OnboardingTransition


def review_driver(
    action: DriverReviewAction,
    current: OnboardingStatus,
    *,
    reviewer_id: int,
    now: datetime,
    rejection_reason: Optional[str] = None,
) -> DriverReview:
    """Admin decision on a driver application.

    Approval also fires ``admin_approved`` on the onboarding machine, so a
    freshly approved driver lands on ``contracts_pending``.  ``can_accept_jobs``
    mirrors the resulting onboarding status while approved and is cleared
    otherwise.
    """
    status = DRIVER_REVIEW_OUTCOMES[action]
    changes: dict[str, Any] = {
        "status": status,
        "reviewed_at": now,
        "reviewed_by": reviewer_id,
    }

    onboarding = OnboardingTransition(previous=current, status=OnboardingStatus(current))
    if status == DriverStatus.APPROVED:
        onboarding = next_onboarding_state(
            current,
            OnboardingEvent.ADMIN_APPROVED,
            OnboardingFacts(driver_status=status),
            now,
        )
        changes.update(onboarding.changes)
        changes["can_accept_jobs"] = onboarding.status == OnboardingStatus.ACTIVE
    else:
        changes["can_accept_jobs"] = False

    if action == DriverReviewAction.REJECT and rejection_reason:
        changes["rejection_reason"] = rejection_reason

    return DriverReview(status=status, changes=changes, onboarding=onboarding)
