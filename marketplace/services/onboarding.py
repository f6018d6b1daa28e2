"""
Driver application and onboarding use cases.

Each operation loads the driver, asks :mod:`marketplace.domain.onboarding`
for the transition, then persists it with a conditional update keyed on the
onboarding status that was read plus the facts the guard relied on.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.domain.entities import Caller
from marketplace.domain.enums import (
    DriverReviewAction,
    DriverStatus,
    OnboardingEvent,
    OnboardingStatus,
    Role,
)
from marketplace.domain.errors import (
    Forbidden,
    InvalidTransition,
    NotFound,
    ValidationError,
)
from marketplace.domain.onboarding import (
    OnboardingFacts,
    next_onboarding_state,
    review_driver,
)
from marketplace.infrastructure.models import DriverModel, UserModel
from marketplace.infrastructure.repositories import DriverRepository, UserRepository

logger = logging.getLogger(__name__)


def facts_for(driver: DriverModel) -> OnboardingFacts:
    return OnboardingFacts(
        driver_status=DriverStatus(driver.status),
        police_check_completed=bool(driver.police_check_completed),
        police_check_document_url=driver.police_check_document_url,
    )


async def _load_own_driver(
    session: AsyncSession, caller: Caller
) -> tuple[UserModel, DriverModel]:
    if caller.role != Role.DRIVER:
        raise Forbidden("Only drivers can access this endpoint")

    user = await UserRepository(session).get_by_id(caller.user_id)
    driver = await DriverRepository(session).get_by_user_id(caller.user_id)
    if user is None or driver is None:
        raise NotFound("Driver profile not found")
    return user, driver


async def submit_application(
    session: AsyncSession,
    caller: Caller,
    *,
    first_name: str,
    last_name: str,
    phone: Optional[str] = None,
) -> DriverModel:
    if caller.role != Role.DRIVER:
        raise Forbidden("Only drivers can submit an application")

    repo = DriverRepository(session)
    if await repo.get_by_user_id(caller.user_id) is not None:
        raise InvalidTransition("Driver application already submitted", status_code=409)

    driver = await repo.create(
        DriverModel(
            user_id=caller.user_id,
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            phone=phone,
            status=DriverStatus.PENDING,
            onboarding_status=OnboardingStatus.NOT_STARTED,
            can_accept_jobs=False,
        )
    )
    logger.info("Driver application %d submitted by user %d", driver.id, caller.user_id)
    return driver


async def record_police_check(
    session: AsyncSession,
    caller: Caller,
    *,
    document_url: str,
    certificate_number: Optional[str] = None,
) -> DriverModel:
    _, driver = await _load_own_driver(session, caller)
    await DriverRepository(session).record_police_check(
        driver.id, document_url=document_url, certificate_number=certificate_number
    )
    await session.refresh(driver)
    return driver


async def get_onboarding_status(
    session: AsyncSession, caller: Caller, now: Optional[datetime] = None
) -> tuple[UserModel, DriverModel]:
    """Return the driver's onboarding state, advancing legacy approved drivers."""
    now = now or datetime.now(timezone.utc)
    user, driver = await _load_own_driver(session, caller)

    if not user.is_approved or driver.status != DriverStatus.APPROVED:
        raise Forbidden("Driver application not yet approved")

    transition = next_onboarding_state(
        driver.onboarding_status, OnboardingEvent.ONBOARDING_VIEWED, facts_for(driver), now
    )
    if transition.changed:
        applied = await DriverRepository(session).transition_onboarding(
            driver.id,
            transition.previous,
            transition.changes,
            require={"status": DriverStatus.APPROVED},
        )
        if applied:
            logger.info(
                "Driver %d onboarding auto-advanced %s -> %s",
                driver.id,
                transition.previous.value,
                transition.status.value,
            )
        await session.refresh(driver)

    return user, driver


async def sign_contracts(
    session: AsyncSession,
    caller: Caller,
    *,
    all_accepted: bool,
    superannuation_fund: Optional[str] = None,
    superannuation_member_number: Optional[str] = None,
    now: Optional[datetime] = None,
) -> DriverModel:
    if not all_accepted:
        raise ValidationError("All contracts must be accepted to continue")

    now = now or datetime.now(timezone.utc)
    _, driver = await _load_own_driver(session, caller)

    transition = next_onboarding_state(
        driver.onboarding_status, OnboardingEvent.CONTRACTS_SIGNED, facts_for(driver), now
    )
    changes = dict(transition.changes)
    if superannuation_fund:
        changes["superannuation_fund"] = superannuation_fund
    if superannuation_member_number:
        changes["superannuation_member_number"] = superannuation_member_number

    applied = await DriverRepository(session).transition_onboarding(
        driver.id,
        transition.previous,
        changes,
        require={"status": DriverStatus.APPROVED, "police_check_completed": True},
    )
    await session.refresh(driver)
    if not applied:
        # re-check against the committed row so a concurrent suspension or
        # signing reports its own error
        next_onboarding_state(
            driver.onboarding_status, OnboardingEvent.CONTRACTS_SIGNED, facts_for(driver), now
        )
        raise InvalidTransition("Onboarding state changed, please retry")

    logger.info("Driver %d signed contracts and is now active", driver.id)
    return driver


async def list_drivers(
    session: AsyncSession, status: Optional[DriverStatus] = None
) -> tuple[list[DriverModel], dict[str, int]]:
    repo = DriverRepository(session)
    return await repo.list_by_status(status), await repo.count_by_status()


async def review_application(
    session: AsyncSession,
    admin: Caller,
    driver_id: int,
    action: DriverReviewAction,
    *,
    rejection_reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> DriverModel:
    now = now or datetime.now(timezone.utc)
    repo = DriverRepository(session)

    driver = await repo.get_by_id(driver_id)
    if driver is None:
        raise NotFound("Driver not found")

    current = OnboardingStatus(driver.onboarding_status)
    review = review_driver(
        action,
        current,
        reviewer_id=admin.user_id,
        now=now,
        rejection_reason=rejection_reason,
    )
    if not await repo.transition_onboarding(driver.id, current, review.changes):
        raise InvalidTransition("Driver was updated by another request, please retry")

    await UserRepository(session).set_approved(
        driver.user_id, review.status == DriverStatus.APPROVED
    )
    await session.refresh(driver)
    logger.info(
        "Admin %d %s driver %d (onboarding %s)",
        admin.user_id,
        action.value,
        driver.id,
        driver.onboarding_status.value,
    )
    return driver
