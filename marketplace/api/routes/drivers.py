"""
Driver endpoints
================

POST /api/v1/drivers/register      -- submit a driver application
POST /api/v1/drivers/police-check  -- record the police check document
GET  /api/v1/drivers/onboarding    -- onboarding state (auto-advances approved drivers)
POST /api/v1/drivers/onboarding    -- sign the four contracts and become active
GET  /api/v1/drivers/clock         -- clock state and today's totals
POST /api/v1/drivers/clock         -- clock in / clock out
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api.auth import get_caller
from marketplace.api.dependencies import get_db
from marketplace.api.middleware import limiter
from marketplace.api.schemas import (
    ClockRequest,
    ClockResponse,
    ClockStatusResponse,
    DriverApplicationRequest,
    DriverResponse,
    OnboardingStatusResponse,
    PoliceCheckRequest,
    SignContractsRequest,
)
from marketplace.domain.entities import Caller
from marketplace.domain.onboarding import insurance_eligible
from marketplace.infrastructure.models import DriverModel
from marketplace.services import onboarding, shifts

router = APIRouter(prefix="/drivers", tags=["drivers"])


def _onboarding_view(driver: DriverModel) -> OnboardingStatusResponse:
    return OnboardingStatusResponse(
        driver_id=driver.id,
        onboarding_status=driver.onboarding_status,
        can_accept_jobs=driver.can_accept_jobs,
        employment_type=driver.employment_type,
        police_check_completed=driver.police_check_completed,
        police_check_document_url=driver.police_check_document_url,
        employment_contract_signed_at=driver.employment_contract_signed_at,
        driver_agreement_signed_at=driver.driver_agreement_signed_at,
        work_health_safety_signed_at=driver.work_health_safety_signed_at,
        code_of_conduct_signed_at=driver.code_of_conduct_signed_at,
        employee_start_date=driver.employee_start_date,
        insurance_eligible=insurance_eligible(driver.employment_type, driver.onboarding_status),
    )


@router.post(
    "/register",
    status_code=201,
    response_model=DriverResponse,
    summary="Submit a driver application",
)
@limiter.limit("10/minute")
async def register(
    request: Request,
    body: DriverApplicationRequest,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await onboarding.submit_application(
        db, caller, first_name=body.first_name, last_name=body.last_name, phone=body.phone
    )


@router.post(
    "/police-check",
    response_model=DriverResponse,
    summary="Record a completed police check",
)
@limiter.limit("20/minute")
async def police_check(
    request: Request,
    body: PoliceCheckRequest,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await onboarding.record_police_check(
        db, caller, document_url=body.document_url, certificate_number=body.certificate_number
    )


@router.get(
    "/onboarding",
    response_model=OnboardingStatusResponse,
    summary="Get onboarding status",
)
@limiter.limit("100/minute")
async def get_onboarding(
    request: Request,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    _, driver = await onboarding.get_onboarding_status(db, caller)
    return _onboarding_view(driver)


@router.post(
    "/onboarding",
    response_model=OnboardingStatusResponse,
    summary="Sign onboarding contracts",
)
@limiter.limit("20/minute")
async def sign_contracts(
    request: Request,
    body: SignContractsRequest,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    driver = await onboarding.sign_contracts(
        db,
        caller,
        all_accepted=body.all_accepted,
        superannuation_fund=body.superannuation_fund,
        superannuation_member_number=body.superannuation_member_number,
    )
    return _onboarding_view(driver)


@router.get(
    "/clock",
    response_model=ClockStatusResponse,
    summary="Get clock status and today's totals",
)
@limiter.limit("100/minute")
async def get_clock(
    request: Request,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    driver, minutes, jobs = await shifts.clock_status(db, caller)
    return ClockStatusResponse(
        is_clocked_in=driver.is_clocked_in,
        last_clock_in=driver.last_clock_in,
        last_clock_out=driver.last_clock_out,
        can_accept_jobs=driver.can_accept_jobs,
        onboarding_status=driver.onboarding_status,
        today_minutes=minutes,
        today_jobs_completed=jobs,
    )


@router.post(
    "/clock",
    response_model=ClockResponse,
    summary="Clock in or out",
)
@limiter.limit("30/minute")
async def post_clock(
    request: Request,
    body: ClockRequest,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await shifts.clock(db, caller, body.action)
