"""
Admin endpoints
===============

GET   /api/v1/admin/health                   -- simple health check
GET   /api/v1/admin/drivers                  -- driver applications with per-status counts
PATCH /api/v1/admin/drivers/{driver_id}      -- approve / reject / suspend / reactivate
GET   /api/v1/admin/inquiries                -- contact inquiries
PATCH /api/v1/admin/inquiries/{inquiry_id}   -- update inquiry status / notes
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api.dependencies import get_db, require_admin
from marketplace.api.middleware import limiter
from marketplace.api.schemas import (
    DriverListResponse,
    DriverResponse,
    DriverReviewRequest,
    HealthResponse,
    InquiryResponse,
    InquiryUpdateRequest,
)
from marketplace.domain.entities import Caller
from marketplace.domain.enums import DriverStatus, InquiryStatus
from marketplace.infrastructure.repositories import InquiryRepository
from marketplace.services import inquiries, onboarding

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/drivers",
    response_model=DriverListResponse,
    summary="List driver applications",
)
@limiter.limit("100/minute")
async def list_drivers(
    request: Request,
    status: Optional[DriverStatus] = None,
    admin: Caller = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    drivers, counts = await onboarding.list_drivers(db, status)
    return DriverListResponse(
        drivers=[DriverResponse.model_validate(d) for d in drivers],
        counts=counts,
    )


@router.patch(
    "/drivers/{driver_id}",
    response_model=DriverResponse,
    summary="Review a driver application",
)
@limiter.limit("50/minute")
async def review_driver(
    request: Request,
    driver_id: int,
    body: DriverReviewRequest,
    admin: Caller = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await onboarding.review_application(
        db, admin, driver_id, body.action, rejection_reason=body.rejection_reason
    )


@router.get(
    "/inquiries",
    response_model=list[InquiryResponse],
    summary="List contact inquiries",
)
@limiter.limit("100/minute")
async def list_inquiries(
    request: Request,
    status: Optional[InquiryStatus] = None,
    admin: Caller = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await InquiryRepository(db).list_by_status(status)


@router.patch(
    "/inquiries/{inquiry_id}",
    response_model=InquiryResponse,
    summary="Update an inquiry",
)
@limiter.limit("50/minute")
async def update_inquiry(
    request: Request,
    inquiry_id: int,
    body: InquiryUpdateRequest,
    admin: Caller = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await inquiries.update_inquiry(
        db, inquiry_id, status=body.status, admin_notes=body.admin_notes
    )


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
