"""
Contact endpoint
================

POST /api/v1/contact -- submit a contact inquiry (public)
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api.dependencies import get_db
from marketplace.api.middleware import limiter
from marketplace.api.schemas import InquiryCreateRequest, InquiryResponse
from marketplace.services import inquiries

router = APIRouter(prefix="/contact", tags=["contact"])


@router.post("", status_code=201, response_model=InquiryResponse, summary="Submit an inquiry")
@limiter.limit("5/minute")
async def submit(
    request: Request,
    body: InquiryCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    return await inquiries.submit_inquiry(
        db, name=body.name, email=body.email, subject=body.subject, message=body.message
    )
