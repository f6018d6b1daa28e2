"""
Quote endpoints
===============

POST /api/v1/quotes/{quote_id}/track-view        -- start the 48 h window on first view
GET  /api/v1/quotes/{quote_id}                   -- fetch one quote (expiry reconciled)
GET  /api/v1/quotes/request/{request_id}/quotes  -- all quotes for a request
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api.auth import get_caller
from marketplace.api.dependencies import get_db
from marketplace.api.middleware import limiter
from marketplace.api.schemas import (
    QuoteListResponse,
    QuoteResponse,
    TimeRemainingResponse,
    TrackViewResponse,
)
from marketplace.config import settings
from marketplace.domain.entities import Caller
from marketplace.domain.quotes import QuoteExpiry, expiry_label, time_remaining
from marketplace.infrastructure.models import QuoteModel
from marketplace.services import quotes

router = APIRouter(prefix="/quotes", tags=["quotes"])


def _quote_view(quote: QuoteModel, now: datetime) -> QuoteResponse:
    expiry = QuoteExpiry.of(quote)
    label = expiry_label(expiry, now, settings.quote_expiring_soon_hours)

    remaining = None
    if expiry.expires_at is not None:
        remaining = TimeRemainingResponse(**vars(time_remaining(expiry.expires_at, now)))

    return QuoteResponse(
        id=quote.id,
        quote_request_id=quote.quote_request_id,
        garage_id=quote.garage_id,
        garage_name=quote.garage_name,
        quoted_amount=quote.quoted_amount,
        estimated_duration=quote.estimated_duration,
        status=quote.status,
        first_viewed_at=quote.first_viewed_at,
        expires_at=quote.expires_at,
        valid_until=quote.valid_until,
        expiry_label=label,
        time_remaining=remaining,
    )


@router.post(
    "/{quote_id}/track-view",
    response_model=TrackViewResponse,
    summary="Record that the customer opened a quote",
)
@limiter.limit("60/minute")
async def track_view(
    request: Request,
    quote_id: int,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    now = datetime.now(timezone.utc)
    quote, outcome = await quotes.track_quote_view(db, caller, quote_id, now)
    return TrackViewResponse(
        is_first_view=outcome.is_first_view,
        message=outcome.message,
        quote=_quote_view(quote, now),
    )


@router.get(
    "/request/{request_id}/quotes",
    response_model=QuoteListResponse,
    summary="List quotes for a quote request",
)
@limiter.limit("100/minute")
async def list_quotes(
    request: Request,
    request_id: int,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    now = datetime.now(timezone.utc)
    quote_request, items = await quotes.list_request_quotes(db, caller, request_id, now)
    return QuoteListResponse(
        quote_request_id=quote_request.id,
        quotes=[_quote_view(q, now) for q in items],
    )


@router.get(
    "/{quote_id}",
    response_model=QuoteResponse,
    summary="Get a quote",
)
@limiter.limit("100/minute")
async def get_quote(
    request: Request,
    quote_id: int,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    now = datetime.now(timezone.utc)
    quote = await quotes.get_quote(db, caller, quote_id, now)
    return _quote_view(quote, now)
