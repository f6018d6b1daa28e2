"""
Quote read paths and view tracking.

Every entry point reconciles expiry before doing anything else, so a quote
whose window has passed is persisted as ``expired`` the first time anyone
looks at it.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.config import settings
from marketplace.domain.entities import Caller
from marketplace.domain.enums import Role
from marketplace.domain.errors import Forbidden, NotFound
from marketplace.domain.quotes import (
    QuoteExpiry,
    ViewOutcome,
    reconcile_expiry,
    track_view,
)
from marketplace.infrastructure.models import QuoteModel, QuoteRequestModel
from marketplace.infrastructure.repositories import QuoteRepository, conditional_update

logger = logging.getLogger(__name__)


def is_request_owner(caller: Caller, request: QuoteRequestModel) -> bool:
    if request.customer_id is not None and request.customer_id == caller.user_id:
        return True
    return bool(caller.email) and request.customer_email == caller.email.lower()


async def reconcile(session: AsyncSession, quote: QuoteModel, now: datetime) -> QuoteModel:
    current = QuoteExpiry.of(quote)
    reconciled = reconcile_expiry(current, now)
    if reconciled.status != current.status:
        if await QuoteRepository(session).transition(
            quote.id, current.status, {"status": reconciled.status}
        ):
            logger.info("Quote %d expired on read", quote.id)
        await session.refresh(quote)
    return quote


async def _load(
    session: AsyncSession, caller: Caller, quote_id: int, *, allow_admin: bool
) -> tuple[QuoteModel, QuoteRequestModel]:
    repo = QuoteRepository(session)
    quote = await repo.get_by_id(quote_id)
    if quote is None:
        raise NotFound("Quote not found")

    request = await repo.get_request(quote.quote_request_id)
    if request is None:
        raise NotFound("Quote request not found")

    if not is_request_owner(caller, request) and not (allow_admin and caller.role == Role.ADMIN):
        raise Forbidden("You don't have permission to view this quote")
    return quote, request


async def track_quote_view(
    session: AsyncSession, caller: Caller, quote_id: int, now: Optional[datetime] = None
) -> tuple[QuoteModel, ViewOutcome]:
    now = now or datetime.now(timezone.utc)
    quote, _ = await _load(session, caller, quote_id, allow_admin=False)
    quote = await reconcile(session, quote, now)

    current = QuoteExpiry.of(quote)
    outcome = track_view(current, now, settings.quote_view_window_hours)
    if not outcome.changed:
        return quote, outcome

    applied = await conditional_update(
        session,
        QuoteModel,
        quote.id,
        {"status": current.status, "first_viewed_at": None},
        {
            "status": outcome.quote.status,
            "first_viewed_at": outcome.quote.first_viewed_at,
            "expires_at": outcome.quote.expires_at,
        },
    )
    await session.refresh(quote)
    if not applied:
        # a concurrent view stamped the quote first
        return quote, ViewOutcome(quote=QuoteExpiry.of(quote), is_first_view=False, changed=False)

    logger.info("Quote %d first viewed; expires at %s", quote.id, quote.expires_at.isoformat())
    return quote, outcome


async def get_quote(
    session: AsyncSession, caller: Caller, quote_id: int, now: Optional[datetime] = None
) -> QuoteModel:
    now = now or datetime.now(timezone.utc)
    quote, _ = await _load(session, caller, quote_id, allow_admin=True)
    return await reconcile(session, quote, now)


async def list_request_quotes(
    session: AsyncSession, caller: Caller, request_id: int, now: Optional[datetime] = None
) -> tuple[QuoteRequestModel, list[QuoteModel]]:
    now = now or datetime.now(timezone.utc)
    repo = QuoteRepository(session)

    request = await repo.get_request(request_id)
    if request is None:
        raise NotFound("Quote request not found")
    if not is_request_owner(caller, request) and caller.role != Role.ADMIN:
        raise Forbidden("Access denied")

    quotes = [await reconcile(session, q, now) for q in await repo.list_for_request(request_id)]
    return request, quotes
