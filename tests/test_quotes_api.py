"""
Integration tests for the quote endpoints: first-view tracking, lazy expiry
on read and request ownership.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.domain.enums import QuoteStatus, Role
from tests.conftest import auth_headers, make_garage, make_quote, make_user


def _parse(ts: str) -> datetime:
    return datetime.fromisoformat(ts.replace("Z", "+00:00"))


@pytest.mark.asyncio
async def test_first_view_starts_expiry_window(client: AsyncClient, db_session: AsyncSession):
    customer = await make_user(db_session, Role.CUSTOMER)
    _, garage = await make_garage(db_session)
    quote = await make_quote(db_session, customer, garage)
    await db_session.commit()

    before = datetime.now(timezone.utc)
    resp = await client.post(
        f"/api/v1/quotes/{quote.id}/track-view", headers=auth_headers(customer)
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["is_first_view"] is True
    assert data["quote"]["status"] == "viewed"
    assert data["quote"]["expiry_label"] == "active"

    expires = _parse(data["quote"]["expires_at"])
    assert abs(expires - (before + timedelta(hours=48))) < timedelta(seconds=5)
    assert data["quote"]["time_remaining"]["formatted"] == "2 days remaining"


@pytest.mark.asyncio
async def test_second_view_keeps_expiry(client: AsyncClient, db_session: AsyncSession):
    customer = await make_user(db_session, Role.CUSTOMER)
    _, garage = await make_garage(db_session)
    quote = await make_quote(db_session, customer, garage)
    await db_session.commit()

    url = f"/api/v1/quotes/{quote.id}/track-view"
    first = (await client.post(url, headers=auth_headers(customer))).json()
    second = (await client.post(url, headers=auth_headers(customer))).json()

    assert second["success"] is True
    assert second["is_first_view"] is False
    assert second["quote"]["expires_at"] == first["quote"]["expires_at"]
    assert second["quote"]["first_viewed_at"] == first["quote"]["first_viewed_at"]


@pytest.mark.asyncio
async def test_viewed_quote_expires_on_read(client: AsyncClient, db_session: AsyncSession):
    customer = await make_user(db_session, Role.CUSTOMER)
    _, garage = await make_garage(db_session)
    now = datetime.now(timezone.utc)
    quote = await make_quote(
        db_session,
        customer,
        garage,
        status=QuoteStatus.VIEWED,
        first_viewed_at=now - timedelta(hours=50),
        expires_at=now - timedelta(hours=2),
    )
    await db_session.commit()

    resp = await client.get(f"/api/v1/quotes/{quote.id}", headers=auth_headers(customer))
    assert resp.status_code == 200
    assert resp.json()["status"] == "expired"
    assert resp.json()["expiry_label"] == "expired"
    assert resp.json()["time_remaining"]["is_expired"] is True

    await db_session.refresh(quote)
    assert quote.status == QuoteStatus.EXPIRED


@pytest.mark.asyncio
async def test_track_view_on_expired_quote(client: AsyncClient, db_session: AsyncSession):
    customer = await make_user(db_session, Role.CUSTOMER)
    _, garage = await make_garage(db_session)
    quote = await make_quote(
        db_session,
        customer,
        garage,
        valid_until=datetime.now(timezone.utc) - timedelta(days=1),
    )
    await db_session.commit()

    resp = await client.post(
        f"/api/v1/quotes/{quote.id}/track-view", headers=auth_headers(customer)
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["is_first_view"] is False
    assert data["message"] == "Quote is no longer active"
    assert data["quote"]["status"] == "expired"
    assert data["quote"]["first_viewed_at"] is None


@pytest.mark.asyncio
async def test_quotes_are_owner_only(client: AsyncClient, db_session: AsyncSession):
    customer = await make_user(db_session, Role.CUSTOMER)
    stranger = await make_user(db_session, Role.CUSTOMER)
    admin = await make_user(db_session, Role.ADMIN, is_approved=True)
    _, garage = await make_garage(db_session)
    quote = await make_quote(db_session, customer, garage)
    await db_session.commit()

    denied = await client.get(f"/api/v1/quotes/{quote.id}", headers=auth_headers(stranger))
    assert denied.status_code == 403
    assert denied.json()["error"] == "forbidden"

    seen = await client.get(f"/api/v1/quotes/{quote.id}", headers=auth_headers(admin))
    assert seen.status_code == 200
    assert seen.json()["status"] == "pending"

    # only the customer starts the clock
    tracked = await client.post(
        f"/api/v1/quotes/{quote.id}/track-view", headers=auth_headers(admin)
    )
    assert tracked.status_code == 403


@pytest.mark.asyncio
async def test_list_request_quotes_reconciles_each(client: AsyncClient, db_session: AsyncSession):
    customer = await make_user(db_session, Role.CUSTOMER)
    _, garage = await make_garage(db_session)
    now = datetime.now(timezone.utc)
    live = await make_quote(db_session, customer, garage)
    stale = await make_quote(
        db_session,
        customer,
        garage,
        status=QuoteStatus.VIEWED,
        first_viewed_at=now - timedelta(hours=49),
        expires_at=now - timedelta(hours=1),
    )
    await db_session.commit()

    resp = await client.get(
        f"/api/v1/quotes/request/{stale.quote_request_id}/quotes",
        headers=auth_headers(customer),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["quote_request_id"] == stale.quote_request_id
    assert [(q["id"], q["status"]) for q in data["quotes"]] == [(stale.id, "expired")]

    other = await client.get(
        f"/api/v1/quotes/request/{live.quote_request_id}/quotes",
        headers=auth_headers(customer),
    )
    assert [q["expiry_label"] for q in other.json()["quotes"]] == ["not-viewed"]


@pytest.mark.asyncio
async def test_unknown_quote(client: AsyncClient, db_session: AsyncSession):
    customer = await make_user(db_session, Role.CUSTOMER)
    await db_session.commit()

    resp = await client.get("/api/v1/quotes/777", headers=auth_headers(customer))
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Quote not found"
