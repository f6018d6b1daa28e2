"""
Integration tests for driver clock in / clock out.
"""

from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.domain.enums import BookingStatus, ClockOutReason, OnboardingStatus
from marketplace.infrastructure.models import TimeEntryModel
from tests.conftest import auth_headers, make_active_driver, make_booking, make_driver

URL = "/api/v1/drivers/clock"


@pytest.mark.asyncio
async def test_clock_in_then_out(client: AsyncClient, db_session: AsyncSession):
    user, driver = await make_active_driver(db_session)
    await db_session.commit()

    clocked_in = await client.post(URL, json={"action": "clock_in"}, headers=auth_headers(user))
    assert clocked_in.status_code == 200
    entry_id = clocked_in.json()["time_entry_id"]
    assert entry_id is not None

    status = await client.get(URL, headers=auth_headers(user))
    assert status.status_code == 200
    assert status.json()["is_clocked_in"] is True
    assert status.json()["last_clock_in"] is not None

    clocked_out = await client.post(URL, json={"action": "clock_out"}, headers=auth_headers(user))
    assert clocked_out.status_code == 200
    data = clocked_out.json()
    assert data["action"] == "clock_out"
    assert data["time_entry_id"] == entry_id
    assert data["duration_minutes"] == 0
    assert data["jobs_completed"] == 0

    entry = (
        await db_session.execute(select(TimeEntryModel).where(TimeEntryModel.id == entry_id))
    ).scalar_one()
    assert entry.clock_out is not None
    assert entry.clock_out_reason == ClockOutReason.MANUAL

    after = await client.get(URL, headers=auth_headers(user))
    assert after.json()["is_clocked_in"] is False


@pytest.mark.asyncio
async def test_double_clock_in_is_rejected(client: AsyncClient, db_session: AsyncSession):
    user, _ = await make_active_driver(db_session)
    await db_session.commit()

    assert (await client.post(URL, json={"action": "clock_in"}, headers=auth_headers(user))).status_code == 200
    again = await client.post(URL, json={"action": "clock_in"}, headers=auth_headers(user))
    assert again.status_code == 400
    assert again.json()["detail"] == "Already clocked in"

    entries = await db_session.execute(select(TimeEntryModel))
    assert len(entries.scalars().all()) == 1


@pytest.mark.asyncio
async def test_clock_out_blocked_by_active_job(client: AsyncClient, db_session: AsyncSession):
    user, driver = await make_active_driver(db_session)
    await db_session.commit()

    assert (await client.post(URL, json={"action": "clock_in"}, headers=auth_headers(user))).status_code == 200

    await make_booking(db_session, driver_id=driver.id, status=BookingStatus.IN_PROGRESS)
    await db_session.commit()

    resp = await client.post(URL, json={"action": "clock_out"}, headers=auth_headers(user))
    assert resp.status_code == 400
    assert resp.json()["error"] == "precondition_failed"

    status = await client.get(URL, headers=auth_headers(user))
    assert status.json()["is_clocked_in"] is True


@pytest.mark.asyncio
async def test_clock_requires_active_onboarding(client: AsyncClient, db_session: AsyncSession):
    user, _ = await make_driver(db_session, onboarding=OnboardingStatus.CONTRACTS_PENDING)
    await db_session.commit()

    resp = await client.post(URL, json={"action": "clock_in"}, headers=auth_headers(user))
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Driver must complete onboarding to clock in"


@pytest.mark.asyncio
async def test_clock_out_when_not_clocked_in(client: AsyncClient, db_session: AsyncSession):
    user, _ = await make_active_driver(db_session)
    await db_session.commit()

    resp = await client.post(URL, json={"action": "clock_out"}, headers=auth_headers(user))
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_transition"
