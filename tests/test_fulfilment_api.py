"""
Integration tests for the garage booking endpoints.

Covers the accept / decline / start / complete flow, ownership guards, the
notification feed and the rule that a failed notification never undoes the
booking transition.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.domain.enums import BookingStatus, GarageAccountStatus, GarageStatus
from marketplace.infrastructure.models import BookingUpdateModel, GarageNotificationModel
from tests.conftest import auth_headers, make_booking, make_garage

URL = "/api/v1/garage/booking-action"


async def _act(client: AsyncClient, user, booking_id: int, action: str, notes: str | None = None):
    body = {"booking_id": booking_id, "action": action}
    if notes is not None:
        body["notes"] = notes
    return await client.post(URL, json=body, headers=auth_headers(user))


@pytest.mark.asyncio
async def test_accept_assigns_and_notifies(client: AsyncClient, db_session: AsyncSession):
    user, garage = await make_garage(db_session)
    booking = await make_booking(db_session, assigned_garage_id=garage.id)
    await db_session.commit()

    resp = await _act(client, user, booking.id, "accept", "Ready at 9")
    assert resp.status_code == 200
    data = resp.json()
    assert data["message"] == "Booking accepted successfully"
    assert data["booking"]["garage_status"] == "accepted"
    assert data["booking"]["assigned_garage_id"] == garage.id
    assert data["booking"]["garage_response_notes"] == "Ready at 9"
    assert [u["stage"] for u in data["booking"]["updates"]] == ["garage_accepted"]

    feed = await client.get("/api/v1/garage/notifications", headers=auth_headers(user))
    assert feed.status_code == 200
    assert feed.json()["unread_count"] == 1
    note = feed.json()["notifications"][0]
    assert note["title"] == "Booking Accepted"
    assert note["metadata"]["vehicle_registration"] == "ABC123"


@pytest.mark.asyncio
async def test_decline_releases_assignment(
    client: AsyncClient, db_session: AsyncSession
):
    user_a, garage_a = await make_garage(db_session, business_name="Garage A")
    user_b, _ = await make_garage(
        db_session, business_name="Garage B", linked_place_id="place-b"
    )
    booking = await make_booking(
        db_session, assigned_garage_id=garage_a.id, garage_place_id="place-b"
    )
    await db_session.commit()

    declined = await _act(client, user_a, booking.id, "decline", "Fully booked")
    assert declined.status_code == 200
    assert declined.json()["booking"]["garage_status"] == "declined"
    assert declined.json()["booking"]["assigned_garage_id"] is None

    mine = await client.get("/api/v1/garage/bookings", headers=auth_headers(user_a))
    assert mine.json() == []

    theirs = await client.get("/api/v1/garage/bookings", headers=auth_headers(user_b))
    assert [b["id"] for b in theirs.json()] == [booking.id]


@pytest.mark.asyncio
async def test_accept_then_decline_is_illegal(client: AsyncClient, db_session: AsyncSession):
    user, garage = await make_garage(db_session)
    booking = await make_booking(db_session, assigned_garage_id=garage.id)
    await db_session.commit()

    assert (await _act(client, user, booking.id, "accept")).status_code == 200
    resp = await _act(client, user, booking.id, "decline")
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_transition"
    assert resp.json()["detail"] == "Can only decline new bookings"


@pytest.mark.asyncio
async def test_full_service_path(client: AsyncClient, db_session: AsyncSession):
    user, garage = await make_garage(db_session)
    booking = await make_booking(db_session, assigned_garage_id=garage.id)
    await db_session.commit()

    for action in ("accept", "start", "complete"):
        resp = await _act(client, user, booking.id, action)
        assert resp.status_code == 200, resp.text

    data = resp.json()["booking"]
    assert data["garage_status"] == "completed"
    assert data["status"] == "completed"
    assert data["overall_progress"] == 100
    assert data["garage_completed_at"] is not None
    assert [u["stage"] for u in data["updates"]] == [
        "garage_accepted",
        "service_started",
        "service_completed",
    ]


@pytest.mark.asyncio
async def test_cannot_skip_start(client: AsyncClient, db_session: AsyncSession):
    user, garage = await make_garage(db_session)
    booking = await make_booking(
        db_session, assigned_garage_id=garage.id, garage_status=GarageStatus.ACCEPTED
    )
    await db_session.commit()

    resp = await _act(client, user, booking.id, "complete")
    assert resp.status_code == 400

    await db_session.refresh(booking)
    assert booking.status == BookingStatus.PENDING


@pytest.mark.asyncio
async def test_other_garage_is_not_assigned(client: AsyncClient, db_session: AsyncSession):
    _, owner = await make_garage(db_session, business_name="Owner")
    intruder, _ = await make_garage(db_session, business_name="Intruder")
    booking = await make_booking(db_session, assigned_garage_id=owner.id)
    await db_session.commit()

    resp = await _act(client, intruder, booking.id, "accept")
    assert resp.status_code == 403
    assert resp.json()["error"] == "not_assigned"


@pytest.mark.asyncio
async def test_unapproved_garage_is_rejected(client: AsyncClient, db_session: AsyncSession):
    user, garage = await make_garage(db_session, status=GarageAccountStatus.PENDING)
    booking = await make_booking(db_session, assigned_garage_id=garage.id)
    await db_session.commit()

    resp = await _act(client, user, booking.id, "accept")
    assert resp.status_code == 403
    assert resp.json()["error"] == "not_approved"


@pytest.mark.asyncio
async def test_unknown_booking(client: AsyncClient, db_session: AsyncSession):
    user, _ = await make_garage(db_session)
    await db_session.commit()

    resp = await _act(client, user, 4242, "accept")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_notification_failure_keeps_transition(client: AsyncClient, db_session: AsyncSession):
    user, garage = await make_garage(db_session)
    booking = await make_booking(db_session, assigned_garage_id=garage.id)
    await db_session.commit()

    with patch(
        "marketplace.services.notifications.NotificationRepository.create",
        new=AsyncMock(side_effect=SQLAlchemyError("notification store down")),
    ):
        resp = await _act(client, user, booking.id, "accept")

    assert resp.status_code == 200
    assert resp.json()["booking"]["garage_status"] == "accepted"

    await db_session.refresh(booking)
    assert booking.garage_status == GarageStatus.ACCEPTED
    updates = await db_session.execute(
        select(func.count()).select_from(BookingUpdateModel).where(
            BookingUpdateModel.booking_id == booking.id
        )
    )
    assert updates.scalar() == 1
    notes = await db_session.execute(select(func.count()).select_from(GarageNotificationModel))
    assert notes.scalar() == 0


@pytest.mark.asyncio
async def test_bookings_include_place_matches(client: AsyncClient, db_session: AsyncSession):
    user, garage = await make_garage(
        db_session, linked_place_id="place-1", linked_name="Harbour Auto Service Centre"
    )
    assigned = await make_booking(db_session, assigned_garage_id=garage.id)
    by_place = await make_booking(db_session, garage_place_id="place-1")
    by_name = await make_booking(db_session, garage_name="HARBOUR AUTO SERVICE CENTRE")
    await make_booking(db_session, garage_place_id="elsewhere")
    await db_session.commit()

    resp = await client.get("/api/v1/garage/bookings", headers=auth_headers(user))
    assert resp.status_code == 200
    assert {b["id"] for b in resp.json()} == {assigned.id, by_place.id, by_name.id}


@pytest.mark.asyncio
async def test_mark_notifications_read(client: AsyncClient, db_session: AsyncSession):
    user, garage = await make_garage(db_session)
    first = await make_booking(db_session, assigned_garage_id=garage.id)
    second = await make_booking(db_session, assigned_garage_id=garage.id)
    await db_session.commit()

    await _act(client, user, first.id, "accept")
    await _act(client, user, second.id, "accept")

    feed = (await client.get("/api/v1/garage/notifications", headers=auth_headers(user))).json()
    assert feed["unread_count"] == 2

    one = feed["notifications"][0]["id"]
    resp = await client.post(
        "/api/v1/garage/notifications/read",
        json={"notification_ids": [one]},
        headers=auth_headers(user),
    )
    assert resp.json()["updated"] == 1

    rest = await client.post(
        "/api/v1/garage/notifications/read", json={}, headers=auth_headers(user)
    )
    assert rest.json()["updated"] == 1

    unread = await client.get(
        "/api/v1/garage/notifications", params={"unread_only": True}, headers=auth_headers(user)
    )
    assert unread.json() == {"notifications": [], "unread_count": 0}
