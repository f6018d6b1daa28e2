"""
Unit tests for the garage booking fulfilment state machine.
"""

from dataclasses import replace
from datetime import datetime, timezone

import pytest

from marketplace.domain.enums import (
    BookingStatus,
    GarageAccountStatus,
    GarageAction,
    GarageStatus,
)
from marketplace.domain.errors import InvalidTransition, NotApproved, NotAssigned
from marketplace.domain.fulfilment import (
    BookingSnapshot,
    GarageActor,
    garage_matches_booking,
    next_booking_state,
)

NOW = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)

GARAGE = GarageActor(
    id=7,
    business_name="Harbour Auto",
    status=GarageAccountStatus.APPROVED,
    linked_garage_place_id="place-1",
    linked_garage_name="Harbour Auto Service Centre",
)


def _booking(**kwargs) -> BookingSnapshot:
    defaults = dict(
        id=1,
        garage_status=GarageStatus.NEW,
        assigned_garage_id=GARAGE.id,
        assigned_at=NOW,
        vehicle_registration="ABC123",
    )
    defaults.update(kwargs)
    return BookingSnapshot(**defaults)


def _apply(booking, action, notes=None):
    return next_booking_state(booking, action, GARAGE, actor_id=42, now=NOW, notes=notes)


class TestMatching:
    def test_matches_by_assignment(self):
        assert garage_matches_booking(GARAGE, _booking())

    def test_matches_by_place_id(self):
        assert garage_matches_booking(
            GARAGE, _booking(assigned_garage_id=None, garage_place_id="place-1")
        )

    def test_matches_by_name_case_insensitively(self):
        assert garage_matches_booking(
            GARAGE,
            _booking(assigned_garage_id=None, garage_name="harbour auto SERVICE centre"),
        )

    def test_other_garage_does_not_match(self):
        assert not garage_matches_booking(
            GARAGE, _booking(assigned_garage_id=99, garage_place_id="place-2")
        )


class TestGuards:
    def test_unapproved_garage_checked_first(self):
        garage = replace(GARAGE, status=GarageAccountStatus.PENDING)
        with pytest.raises(NotApproved):
            next_booking_state(
                _booking(assigned_garage_id=99),
                GarageAction.ACCEPT,
                garage,
                actor_id=42,
                now=NOW,
            )

    def test_unmatched_garage_is_not_assigned(self):
        with pytest.raises(NotAssigned):
            _apply(_booking(assigned_garage_id=99), GarageAction.ACCEPT)

    @pytest.mark.parametrize(
        "current, action",
        [
            (GarageStatus.ACCEPTED, GarageAction.ACCEPT),
            (GarageStatus.ACCEPTED, GarageAction.DECLINE),
            (GarageStatus.NEW, GarageAction.START),
            (GarageStatus.NEW, GarageAction.COMPLETE),
            (GarageStatus.ACCEPTED, GarageAction.COMPLETE),
            (GarageStatus.DECLINED, GarageAction.ACCEPT),
            (GarageStatus.COMPLETED, GarageAction.START),
        ],
    )
    def test_illegal_transitions(self, current, action):
        with pytest.raises(InvalidTransition):
            _apply(_booking(garage_status=current), action)

    def test_state_error_message_names_the_requirement(self):
        with pytest.raises(InvalidTransition, match="Can only start accepted bookings"):
            _apply(_booking(), GarageAction.START)


class TestTransitions:
    def test_accept_records_response_and_keeps_assignment_time(self):
        earlier = datetime(2026, 3, 1, tzinfo=timezone.utc)
        t = _apply(_booking(assigned_at=earlier), GarageAction.ACCEPT, notes="See you at 9")
        assert t.garage_status == GarageStatus.ACCEPTED
        assert t.changes["garage_accepted_at"] == NOW
        assert t.changes["assigned_garage_id"] == GARAGE.id
        assert t.changes["assigned_at"] == earlier
        assert t.changes["garage_responded_by"] == 42
        assert t.changes["garage_response_notes"] == "See you at 9"
        assert t.update.stage == "garage_accepted"
        assert t.update.message == "Booking accepted by Harbour Auto: See you at 9"
        assert t.notification_title == "Booking Accepted"

    def test_accept_by_place_claims_unassigned_booking(self):
        t = _apply(
            _booking(assigned_garage_id=None, assigned_at=None, garage_place_id="place-1"),
            GarageAction.ACCEPT,
        )
        assert t.changes["assigned_garage_id"] == GARAGE.id
        assert t.changes["assigned_at"] == NOW

    def test_decline_releases_own_assignment(self):
        t = _apply(_booking(), GarageAction.DECLINE, notes="Fully booked")
        assert t.garage_status == GarageStatus.DECLINED
        assert t.changes["assigned_garage_id"] is None
        assert t.changes["assigned_at"] is None
        assert t.update.message == "Booking declined by Harbour Auto: Fully booked"

    def test_decline_by_place_leaves_assignment_alone(self):
        t = _apply(
            _booking(assigned_garage_id=None, assigned_at=None, garage_place_id="place-1"),
            GarageAction.DECLINE,
        )
        assert "assigned_garage_id" not in t.changes

    def test_start_moves_booking_in_progress(self):
        t = _apply(_booking(garage_status=GarageStatus.ACCEPTED), GarageAction.START)
        assert t.changes["status"] == BookingStatus.IN_PROGRESS
        assert t.changes["current_stage"] == "service_in_progress"
        assert t.changes["overall_progress"] == 50
        assert t.update.stage == "service_started"

    def test_complete_finishes_booking(self):
        t = _apply(_booking(garage_status=GarageStatus.IN_PROGRESS), GarageAction.COMPLETE)
        assert t.garage_status == GarageStatus.COMPLETED
        assert t.changes["status"] == BookingStatus.COMPLETED
        assert t.changes["overall_progress"] == 100
        assert t.changes["garage_completed_at"] == NOW
        assert t.notification_message == "Service has been completed for ABC123"

    def test_full_path_new_to_completed(self):
        booking = _booking()
        for action in (GarageAction.ACCEPT, GarageAction.START, GarageAction.COMPLETE):
            t = _apply(booking, action)
            booking = replace(booking, garage_status=t.garage_status)
        assert booking.garage_status == GarageStatus.COMPLETED
