"""
Unit tests for the reservation status workflow.
"""

import pytest

from dashboard.status_flow import (
    allowed_transitions,
    can_change_mechanic_status,
    can_transition,
    mechanic_status_for_assignment,
    ready_to_complete,
    sync_service_statuses,
    validate_mechanic_transition,
    validate_transition,
)
from models.booking import Booking, BookingStatus, Service
from utils.exceptions import InvalidStatusTransitionError, ValidationError

S = BookingStatus


def make_booking(now, status, *service_statuses):
    return Booking(
        id="bk_1",
        reservation_date=now,
        status=status,
        services=[Service(service=f"svc{i}", status=s) for i, s in enumerate(service_statuses)],
    )


class TestBookingTransitions:
    """Test reservation status changes."""

    @pytest.mark.parametrize(
        "current,requested",
        [
            (S.PENDING, S.CONFIRMED),
            (S.PENDING, S.CANCELLED),
            (S.CONFIRMED, S.REPAIRING),
            (S.REPAIRING, S.COMPLETED),
            (S.REPAIRING, S.CANCELLED),
        ],
    )
    def test_allowed(self, current, requested):
        assert can_transition(current, requested)
        validate_transition(current, requested)

    @pytest.mark.parametrize(
        "current,requested",
        [
            (S.PENDING, S.COMPLETED),
            (S.CONFIRMED, S.PENDING),
            (S.COMPLETED, S.REPAIRING),
            (S.CANCELLED, S.CONFIRMED),
            (S.REPAIRING, S.REPAIRING),
        ],
    )
    def test_forbidden(self, current, requested):
        assert not can_transition(current, requested)
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            validate_transition(current, requested)
        assert exc_info.value.current == current.value
        assert exc_info.value.requested == requested.value

    def test_transition_error_is_validation_error(self):
        with pytest.raises(ValidationError, match="from COMPLETED to PENDING"):
            validate_transition(S.COMPLETED, S.PENDING)

    def test_allowed_transitions_in_workflow_order(self):
        assert allowed_transitions(S.PENDING) == [S.CONFIRMED, S.CANCELLED]
        assert allowed_transitions(S.REPAIRING) == [S.COMPLETED, S.CANCELLED]
        assert allowed_transitions(S.COMPLETED) == []


class TestMechanicTransitions:
    """Test per-service status changes."""

    def test_only_while_repairing(self):
        assert can_change_mechanic_status(S.REPAIRING, S.REPAIRING, S.COMPLETED)
        assert not can_change_mechanic_status(S.CONFIRMED, S.REPAIRING, S.COMPLETED)

    def test_forbidden_change(self):
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            validate_mechanic_transition(S.REPAIRING, S.COMPLETED, S.REPAIRING)
        assert exc_info.value.subject == "mechanic"

    @pytest.mark.parametrize(
        "booking_status,expected",
        [
            (S.PENDING, S.PENDING),
            (S.CONFIRMED, S.CONFIRMED),
            (S.REPAIRING, S.REPAIRING),
        ],
    )
    def test_status_on_assignment(self, booking_status, expected):
        assert mechanic_status_for_assignment(booking_status) is expected


class TestSyncServiceStatuses:
    """Test service statuses following the reservation."""

    def test_cancelled_forces_all_services(self, now):
        booking = make_booking(now, S.CANCELLED, S.REPAIRING, S.COMPLETED)
        synced = sync_service_statuses(booking)
        assert [s.status for s in synced.services] == [S.CANCELLED, S.CANCELLED]

    def test_repairing_keeps_finished_services(self, now):
        booking = make_booking(now, S.REPAIRING, S.CONFIRMED, S.PENDING, S.COMPLETED)
        synced = sync_service_statuses(booking)
        assert [s.status for s in synced.services] == [S.REPAIRING, S.REPAIRING, S.COMPLETED]

    def test_original_booking_untouched(self, now):
        booking = make_booking(now, S.COMPLETED, S.REPAIRING)
        sync_service_statuses(booking)
        assert booking.services[0].status is S.REPAIRING


class TestReadyToComplete:
    """Test completion readiness."""

    def test_all_services_finished(self, now):
        assert ready_to_complete(make_booking(now, S.REPAIRING, S.COMPLETED, S.CANCELLED))

    def test_all_cancelled_is_not_ready(self, now):
        assert not ready_to_complete(make_booking(now, S.REPAIRING, S.CANCELLED))

    def test_unfinished_service(self, now):
        assert not ready_to_complete(make_booking(now, S.REPAIRING, S.COMPLETED, S.REPAIRING))

    def test_not_repairing(self, now):
        assert not ready_to_complete(make_booking(now, S.CONFIRMED, S.COMPLETED))
