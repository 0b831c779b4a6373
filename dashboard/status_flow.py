"""
Reservation status workflow.

Which status changes the admin reservations page may make, and how the
per-service mechanic statuses follow the reservation status.
"""

from typing import Dict, FrozenSet, List

from models.booking import TERMINAL_STATUSES, Booking, BookingStatus, Service
from utils.exceptions import InvalidStatusTransitionError

S = BookingStatus

BOOKING_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    S.PENDING: frozenset({S.CONFIRMED, S.CANCELLED}),
    S.CONFIRMED: frozenset({S.REPAIRING, S.CANCELLED}),
    S.REPAIRING: frozenset({S.COMPLETED, S.CANCELLED}),
    S.COMPLETED: frozenset(),
    S.CANCELLED: frozenset(),
}

# Mechanic status changes are only possible while the reservation is REPAIRING
MECHANIC_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    S.PENDING: frozenset({S.REPAIRING}),
    S.REPAIRING: frozenset({S.COMPLETED, S.CANCELLED}),
}


def can_transition(current: BookingStatus, requested: BookingStatus) -> bool:
    return requested in BOOKING_TRANSITIONS.get(current, frozenset())


def allowed_transitions(current: BookingStatus) -> List[BookingStatus]:
    """Next statuses offered for a reservation, in workflow order."""
    allowed = BOOKING_TRANSITIONS.get(current, frozenset())
    return [status for status in BookingStatus if status in allowed]


def validate_transition(current: BookingStatus, requested: BookingStatus) -> None:
    """
    Raises:
        InvalidStatusTransitionError: If the change is not allowed
    """
    if not can_transition(current, requested):
        raise InvalidStatusTransitionError(current.value, requested.value)


def can_change_mechanic_status(
    booking_status: BookingStatus, current: BookingStatus, requested: BookingStatus
) -> bool:
    if booking_status is not S.REPAIRING:
        return False
    return requested in MECHANIC_TRANSITIONS.get(current, frozenset())


def validate_mechanic_transition(
    booking_status: BookingStatus, current: BookingStatus, requested: BookingStatus
) -> None:
    """
    Raises:
        InvalidStatusTransitionError: If the service status change is not allowed
    """
    if not can_change_mechanic_status(booking_status, current, requested):
        raise InvalidStatusTransitionError(current.value, requested.value, subject="mechanic")


def mechanic_status_for_assignment(booking_status: BookingStatus) -> BookingStatus:
    """Status given to a service when a mechanic is (re)assigned."""
    if booking_status is S.CONFIRMED:
        return S.CONFIRMED
    if booking_status is S.REPAIRING:
        return S.REPAIRING
    return S.PENDING


def _synced_service_status(booking_status: BookingStatus, service: Service) -> BookingStatus:
    if booking_status in TERMINAL_STATUSES or booking_status is S.CONFIRMED:
        return booking_status
    if booking_status is S.REPAIRING and service.status in (S.PENDING, S.CONFIRMED):
        return S.REPAIRING
    return service.status


def sync_service_statuses(booking: Booking) -> Booking:
    """
    Copy of booking with service statuses aligned to the reservation.

    CANCELLED, COMPLETED and CONFIRMED reservations force every service to
    the same status. A REPAIRING reservation moves PENDING and CONFIRMED
    services to REPAIRING and leaves finished ones alone.
    """
    services = [
        service.model_copy(update={"status": _synced_service_status(booking.status, service)})
        for service in booking.services
    ]
    return booking.model_copy(update={"services": services})


def ready_to_complete(booking: Booking) -> bool:
    """True for a REPAIRING reservation whose services are all finished, one completed."""
    if booking.status is not S.REPAIRING or not booking.services:
        return False
    statuses = [service.status for service in booking.services]
    return all(status in TERMINAL_STATUSES for status in statuses) and S.COMPLETED in statuses
