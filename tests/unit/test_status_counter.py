"""
Unit tests for the status counter.
"""

import itertools
from datetime import datetime
from zoneinfo import ZoneInfo

from dashboard.status_counter import (
    count_statuses,
    count_statuses_in_window,
    counts_to_dict,
    ensure_bookings,
    empty_counts,
)
from models.booking import Booking, BookingStatus
from utils.datetime_utils import today_window

MANILA = ZoneInfo("Asia/Manila")


def test_mixed_case_and_missing_statuses(now):
    """Test counting raw records with mixed casing and a missing status."""
    counts = count_statuses([{"status": "confirmed"}, {"status": "COMPLETED"}, {}], now=now)

    assert counts == {
        BookingStatus.PENDING: 1,
        BookingStatus.CONFIRMED: 1,
        BookingStatus.REPAIRING: 0,
        BookingStatus.COMPLETED: 1,
        BookingStatus.CANCELLED: 0,
    }


def test_empty_input_is_zero_filled():
    """Test every status is present for empty input."""
    assert count_statuses([]) == empty_counts()
    assert count_statuses(None) == empty_counts()
    assert set(empty_counts()) == set(BookingStatus)


def test_single_record_is_not_a_collection(raw_booking, now):
    """Test a lone mapping is not counted key by key."""
    assert ensure_bookings(raw_booking(), now) == []
    assert count_statuses(raw_booking(), now=now) == empty_counts()
    assert count_statuses(Booking(id="bk_1"), now=now) == empty_counts()


def test_order_independent(now):
    """Test permuting the input does not change the counts."""
    raws = [
        {"status": "pending"},
        {"status": "repairing"},
        {"status": "repairing"},
        {"status": "cancelled"},
        {"status": "bogus"},
    ]
    expected = count_statuses(raws, now=now)
    for permutation in itertools.permutations(raws):
        assert count_statuses(list(permutation), now=now) == expected
    assert expected[BookingStatus.PENDING] == 2
    assert expected[BookingStatus.REPAIRING] == 2


def test_duplicate_visits_counted_twice(now):
    """Test two records for the same visit are both counted."""
    raws = [
        {"id": "a", "userId": "u1", "status": "REPAIRING"},
        {"id": "b", "userId": "u1", "status": "REPAIRING"},
    ]
    assert count_statuses(raws, now=now)[BookingStatus.REPAIRING] == 2


def test_canonical_bookings_accepted(now):
    """Test canonical bookings are counted as they are."""
    bookings = [
        Booking(reservation_date=now, status=BookingStatus.COMPLETED),
        Booking(reservation_date=now, status=BookingStatus.COMPLETED),
    ]
    assert count_statuses(bookings)[BookingStatus.COMPLETED] == 2


def test_counts_within_today(raw_booking, now):
    """Test the date predicate restricts counting to today."""
    raws = [
        raw_booking(id="1", status="COMPLETED", reservationDate="2025-05-07T08:00:00+08:00"),
        raw_booking(id="2", status="REPAIRING", reservationDate="2025-05-07T23:59:00+08:00"),
        # 23:30 UTC on the 6th is 07:30 on the 7th in Manila
        raw_booking(id="3", status="CONFIRMED", reservationDate="2025-05-06T23:30:00Z"),
        raw_booking(id="4", status="COMPLETED", reservationDate="2025-05-06T23:59:00+08:00"),
        raw_booking(id="5", status="COMPLETED", reservationDate="2025-05-08T00:00:00+08:00"),
    ]
    counts = count_statuses_in_window(raws, today_window(now), now=now)

    assert counts[BookingStatus.COMPLETED] == 1
    assert counts[BookingStatus.REPAIRING] == 1
    assert counts[BookingStatus.CONFIRMED] == 1


def test_custom_predicate(now):
    """Test an arbitrary date predicate."""
    bookings = [
        Booking(reservation_date=datetime(2025, 1, 1, tzinfo=MANILA)),
        Booking(reservation_date=datetime(2025, 6, 1, tzinfo=MANILA)),
    ]
    counts = count_statuses(bookings, predicate=lambda d: d.month == 1)
    assert counts[BookingStatus.PENDING] == 1


def test_counts_to_dict():
    """Test JSON-friendly counts."""
    counts = empty_counts()
    counts[BookingStatus.CONFIRMED] = 3
    assert counts_to_dict(counts) == {
        "PENDING": 0,
        "CONFIRMED": 3,
        "REPAIRING": 0,
        "COMPLETED": 0,
        "CANCELLED": 0,
    }
