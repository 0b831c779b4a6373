"""
Status counter.

Counts bookings per canonical status, optionally restricted to bookings
whose reservation date passes a date predicate (usually a DateWindow).
"""

from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional

from models.booking import Booking, BookingStatus
from dashboard.normalizer import normalize_bookings
from utils.datetime_utils import Clock, DateWindow

DatePredicate = Callable[[datetime], bool]
StatusCounts = Dict[BookingStatus, int]


def ensure_bookings(items: Iterable, now: Optional[datetime] = None) -> List[Booking]:
    """
    Canonical bookings from a mix of Booking models and raw records.

    Raw records are normalized on entry, with now as the date fallback. A
    single record or string is not a collection and gives [].
    """
    if items is None:
        return []
    now = now or Clock().now()
    return normalize_bookings(items, now)


def empty_counts() -> StatusCounts:
    return {status: 0 for status in BookingStatus}


def count_statuses(
    bookings: Iterable,
    predicate: Optional[DatePredicate] = None,
    now: Optional[datetime] = None,
) -> StatusCounts:
    """
    Count bookings by status.

    Every canonical status is present in the result, zero-filled. Bookings
    are counted once per entry; two entries describing the same visit
    under different ids are both counted.

    Args:
        bookings: Canonical bookings (raw records are normalized first)
        predicate: Optional filter on the reservation date
        now: Date fallback used when normalizing raw records

    Returns:
        Mapping of each BookingStatus to its count
    """
    counts = empty_counts()
    for booking in ensure_bookings(bookings, now):
        if predicate is not None and not predicate(booking.reservation_date):
            continue
        counts[booking.status] += 1
    return counts


def count_statuses_in_window(
    bookings: Iterable, window: DateWindow, now: Optional[datetime] = None
) -> StatusCounts:
    """Status counts restricted to bookings dated inside window."""
    return count_statuses(bookings, predicate=window.contains, now=now)


def counts_to_dict(counts: StatusCounts) -> Dict[str, int]:
    """Plain {"PENDING": n, ...} mapping for JSON responses."""
    return {status.value: counts.get(status, 0) for status in BookingStatus}
