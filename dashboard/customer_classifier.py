"""
Customer classifier.

Splits the customers who booked during a period into "new" and
"returning" by their lifetime booking count.

The lifetime count is taken over the whole history passed in, not just
the period. A customer is new when that count is exactly 1 and the single
booking falls in the period; returning when the count is above 1 and at
least one booking falls in the period. Callers must therefore pass the
complete booking history: a partial history makes long-standing customers
look new.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, Iterable, Optional, Set

from dashboard.status_counter import ensure_bookings
from utils.datetime_utils import DateWindow


@dataclass(frozen=True)
class CustomerClassification:
    """Disjoint sets of customer ids active in a period."""

    new: FrozenSet[str] = field(default_factory=frozenset)
    returning: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def new_count(self) -> int:
        return len(self.new)

    @property
    def returning_count(self) -> int:
        return len(self.returning)

    def to_dict(self) -> Dict[str, int]:
        return {"new": self.new_count, "returning": self.returning_count}


def lifetime_booking_counts(bookings: Iterable, now: Optional[datetime] = None) -> Counter:
    """Number of bookings per customer id; bookings without an id are skipped."""
    return Counter(
        booking.customer_id
        for booking in ensure_bookings(bookings, now)
        if booking.customer_id
    )


def classify_customers(
    bookings: Iterable, window: DateWindow, now: Optional[datetime] = None
) -> CustomerClassification:
    """
    Classify the customers with a booking inside window.

    Args:
        bookings: Complete booking history (raw records are normalized first)
        window: Period of interest, e.g. month_window(now)
        now: Date fallback used when normalizing raw records

    Returns:
        CustomerClassification with disjoint new/returning id sets
    """
    lifetime: Counter = Counter()
    active: Set[str] = set()

    for booking in ensure_bookings(bookings, now):
        customer_id = booking.customer_id
        if not customer_id:
            continue
        lifetime[customer_id] += 1
        if window.contains(booking.reservation_date):
            active.add(customer_id)

    return CustomerClassification(
        new=frozenset(cid for cid in active if lifetime[cid] == 1),
        returning=frozenset(cid for cid in active if lifetime[cid] > 1),
    )
