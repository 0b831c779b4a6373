"""
Time-bucketer for the sales chart.

Groups monetary amounts into the buckets of the selected period:

    daily    hour of day     00:00 .. 23:00   current local day
    weekly   day of week     Sun .. Sat       current week (starts Sunday)
    monthly  day of month    1 .. N           current month
    yearly   month           Jan .. Dec       current year

Every bucket of the period is present in the output, empty ones with 0.
Records dated outside the period are left out.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from dashboard.normalizer import coerce_amount, coerce_datetime, pick
from models.transaction import Transaction
from utils.constants import HOURS_IN_DAY, MONTH_LABELS, WEEKDAY_LABELS
from utils.datetime_utils import (
    DateWindow,
    days_in_month,
    ensure_aware,
    month_window,
    today_window,
    week_window,
    year_window,
)

AMOUNT_KEYS = ("totalPrice", "total_price", "amount", "total")
DATE_KEYS = ("createdAt", "created_at", "datePaid", "date")


class SalesPeriod(str, Enum):
    """Chart period selector."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @classmethod
    def parse(cls, value: Any) -> "SalesPeriod":
        """Case-insensitive lookup; unknown selectors mean daily."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.DAILY


@dataclass(frozen=True)
class Bucket:
    """One chart point."""

    label: str
    amount: float

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.label, "value": self.amount}


def period_window(period: SalesPeriod, now: datetime) -> DateWindow:
    windows: Dict[SalesPeriod, Callable[[datetime], DateWindow]] = {
        SalesPeriod.DAILY: today_window,
        SalesPeriod.WEEKLY: week_window,
        SalesPeriod.MONTHLY: month_window,
        SalesPeriod.YEARLY: year_window,
    }
    return windows[period](now)


def bucket_labels(period: SalesPeriod, now: datetime) -> List[str]:
    """Labels of every bucket in the period, in chart order."""
    if period is SalesPeriod.DAILY:
        return [f"{hour:02d}:00" for hour in range(HOURS_IN_DAY)]
    if period is SalesPeriod.WEEKLY:
        return list(WEEKDAY_LABELS)
    if period is SalesPeriod.MONTHLY:
        return [str(day) for day in range(1, days_in_month(now) + 1)]
    return list(MONTH_LABELS)


def _bucket_index(period: SalesPeriod, local: datetime) -> int:
    if period is SalesPeriod.DAILY:
        return local.hour
    if period is SalesPeriod.WEEKLY:
        # weekday(): Monday == 0, chart starts on Sunday
        return (local.weekday() + 1) % 7
    if period is SalesPeriod.MONTHLY:
        return local.day - 1
    return local.month - 1


def priced_record(record: Any, now: datetime) -> Tuple[float, datetime]:
    """
    (amount, instant) for one priced record.

    Accepts (amount, date) pairs, Transaction models, raw transaction
    mappings, and objects with amount/date attributes. Unusable amounts
    count as 0 and unusable dates fall back to now.
    """
    if isinstance(record, Transaction):
        return record.total_price, ensure_aware(record.created_at)
    if isinstance(record, Mapping):
        return (
            coerce_amount(pick(record, AMOUNT_KEYS)),
            coerce_datetime(pick(record, DATE_KEYS), now),
        )
    if isinstance(record, (tuple, list)) and len(record) == 2:
        amount, when = record
        return coerce_amount(amount), coerce_datetime(when, now)
    return (
        coerce_amount(getattr(record, "amount", None)),
        coerce_datetime(getattr(record, "date", None), now),
    )


def bucket_totals(
    records: Iterable, period: Any, now: datetime
) -> List[Bucket]:
    """
    Sum amounts per bucket of the active period.

    Args:
        records: Priced records (see priced_record)
        period: SalesPeriod or its name
        now: Current local instant; defines the active period

    Returns:
        One Bucket per slot of the period, in chronological order
    """
    period = SalesPeriod.parse(period)
    now = ensure_aware(now)
    tz = now.tzinfo
    window = period_window(period, now)
    labels = bucket_labels(period, now)
    amounts = [0.0] * len(labels)

    for record in records or ():
        amount, instant = priced_record(record, now)
        if not window.contains(instant):
            continue
        amounts[_bucket_index(period, instant.astimezone(tz))] += amount

    return [Bucket(label, amount) for label, amount in zip(labels, amounts)]


def period_total(records: Iterable, period: Any, now: datetime) -> float:
    """Total amount dated inside the active period."""
    return sum(bucket.amount for bucket in bucket_totals(records, period, now))


def summarize_periods(
    records: Iterable, now: datetime, periods: Optional[Iterable[SalesPeriod]] = None
) -> Dict[str, float]:
    """Totals for several periods at once, e.g. the daily/weekly/yearly cards."""
    records = list(records or ())
    periods = periods or (SalesPeriod.DAILY, SalesPeriod.WEEKLY, SalesPeriod.YEARLY)
    return {period.value: period_total(records, period, now) for period in periods}
