"""
Sales report and sales chart assembly.

Raw transaction records are normalized here the same way bookings are in
dashboard.normalizer: missing fields get display defaults instead of
raising.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from dashboard.normalizer import (
    coerce_amount,
    coerce_datetime,
    coerce_optional_datetime,
    normalize_services,
    pick,
)
from dashboard.time_buckets import SalesPeriod, bucket_totals, summarize_periods
from models.transaction import Transaction
from utils.constants import (
    DEFAULT_PAYMENT_METHOD,
    NOT_AVAILABLE,
    REFERENCE_ID_DISPLAY_LENGTH,
    REFERENCE_PREFIX,
)
from utils.datetime_utils import to_iso_string
from utils.formatting import capitalize_words, format_currency, format_date_time

# Sort keys accepted from the report table, mapped to row attributes
SORT_FIELDS = {
    "referenceNo": "reference_no",
    "customerName": "customer_name",
    "carModel": "car_model",
    "datePaid": "date_paid",
    "paymentMethod": "payment_method",
    "totalPrice": "total_price",
}
DEFAULT_SORT_FIELD = "datePaid"


@dataclass(frozen=True)
class SalesReportRow:
    """One row of the sales report table."""

    reference_no: str
    customer_name: str
    car_model: str
    date_paid: Optional[datetime]
    payment_method: str
    total_price: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "referenceNo": self.reference_no,
            "customerName": self.customer_name,
            "customerNameDisplay": capitalize_words(self.customer_name),
            "carModel": self.car_model,
            "datePaid": to_iso_string(self.date_paid) if self.date_paid else NOT_AVAILABLE,
            "datePaidDisplay": (
                format_date_time(self.date_paid) if self.date_paid else NOT_AVAILABLE
            ),
            "paymentMethod": self.payment_method,
            "totalPrice": self.total_price,
            "totalPriceDisplay": format_currency(self.total_price),
        }


@dataclass(frozen=True)
class Page:
    """A page of rows plus paging metadata."""

    items: List[Any] = field(default_factory=list)
    page: int = 1
    per_page: int = 10
    total_items: int = 0
    total_pages: int = 1


def _reference_no(raw: Mapping, record_id: str) -> str:
    reference = pick(raw, ("referenceNo", "reference_no"))
    if reference:
        return str(reference)
    return f"{REFERENCE_PREFIX}{record_id[:REFERENCE_ID_DISPLAY_LENGTH]}"


def _customer_name(raw: Mapping) -> str:
    name = pick(raw, ("customerName", "customer_name"))
    if name and name != NOT_AVAILABLE:
        return str(name)
    first = str(pick(raw, ("firstName", "first_name")) or "")
    last = str(pick(raw, ("lastName", "last_name")) or "")
    return f"{first} {last}".strip() or NOT_AVAILABLE


def normalize_transaction(raw: Any, now: datetime) -> Transaction:
    """
    Canonical Transaction for a raw record. Never raises.

    The stored totals win when present; otherwise they are recomputed from
    the priced services.
    """
    if isinstance(raw, Transaction):
        return raw
    if not isinstance(raw, Mapping):
        return Transaction(reference_no=REFERENCE_PREFIX, created_at=now)

    record_id = str(pick(raw, ("id",)) or "")
    services = normalize_services(raw.get("services"))
    line_totals = sum(service.total or 0.0 for service in services)
    line_subtotals = sum(
        (service.price or 0.0) * (service.quantity or 1) for service in services
    )

    total_raw = pick(raw, ("totalPrice", "total_price"))
    total_price = coerce_amount(total_raw) if total_raw is not None else line_totals
    subtotal_raw = raw.get("subtotal")
    subtotal = coerce_amount(subtotal_raw) if subtotal_raw is not None else (
        line_subtotals or total_price
    )
    discount_raw = pick(raw, ("discountAmount", "discount_amount"))
    discount_amount = (
        coerce_amount(discount_raw)
        if discount_raw is not None
        else max(subtotal - total_price, 0.0)
    )

    customer_id = pick(raw, ("userId", "customerId", "user_id", "customer_id"))
    booking_id = pick(raw, ("bookingId", "booking_id", "reservationId"))
    return Transaction(
        id=record_id,
        reference_no=_reference_no(raw, record_id),
        booking_id=str(booking_id) if booking_id is not None else None,
        customer_id=str(customer_id) if customer_id is not None else None,
        customer_name=_customer_name(raw),
        car_model=str(pick(raw, ("carModel", "car_model")) or NOT_AVAILABLE),
        payment_method=str(
            pick(raw, ("paymentMethod", "payment_method")) or DEFAULT_PAYMENT_METHOD
        ),
        created_at=coerce_datetime(pick(raw, ("createdAt", "created_at")), now),
        services=services,
        subtotal=subtotal,
        discount_amount=discount_amount,
        total_price=total_price,
    )


def report_row(raw: Any, now: datetime) -> SalesReportRow:
    """Sales report row; a missing payment date stays None (shown as N/A)."""
    transaction = normalize_transaction(raw, now)
    date_paid = None
    if isinstance(raw, Mapping):
        date_paid = coerce_optional_datetime(pick(raw, ("createdAt", "created_at")))
    elif isinstance(raw, Transaction):
        date_paid = raw.created_at
    return SalesReportRow(
        reference_no=transaction.reference_no,
        customer_name=transaction.customer_name,
        car_model=transaction.car_model,
        date_paid=date_paid,
        payment_method=transaction.payment_method,
        total_price=transaction.total_price,
    )


def build_report(raws: Iterable, now: datetime) -> List[SalesReportRow]:
    return [report_row(raw, now) for raw in raws or ()]


def sort_reports(
    rows: Iterable[SalesReportRow],
    sort_field: str = DEFAULT_SORT_FIELD,
    order: str = "desc",
) -> List[SalesReportRow]:
    """
    Sort report rows by a table column.

    Dates sort by instant, text case-insensitively, amounts numerically.
    Rows without a payment date always go last. Unknown columns sort by
    payment date.
    """
    attr = SORT_FIELDS.get(sort_field, SORT_FIELDS[DEFAULT_SORT_FIELD])
    descending = str(order).lower() == "desc"
    rows = list(rows)

    if attr == "date_paid":
        dated = [row for row in rows if row.date_paid is not None]
        undated = [row for row in rows if row.date_paid is None]
        dated.sort(key=lambda row: row.date_paid, reverse=descending)
        return dated + undated

    if attr == "total_price":
        return sorted(rows, key=lambda row: row.total_price, reverse=descending)

    return sorted(
        rows, key=lambda row: str(getattr(row, attr)).casefold(), reverse=descending
    )


def paginate(items: Iterable[Any], page: int = 1, per_page: int = 10) -> Page:
    """Slice items into one page; page is clamped into the valid range."""
    items = list(items)
    per_page = max(int(per_page), 1)
    total_pages = max(math.ceil(len(items) / per_page), 1)
    page = min(max(int(page), 1), total_pages)
    start = (page - 1) * per_page
    return Page(
        items=items[start:start + per_page],
        page=page,
        per_page=per_page,
        total_items=len(items),
        total_pages=total_pages,
    )


def sales_chart(raws: Iterable, period: Any, now: datetime) -> Dict[str, Any]:
    """Chart series and total for the selected period."""
    transactions = [normalize_transaction(raw, now) for raw in raws or ()]
    period = SalesPeriod.parse(period)
    buckets = bucket_totals(transactions, period, now)
    total = sum(bucket.amount for bucket in buckets)
    return {
        "period": period.value,
        "buckets": [bucket.to_dict() for bucket in buckets],
        "total": total,
        "totalDisplay": format_currency(total),
    }


def sales_totals(raws: Iterable, now: datetime) -> Dict[str, float]:
    """All-time total plus the daily, weekly and yearly card totals."""
    transactions = [normalize_transaction(raw, now) for raw in raws or ()]
    totals = {"all_time": sum(t.total_price for t in transactions)}
    totals.update(summarize_periods(transactions, now))
    return totals
