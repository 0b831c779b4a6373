"""
Admin dashboard and customer history views.

Combines the aggregation components into the payloads the dashboard
pages render: pending count, today's status counts, cars arriving today,
new vs returning clients this month and the recent staff activity log.
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from dashboard.customer_classifier import classify_customers
from dashboard.normalizer import coerce_optional_datetime, normalize_bookings, pick
from dashboard.status_counter import count_statuses, count_statuses_in_window
from models.booking import Booking, BookingStatus
from models.log_entry import LogActionType, LogEntry
from utils.constants import INVALID_DATE_TIME, NOT_AVAILABLE
from utils.datetime_utils import month_window, to_iso_string, today_window
from utils.formatting import format_date_only, format_date_time, get_initials
from utils.logging_config import setup_logging

logger = setup_logging(name=__name__)

ARRIVING_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)


def newest_first(bookings: Iterable[Booking]) -> List[Booking]:
    return sorted(bookings, key=lambda booking: booking.reservation_date, reverse=True)


def arriving_today(
    bookings: Iterable[Booking], now: datetime, limit: int = 5
) -> List[Dict[str, str]]:
    """Up to limit PENDING/CONFIRMED bookings dated today."""
    window = today_window(now)
    arriving = []
    for booking in bookings:
        if booking.status not in ARRIVING_STATUSES or not window.contains(
            booking.reservation_date
        ):
            continue
        arriving.append(
            {
                "id": booking.id,
                "customer_name": booking.customer_name.upper(),
                "initials": get_initials(booking.customer_name),
                "car": booking.car.upper(),
            }
        )
        if len(arriving) >= limit:
            break
    return arriving


def normalize_log_entry(raw: Any) -> Optional[LogEntry]:
    """LogEntry for a LOGIN/LOGOUT record; other records give None."""
    if not isinstance(raw, Mapping):
        return None
    log_type = str(pick(raw, ("logType", "log_type")) or "").upper()
    if log_type not in LogActionType.__members__:
        return None
    user_id = pick(raw, ("userId", "user_id"))
    return LogEntry(
        id=str(raw["id"]) if raw.get("id") is not None else None,
        activity=str(raw.get("activity") or NOT_AVAILABLE),
        performed_by=str(pick(raw, ("performedBy", "performed_by")) or NOT_AVAILABLE),
        log_type=LogActionType(log_type),
        timestamp=coerce_optional_datetime(raw.get("timestamp")),
        user_id=str(user_id) if user_id is not None else None,
    )


def recent_logs(raw_logs: Iterable, limit: int = 10) -> List[Dict[str, Any]]:
    """Latest login/logout entries, newest first, ready for display."""
    entries = [entry for entry in map(normalize_log_entry, raw_logs or ()) if entry]
    dated = sorted(
        (entry for entry in entries if entry.timestamp), key=lambda e: e.timestamp, reverse=True
    )
    undated = [entry for entry in entries if not entry.timestamp]
    return [
        {
            "id": entry.id,
            "activity": entry.activity,
            "performed_by": entry.performed_by,
            "log_type": entry.log_type.value,
            "timestamp": (
                format_date_time(entry.timestamp) if entry.timestamp else INVALID_DATE_TIME
            ),
        }
        for entry in (dated + undated)[:limit]
    ]


def build_dashboard_summary(
    raw_bookings: Iterable,
    raw_logs: Iterable,
    now: datetime,
    arriving_limit: int = 5,
    logs_limit: int = 10,
) -> Dict[str, Any]:
    """
    Payload for the admin dashboard page.

    Args:
        raw_bookings: Complete booking history as fetched from the store
        raw_logs: Activity log records
        now: Current local instant
        arriving_limit: Max rows in "Arriving Today"
        logs_limit: Max rows in the activity log

    Returns:
        Dict with pending_count, today, arriving_today, clients and logs
    """
    bookings = newest_first(normalize_bookings(raw_bookings, now))
    all_counts = count_statuses(bookings)
    today_counts = count_statuses_in_window(bookings, today_window(now))
    clients = classify_customers(bookings, month_window(now))

    logger.debug(
        f"Dashboard summary over {len(bookings)} bookings: "
        f"{clients.new_count} new, {clients.returning_count} returning clients"
    )

    return {
        "generated_at": to_iso_string(now),
        "pending_count": all_counts[BookingStatus.PENDING],
        "today": {
            "completed": today_counts[BookingStatus.COMPLETED],
            "repairing": today_counts[BookingStatus.REPAIRING],
            "confirmed": today_counts[BookingStatus.CONFIRMED],
        },
        "arriving_today": arriving_today(bookings, now, arriving_limit),
        "clients": clients.to_dict(),
        "logs": recent_logs(raw_logs, logs_limit),
    }


def customer_booking_stats(bookings: Iterable[Booking]) -> Dict[str, int]:
    """Lifetime completed / ongoing / confirmed counts for one customer."""
    counts = count_statuses(bookings)
    return {
        "completed": counts[BookingStatus.COMPLETED],
        "ongoing": counts[BookingStatus.REPAIRING],
        "confirmed": counts[BookingStatus.CONFIRMED],
    }


def customer_history(raw_bookings: Iterable, now: datetime) -> Dict[str, Any]:
    """A customer's bookings (newest first) with their lifetime stats."""
    bookings = newest_first(normalize_bookings(raw_bookings, now))
    return {
        "stats": customer_booking_stats(bookings),
        "bookings": [
            dict(
                booking.model_dump(mode="json"),
                reservation_date_display=format_date_only(booking.reservation_date),
            )
            for booking in bookings
        ],
    }
