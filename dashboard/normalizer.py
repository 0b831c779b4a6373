"""
Booking normalizer.

Turns raw booking records, as they come out of the store, into canonical
`Booking` models. Records written by different versions of the web app
disagree on field names (camelCase vs snake_case), on how dates are stored
(ISO strings, en-US locale strings, store timestamp objects, epoch
milliseconds) and on whether services are strings or objects. All of that
is absorbed here, so the aggregators downstream only ever see canonical
bookings.

Nothing in this module raises on bad data: every field has an explicit
fallback, listed in the tables below.

    field               missing / unparseable
    ------------------  ---------------------
    reservation date    now
    completion date     None
    status              PENDING
    services            []
    service (string)    label=<string>, mechanic=Unassigned, status=CONFIRMED
    service status      CONFIRMED
    mechanic            Unassigned
    price / total       0.0
    quantity            1
    discount            0
"""

import math
from collections.abc import Iterable, Mapping
from datetime import date, datetime, time, timezone, tzinfo
from typing import Any, List, Optional

from models.booking import Booking, BookingStatus, Service
from models.transaction import line_total, parse_discount, parse_quantity
from utils.constants import UNASSIGNED_MECHANIC
from utils.datetime_utils import ensure_aware, get_timezone, parse_iso_datetime
from utils.logging_config import setup_logging

logger = setup_logging(name=__name__)

# Methods store timestamp objects expose for conversion to a datetime
TIMESTAMP_CONVERTERS = ("to_datetime", "ToDatetime", "toDate")

# en-US locale renderings found in older records, tried in order
LOCALE_DATE_FORMATS = (
    "%m/%d/%Y, %I:%M:%S %p",
    "%m/%d/%Y, %I:%M %p",
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
    "%B %d, %Y %I:%M %p",
    "%B %d, %Y",
    "%b %d, %Y",
    "%Y-%m-%d %I:%M %p",
)

DEFAULT_BOOKING_STATUS = BookingStatus.PENDING
DEFAULT_SERVICE_STATUS = BookingStatus.CONFIRMED

# Accepted spellings per canonical field, first non-empty wins
FIELD_ALIASES = {
    "id": ("id", "bookingId", "booking_id"),
    "customer_id": ("userId", "customerId", "user_id", "customer_id"),
    "first_name": ("firstName", "first_name"),
    "last_name": ("lastName", "last_name"),
    "car_brand": ("carBrand", "car_brand"),
    "car_model": ("carModel", "car_model"),
    "plate_no": ("plateNo", "plate_no"),
    "reservation_date": ("reservationDate", "reservation_date", "date"),
    "completion_date": ("completionDate", "completion_date"),
    "status": ("status",),
    "services": ("services",),
}

SERVICE_ALIASES = {
    "service": ("service", "name", "label"),
    "mechanic": ("mechanic", "mechanicName"),
    "employee_id": ("employeeId", "employee_id"),
    "status": ("status",),
    "created": ("created", "createdAt", "created_at"),
}


def pick(record: Mapping, keys) -> Any:
    """First value under any of keys that is not None or an empty string."""
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return None


# ========== Dates ==========


def _from_timestamp_mapping(value: Mapping) -> Optional[datetime]:
    seconds = pick(value, ("seconds", "_seconds"))
    if seconds is None:
        return None
    nanos = pick(value, ("nanoseconds", "_nanoseconds")) or 0
    return datetime.fromtimestamp(float(seconds) + float(nanos) / 1e9, tz=timezone.utc)


def _parse_date_string(value: str, tz: tzinfo) -> Optional[datetime]:
    text = value.strip()
    if not text:
        return None
    try:
        return parse_iso_datetime(text, tz)
    except ValueError:
        pass
    for fmt in LOCALE_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=tz)
        except ValueError:
            continue
    return None


def _convert_datetime(value: Any, tz: tzinfo) -> Optional[datetime]:
    for attr in TIMESTAMP_CONVERTERS:
        converter = getattr(value, attr, None)
        if callable(converter):
            try:
                value = converter()
            except Exception as e:
                logger.debug(f"Timestamp conversion via {attr}() failed: {e}")
                return None
            break

    if isinstance(value, datetime):
        return ensure_aware(value, tz)
    if isinstance(value, date):
        return datetime.combine(value, time.min).replace(tzinfo=tz)
    if isinstance(value, Mapping):
        return _from_timestamp_mapping(value)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        # Epoch milliseconds, as written by the web client
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        return _parse_date_string(value, tz)
    return None


def coerce_optional_datetime(value: Any, tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """
    Coerce a raw date value to an aware datetime in the shop timezone.

    Returns None when the value is missing or cannot be interpreted.
    """
    if value is None or value == "":
        return None
    tz = tz or get_timezone()
    try:
        result = _convert_datetime(value, tz)
    except (TypeError, ValueError, OverflowError, OSError) as e:
        logger.debug(f"Unparseable date value {value!r}: {e}")
        return None
    if result is None:
        logger.debug(f"Unrecognized date value {value!r}")
        return None
    return result.astimezone(tz)


def coerce_datetime(value: Any, now: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Like coerce_optional_datetime, but falls back to now."""
    result = coerce_optional_datetime(value, tz)
    return result if result is not None else now


# ========== Numbers ==========


def coerce_amount(value: Any, default: float = 0.0) -> float:
    """
    Coerce a money value ("1,500.00", "₱1500", 1500) to float.

    Non-numeric, NaN and infinite values give default.
    """
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = "".join(ch for ch in value if ch.isdigit() or ch in ".-")
        try:
            number = float(cleaned)
        except ValueError:
            return default
    else:
        return default
    return number if math.isfinite(number) else default


# ========== Status ==========


def normalize_status(
    raw: Any, default: BookingStatus = DEFAULT_BOOKING_STATUS
) -> BookingStatus:
    """Upper-case a raw status; anything unrecognized becomes default."""
    if isinstance(raw, BookingStatus):
        return raw
    if not isinstance(raw, str):
        return default
    try:
        return BookingStatus(raw.strip().upper())
    except ValueError:
        logger.debug(f"Unknown status {raw!r}, using {default.value}")
        return default


# ========== Services ==========


def normalize_service(raw: Any, tz: Optional[tzinfo] = None) -> Optional[Service]:
    """
    Canonical Service for one raw entry, or None if the entry is unusable.
    """
    if isinstance(raw, Service):
        return raw
    if isinstance(raw, str):
        return Service(
            service=raw.strip(),
            mechanic=UNASSIGNED_MECHANIC,
            status=DEFAULT_SERVICE_STATUS,
        )
    if not isinstance(raw, Mapping):
        logger.debug(f"Skipping service entry of type {type(raw).__name__}")
        return None

    label = pick(raw, SERVICE_ALIASES["service"])
    mechanic = pick(raw, SERVICE_ALIASES["mechanic"])
    employee_id = pick(raw, SERVICE_ALIASES["employee_id"])

    fields = {
        "service": str(label).strip() if label is not None else "",
        "mechanic": str(mechanic).strip() if mechanic is not None else UNASSIGNED_MECHANIC,
        "employee_id": str(employee_id) if employee_id is not None else None,
        "status": normalize_status(
            pick(raw, SERVICE_ALIASES["status"]), DEFAULT_SERVICE_STATUS
        ),
        "created": coerce_optional_datetime(pick(raw, SERVICE_ALIASES["created"]), tz),
    }

    priced = any(key in raw for key in ("price", "quantity", "discount", "total"))
    if priced:
        price = max(coerce_amount(raw.get("price")), 0.0)
        quantity = parse_quantity(raw.get("quantity"))
        discount = parse_discount(raw.get("discount"))
        total = raw.get("total")
        fields.update(
            price=price,
            quantity=quantity,
            discount=discount,
            total=(
                coerce_amount(total)
                if total is not None
                else line_total(price, quantity, discount)
            ),
        )

    if not fields["mechanic"]:
        fields["mechanic"] = UNASSIGNED_MECHANIC
    return Service(**fields)


def normalize_services(raw: Any, tz: Optional[tzinfo] = None) -> List[Service]:
    """Canonical service list; a missing or non-list value is an empty list."""
    if not isinstance(raw, (list, tuple)):
        return []
    services = []
    for entry in raw:
        service = normalize_service(entry, tz)
        if service is not None:
            services.append(service)
    return services


# ========== Bookings ==========


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_booking(raw: Any, now: datetime, tz: Optional[tzinfo] = None) -> Booking:
    """
    Canonical Booking for a raw record. Never raises.

    Args:
        raw: Record as fetched from the store
        now: Instant used when the reservation date is missing or unparseable
        tz: Local timezone for naive dates (default: shop timezone)
    """
    if isinstance(raw, Booking):
        return raw
    if not isinstance(raw, Mapping):
        logger.debug(f"Booking record of type {type(raw).__name__} replaced by empty booking")
        return Booking(reservation_date=now)

    def _field(name: str) -> Any:
        return pick(raw, FIELD_ALIASES[name])

    return Booking(
        id=_optional_text(_field("id")) or "",
        customer_id=_optional_text(_field("customer_id")),
        first_name=_optional_text(_field("first_name")) or "",
        last_name=_optional_text(_field("last_name")) or "",
        car_brand=_optional_text(_field("car_brand")) or "",
        car_model=_optional_text(_field("car_model")) or "",
        plate_no=_optional_text(_field("plate_no")),
        reservation_date=coerce_datetime(_field("reservation_date"), now, tz),
        completion_date=coerce_optional_datetime(_field("completion_date"), tz),
        status=normalize_status(_field("status")),
        services=normalize_services(_field("services"), tz),
    )


def normalize_bookings(
    raws: Any, now: datetime, tz: Optional[tzinfo] = None
) -> List[Booking]:
    """Normalize a sequence of raw records; a non-iterable input gives []."""
    if raws is None or isinstance(raws, (str, bytes, Mapping, Booking)):
        return []
    if not isinstance(raws, Iterable):
        return []
    return [normalize_booking(raw, now, tz) for raw in raws]
