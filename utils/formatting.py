"""
Display formatting helpers for money, dates, phone numbers and names.

Formatting never fails on bad input: values that cannot be interpreted are
returned unchanged (or as an empty string for missing text).
"""

import re
from datetime import datetime
from typing import Optional, Union

from utils.datetime_utils import get_timezone, parse_iso_datetime

CURRENCY_SYMBOLS = {
    "PHP": "₱",
    "USD": "$",
    "EUR": "€",
}


def format_currency(amount: Union[int, float], currency: Optional[str] = None) -> str:
    """
    Format an amount with thousands separators and two decimals.

    >>> format_currency(5294303.54, "PHP")
    '₱5,294,303.54'
    """
    if currency is None:
        from config import settings

        currency = settings.currency
    code = currency.upper()
    symbol = CURRENCY_SYMBOLS.get(code, f"{code} ")
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def _to_local_datetime(value: Union[str, datetime]) -> Optional[datetime]:
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = parse_iso_datetime(str(value))
        except ValueError:
            return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(get_timezone())
    return dt


def format_date_time(value: Union[str, datetime]) -> str:
    """mm/dd/yyyy hh:mm AM/PM in shop time; unparseable input is returned as-is."""
    dt = _to_local_datetime(value)
    if dt is None:
        return str(value)
    return dt.strftime("%m/%d/%Y, %I:%M %p")


def format_date_only(value: Union[str, datetime]) -> str:
    """mm/dd/yyyy in shop time; unparseable input is returned as-is."""
    dt = _to_local_datetime(value)
    if dt is None:
        return str(value)
    return dt.strftime("%m/%d/%Y")


def format_phone(phone: Optional[str]) -> str:
    """
    Group Philippine mobile numbers as "0917 184 0615".

    +63 numbers are rewritten with a leading 0. Other inputs are returned
    unchanged.
    """
    if not phone:
        return ""
    digits = re.sub(r"\D", "", phone)
    if digits.startswith("63") and len(digits) == 12:
        digits = "0" + digits[2:]
    if len(digits) == 11 and digits.startswith("09"):
        return f"{digits[:4]} {digits[4:7]} {digits[7:]}"
    return phone


def get_initials(name: Optional[str]) -> str:
    if not name:
        return ""
    return "".join(part[0].upper() for part in name.split() if part)[:2]


def capitalize_words(text: Optional[str]) -> str:
    if not text:
        return ""
    return " ".join(word[:1].upper() + word[1:].lower() for word in text.split(" "))

