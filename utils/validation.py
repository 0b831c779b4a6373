"""
Input validation utilities for staff-entered data.
"""

import re
from typing import Iterable, Optional

from utils.constants import EMPLOYEE_ID_PREFIX

EMPLOYEE_ID_PATTERN = re.compile(rf"^{EMPLOYEE_ID_PREFIX}(\d{{3,}})$")


def validate_phone(phone: str) -> bool:
    """
    Validate phone number format: 10 to 15 digits, optional leading +.

    Spaces, dashes and parentheses are ignored.
    """
    if not phone or not isinstance(phone, str):
        return False

    cleaned = re.sub(r"[\s\-\(\)]", "", phone)
    return bool(re.match(r"^\+?[0-9]{10,15}$", cleaned))


def validate_employee_id(employee_id: str) -> bool:
    """Check the EMP_001 style identifier."""
    if not employee_id or not isinstance(employee_id, str):
        return False
    return bool(EMPLOYEE_ID_PATTERN.match(employee_id))


def next_employee_id(latest_id: Optional[str]) -> str:
    """
    Identifier following latest_id (EMP_007 -> EMP_008).

    Starts at EMP_001 when there is no previous id or it is malformed.
    """
    match = EMPLOYEE_ID_PATTERN.match(latest_id or "")
    if not match:
        return f"{EMPLOYEE_ID_PREFIX}001"
    return f"{EMPLOYEE_ID_PREFIX}{int(match.group(1)) + 1:03d}"


def highest_employee_id(employee_ids: Iterable[Optional[str]]) -> Optional[str]:
    """
    The EMP_### id with the largest number, compared numerically.

    Malformed ids are ignored; EMP_1000 ranks above EMP_999.
    """
    best_id, best_number = None, -1
    for employee_id in employee_ids:
        match = EMPLOYEE_ID_PATTERN.match(employee_id or "")
        if match and int(match.group(1)) > best_number:
            best_id, best_number = employee_id, int(match.group(1))
    return best_id
