"""Employee models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from utils.validation import validate_employee_id, validate_phone


class EmployeeRole(str, Enum):
    """Shop roles."""

    ADMINISTRATOR = "Administrator"
    LEAD_MECHANIC = "Lead Mechanic"
    ASSISTANT_MECHANIC = "Assistant Mechanic"
    HELPER_MECHANIC = "Helper Mechanic"


class EmployeeStatus(str, Enum):
    """Employment status."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"
    WORKING = "Working"
    TERMINATED = "Terminated"


MECHANIC_ROLES = frozenset(
    {
        EmployeeRole.LEAD_MECHANIC,
        EmployeeRole.ASSISTANT_MECHANIC,
        EmployeeRole.HELPER_MECHANIC,
    }
)


class EmployeeBase(BaseModel):
    """Fields shared by new and stored employees."""

    first_name: str
    last_name: str
    username: str
    role: EmployeeRole
    phone: str
    date_of_birth: str
    gender: str
    working_since: str
    street_address1: str
    street_address2: Optional[str] = None
    barangay: str
    city: str
    province: str
    zip_code: str
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    avatar: Optional[str] = None


class EmployeeCreate(EmployeeBase):
    """Employee creation model (the id is generated on insert)."""

    email: Optional[EmailStr] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        """Require 10 to 15 digits; separators are kept as entered."""
        v = v.strip()
        if not validate_phone(v):
            raise ValueError("phone must have 10 to 15 digits, optionally starting with +")
        return v


class Employee(EmployeeBase):
    """
    Stored employee.

    Contact fields are not re-validated, so records entered before the
    checks existed still load.
    """

    id: str = Field(..., description="EMP_### identifier")
    email: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not validate_employee_id(v):
            raise ValueError(f"Invalid employee id: {v}")
        return v

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_active(self) -> bool:
        return self.status in (EmployeeStatus.ACTIVE, EmployeeStatus.WORKING)
