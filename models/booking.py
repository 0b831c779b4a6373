"""Booking models for repair reservations."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from utils.constants import UNASSIGNED_MECHANIC


class BookingStatus(str, Enum):
    """Reservation status. Also used for the per-service mechanic status."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    REPAIRING = "REPAIRING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @classmethod
    def values(cls) -> List[str]:
        return [status.value for status in cls]


TERMINAL_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED})


class Service(BaseModel):
    """A service line on a booking, with its assigned mechanic."""

    service: str = ""
    mechanic: str = UNASSIGNED_MECHANIC
    employee_id: Optional[str] = None
    status: BookingStatus = BookingStatus.CONFIRMED
    created: Optional[datetime] = None

    # Present only on transaction-derived services
    price: Optional[float] = Field(default=None, ge=0)
    quantity: Optional[int] = Field(default=None, ge=1)
    discount: Optional[float] = Field(default=None, ge=0, le=100)
    total: Optional[float] = None

    @property
    def is_assigned(self) -> bool:
        return bool(self.employee_id) or self.mechanic != UNASSIGNED_MECHANIC


class Booking(BaseModel):
    """Canonical booking, as produced by the normalizer."""

    id: str = ""
    customer_id: Optional[str] = Field(
        default=None, description="Account id of the customer (raw userId)"
    )
    first_name: str = ""
    last_name: str = ""
    car_brand: str = ""
    car_model: str = ""
    plate_no: Optional[str] = None
    reservation_date: datetime
    completion_date: Optional[datetime] = None
    status: BookingStatus = BookingStatus.PENDING
    services: List[Service] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "id": "bk_8f2a",
                "customer_id": "uid_123",
                "first_name": "Juan",
                "last_name": "Dela Cruz",
                "car_brand": "Toyota",
                "car_model": "Vios",
                "reservation_date": "2025-05-03T09:00:00+08:00",
                "status": "CONFIRMED",
                "services": [
                    {"service": "Change Oil", "mechanic": "Unassigned", "status": "CONFIRMED"}
                ],
            }
        }

    @property
    def customer_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def car(self) -> str:
        return f"{self.car_brand} {self.car_model}".strip()
