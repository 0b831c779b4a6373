"""Transaction models and pricing rules for finalized repair jobs."""

import math
import random
import string
from datetime import datetime
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from models.booking import Service
from utils.constants import (
    DEFAULT_QUANTITY,
    MAX_DISCOUNT_PERCENT,
    MIN_DISCOUNT_PERCENT,
    NOT_AVAILABLE,
)


class PaymentMethod(str, Enum):
    """Accepted payment methods."""

    CASH = "CASH"
    GCASH = "GCASH"
    CARD = "CARD"
    BANK_TRANSFER = "BANK_TRANSFER"


def _finite(value: float) -> Optional[float]:
    return value if math.isfinite(value) else None


def parse_quantity(value: Union[str, int, float, None]) -> int:
    """
    Parse a quantity entered as "x3", "3", "2.0" or 3.

    Anything without a positive finite number falls back to 1.
    """
    if isinstance(value, bool) or value is None:
        return DEFAULT_QUANTITY
    if isinstance(value, (int, float)):
        number = _finite(float(value))
    else:
        cleaned = str(value).strip().lstrip("xX").strip()
        try:
            number = _finite(float(cleaned))
        except ValueError:
            number = None
    if number is None:
        return DEFAULT_QUANTITY
    quantity = int(number)
    return quantity if quantity >= 1 else DEFAULT_QUANTITY


def parse_discount(value: Union[str, int, float, None]) -> float:
    """Parse a discount entered as "15%", "15" or 15, clamped to 0..100."""
    if isinstance(value, bool) or value is None:
        return float(MIN_DISCOUNT_PERCENT)
    if isinstance(value, (int, float)):
        discount = _finite(float(value))
    else:
        cleaned = str(value).replace("%", "").strip()
        try:
            discount = _finite(float(cleaned)) if cleaned else None
        except ValueError:
            discount = None
    if discount is None:
        return float(MIN_DISCOUNT_PERCENT)
    return float(min(max(discount, MIN_DISCOUNT_PERCENT), MAX_DISCOUNT_PERCENT))


def line_total(price: float, quantity: int, discount: float) -> float:
    """Price of one service line after its percentage discount."""
    return price * quantity * (1 - discount / 100)


def generate_reference_no(now: datetime, length: int = 4) -> str:
    """Reference number like REF20250503A9K2."""
    chars = string.ascii_uppercase + string.digits
    suffix = "".join(random.choice(chars) for _ in range(length))
    return f"REF{now.strftime('%Y%m%d')}{suffix}"


class TransactionServiceCreate(BaseModel):
    """A priced service line entered at the counter."""

    service: str
    mechanic: Optional[str] = None
    employee_id: Optional[str] = None
    price: float = Field(..., ge=0)
    quantity: int = Field(default=DEFAULT_QUANTITY, ge=1)
    discount: float = Field(default=0, ge=MIN_DISCOUNT_PERCENT, le=MAX_DISCOUNT_PERCENT)

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity

    @property
    def discount_amount(self) -> float:
        return self.subtotal * self.discount / 100

    @property
    def total(self) -> float:
        return line_total(self.price, self.quantity, self.discount)


class TransactionCreate(BaseModel):
    """Transaction creation model."""

    booking_id: Optional[str] = None
    customer_id: Optional[str] = None
    customer_name: str
    car_model: str = NOT_AVAILABLE
    payment_method: PaymentMethod = PaymentMethod.CASH
    services: List[TransactionServiceCreate] = Field(..., min_length=1)

    class Config:
        json_schema_extra = {
            "example": {
                "customer_name": "Juan Dela Cruz",
                "car_model": "Toyota Vios",
                "payment_method": "CASH",
                "services": [
                    {"service": "Change Oil", "price": 1500, "quantity": 1, "discount": 10}
                ],
            }
        }

    @property
    def subtotal(self) -> float:
        return sum(line.subtotal for line in self.services)

    @property
    def discount_amount(self) -> float:
        return sum(line.discount_amount for line in self.services)

    @property
    def total_price(self) -> float:
        return self.subtotal - self.discount_amount


class Transaction(BaseModel):
    """A finalized, priced booking snapshot. Never modified after creation."""

    id: str = ""
    reference_no: str
    booking_id: Optional[str] = None
    customer_id: Optional[str] = None
    customer_name: str = NOT_AVAILABLE
    car_model: str = NOT_AVAILABLE
    payment_method: str = PaymentMethod.CASH.value
    created_at: datetime
    services: List[Service] = Field(default_factory=list)
    subtotal: float = 0.0
    discount_amount: float = 0.0
    total_price: float = 0.0

    model_config = {"frozen": True}
