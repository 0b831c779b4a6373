"""Customer account models."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from utils.constants import CUSTOMER_DISPLAY_ID_OFFSET, NOT_AVAILABLE


class Address(BaseModel):
    """Postal address as stored on customer accounts."""

    street: str = ""
    city: str = ""
    province: str = ""
    zip_code: str = ""


class Customer(BaseModel):
    """Customer model (display only, never aggregated)."""

    uid: str = Field(..., description="Opaque account id")
    display_id: str = ""
    first_name: str = ""
    last_name: str = ""
    username: str = ""
    email: str = ""
    phone: str = NOT_AVAILABLE
    gender: str = ""
    date_of_birth: str = ""
    member_since: Optional[datetime] = None
    address: Address = Field(default_factory=Address)

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_record(
        cls,
        uid: str,
        data: Dict[str, Any],
        member_since: Optional[datetime] = None,
    ) -> "Customer":
        """
        Build a customer from a raw account record.

        Address fields may be nested under "address" or flat on the record.
        Phone falls back from "phone" to "phoneNumber".
        """
        nested = data.get("address") if isinstance(data.get("address"), dict) else {}

        def _address_field(key: str) -> str:
            return str(nested.get(key) or data.get(key) or "")

        return cls(
            uid=str(data.get("uid") or uid),
            display_id=customer_display_id(data.get("index")),
            first_name=str(data.get("firstName") or ""),
            last_name=str(data.get("lastName") or ""),
            username=str(data.get("username") or ""),
            email=str(data.get("email") or ""),
            phone=str(data.get("phone") or data.get("phoneNumber") or NOT_AVAILABLE),
            gender=str(data.get("gender") or ""),
            date_of_birth=str(data.get("dateOfBirth") or ""),
            member_since=member_since,
            address=Address(
                street=_address_field("street"),
                city=_address_field("city"),
                province=_address_field("province"),
                zip_code=_address_field("zipCode"),
            ),
        )


def customer_display_id(index: Any) -> str:
    """Display id "#C00091" style, derived from the account's sequence index."""
    try:
        number = int(index or 0)
    except (TypeError, ValueError):
        number = 0
    return f"#C{number + CUSTOMER_DISPLAY_ID_OFFSET:05d}"
