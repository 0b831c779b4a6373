"""Activity log models (staff login/logout trail)."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class LogActionType(str, Enum):
    """Logged activity kinds."""

    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"


class LogEntry(BaseModel):
    """Log entry model."""

    id: Optional[str] = None
    activity: str
    performed_by: str
    log_type: LogActionType
    timestamp: Optional[datetime] = None
    user_id: Optional[str] = None
