"""Pydantic models for data validation and serialization."""

from .booking import Booking, BookingStatus, Service
from .customer import Address, Customer
from .employee import Employee, EmployeeCreate, EmployeeRole, EmployeeStatus
from .log_entry import LogActionType, LogEntry
from .transaction import (
    PaymentMethod,
    Transaction,
    TransactionCreate,
    TransactionServiceCreate,
)

__all__ = [
    "Address",
    "Booking",
    "BookingStatus",
    "Customer",
    "Employee",
    "EmployeeCreate",
    "EmployeeRole",
    "EmployeeStatus",
    "LogActionType",
    "LogEntry",
    "PaymentMethod",
    "Service",
    "Transaction",
    "TransactionCreate",
    "TransactionServiceCreate",
]
