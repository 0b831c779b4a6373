"""
Custom exception classes for better error handling.
Provides specific error types instead of generic exceptions.
"""


class DatabaseError(Exception):
    """Base exception for database operations."""

    pass


class BookingNotFoundError(DatabaseError):
    """Raised when a booking is not found."""

    pass


class CustomerNotFoundError(DatabaseError):
    """Raised when a customer account is not found."""

    pass


class EmployeeNotFoundError(DatabaseError):
    """Raised when an employee is not found."""

    pass


class TransactionCreationError(DatabaseError):
    """Raised when a transaction cannot be written."""

    pass


class ValidationError(Exception):
    """Raised when input validation fails."""

    pass


class InvalidStatusTransitionError(ValidationError):
    """Raised when a booking or mechanic status change is not allowed."""

    def __init__(self, current: str, requested: str, subject: str = "reservation"):
        self.current = current
        self.requested = requested
        self.subject = subject
        super().__init__(
            f"Cannot change {subject} status from {current} to {requested}"
        )
