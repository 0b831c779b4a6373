"""Customer notifications for reservation events."""

from .notifier import BookingNotifier

__all__ = ["BookingNotifier"]
