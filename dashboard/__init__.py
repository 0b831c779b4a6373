"""Booking aggregation and dashboard view assembly."""

from .customer_classifier import CustomerClassification, classify_customers
from .normalizer import (
    coerce_datetime,
    coerce_optional_datetime,
    normalize_booking,
    normalize_bookings,
    normalize_service,
    normalize_status,
)
from .status_counter import count_statuses, count_statuses_in_window
from .time_buckets import Bucket, SalesPeriod, bucket_totals, period_total

__all__ = [
    "Bucket",
    "CustomerClassification",
    "SalesPeriod",
    "bucket_totals",
    "classify_customers",
    "coerce_datetime",
    "coerce_optional_datetime",
    "count_statuses",
    "count_statuses_in_window",
    "normalize_booking",
    "normalize_bookings",
    "normalize_service",
    "normalize_status",
    "period_total",
]
