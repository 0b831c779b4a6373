"""
Application-wide constants.
Centralizes magic numbers and display values.
"""

# Display defaults
UNASSIGNED_MECHANIC = "Unassigned"
NOT_AVAILABLE = "N/A"
INVALID_DATE_TIME = "Invalid date/time"
DEFAULT_PAYMENT_METHOD = "CASH"
REFERENCE_PREFIX = "#REF"
REFERENCE_ID_DISPLAY_LENGTH = 5  # Characters of the document id used in "#REFxxxxx"
CUSTOMER_DISPLAY_ID_OFFSET = 91  # Display ids start at #C00091
EMPLOYEE_ID_PREFIX = "EMP_"

# Pricing limits
MIN_DISCOUNT_PERCENT = 0
MAX_DISCOUNT_PERCENT = 100
DEFAULT_QUANTITY = 1

# Time constants
HOURS_IN_DAY = 24

WEEKDAY_LABELS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
MONTH_LABELS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
