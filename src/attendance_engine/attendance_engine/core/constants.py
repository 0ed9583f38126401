"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

EARTH_RADIUS_METERS = 6371e3

DEFAULT_STANDARD_DAY_HOURS = 8
DEFAULT_OVERTIME_TOLERANCE_MINUTES = 60
DEFAULT_HOURS_PRECISION = "0.1"
DEFAULT_AUTO_CHECKOUT_AFTER_HOURS = 12
DEFAULT_CHECKOUT_TIME = time(18, 0)
DEFAULT_BREAK_DEDUCTION_THRESHOLD_HOURS = 4
DEFAULT_LOCATION_TIMEOUT_SECONDS = 10.0
DEFAULT_HISTORY_LIMIT = 30

OVERTIME_ALERT_HOURS = (8, 10, 12)
TRUST_SCORE_MIN_RECORDS = 10

SYSTEM_EDITOR_ID = "system"
SYSTEM_EDITOR_NAME = "Auto-Checkout System"

# Checkout reminders, in minutes relative to the expected checkout.
CHECKOUT_REMINDER_OFFSETS = (
    ("15min", -15),
    ("30min", 30),
    ("1hour", 60),
    ("2hours", 120),
)
