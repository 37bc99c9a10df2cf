"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

STANDARD_SHIFT_HOURS = 8
STANDARD_MONTHLY_HOURS = 176
OVERTIME_MULTIPLIER = 1.5

TAX_RATE = 0.15
SOCIAL_SECURITY_RATE = 0.14
HEALTH_INSURANCE_RATE = 0.05

DEFAULT_LATE_GRACE_MINUTES = 0
DEFAULT_SHIFT_START = "09:00"
DEFAULT_SHIFT_END = "18:00"

DEFAULT_HISTORY_LIMIT = 30
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
DEFAULT_PAYROLL_HISTORY_LIMIT = 12
DEFAULT_BATCH_WORKERS = 4

# Coordinates recorded when the client sends no location (longitude, latitude).
DEFAULT_LOCATION = (0.0, 0.0)
