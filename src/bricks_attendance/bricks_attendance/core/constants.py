"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

EMPLOYEE_ID_PREFIX = "EMP"
EMPLOYEE_ID_PATTERN = r"^EMP\d{3,}$"

MIN_PASSWORD_LENGTH = 6
DEFAULT_PASSWORD_SUFFIX = "123"
USERNAME_RETRY_LIMIT = 3

DEFAULT_TOKEN_TTL_HOURS = 24
DEFAULT_REMEMBER_ME_DAYS = 30
DEFAULT_REFRESH_WINDOW_HOURS = 2
DEFAULT_MAX_FAILED_LOGINS = 5
DEFAULT_LOCKOUT_MINUTES = 15

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
RECENT_HIRE_DAYS = 30

# Attendance / payroll policy fallbacks when the settings table has no row
DEFAULT_WORK_START = "09:00"
DEFAULT_LATE_GRACE_MINUTES = 0
DEFAULT_BREAK_MINUTES = 0
DEFAULT_STANDARD_HOURS = Decimal("8")
DEFAULT_OVERTIME_MULTIPLIER = Decimal("1.5")
DEFAULT_TAX_RATE = Decimal("0")
DEFAULT_HOURLY_RATE = Decimal("15.00")

WARNING_NO_ATTENDANCE = "NO_ATTENDANCE_DATA"

MAX_OVERTIME_HOURS_PER_REQUEST = Decimal("12")
