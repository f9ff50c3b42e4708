from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Account role used for route gating."""

    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"


class EmployeeStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    TERMINATED = "terminated"


class EmploymentType(str, Enum):
    FULL_TIME = "full_time"
    PART_TIME = "part_time"
    CONTRACT = "contract"


class AttendanceStatus(str, Enum):
    """Attendance status stored in the database."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    HALF_DAY = "half_day"
    SICK = "sick"
    VACATION = "vacation"
    HOLIDAY = "holiday"


class ClockAction(str, Enum):
    IN = "in"
    OUT = "out"


class PayrollStatus(str, Enum):
    """Payroll lifecycle. Transitions only move forward."""

    DRAFT = "draft"
    PROCESSED = "processed"
    PAID = "paid"


class SettingType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    TIME = "time"


class OvertimeStatus(str, Enum):
    """Overtime request lifecycle. Only pending requests can be reviewed or cancelled."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReportPeriod(str, Enum):
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
