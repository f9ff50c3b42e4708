from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one employee-day. At most one per (employee_id, work_date)."""

    attendance_id: int
    employee_id: str
    work_date: date
    time_in: Optional[datetime]
    time_out: Optional[datetime]
    status: AttendanceStatus
    break_minutes: int = 0
    hours_worked: Decimal = Decimal("0.00")
    overtime_hours: Decimal = Decimal("0.00")
    notes: Optional[str] = None
    manual_entry: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.time_in is not None and self.time_out is None

    def to_dict(self) -> dict:
        return {
            "attendance_id": self.attendance_id,
            "employee_id": self.employee_id,
            "work_date": self.work_date,
            "time_in": self.time_in,
            "time_out": self.time_out,
            "break_minutes": self.break_minutes,
            "hours_worked": self.hours_worked,
            "overtime_hours": self.overtime_hours,
            "status": self.status.value,
            "notes": self.notes,
            "manual_entry": self.manual_entry,
        }


@dataclass(frozen=True)
class WorkedHours:
    hours_worked: Decimal
    overtime_hours: Decimal

    @property
    def regular_hours(self) -> Decimal:
        return self.hours_worked - self.overtime_hours


@dataclass(frozen=True)
class AttendanceFilter:
    employee_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[AttendanceStatus] = None
    department: Optional[str] = None


@dataclass(frozen=True)
class AttendanceStats:
    start_date: date
    end_date: date
    counts: dict[str, int] = field(default_factory=dict)
    total: int = 0
    total_hours: Decimal = Decimal("0.00")
    average_hours: Decimal = Decimal("0.00")
    attendance_rate: Decimal = Decimal("0.00")

    def count(self, status: AttendanceStatus) -> int:
        return self.counts.get(status.value, 0)

    def to_dict(self) -> dict:
        return {
            "start_date": self.start_date,
            "end_date": self.end_date,
            "counts": dict(self.counts),
            "present": self.count(AttendanceStatus.PRESENT),
            "late": self.count(AttendanceStatus.LATE),
            "absent": self.count(AttendanceStatus.ABSENT),
            "on_leave": self.count(AttendanceStatus.SICK) + self.count(AttendanceStatus.VACATION),
            "total": self.total,
            "total_hours": self.total_hours,
            "average_hours": self.average_hours,
            "attendance_rate": self.attendance_rate,
        }


@dataclass(frozen=True)
class AttendanceSummary:
    """One employee over a period. The average only counts days with worked hours."""

    employee_id: str
    start_date: date
    end_date: date
    total_days: int = 0
    total_hours: Decimal = Decimal("0.00")
    overtime_hours: Decimal = Decimal("0.00")
    average_hours_per_day: Decimal = Decimal("0.00")
    status_breakdown: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "period": {"start_date": self.start_date, "end_date": self.end_date},
            "summary": {
                "total_days": self.total_days,
                "total_hours": self.total_hours,
                "overtime_hours": self.overtime_hours,
                "average_hours_per_day": self.average_hours_per_day,
                "status_breakdown": dict(self.status_breakdown),
            },
        }
