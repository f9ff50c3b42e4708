from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceFilter, AttendanceRecord


class AttendanceRepository(Protocol):
    def get(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_employee_and_date(self, employee_id: str, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create(
        self,
        *,
        employee_id: str,
        work_date: date,
        time_in: Optional[datetime],
        status: AttendanceStatus,
        time_out: Optional[datetime] = None,
        break_minutes: int = 0,
        hours_worked: Decimal = Decimal("0.00"),
        overtime_hours: Decimal = Decimal("0.00"),
        notes: Optional[str] = None,
        manual_entry: bool = False,
    ) -> int:
        """Insert one record. A duplicate (employee_id, work_date) raises ``ConflictError``."""

        raise NotImplementedError

    def close(
        self,
        attendance_id: int,
        *,
        time_out: datetime,
        hours_worked: Decimal,
        overtime_hours: Decimal,
        status: AttendanceStatus,
        notes: Optional[str] = None,
    ) -> bool:
        """Set clock-out data only if the record is still open."""

        raise NotImplementedError

    def update(self, attendance_id: int, fields: dict[str, Any]) -> bool:
        raise NotImplementedError

    def delete(self, attendance_id: int) -> bool:
        raise NotImplementedError

    def list(self, filters: AttendanceFilter, *, offset: int, limit: int) -> tuple[Sequence[AttendanceRecord], int]:
        raise NotImplementedError

    def list_between(
        self,
        start_date: date,
        end_date: date,
        *,
        employee_id: Optional[str] = None,
        department: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
