from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    as_datetime,
    as_decimal,
    build_where,
    db_cursor,
    fetchall,
    fetchone,
    translate_integrity_error,
)
from .model import AttendanceFilter, AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = """
    a.attendance_id, a.employee_id, a.work_date, a.time_in, a.time_out, a.break_minutes,
    a.hours_worked, a.overtime_hours, a.status, a.notes, a.manual_entry, a.created_at, a.updated_at
"""

_UPDATABLE = ("time_in", "time_out", "break_minutes", "hours_worked", "overtime_hours", "status", "notes")


def _to_record(row: dict) -> AttendanceRecord:
    work_date = row["work_date"]
    if isinstance(work_date, datetime):
        work_date = work_date.date()
    return AttendanceRecord(
        attendance_id=int(row["attendance_id"]),
        employee_id=row["employee_id"],
        work_date=work_date,
        time_in=as_datetime(row.get("time_in")),
        time_out=as_datetime(row.get("time_out")),
        status=AttendanceStatus(row["status"]),
        break_minutes=int(row.get("break_minutes") or 0),
        hours_worked=as_decimal(row.get("hours_worked")),
        overtime_hours=as_decimal(row.get("overtime_hours")),
        notes=row.get("notes"),
        manual_entry=bool(row.get("manual_entry", False)),
        created_at=as_datetime(row.get("created_at")),
        updated_at=as_datetime(row.get("updated_at")),
    )


def _filter_sql(filters: AttendanceFilter) -> tuple[str, list[Any]]:
    clauses: list[str] = []
    params: list[Any] = []
    if filters.employee_id:
        clauses.append("a.employee_id=%s")
        params.append(filters.employee_id)
    if filters.start_date:
        clauses.append("a.work_date>=%s")
        params.append(filters.start_date)
    if filters.end_date:
        clauses.append("a.work_date<=%s")
        params.append(filters.end_date)
    if filters.status:
        clauses.append("a.status=%s")
        params.append(filters.status.value)
    if filters.department:
        clauses.append("e.department=%s")
        params.append(filters.department)
    return build_where(clauses), params


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records a WHERE a.attendance_id=%s", (attendance_id,))
            row = fetchone(cur)
            return _to_record(row) if row else None

    def get_for_employee_and_date(self, employee_id: str, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records a WHERE a.employee_id=%s AND a.work_date=%s",
                (employee_id, work_date),
            )
            row = fetchone(cur)
            return _to_record(row) if row else None

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
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(employee_id, work_date, time_in, time_out, break_minutes,
                                                   hours_worked, overtime_hours, status, notes, manual_entry)
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        employee_id,
                        work_date,
                        time_in,
                        time_out,
                        int(break_minutes),
                        hours_worked,
                        overtime_hours,
                        status.value,
                        notes,
                        int(manual_entry),
                    ),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError as e:
            raise translate_integrity_error(e, entity="attendance record") from None

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET time_out=%s, hours_worked=%s, overtime_hours=%s, status=%s, notes=%s
                WHERE attendance_id=%s AND time_out IS NULL
                """,
                (time_out, hours_worked, overtime_hours, status.value, notes, attendance_id),
            )
            return cur.rowcount > 0

    def update(self, attendance_id: int, fields: dict[str, Any]) -> bool:
        cols = [c for c in fields if c in _UPDATABLE]
        if not cols:
            return False
        assignments = ", ".join(f"{c}=%s" for c in cols)
        params = [fields[c].value if isinstance(fields[c], AttendanceStatus) else fields[c] for c in cols]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE attendance_records SET {assignments} WHERE attendance_id=%s",
                tuple(params + [attendance_id]),
            )
            return cur.rowcount > 0

    def delete(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE attendance_id=%s", (attendance_id,))
            return cur.rowcount > 0

    def list(self, filters: AttendanceFilter, *, offset: int, limit: int) -> tuple[Sequence[AttendanceRecord], int]:
        where, params = _filter_sql(filters)
        base = f"FROM attendance_records a JOIN employees e ON e.employee_id = a.employee_id {where}"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total {base}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"SELECT {_COLUMNS} {base} ORDER BY a.work_date DESC, a.employee_id LIMIT %s OFFSET %s",
                tuple(params + [int(limit), int(offset)]),
            )
            return [_to_record(r) for r in fetchall(cur)], total

    def list_between(
        self,
        start_date: date,
        end_date: date,
        *,
        employee_id: Optional[str] = None,
        department: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        where, params = _filter_sql(
            AttendanceFilter(employee_id=employee_id, start_date=start_date, end_date=end_date, department=department)
        )
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records a
                JOIN employees e ON e.employee_id = a.employee_id
                {where}
                ORDER BY a.work_date, a.employee_id
                """,
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]
