from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional, Sequence

import mysql.connector

from ..core.enums import PayrollStatus
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
from .model import PayrollFigures, PayrollFilter, PayrollRecord
from .repository import PayrollRepository

_COLUMNS = """
    payroll_id, employee_id, pay_period_start, pay_period_end, days_worked, regular_hours, overtime_hours,
    hourly_rate, overtime_multiplier, regular_pay, overtime_pay, bonus, allowances, gross_pay,
    deductions, tax, net_pay, status, notes, created_at, processed_at
"""


def _as_date(value: Any) -> date:
    return value.date() if isinstance(value, datetime) else value


def _to_record(row: dict) -> PayrollRecord:
    regular_hours = as_decimal(row["regular_hours"])
    overtime_hours = as_decimal(row["overtime_hours"])
    figures = PayrollFigures(
        total_hours=regular_hours + overtime_hours,
        regular_hours=regular_hours,
        overtime_hours=overtime_hours,
        hourly_rate=as_decimal(row["hourly_rate"]),
        overtime_multiplier=as_decimal(row["overtime_multiplier"]),
        regular_pay=as_decimal(row["regular_pay"]),
        overtime_pay=as_decimal(row["overtime_pay"]),
        bonus=as_decimal(row["bonus"]),
        allowances=as_decimal(row["allowances"]),
        gross_pay=as_decimal(row["gross_pay"]),
        deductions=as_decimal(row["deductions"]),
        tax=as_decimal(row["tax"]),
        net_pay=as_decimal(row["net_pay"]),
        days_worked=int(row.get("days_worked") or 0),
    )
    return PayrollRecord(
        payroll_id=int(row["payroll_id"]),
        employee_id=row["employee_id"],
        pay_period_start=_as_date(row["pay_period_start"]),
        pay_period_end=_as_date(row["pay_period_end"]),
        figures=figures,
        status=PayrollStatus(row["status"]),
        notes=row.get("notes"),
        created_at=as_datetime(row.get("created_at")),
        processed_at=as_datetime(row.get("processed_at")),
    )


class MySQLPayrollRepository(PayrollRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, payroll_id: int) -> Optional[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM payroll_records WHERE payroll_id=%s", (payroll_id,))
            row = fetchone(cur)
            return _to_record(row) if row else None

    def get_for_period(self, employee_id: str, start: date, end: date) -> Optional[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM payroll_records
                WHERE employee_id=%s AND pay_period_start=%s AND pay_period_end=%s
                """,
                (employee_id, start, end),
            )
            row = fetchone(cur)
            return _to_record(row) if row else None

    def create(
        self,
        *,
        employee_id: str,
        start: date,
        end: date,
        figures: PayrollFigures,
        status: PayrollStatus = PayrollStatus.DRAFT,
        notes: Optional[str] = None,
    ) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO payroll_records(employee_id, pay_period_start, pay_period_end, days_worked, regular_hours,
                        overtime_hours, hourly_rate, overtime_multiplier, regular_pay, overtime_pay, bonus,
                        allowances, gross_pay, deductions, tax, net_pay, status, notes)
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        employee_id,
                        start,
                        end,
                        figures.days_worked,
                        figures.regular_hours,
                        figures.overtime_hours,
                        figures.hourly_rate,
                        figures.overtime_multiplier,
                        figures.regular_pay,
                        figures.overtime_pay,
                        figures.bonus,
                        figures.allowances,
                        figures.gross_pay,
                        figures.deductions,
                        figures.tax,
                        figures.net_pay,
                        status.value,
                        notes,
                    ),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError as e:
            raise translate_integrity_error(e, entity="payroll record") from None

    def list(self, filters: PayrollFilter, *, offset: int, limit: int) -> tuple[Sequence[PayrollRecord], int]:
        clauses: list[str] = []
        params: list[Any] = []
        if filters.employee_id:
            clauses.append("employee_id=%s")
            params.append(filters.employee_id)
        if filters.status:
            clauses.append("status=%s")
            params.append(filters.status.value)
        if filters.start_date:
            clauses.append("pay_period_end>=%s")
            params.append(filters.start_date)
        if filters.end_date:
            clauses.append("pay_period_start<=%s")
            params.append(filters.end_date)
        where = build_where(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM payroll_records {where}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM payroll_records {where}
                ORDER BY pay_period_start DESC, employee_id
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), int(offset)]),
            )
            return [_to_record(r) for r in fetchall(cur)], total

    def update_status(self, payroll_id: int, status: PayrollStatus, *, processed_at: Optional[datetime]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE payroll_records SET status=%s, processed_at=COALESCE(processed_at, %s) WHERE payroll_id=%s",
                (status.value, processed_at, payroll_id),
            )
            return cur.rowcount > 0

    def update_draft(self, payroll_id: int, figures: PayrollFigures, *, notes: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payroll_records
                SET days_worked=%s, regular_hours=%s, overtime_hours=%s, hourly_rate=%s, overtime_multiplier=%s,
                    regular_pay=%s, overtime_pay=%s, bonus=%s, allowances=%s, gross_pay=%s, deductions=%s,
                    tax=%s, net_pay=%s, notes=%s
                WHERE payroll_id=%s AND status=%s
                """,
                (
                    figures.days_worked,
                    figures.regular_hours,
                    figures.overtime_hours,
                    figures.hourly_rate,
                    figures.overtime_multiplier,
                    figures.regular_pay,
                    figures.overtime_pay,
                    figures.bonus,
                    figures.allowances,
                    figures.gross_pay,
                    figures.deductions,
                    figures.tax,
                    figures.net_pay,
                    notes,
                    payroll_id,
                    PayrollStatus.DRAFT.value,
                ),
            )
            # unchanged values report 0 rows, so check the row is still there
            if cur.rowcount > 0:
                return True
            cur.execute(
                "SELECT 1 AS found FROM payroll_records WHERE payroll_id=%s AND status=%s",
                (payroll_id, PayrollStatus.DRAFT.value),
            )
            return fetchone(cur) is not None

    def delete_draft(self, payroll_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM payroll_records WHERE payroll_id=%s AND status=%s",
                (payroll_id, PayrollStatus.DRAFT.value),
            )
            return cur.rowcount > 0

    def latest_period_end(self) -> Optional[date]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT MAX(pay_period_end) AS last_end FROM payroll_records")
            row = fetchone(cur)
            return _as_date(row["last_end"]) if row and row["last_end"] else None
