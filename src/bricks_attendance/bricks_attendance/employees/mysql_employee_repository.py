from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional, Sequence

import mysql.connector

from ..core.enums import EmployeeStatus, EmploymentType
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
from .model import UPDATABLE_COLUMNS, Employee, EmployeeFilter, EmployeeOverview, NewAccount
from .repository import EmployeeRepository

_COLUMNS = """
    employee_id, first_name, last_name, email, phone, department, position,
    hire_date, hourly_rate, employment_type, status, created_at, updated_at
"""

def _to_employee(row: dict) -> Employee:
    hire_date = row["hire_date"]
    if isinstance(hire_date, datetime):
        hire_date = hire_date.date()
    return Employee(
        employee_id=row["employee_id"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        email=row["email"],
        phone=row.get("phone"),
        department=row["department"],
        position=row["position"],
        hire_date=hire_date,
        hourly_rate=as_decimal(row.get("hourly_rate")),
        employment_type=EmploymentType(row.get("employment_type") or EmploymentType.FULL_TIME.value),
        status=EmployeeStatus(row["status"]),
        created_at=as_datetime(row.get("created_at")),
        updated_at=as_datetime(row.get("updated_at")),
    )


def _db_value(value: Any) -> Any:
    return value.value if isinstance(value, (EmployeeStatus, EmploymentType)) else value


def _deactivate_login(cur, employee_id: str, now: datetime) -> None:
    cur.execute("UPDATE accounts SET is_active=0 WHERE employee_id=%s", (employee_id,))
    cur.execute(
        "UPDATE sessions SET is_active=0, revoked_at=%s WHERE employee_id=%s AND is_active=1",
        (now, employee_id),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, employee_id: str) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE employee_id=%s", (employee_id,))
            row = fetchone(cur)
            return _to_employee(row) if row else None

    def get_by_email(self, email: str) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE email=%s", (email,))
            row = fetchone(cur)
            return _to_employee(row) if row else None

    def list(self, filters: EmployeeFilter, *, offset: int, limit: int) -> tuple[Sequence[Employee], int]:
        clauses: list[str] = []
        params: list[Any] = []
        if filters.status:
            clauses.append("status=%s")
            params.append(filters.status.value)
        if filters.department:
            clauses.append("department=%s")
            params.append(filters.department)
        if filters.position:
            clauses.append("position=%s")
            params.append(filters.position)
        if filters.search:
            like = f"%{filters.search}%"
            clauses.append("(first_name LIKE %s OR last_name LIKE %s OR email LIKE %s OR employee_id LIKE %s)")
            params.extend([like, like, like, like])
        where = build_where(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM employees {where}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"SELECT {_COLUMNS} FROM employees {where} ORDER BY employee_id LIMIT %s OFFSET %s",
                tuple(params + [int(limit), int(offset)]),
            )
            return [_to_employee(r) for r in fetchall(cur)], total

    def list_active_ids(self) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT employee_id FROM employees WHERE status='active' ORDER BY employee_id")
            return [r["employee_id"] for r in fetchall(cur)]

    def max_sequence(self, prefix: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT MAX(CAST(SUBSTRING(employee_id, %s) AS UNSIGNED)) AS seq
                FROM employees
                WHERE employee_id LIKE %s
                """,
                (len(prefix) + 1, prefix + "%"),
            )
            row = fetchone(cur)
            return int(row["seq"] or 0) if row else 0

    def create_with_account(self, employee: Employee, account: NewAccount) -> None:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO employees(employee_id, first_name, last_name, email, phone, department,
                                          position, hire_date, hourly_rate, employment_type, status)
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        employee.employee_id,
                        employee.first_name,
                        employee.last_name,
                        employee.email,
                        employee.phone,
                        employee.department,
                        employee.position,
                        employee.hire_date,
                        employee.hourly_rate,
                        employee.employment_type.value,
                        employee.status.value,
                    ),
                )
                cur.execute(
                    """
                    INSERT INTO accounts(employee_id, username, password_hash, role, is_active)
                    VALUES(%s,%s,%s,%s,1)
                    """,
                    (employee.employee_id, account.username, account.password_hash, account.role.value),
                )
        except mysql.connector.IntegrityError as e:
            # db_cursor already rolled back both inserts
            raise translate_integrity_error(e, entity="employee") from None

    def update(self, employee_id: str, fields: dict[str, Any], *, now: datetime) -> bool:
        cols = [c for c in fields if c in UPDATABLE_COLUMNS]
        if not cols:
            return False
        assignments = ", ".join(f"{c}=%s" for c in cols)
        params = [_db_value(fields[c]) for c in cols] + [employee_id]
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(f"UPDATE employees SET {assignments} WHERE employee_id=%s", tuple(params))
                changed = cur.rowcount > 0
                status = fields.get("status")
                if status is None:
                    return changed
                if _db_value(status) == EmployeeStatus.ACTIVE.value:
                    cur.execute("UPDATE accounts SET is_active=1 WHERE employee_id=%s", (employee_id,))
                else:
                    _deactivate_login(cur, employee_id, now)
                return changed
        except mysql.connector.IntegrityError as e:
            raise translate_integrity_error(e, entity="employee") from None

    def soft_delete(self, employee_id: str, *, status: EmployeeStatus, now: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE employees SET status=%s WHERE employee_id=%s", (status.value, employee_id))
            if cur.rowcount == 0:
                cur.execute("SELECT 1 AS found FROM employees WHERE employee_id=%s", (employee_id,))
                if not fetchone(cur):
                    return False
            _deactivate_login(cur, employee_id, now)
            return True

    def overview(self, *, hired_since: date) -> EmployeeOverview:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT department, COUNT(*) AS cnt
                FROM employees
                WHERE status='active'
                GROUP BY department
                """
            )
            by_department = {r["department"]: int(r["cnt"]) for r in fetchall(cur)}
            cur.execute(
                "SELECT COUNT(*) AS cnt FROM employees WHERE status='active' AND hire_date>=%s",
                (hired_since,),
            )
            recent = int(fetchone(cur)["cnt"])
        return EmployeeOverview(
            total_active=sum(by_department.values()),
            by_department=by_department,
            recent_hires=recent,
        )
