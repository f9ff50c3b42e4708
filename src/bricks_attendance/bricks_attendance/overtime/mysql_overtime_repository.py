from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional, Sequence

import mysql.connector

from ..core.enums import OvertimeStatus
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
from .model import OvertimeFilter, OvertimeRequest
from .repository import OvertimeRepository

_COLUMNS = """
    request_id, employee_id, request_date, hours_requested, reason, status,
    reviewed_by, reviewed_at, review_notes, created_at
"""


def _to_request(row: dict) -> OvertimeRequest:
    request_date = row["request_date"]
    if isinstance(request_date, datetime):
        request_date = request_date.date()
    return OvertimeRequest(
        request_id=int(row["request_id"]),
        employee_id=row["employee_id"],
        request_date=request_date,
        hours_requested=as_decimal(row["hours_requested"]),
        reason=row["reason"],
        status=OvertimeStatus(row["status"]),
        reviewed_by=row.get("reviewed_by"),
        reviewed_at=as_datetime(row.get("reviewed_at")),
        review_notes=row.get("review_notes"),
        created_at=as_datetime(row.get("created_at")),
    )


class MySQLOvertimeRepository(OvertimeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, request_id: int) -> Optional[OvertimeRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM overtime_requests WHERE request_id=%s", (request_id,))
            row = fetchone(cur)
            return _to_request(row) if row else None

    def find_pending(self, employee_id: str, request_date: date) -> Optional[OvertimeRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM overtime_requests WHERE employee_id=%s AND request_date=%s AND status=%s",
                (employee_id, request_date, OvertimeStatus.PENDING.value),
            )
            row = fetchone(cur)
            return _to_request(row) if row else None

    def create(
        self,
        *,
        employee_id: str,
        request_date: date,
        hours_requested: Decimal,
        reason: str,
        created_at: datetime,
    ) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO overtime_requests(employee_id, request_date, hours_requested, reason, status, created_at)
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    (employee_id, request_date, hours_requested, reason, OvertimeStatus.PENDING.value, created_at),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError as e:
            raise translate_integrity_error(e, entity="overtime request") from None

    def delete_pending(self, request_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM overtime_requests WHERE request_id=%s AND status=%s",
                (request_id, OvertimeStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def review(
        self,
        request_id: int,
        *,
        status: OvertimeStatus,
        reviewed_by: str,
        reviewed_at: datetime,
        notes: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE overtime_requests
                SET status=%s, reviewed_by=%s, reviewed_at=%s, review_notes=%s
                WHERE request_id=%s AND status=%s
                """,
                (status.value, reviewed_by, reviewed_at, notes, request_id, OvertimeStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def list(self, filters: OvertimeFilter, *, offset: int, limit: int) -> tuple[Sequence[OvertimeRequest], int]:
        clauses: list[str] = []
        params: list[Any] = []
        if filters.employee_id:
            clauses.append("employee_id=%s")
            params.append(filters.employee_id)
        if filters.status:
            clauses.append("status=%s")
            params.append(filters.status.value)
        if filters.start_date:
            clauses.append("request_date>=%s")
            params.append(filters.start_date)
        if filters.end_date:
            clauses.append("request_date<=%s")
            params.append(filters.end_date)
        where = build_where(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM overtime_requests {where}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM overtime_requests {where}
                ORDER BY created_at DESC, request_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), int(offset)]),
            )
            return [_to_request(r) for r in fetchall(cur)], total

    def list_between(self, employee_id: str, start: date, end: date) -> Sequence[OvertimeRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM overtime_requests
                WHERE employee_id=%s AND request_date>=%s AND request_date<=%s
                ORDER BY request_date
                """,
                (employee_id, start, end),
            )
            return [_to_request(r) for r in fetchall(cur)]
