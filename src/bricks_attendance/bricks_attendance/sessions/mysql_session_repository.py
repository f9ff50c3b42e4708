from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_datetime, db_cursor, fetchall, fetchone
from .model import Session
from .repository import SessionRepository

_COLUMNS = """
    session_id, account_id, employee_id, token_hash, created_at, expires_at,
    is_active, remember_me, ip_address, user_agent, revoked_at
"""


def _to_session(row: dict) -> Session:
    return Session(
        session_id=int(row["session_id"]),
        account_id=int(row["account_id"]),
        employee_id=row["employee_id"],
        token_hash=row["token_hash"],
        created_at=as_datetime(row["created_at"]),
        expires_at=as_datetime(row["expires_at"]),
        is_active=bool(row["is_active"]),
        remember_me=bool(row.get("remember_me", False)),
        ip_address=row.get("ip_address"),
        user_agent=row.get("user_agent"),
        revoked_at=as_datetime(row.get("revoked_at")),
    )


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        account_id: int,
        employee_id: str,
        token_hash: str,
        created_at: datetime,
        expires_at: datetime,
        remember_me: bool = False,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO sessions(account_id, employee_id, token_hash, created_at, expires_at,
                                     is_active, remember_me, ip_address, user_agent)
                VALUES(%s,%s,%s,%s,%s,1,%s,%s,%s)
                """,
                (
                    account_id,
                    employee_id,
                    token_hash,
                    created_at,
                    expires_at,
                    int(remember_me),
                    ip_address,
                    (user_agent or "")[:255] or None,
                ),
            )
            return int(cur.lastrowid)

    def get_by_token_hash(self, token_hash: str) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM sessions WHERE token_hash=%s", (token_hash,))
            row = fetchone(cur)
            return _to_session(row) if row else None

    def deactivate(self, session_id: int, *, now: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE sessions SET is_active=0, revoked_at=%s WHERE session_id=%s AND is_active=1",
                (now, session_id),
            )
            return cur.rowcount > 0

    def deactivate_for_account(self, account_id: int, *, now: datetime, keep_session_id: Optional[int] = None) -> int:
        sql = "UPDATE sessions SET is_active=0, revoked_at=%s WHERE account_id=%s AND is_active=1"
        params: list = [now, account_id]
        if keep_session_id is not None:
            sql += " AND session_id<>%s"
            params.append(keep_session_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return int(cur.rowcount)

    def list_for_employee(self, employee_id: str, *, limit: int = 50) -> Sequence[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM sessions WHERE employee_id=%s ORDER BY created_at DESC LIMIT %s",
                (employee_id, int(limit)),
            )
            return [_to_session(r) for r in fetchall(cur)]

    def deactivate_expired(self, *, now: datetime) -> int:
        # Only touches rows that are still active and already past expiry
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE sessions SET is_active=0, revoked_at=%s WHERE is_active=1 AND expires_at<=%s",
                (now, now),
            )
            return int(cur.rowcount)

    def purge_expired_before(self, cutoff: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM sessions WHERE expires_at<%s", (cutoff,))
            return int(cur.rowcount)
