from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import EmployeeStatus, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_datetime, db_cursor, fetchall, fetchone
from .model import Account, AccountProfile
from .repository import AccountRepository

_ACCOUNT_COLUMNS = """
    account_id, employee_id, username, password_hash, role, is_active,
    failed_login_attempts, locked_until, last_login
"""


def _to_account(row: dict) -> Account:
    return Account(
        account_id=int(row["account_id"]),
        employee_id=row["employee_id"],
        username=row["username"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        is_active=bool(row.get("is_active", True)),
        failed_login_attempts=int(row.get("failed_login_attempts") or 0),
        locked_until=as_datetime(row.get("locked_until")),
        last_login=as_datetime(row.get("last_login")),
    )


class MySQLAccountRepository(AccountRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, value) -> Optional[Account]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE {where}=%s", (value,))
            row = fetchone(cur)
            return _to_account(row) if row else None

    def get_by_id(self, account_id: int) -> Optional[Account]:
        return self._get_one("account_id", account_id)

    def get_by_username(self, username: str) -> Optional[Account]:
        return self._get_one("username", username)

    def get_by_employee_id(self, employee_id: str) -> Optional[Account]:
        return self._get_one("employee_id", employee_id)

    def get_profile(self, account_id: int) -> Optional[AccountProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT a.account_id, a.employee_id, a.username, a.role, a.is_active, a.last_login,
                       e.first_name, e.last_name, e.email, e.department, e.position, e.status
                FROM accounts a
                JOIN employees e ON e.employee_id = a.employee_id
                WHERE a.account_id=%s
                """,
                (account_id,),
            )
            row = fetchone(cur)
            if not row:
                return None
            return AccountProfile(
                account_id=int(row["account_id"]),
                employee_id=row["employee_id"],
                username=row["username"],
                role=Role(row["role"]),
                first_name=row["first_name"],
                last_name=row["last_name"],
                email=row["email"],
                department=row["department"],
                position=row["position"],
                employee_status=EmployeeStatus(row["status"]),
                is_active=bool(row["is_active"]),
                last_login=as_datetime(row.get("last_login")),
            )

    def list_usernames_with_prefix(self, prefix: str) -> Sequence[str]:
        escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT username FROM accounts WHERE username LIKE %s", (escaped + "%",))
            return [r["username"] for r in fetchall(cur)]

    def record_failed_login(self, account_id: int, *, attempts: int, locked_until: Optional[datetime]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE accounts SET failed_login_attempts=%s, locked_until=%s WHERE account_id=%s",
                (attempts, locked_until, account_id),
            )

    def record_successful_login(self, account_id: int, *, now: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE accounts
                SET failed_login_attempts=0, locked_until=NULL, last_login=%s
                WHERE account_id=%s
                """,
                (now, account_id),
            )

    def update_password(self, account_id: int, password_hash: str, *, now: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE accounts
                SET password_hash=%s, password_changed_at=%s, failed_login_attempts=0, locked_until=NULL
                WHERE account_id=%s
                """,
                (password_hash, now, account_id),
            )
            return cur.rowcount > 0
