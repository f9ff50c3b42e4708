from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

import mysql.connector

from ..core.exceptions import ConflictError, NotFoundError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)

_DUP_KEY_RE = re.compile(r"for key '(?:[\w]+\.)?([\w]+)'")

ER_DUP_ENTRY = 1062
ER_NO_REFERENCED_ROW = 1452


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield ``(conn, cur)`` inside one transaction.

    Commits when the block exits normally, rolls back on any exception.
    """

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def translate_integrity_error(err: mysql.connector.IntegrityError, *, entity: str = "record") -> Exception:
    """Map a MySQL integrity failure to a domain error without leaking driver text."""

    errno = getattr(err, "errno", None)
    if errno == ER_NO_REFERENCED_ROW:
        return NotFoundError(f"Referenced {entity} does not exist")

    field = None
    match = _DUP_KEY_RE.search(str(getattr(err, "msg", "") or err))
    if match:
        field = _field_from_key(match.group(1))
    logger.info("Integrity conflict on %s (field=%s, errno=%s)", entity, field, errno)
    return ConflictError(f"{entity.capitalize()} already exists", field=field)


def _field_from_key(key_name: str) -> str:
    # Unique keys are named uq_<table>_<field> in schema.sql
    if key_name == "PRIMARY":
        return "id"
    parts = key_name.split("_")
    if parts[0] == "uq" and len(parts) >= 3:
        return "_".join(parts[2:])
    return key_name


def as_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0.00")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def as_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def build_where(clauses: list[str]) -> str:
    return ("WHERE " + " AND ".join(clauses)) if clauses else ""
