from __future__ import annotations

import logging
import re
from datetime import date
from pathlib import Path
from typing import Iterable

import mysql.connector
from werkzeug.security import generate_password_hash

from .connection import DBConfig

logger = logging.getLogger(__name__)

ADMIN_EMPLOYEE_ID = "EMP000"


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_comments(sql: str) -> str:
    return "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))


def iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a script on ``;`` while ignoring separators inside quotes."""

    buf: list[str] = []
    quote: str | None = None
    escape = False

    for ch in sql:
        if escape:
            buf.append(ch)
            escape = False
            continue

        if ch == "\\" and quote:
            buf.append(ch)
            escape = True
            continue

        if ch in ("'", '"'):
            if quote is None:
                quote = ch
            elif quote == ch:
                quote = None
            buf.append(ch)
            continue

        if ch == ";" and quote is None:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _connect(config: DBConfig, *, with_database: bool = True):
    kwargs = dict(host=config.host, port=config.port, user=config.user, password=config.password, use_pure=True)
    if with_database:
        kwargs["database"] = config.database
    return mysql.connector.connect(**kwargs)


def _run_script(config: DBConfig, path: Path) -> int:
    sql = _strip_comments(_strip_create_db_and_use(path.read_text(encoding="utf-8")))
    conn = _connect(config)
    count = 0
    try:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
            count += 1
        conn.commit()
    finally:
        conn.close()
    return count


def ensure_database_exists(db_config: dict) -> None:
    config = DBConfig.from_dict(db_config)
    conn = _connect(config, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    count = _run_script(DBConfig.from_dict(db_config), Path(schema_path))
    logger.info("Applied %d schema statements from %s", count, schema_path)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    count = _run_script(DBConfig.from_dict(db_config), Path(seed_path))
    logger.info("Applied %d seed statements from %s", count, seed_path)


def ensure_admin_account(db_config: dict, *, username: str, password: str, hash_method: str = "scrypt") -> None:
    """Make sure an admin employee and an active admin account exist.

    An existing account keeps its password; only its role and active flag are restored.
    """

    config = DBConfig.from_dict(db_config)
    conn = _connect(config)
    try:
        cur = conn.cursor(dictionary=True)

        cur.execute("SELECT employee_id FROM employees WHERE employee_id=%s", (ADMIN_EMPLOYEE_ID,))
        if not cur.fetchone():
            cur.execute(
                """
                INSERT INTO employees (employee_id, first_name, last_name, email, department, position, hire_date, status)
                VALUES (%s, 'System', 'Administrator', %s, 'Administration', 'Administrator', %s, 'active')
                """,
                (ADMIN_EMPLOYEE_ID, f"{username}@localhost", date.today()),
            )

        cur.execute("SELECT account_id FROM accounts WHERE username=%s", (username,))
        existing = cur.fetchone()
        if existing:
            cur.execute(
                "UPDATE accounts SET role='admin', is_active=1 WHERE account_id=%s",
                (existing["account_id"],),
            )
        else:
            cur.execute(
                """
                INSERT INTO accounts (employee_id, username, password_hash, role, is_active)
                VALUES (%s, %s, %s, 'admin', 1)
                """,
                (ADMIN_EMPLOYEE_ID, username, generate_password_hash(password, method=hash_method)),
            )
            logger.info("Created admin account %r", username)

        conn.commit()
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
