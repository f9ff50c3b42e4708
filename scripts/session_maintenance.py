"""Run one session housekeeping pass (e.g. from cron instead of the in-app scheduler)."""

from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.bricks_attendance.bricks_attendance.database.connection import DBConfig, DatabaseConnection
from src.bricks_attendance.bricks_attendance.sessions.maintenance import SessionMaintenance
from src.bricks_attendance.bricks_attendance.sessions.mysql_session_repository import MySQLSessionRepository


def main() -> None:
    load_dotenv(override=False)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    settings = importlib.import_module(get_settings_module())

    conn = DatabaseConnection(DBConfig.from_dict(settings.DB_CONFIG))
    maintenance = SessionMaintenance(
        MySQLSessionRepository(conn),
        retention_days=int(getattr(settings, "SESSION_RETENTION_DAYS", 30)),
    )
    result = maintenance.run_once()
    print(f"OK: {result.expired_deactivated} sessions expired, {result.purged} purged")


if __name__ == "__main__":
    main()
