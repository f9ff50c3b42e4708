from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import SettingType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_datetime, db_cursor, fetchall, fetchone
from .model import Setting
from .repository import SettingsRepository

_COLUMNS = "setting_key, setting_value, value_type, category, description, updated_at"


def _to_setting(row: dict) -> Setting:
    return Setting(
        key=row["setting_key"],
        value=str(row["setting_value"]),
        value_type=SettingType(row.get("value_type") or SettingType.STRING.value),
        category=row.get("category") or "general",
        description=row.get("description"),
        updated_at=as_datetime(row.get("updated_at")),
    )


class MySQLSettingsRepository(SettingsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Setting]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM settings ORDER BY category, setting_key")
            return [_to_setting(r) for r in fetchall(cur)]

    def get(self, key: str) -> Optional[Setting]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM settings WHERE setting_key=%s", (key,))
            row = fetchone(cur)
            return _to_setting(row) if row else None

    def update_value(self, key: str, value: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE settings SET setting_value=%s WHERE setting_key=%s", (value, key))
            return cur.rowcount > 0
