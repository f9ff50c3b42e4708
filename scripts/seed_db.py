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

from src.bricks_attendance.bricks_attendance.database.bootstrap import apply_seed_sql, ensure_admin_account
from src.bricks_attendance.bricks_attendance.database.connection import DBConfig


def main() -> None:
    load_dotenv(override=False)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
    ensure_admin_account(
        db_config,
        username=settings.ADMIN_USERNAME,
        password=settings.ADMIN_PASSWORD,
        hash_method=settings.PASSWORD_HASH_METHOD,
    )

    print(f"OK: Seeded settings and admin account -> {DBConfig.from_dict(db_config).describe()}")


if __name__ == "__main__":
    main()
