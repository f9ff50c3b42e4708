from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .accounts.controller import register as register_accounts
from .accounts.service import AuthPolicy
from .attendance.controller import register as register_attendance
from .common.http import ApiJSONProvider, ok, register_error_handlers, register_rate_limit
from .common.rate_limit import FixedWindowRateLimiter
from .container import Container, build_container
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_admin_account, list_tables
from .database.connection import DBConfig
from .employees.controller import register as register_employees
from .overtime.controller import register as register_overtime
from .payroll.controller import register as register_payroll
from .sessions.maintenance import start_maintenance_scheduler
from .settings.controller import register as register_settings

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def auth_policy_from(settings) -> AuthPolicy:
    return AuthPolicy(
        token_ttl_hours=int(getattr(settings, "TOKEN_TTL_HOURS", 24)),
        remember_me_days=int(getattr(settings, "REMEMBER_ME_DAYS", 30)),
        refresh_window_hours=int(getattr(settings, "REFRESH_WINDOW_HOURS", 2)),
        max_failed_logins=int(getattr(settings, "MAX_FAILED_LOGINS", 5)),
        lockout_minutes=int(getattr(settings, "LOCKOUT_MINUTES", 15)),
    )


def bootstrap_database(settings) -> None:
    db_config = getattr(settings, "DB_CONFIG")
    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
        logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
        ensure_admin_account(
            db_config,
            username=getattr(settings, "ADMIN_USERNAME", "admin"),
            password=getattr(settings, "ADMIN_PASSWORD", "admin123"),
            hash_method=getattr(settings, "PASSWORD_HASH_METHOD", "scrypt"),
        )
        logger.info("Seed data ready")


def create_app(container: Optional[Container] = None, *, settings_module: Optional[str] = None) -> Flask:
    """Application factory.

    Pass ``container`` to run on prebuilt services (tests); otherwise the
    MySQL-backed container is built from the active settings module.
    """

    load_dotenv(override=False)
    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app = Flask(__name__)
    app.json = ApiJSONProvider(app)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info("settings=%s db=%s", settings_module, DBConfig.from_dict(db_config).describe())
        bootstrap_database(settings)
        container = build_container(
            db_config=db_config,
            jwt_secret=getattr(settings, "JWT_SECRET"),
            hash_method=getattr(settings, "PASSWORD_HASH_METHOD", "scrypt"),
            auth_policy=auth_policy_from(settings),
            session_retention_days=int(getattr(settings, "SESSION_RETENTION_DAYS", 30)),
        )
    app.extensions["container"] = container

    register_error_handlers(app)
    register_rate_limit(
        app,
        FixedWindowRateLimiter(
            limit=int(getattr(settings, "RATE_LIMIT_REQUESTS", 30)),
            window_seconds=int(getattr(settings, "RATE_LIMIT_WINDOW_SECONDS", 60)),
        ),
    )

    @app.route("/api/health", methods=["GET"], endpoint="health")
    def health():
        return ok({"status": "ok"})

    register_accounts(app, container)
    register_employees(app, container)
    register_attendance(app, container)
    register_payroll(app, container)
    register_overtime(app, container)
    register_settings(app, container)

    if bool(getattr(settings, "SESSION_MAINTENANCE_ENABLED", False)) and not app.config["TESTING"]:
        app.extensions["scheduler"] = start_maintenance_scheduler(
            container.session_maintenance,
            interval_minutes=int(getattr(settings, "SESSION_MAINTENANCE_MINUTES", 30)),
        )

    return app
