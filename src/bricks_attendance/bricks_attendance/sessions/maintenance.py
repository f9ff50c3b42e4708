from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from ..common.datetime_utils import now_local
from .model import MaintenanceResult
from .repository import SessionRepository

logger = logging.getLogger(__name__)

JOB_ID = "session_maintenance"


class SessionMaintenance:
    """Housekeeping for the sessions table.

    Expired rows are marked inactive, and rows expired for longer than the
    retention window are deleted. Sessions are never reactivated or extended.
    """

    def __init__(self, sessions: SessionRepository, *, retention_days: int = 30):
        self._sessions = sessions
        self._retention = timedelta(days=int(retention_days))

    def run_once(self, *, now: Optional[datetime] = None) -> MaintenanceResult:
        now = now or now_local()
        expired = self._sessions.deactivate_expired(now=now)
        purged = self._sessions.purge_expired_before(now - self._retention)
        if expired or purged:
            logger.info("Session maintenance: %d expired, %d purged", expired, purged)
        return MaintenanceResult(expired_deactivated=expired, purged=purged)


def _run_job(maintenance: SessionMaintenance) -> None:
    try:
        maintenance.run_once()
    except Exception:
        # keep the scheduler alive; next tick retries
        logger.exception("Session maintenance failed")


def start_maintenance_scheduler(
    maintenance: SessionMaintenance,
    *,
    interval_minutes: int = 30,
    scheduler_factory: Callable[..., BackgroundScheduler] = BackgroundScheduler,
) -> BackgroundScheduler:
    scheduler = scheduler_factory(
        job_defaults={
            "coalesce": True,
            "max_instances": 1,
            "misfire_grace_time": 60,
        }
    )
    scheduler.add_job(
        _run_job,
        "interval",
        minutes=int(interval_minutes),
        args=[maintenance],
        id=JOB_ID,
        replace_existing=True,
        next_run_time=now_local(),
    )
    scheduler.start()
    logger.info("Session maintenance scheduled every %d minutes", interval_minutes)
    return scheduler
