from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ...settings.model import AttendancePolicy
from ..model import WorkedHours
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Clock-in after work start plus grace."""

    def decide_checkin(self, *, now: datetime, policy: AttendancePolicy) -> StatusDecision:
        start = datetime.combine(now.date(), policy.work_start)
        minutes = int((now - start).total_seconds() // 60)
        return StatusDecision(status=AttendanceStatus.LATE, note=f"Late by {minutes} min")

    def decide_checkout(self, *, current: AttendanceStatus, worked: WorkedHours, policy: AttendancePolicy) -> StatusDecision:
        return StatusDecision(status=current)
