from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from ..core.enums import AttendanceStatus
from ..settings.model import AttendancePolicy
from .model import WorkedHours
from .strategies.base import AttendanceStrategy
from .strategies.half_day_strategy import HalfDayStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_checkin(self, *, now: datetime, policy: AttendancePolicy) -> AttendanceStrategy:
        start = datetime.combine(now.date(), policy.work_start)
        if now <= start + timedelta(minutes=policy.late_grace_minutes):
            return NormalStrategy()
        return LateStrategy()

    def for_checkout(self, *, current: AttendanceStatus, worked: WorkedHours, policy: AttendancePolicy) -> AttendanceStrategy:
        if current == AttendanceStatus.PRESENT and worked.hours_worked < policy.standard_hours / 2:
            return HalfDayStrategy()
        return NormalStrategy()
