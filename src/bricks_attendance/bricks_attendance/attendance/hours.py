from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from ..common.money import round2
from ..core.constants import DEFAULT_STANDARD_HOURS
from .model import WorkedHours

_SECONDS_PER_HOUR = Decimal(3600)


def compute_hours(
    time_in: datetime,
    time_out: datetime,
    *,
    break_minutes: int = 0,
    overtime_threshold: Decimal = DEFAULT_STANDARD_HOURS,
) -> WorkedHours:
    """(out - in) - break, not below 0; hours above the threshold are overtime."""
    seconds = int((time_out - time_in).total_seconds()) - int(break_minutes or 0) * 60
    worked = round2(Decimal(max(seconds, 0)) / _SECONDS_PER_HOUR)
    overtime = round2(max(worked - Decimal(overtime_threshold), Decimal("0")))
    return WorkedHours(hours_worked=worked, overtime_hours=overtime)
