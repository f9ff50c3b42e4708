from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from decimal import Decimal
from typing import Optional

from ..core.constants import (
    DEFAULT_BREAK_MINUTES,
    DEFAULT_HOURLY_RATE,
    DEFAULT_LATE_GRACE_MINUTES,
    DEFAULT_OVERTIME_MULTIPLIER,
    DEFAULT_STANDARD_HOURS,
    DEFAULT_TAX_RATE,
)
from ..core.enums import SettingType


@dataclass(frozen=True)
class Setting:
    key: str
    value: str
    value_type: SettingType = SettingType.STRING
    category: str = "general"
    description: Optional[str] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "value": self.value,
            "type": self.value_type.value,
            "category": self.category,
            "description": self.description,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class AttendancePolicy:
    work_start: time = time(9, 0)
    late_grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES
    break_minutes: int = DEFAULT_BREAK_MINUTES
    standard_hours: Decimal = DEFAULT_STANDARD_HOURS
    overtime_threshold: Decimal = DEFAULT_STANDARD_HOURS


@dataclass(frozen=True)
class PayrollPolicy:
    overtime_multiplier: Decimal = DEFAULT_OVERTIME_MULTIPLIER
    tax_rate: Decimal = DEFAULT_TAX_RATE
    default_hourly_rate: Decimal = DEFAULT_HOURLY_RATE
