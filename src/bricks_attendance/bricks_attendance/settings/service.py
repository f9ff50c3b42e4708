from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from ..common.datetime_utils import parse_hhmm
from ..core.enums import SettingType
from ..core.exceptions import NotFoundError, ValidationError
from .model import AttendancePolicy, PayrollPolicy, Setting
from .repository import SettingsRepository

logger = logging.getLogger(__name__)

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def normalize_setting_value(value_type: SettingType, value: Any) -> str:
    """Validate ``value`` against the declared type and return its stored form."""

    if value is None:
        raise ValidationError("value is required")
    text = str(value).strip()

    if value_type == SettingType.NUMBER:
        try:
            number = Decimal(text)
        except InvalidOperation:
            raise ValidationError("value must be a number")
        if not number.is_finite() or number < 0:
            raise ValidationError("value must be a non-negative number")
        return format(number.normalize(), "f")

    if value_type == SettingType.BOOLEAN:
        lowered = text.lower()
        if lowered in _TRUE:
            return "true"
        if lowered in _FALSE:
            return "false"
        raise ValidationError("value must be a boolean")

    if value_type == SettingType.TIME:
        try:
            return parse_hhmm(text).strftime("%H:%M")
        except ValueError:
            raise ValidationError("value must be a HH:MM time")

    if not text:
        raise ValidationError("value must not be empty")
    return text


class SettingsService:
    """System-wide settings plus the typed policies derived from them.

    Missing or unparsable rows fall back to built-in defaults.
    """

    def __init__(self, settings: SettingsRepository):
        self._settings = settings

    def get_all(self, *, category: Optional[str] = None) -> list[Setting]:
        rows = list(self._settings.list_all())
        if category:
            rows = [s for s in rows if s.category == category]
        return rows

    def get(self, key: str) -> Setting:
        setting = self._settings.get(key)
        if not setting:
            raise NotFoundError(f"Setting {key!r} not found")
        return setting

    def update(self, key: str, value: Any) -> Setting:
        setting = self.get(key)
        stored = normalize_setting_value(setting.value_type, value)
        self._settings.update_value(key, stored)
        logger.info("Setting %s changed from %r to %r", key, setting.value, stored)
        return self.get(key)

    def _values(self) -> dict[str, str]:
        return {s.key: s.value for s in self._settings.list_all()}

    def attendance_policy(self) -> AttendancePolicy:
        values = self._values()
        default = AttendancePolicy()
        return AttendancePolicy(
            work_start=_read(values, "work_start_time", parse_hhmm, default.work_start),
            late_grace_minutes=_read(values, "late_grace_minutes", _as_int, default.late_grace_minutes),
            break_minutes=_read(values, "break_minutes", _as_int, default.break_minutes),
            standard_hours=_read(values, "working_hours_per_day", Decimal, default.standard_hours),
            overtime_threshold=_read(values, "overtime_threshold", Decimal, default.overtime_threshold),
        )

    def payroll_policy(self) -> PayrollPolicy:
        values = self._values()
        default = PayrollPolicy()
        return PayrollPolicy(
            overtime_multiplier=_read(values, "overtime_multiplier", Decimal, default.overtime_multiplier),
            tax_rate=_read(values, "tax_rate", Decimal, default.tax_rate),
            default_hourly_rate=_read(values, "default_hourly_rate", Decimal, default.default_hourly_rate),
        )


def _as_int(value: str) -> int:
    return int(Decimal(value))


def _read(values: dict[str, str], key: str, parse, default):
    raw = values.get(key)
    if raw is None:
        return default
    try:
        return parse(raw)
    except (ValueError, ArithmeticError):
        logger.warning("Ignoring invalid setting %s=%r, using %r", key, raw, default)
        return default
