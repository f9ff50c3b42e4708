from __future__ import annotations

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, TypeVar

from ..core.constants import EMPLOYEE_ID_PATTERN
from ..core.exceptions import ValidationError
from .datetime_utils import parse_iso_date

E = TypeVar("E", bound=Enum)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_EMPLOYEE_ID_RE = re.compile(EMPLOYEE_ID_PATTERN)
_ID_NOISE_RE = re.compile(r"[\s_\-]")


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_password(value: Any, field_name: str = "password", *, min_len: Optional[int] = None) -> str:
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required")
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    if min_len is not None and len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_email(value: Optional[str], field_name: str = "email") -> str:
    value = require_non_empty(value, field_name).lower()
    if not _EMAIL_RE.match(value):
        raise ValidationError(f"{field_name} is not a valid email address")
    return value


def require_date(value: Any, field_name: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return parse_iso_date(require_non_empty(value, field_name))
    except ValueError:
        raise ValidationError(f"{field_name} must be a YYYY-MM-DD date")


def require_decimal(value: Any, field_name: str, *, minimum: Optional[Decimal] = Decimal("0")) -> Decimal:
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required")
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{field_name} must be a number")
    if not number.is_finite():
        raise ValidationError(f"{field_name} must be a number")
    if minimum is not None and number < minimum:
        raise ValidationError(f"{field_name} must be >= {minimum}")
    return number


def normalize_employee_id(value: Any) -> str:
    """Bring an employee identifier into canonical ``EMP<digits>`` form.

    Legacy spellings such as ``emp_001`` or ``Emp-001`` collapse to ``EMP001``;
    anything that still does not match is rejected.
    """

    if value is None:
        raise ValidationError("employee_id is required")
    candidate = _ID_NOISE_RE.sub("", str(value)).upper()
    if not _EMPLOYEE_ID_RE.match(candidate):
        raise ValidationError(f"Invalid employee id: {value!r}")
    return candidate


def require_enum(enum_cls: type[E], value: Any, field_name: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}")
