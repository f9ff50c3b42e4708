from __future__ import annotations

import logging
import re
import unicodedata
from datetime import datetime, timedelta
from typing import Any, Optional

from ..accounts.passwords import PasswordHasher
from ..accounts.repository import AccountRepository
from ..common.datetime_utils import now_local
from ..common.pagination import Page, page_params
from ..common.validators import (
    normalize_employee_id,
    require_date,
    require_decimal,
    require_email,
    require_enum,
    require_non_empty,
    require_password,
)
from ..core.constants import (
    DEFAULT_HOURLY_RATE,
    DEFAULT_PASSWORD_SUFFIX,
    EMPLOYEE_ID_PREFIX,
    MIN_PASSWORD_LENGTH,
    RECENT_HIRE_DAYS,
    USERNAME_RETRY_LIMIT,
)
from ..core.enums import EmployeeStatus, EmploymentType, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..settings.service import SettingsService
from .model import UPDATABLE_COLUMNS, CreatedEmployee, Employee, EmployeeFilter, EmployeeOverview, NewAccount
from .repository import EmployeeRepository

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_TEXT_FIELDS = ("first_name", "last_name", "department", "position")


def _ascii_slug(value: str) -> str:
    decomposed = unicodedata.normalize("NFKD", value or "")
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALNUM.sub("", stripped.lower())


def derive_username(first_name: str, last_name: str) -> str:
    """``"Erika Bianca"`` + ``"Api"`` -> ``"erikabiancaapi"``."""
    return _ascii_slug(f"{first_name}{last_name}") or "user"


def default_password(last_name: str) -> str:
    """Initial password: lower-cased last name followed by ``123``."""
    return (_ascii_slug(last_name) or "user") + DEFAULT_PASSWORD_SUFFIX


class EmployeeService:
    """Use cases: employee records and their login accounts."""

    def __init__(
        self,
        employees: EmployeeRepository,
        accounts: AccountRepository,
        *,
        hasher: Optional[PasswordHasher] = None,
        settings: Optional[SettingsService] = None,
    ):
        self._employees = employees
        self._accounts = accounts
        self._hasher = hasher or PasswordHasher()
        self._settings = settings

    def create_employee(
        self,
        *,
        first_name: str,
        last_name: str,
        email: str,
        department: str,
        position: str,
        hire_date: Any,
        phone: Optional[str] = None,
        hourly_rate: Any = None,
        employment_type: Any = None,
        role: Any = Role.EMPLOYEE,
        username: Optional[str] = None,
        password: Optional[str] = None,
        actor_role: Role = Role.ADMIN,
        now: Optional[datetime] = None,
    ) -> CreatedEmployee:
        """Create the employee and its login account.

        Only an administrator may hand out a role other than ``employee``.
        """
        now = now or now_local()
        first_name = require_non_empty(first_name, "first_name")
        last_name = require_non_empty(last_name, "last_name")
        email = require_email(email)
        department = require_non_empty(department, "department")
        position = require_non_empty(position, "position")
        hire_date = require_date(hire_date, "hire_date")
        role = require_enum(Role, role or Role.EMPLOYEE, "role")
        if role != Role.EMPLOYEE and actor_role != Role.ADMIN:
            raise AuthorizationError(f"Only administrators can grant the {role.value} role")
        employment_type = require_enum(EmploymentType, employment_type or EmploymentType.FULL_TIME, "employment_type")
        rate = require_decimal(hourly_rate, "hourly_rate") if hourly_rate not in (None, "") else self._default_rate()

        if self._employees.get_by_email(email):
            raise ConflictError("Email already exists", field="email")

        if username:
            username = require_non_empty(username, "username")
            if self._accounts.get_by_username(username):
                raise ConflictError("Username already exists", field="username")
        if password not in (None, ""):
            password = require_password(password, min_len=MIN_PASSWORD_LENGTH)
        else:
            password = default_password(last_name)
        password_hash = self._hasher.hash(password)

        for attempt in range(1, USERNAME_RETRY_LIMIT + 1):
            employee = Employee(
                employee_id=self._next_employee_id(now),
                first_name=first_name,
                last_name=last_name,
                email=email,
                phone=(phone or "").strip() or None,
                department=department,
                position=position,
                hire_date=hire_date,
                hourly_rate=rate,
                employment_type=employment_type,
                status=EmployeeStatus.ACTIVE,
                created_at=now,
                updated_at=now,
            )
            account_username = username or self._unique_username(first_name, last_name)
            try:
                self._employees.create_with_account(
                    employee,
                    NewAccount(username=account_username, password_hash=password_hash, role=role),
                )
            except ConflictError as e:
                retryable = e.field in ("employee_id", "id") or (e.field == "username" and not username)
                if not retryable:
                    raise
                logger.info("Create employee collided on %s, retry %d", e.field, attempt)
                continue

            logger.info("Created employee %s with account %r", employee.employee_id, account_username)
            return CreatedEmployee(employee=employee, username=account_username, password=password, role=role)

        raise ConflictError("Could not allocate a unique identifier, try again", field="username")

    def _default_rate(self):
        if self._settings is None:
            return DEFAULT_HOURLY_RATE
        return self._settings.payroll_policy().default_hourly_rate

    def _next_employee_id(self, now: datetime) -> str:
        prefix = f"{EMPLOYEE_ID_PREFIX}{now:%y}"
        return f"{prefix}{self._employees.max_sequence(prefix) + 1:04d}"

    def _unique_username(self, first_name: str, last_name: str) -> str:
        base = derive_username(first_name, last_name)
        taken = set(self._accounts.list_usernames_with_prefix(base))
        if base not in taken:
            return base
        n = 2
        while f"{base}{n}" in taken:
            n += 1
        return f"{base}{n}"

    def get_employee(self, employee_id: str) -> Employee:
        employee = self._employees.get_by_id(normalize_employee_id(employee_id))
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def list_employees(
        self,
        *,
        status: Any = None,
        department: Optional[str] = None,
        position: Optional[str] = None,
        search: Optional[str] = None,
        page: Any = None,
        limit: Any = None,
    ) -> Page[Employee]:
        page_i, limit_i = page_params(page, limit)
        filters = EmployeeFilter(
            status=require_enum(EmployeeStatus, status, "status") if status else None,
            department=(department or "").strip() or None,
            position=(position or "").strip() or None,
            search=(search or "").strip() or None,
        )
        items, total = self._employees.list(filters, offset=(page_i - 1) * limit_i, limit=limit_i)
        return Page(items=items, total=total, page=page_i, limit=limit_i)

    def update_employee(
        self,
        employee_id: str,
        patch: dict[str, Any],
        *,
        actor_role: Role = Role.ADMIN,
        now: Optional[datetime] = None,
    ) -> Employee:
        """Partial update. Unknown keys are ignored; an empty patch is rejected.

        Changing ``status`` is reserved to administrators. Leaving ``active``
        deactivates the account and its sessions together with the other fields.
        """
        if "status" in patch and actor_role != Role.ADMIN:
            raise AuthorizationError("Only administrators can change employee status")
        current = self.get_employee(employee_id)

        fields: dict[str, Any] = {}
        for key in UPDATABLE_COLUMNS:
            if key not in patch:
                continue
            value = patch[key]
            if key in _TEXT_FIELDS:
                fields[key] = require_non_empty(value, key)
            elif key == "email":
                email = require_email(value)
                other = self._employees.get_by_email(email)
                if other and other.employee_id != current.employee_id:
                    raise ConflictError("Email already exists", field="email")
                fields[key] = email
            elif key == "phone":
                fields[key] = (str(value).strip() if value is not None else "") or None
            elif key == "hire_date":
                fields[key] = require_date(value, key)
            elif key == "hourly_rate":
                fields[key] = require_decimal(value, key)
            elif key == "employment_type":
                fields[key] = require_enum(EmploymentType, value, key)
            elif key == "status":
                fields[key] = require_enum(EmployeeStatus, value, key)

        if not fields:
            raise ValidationError("No updatable fields supplied")

        if fields.get("status") == current.status:
            del fields["status"]
        if fields:
            self._employees.update(current.employee_id, fields, now=now or now_local())

        logger.info("Updated employee %s (%s)", current.employee_id, ", ".join(sorted(patch.keys() & set(UPDATABLE_COLUMNS))))
        return self.get_employee(current.employee_id)

    def soft_delete_employee(
        self,
        employee_id: str,
        *,
        status: Any = EmployeeStatus.INACTIVE,
        now: Optional[datetime] = None,
    ) -> Employee:
        """Deactivate the employee, its account and sessions. Attendance history stays."""
        now = now or now_local()
        status = require_enum(EmployeeStatus, status, "status")
        if status == EmployeeStatus.ACTIVE:
            raise ValidationError("status must be inactive or terminated")

        employee_id = normalize_employee_id(employee_id)
        if not self._employees.soft_delete(employee_id, status=status, now=now):
            raise NotFoundError("Employee not found")
        logger.info("Employee %s marked %s", employee_id, status.value)
        return self.get_employee(employee_id)

    def employee_overview(self, *, now: Optional[datetime] = None) -> EmployeeOverview:
        now = now or now_local()
        return self._employees.overview(hired_since=now.date() - timedelta(days=RECENT_HIRE_DAYS))
