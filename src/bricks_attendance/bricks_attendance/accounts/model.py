from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import EmployeeStatus, Role


@dataclass(frozen=True)
class Account:
    """Login credentials bound one-to-one to an employee.

    Note: Plain data object, no DB access here.
    """

    account_id: int
    employee_id: str
    username: str
    password_hash: str
    role: Role
    is_active: bool = True
    failed_login_attempts: int = 0
    locked_until: Optional[datetime] = None
    last_login: Optional[datetime] = None

    def is_locked(self, now: datetime) -> bool:
        return self.locked_until is not None and self.locked_until > now


@dataclass(frozen=True)
class AccountProfile:
    """Account joined with the employee fields shown to API clients."""

    account_id: int
    employee_id: str
    username: str
    role: Role
    first_name: str
    last_name: str
    email: str
    department: str
    position: str
    employee_status: EmployeeStatus = EmployeeStatus.ACTIVE
    is_active: bool = True
    last_login: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def has_role(self, *roles: Role) -> bool:
        return self.role in roles

    def to_dict(self) -> dict:
        return {
            "account_id": self.account_id,
            "employee_id": self.employee_id,
            "username": self.username,
            "role": self.role.value,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "full_name": self.full_name,
            "email": self.email,
            "department": self.department,
            "position": self.position,
            "last_login": self.last_login,
        }


@dataclass(frozen=True)
class LoginResult:
    token: str
    profile: AccountProfile
    expires_at: datetime
    expires_in: int

    def to_dict(self) -> dict:
        return {
            "token": self.token,
            "user": self.profile.to_dict(),
            "expires_at": self.expires_at,
            "expires_in": self.expires_in,
        }


@dataclass(frozen=True)
class RefreshResult:
    refreshed: bool
    token: Optional[str]
    expires_at: datetime
    seconds_until_expiry: int

    def to_dict(self) -> dict:
        return {
            "refreshed": self.refreshed,
            "token": self.token,
            "expires_at": self.expires_at,
            "seconds_until_expiry": self.seconds_until_expiry,
        }
