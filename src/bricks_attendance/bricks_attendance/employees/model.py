from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import EmployeeStatus, EmploymentType, Role

# Columns a partial update may touch
UPDATABLE_COLUMNS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "department",
    "position",
    "hire_date",
    "hourly_rate",
    "employment_type",
    "status",
)


@dataclass(frozen=True)
class Employee:
    """Domain entity: employee record. Never hard-deleted."""

    employee_id: str
    first_name: str
    last_name: str
    email: str
    department: str
    position: str
    hire_date: date
    hourly_rate: Decimal
    employment_type: EmploymentType = EmploymentType.FULL_TIME
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    phone: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_active(self) -> bool:
        return self.status == EmployeeStatus.ACTIVE

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "department": self.department,
            "position": self.position,
            "hire_date": self.hire_date,
            "hourly_rate": self.hourly_rate,
            "employment_type": self.employment_type.value,
            "status": self.status.value,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class NewAccount:
    username: str
    password_hash: str
    role: Role = Role.EMPLOYEE


@dataclass(frozen=True)
class CreatedEmployee:
    """Result of employee creation. ``password`` is the plain initial password, shown once."""

    employee: Employee
    username: str
    password: str
    role: Role

    def to_dict(self) -> dict:
        return {
            "employee": self.employee.to_dict(),
            "account": {"username": self.username, "password": self.password, "role": self.role.value},
        }


@dataclass(frozen=True)
class EmployeeFilter:
    status: Optional[EmployeeStatus] = None
    department: Optional[str] = None
    position: Optional[str] = None
    search: Optional[str] = None


@dataclass(frozen=True)
class EmployeeOverview:
    total_active: int
    by_department: dict[str, int] = field(default_factory=dict)
    recent_hires: int = 0

    def to_dict(self) -> dict:
        return {
            "total_active": self.total_active,
            "by_department": [{"department": k, "count": v} for k, v in sorted(self.by_department.items())],
            "recent_hires": self.recent_hires,
        }
