from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional, Protocol, Sequence

from ..core.enums import EmployeeStatus
from .model import Employee, EmployeeFilter, EmployeeOverview, NewAccount


class EmployeeRepository(Protocol):
    def get_by_id(self, employee_id: str) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Employee]:
        raise NotImplementedError

    def list(self, filters: EmployeeFilter, *, offset: int, limit: int) -> tuple[Sequence[Employee], int]:
        """Return one page of employees and the total match count."""

        raise NotImplementedError

    def list_active_ids(self) -> Sequence[str]:
        raise NotImplementedError

    def max_sequence(self, prefix: str) -> int:
        """Highest numeric suffix among ids starting with ``prefix`` (0 if none)."""

        raise NotImplementedError

    def create_with_account(self, employee: Employee, account: NewAccount) -> None:
        """Insert the employee and its account atomically.

        Raises ``ConflictError`` (with ``field``) on a uniqueness violation,
        leaving neither row behind.
        """

        raise NotImplementedError

    def update(self, employee_id: str, fields: dict[str, Any], *, now: datetime) -> bool:
        """Apply ``fields`` in one transaction.

        A ``status`` change also flips the account: back to active, or inactive
        with every session revoked at ``now``.
        """

        raise NotImplementedError

    def soft_delete(self, employee_id: str, *, status: EmployeeStatus, now: datetime) -> bool:
        """Set ``status``, deactivate the account and all its sessions in one transaction."""

        raise NotImplementedError

    def overview(self, *, hired_since: date) -> EmployeeOverview:
        raise NotImplementedError
