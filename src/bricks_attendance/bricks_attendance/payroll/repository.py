from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import PayrollStatus
from .model import PayrollFigures, PayrollFilter, PayrollRecord


class PayrollRepository(Protocol):
    def get(self, payroll_id: int) -> Optional[PayrollRecord]:
        raise NotImplementedError

    def get_for_period(self, employee_id: str, start: date, end: date) -> Optional[PayrollRecord]:
        raise NotImplementedError

    def create(
        self,
        *,
        employee_id: str,
        start: date,
        end: date,
        figures: PayrollFigures,
        status: PayrollStatus = PayrollStatus.DRAFT,
        notes: Optional[str] = None,
    ) -> int:
        """Insert a record. A duplicate employee/period raises ``ConflictError``."""

        raise NotImplementedError

    def list(self, filters: PayrollFilter, *, offset: int, limit: int) -> tuple[Sequence[PayrollRecord], int]:
        raise NotImplementedError

    def update_status(self, payroll_id: int, status: PayrollStatus, *, processed_at: Optional[datetime]) -> bool:
        raise NotImplementedError

    def update_draft(self, payroll_id: int, figures: PayrollFigures, *, notes: Optional[str]) -> bool:
        """Replace figures and notes; only matches while the record is still a draft."""

        raise NotImplementedError

    def delete_draft(self, payroll_id: int) -> bool:
        raise NotImplementedError

    def latest_period_end(self) -> Optional[date]:
        raise NotImplementedError
