from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import OvertimeStatus
from .model import OvertimeFilter, OvertimeRequest


class OvertimeRepository(Protocol):
    def get(self, request_id: int) -> Optional[OvertimeRequest]:
        raise NotImplementedError

    def find_pending(self, employee_id: str, request_date: date) -> Optional[OvertimeRequest]:
        raise NotImplementedError

    def create(
        self,
        *,
        employee_id: str,
        request_date: date,
        hours_requested: Decimal,
        reason: str,
        created_at: datetime,
    ) -> int:
        """Insert a pending request. A second pending one for the same day raises ``ConflictError``."""

        raise NotImplementedError

    def delete_pending(self, request_id: int) -> bool:
        raise NotImplementedError

    def review(
        self,
        request_id: int,
        *,
        status: OvertimeStatus,
        reviewed_by: str,
        reviewed_at: datetime,
        notes: Optional[str] = None,
    ) -> bool:
        """Record the decision. Matches only while the request is still pending."""

        raise NotImplementedError

    def list(self, filters: OvertimeFilter, *, offset: int, limit: int) -> tuple[Sequence[OvertimeRequest], int]:
        raise NotImplementedError

    def list_between(self, employee_id: str, start: date, end: date) -> Sequence[OvertimeRequest]:
        raise NotImplementedError
