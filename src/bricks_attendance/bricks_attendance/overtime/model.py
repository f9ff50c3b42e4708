from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import OvertimeStatus, ReportPeriod


@dataclass(frozen=True)
class OvertimeRequest:
    """Hours an employee asks to work beyond the day's schedule, pending a manager's decision."""

    request_id: int
    employee_id: str
    request_date: date
    hours_requested: Decimal
    reason: str
    status: OvertimeStatus = OvertimeStatus.PENDING
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == OvertimeStatus.PENDING

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "employee_id": self.employee_id,
            "request_date": self.request_date,
            "hours_requested": self.hours_requested,
            "reason": self.reason,
            "status": self.status.value,
            "reviewed_by": self.reviewed_by,
            "reviewed_at": self.reviewed_at,
            "review_notes": self.review_notes,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class OvertimeFilter:
    employee_id: Optional[str] = None
    status: Optional[OvertimeStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass(frozen=True)
class OvertimeStats:
    employee_id: str
    period: ReportPeriod
    start_date: date
    end_date: date
    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    approved_hours: Decimal = Decimal("0.00")

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "period": self.period.value,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "statistics": {
                "total_requests": self.total,
                "pending_requests": self.pending,
                "approved_requests": self.approved,
                "rejected_requests": self.rejected,
                "approved_hours": self.approved_hours,
            },
        }
