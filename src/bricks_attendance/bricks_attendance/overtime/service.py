from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from ..common.datetime_utils import now_local, period_bounds
from ..common.money import round2
from ..common.pagination import Page, page_params
from ..common.validators import normalize_employee_id, require_date, require_decimal, require_enum, require_non_empty
from ..core.constants import MAX_OVERTIME_HOURS_PER_REQUEST
from ..core.enums import OvertimeStatus, ReportPeriod
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from .model import OvertimeFilter, OvertimeRequest, OvertimeStats
from .repository import OvertimeRepository

logger = logging.getLogger(__name__)


def _pending_conflict() -> ConflictError:
    return ConflictError("A pending overtime request already exists for this date", field="request_date")


def _not_pending(action: str) -> ConflictError:
    return ConflictError(f"Only pending overtime requests can be {action}", field="status", code="OVERTIME_NOT_PENDING")


class OvertimeService:
    """Use cases: overtime requests and their approval by managers."""

    def __init__(self, requests: OvertimeRepository, employees: EmployeeRepository):
        self._requests = requests
        self._employees = employees

    def _employee(self, employee_id: str) -> Employee:
        employee = self._employees.get_by_id(normalize_employee_id(employee_id))
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def submit_request(
        self,
        employee_id: str,
        *,
        request_date: Any,
        hours_requested: Any,
        reason: Any,
        now: Optional[datetime] = None,
    ) -> OvertimeRequest:
        now = now or now_local()
        employee = self._employee(employee_id)
        if not employee.is_active:
            raise ValidationError("Employee is not active")

        request_date = require_date(request_date, "request_date")
        hours = require_decimal(hours_requested, "hours_requested")
        if hours <= 0 or hours > MAX_OVERTIME_HOURS_PER_REQUEST:
            raise ValidationError(f"hours_requested must be above 0 and at most {MAX_OVERTIME_HOURS_PER_REQUEST}")
        reason = require_non_empty(reason, "reason")[:500]

        if self._requests.find_pending(employee.employee_id, request_date):
            raise _pending_conflict()
        try:
            request_id = self._requests.create(
                employee_id=employee.employee_id,
                request_date=request_date,
                hours_requested=round2(hours),
                reason=reason,
                created_at=now,
            )
        except ConflictError:
            raise _pending_conflict() from None

        logger.info("Overtime request %s: %s asks %sh on %s", request_id, employee.employee_id, hours, request_date)
        return self.get_request(request_id)

    def get_request(self, request_id: int) -> OvertimeRequest:
        request = self._requests.get(int(request_id))
        if not request:
            raise NotFoundError("Overtime request not found")
        return request

    def list_requests(
        self,
        *,
        employee_id: Optional[str] = None,
        status: Any = None,
        start_date: Any = None,
        end_date: Any = None,
        page: Any = None,
        limit: Any = None,
    ) -> Page[OvertimeRequest]:
        page_i, limit_i = page_params(page, limit)
        filters = OvertimeFilter(
            employee_id=normalize_employee_id(employee_id) if employee_id else None,
            status=require_enum(OvertimeStatus, status, "status") if status else None,
            start_date=require_date(start_date, "start_date") if start_date else None,
            end_date=require_date(end_date, "end_date") if end_date else None,
        )
        items, total = self._requests.list(filters, offset=(page_i - 1) * limit_i, limit=limit_i)
        return Page(items=items, total=total, page=page_i, limit=limit_i)

    def cancel_request(self, request_id: int, *, employee_id: str) -> OvertimeRequest:
        """Withdraw one's own pending request. Someone else's request reads as not found."""
        request = self.get_request(request_id)
        if request.employee_id != normalize_employee_id(employee_id):
            raise NotFoundError("Overtime request not found")
        if not request.is_pending or not self._requests.delete_pending(request.request_id):
            raise _not_pending("cancelled")

        logger.info("Overtime request %s cancelled by %s", request.request_id, request.employee_id)
        return request

    def review_request(
        self,
        request_id: int,
        status: Any,
        *,
        reviewer_id: str,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> OvertimeRequest:
        now = now or now_local()
        status = require_enum(OvertimeStatus, status, "status")
        if status == OvertimeStatus.PENDING:
            raise ValidationError("status must be approved or rejected")

        request = self.get_request(request_id)
        reviewer_id = normalize_employee_id(reviewer_id)
        if request.employee_id == reviewer_id:
            raise AuthorizationError("You cannot review your own overtime request")
        if not request.is_pending:
            raise _not_pending("reviewed")

        notes = (str(notes).strip() if notes is not None else "") or None
        reviewed = self._requests.review(
            request.request_id,
            status=status,
            reviewed_by=reviewer_id,
            reviewed_at=now,
            notes=notes,
        )
        if not reviewed:
            # another reviewer got there first
            raise _not_pending("reviewed")

        logger.info("Overtime request %s %s by %s", request.request_id, status.value, reviewer_id)
        return self.get_request(request.request_id)

    def stats(self, employee_id: str, *, period: Any = None, now: Optional[datetime] = None) -> OvertimeStats:
        employee = self._employee(employee_id)
        period = require_enum(ReportPeriod, period or ReportPeriod.MONTH, "period")
        start, end = period_bounds(period, (now or now_local()).date())

        requests = self._requests.list_between(employee.employee_id, start, end)
        by_status = {s: [r for r in requests if r.status == s] for s in OvertimeStatus}
        approved_hours = sum((r.hours_requested for r in by_status[OvertimeStatus.APPROVED]), Decimal("0"))
        return OvertimeStats(
            employee_id=employee.employee_id,
            period=period,
            start_date=start,
            end_date=end,
            total=len(requests),
            pending=len(by_status[OvertimeStatus.PENDING]),
            approved=len(by_status[OvertimeStatus.APPROVED]),
            rejected=len(by_status[OvertimeStatus.REJECTED]),
            approved_hours=round2(approved_hours),
        )
