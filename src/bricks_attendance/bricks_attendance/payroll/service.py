from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Iterable, Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import add_months, month_end, now_local
from ..common.pagination import Page, page_params
from ..common.validators import normalize_employee_id, require_date, require_decimal, require_enum
from ..core.constants import WARNING_NO_ATTENDANCE
from ..core.enums import PayrollStatus
from ..core.exceptions import ConflictError, DomainError, NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..settings.model import PayrollPolicy
from ..settings.service import SettingsService
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator
from .model import (
    BatchIssue,
    BatchReport,
    NextPayday,
    PayAdjustments,
    PayrollCalculation,
    PayrollFilter,
    PayrollRecord,
)
from .repository import PayrollRepository

logger = logging.getLogger(__name__)

_STATUS_ORDER = {PayrollStatus.DRAFT: 0, PayrollStatus.PROCESSED: 1, PayrollStatus.PAID: 2}
_ADJUSTMENT_FIELDS = ("bonus", "allowances", "deductions")


def _period(start: Any, end: Any) -> tuple[date, date]:
    start = require_date(start, "start_date")
    end = require_date(end, "end_date")
    if end < start:
        raise ValidationError("end_date must not be before start_date")
    return start, end


def _adjustments(bonus: Any, allowances: Any, deductions: Any) -> PayAdjustments:
    return PayAdjustments(
        bonus=require_decimal(bonus or 0, "bonus"),
        allowances=require_decimal(allowances or 0, "allowances"),
        deductions=require_decimal(deductions or 0, "deductions"),
    )


class PayrollService:
    """Use cases: payroll calculation, batch generation and payroll status."""

    def __init__(
        self,
        payroll: PayrollRepository,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        *,
        settings: Optional[SettingsService] = None,
        calculator: Optional[PayrollCalculator] = None,
    ):
        self._payroll = payroll
        self._attendance = attendance
        self._employees = employees
        self._settings = settings
        self._calculator = calculator or StandardPayrollCalculator()

    def _policy(self) -> PayrollPolicy:
        return self._settings.payroll_policy() if self._settings else PayrollPolicy()

    def _employee(self, employee_id: str) -> Employee:
        employee = self._employees.get_by_id(normalize_employee_id(employee_id))
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def calculate_payroll(
        self,
        employee_id: str,
        start: Any,
        end: Any,
        *,
        bonus: Any = 0,
        allowances: Any = 0,
        deductions: Any = 0,
    ) -> PayrollCalculation:
        """Compute (without saving) one employee's pay for ``start..end`` inclusive.

        No worked hours in the period yields a zero-valued draft carrying a
        ``NO_ATTENDANCE_DATA`` warning instead of an error.
        """
        start, end = _period(start, end)
        employee = self._employee(employee_id)
        return self._calculate(employee, start, end, _adjustments(bonus, allowances, deductions), self._policy())

    def _calculate(
        self,
        employee: Employee,
        start: date,
        end: date,
        adjustments: PayAdjustments,
        policy: PayrollPolicy,
    ) -> PayrollCalculation:
        records = self._attendance.list_between(start, end, employee_id=employee.employee_id)
        figures = self._calculator.calculate(
            records,
            hourly_rate=employee.hourly_rate,
            policy=policy,
            adjustments=adjustments,
        )
        warnings = (WARNING_NO_ATTENDANCE,) if figures.days_worked == 0 else ()
        return PayrollCalculation(
            employee_id=employee.employee_id,
            pay_period_start=start,
            pay_period_end=end,
            figures=figures,
            warnings=warnings,
        )

    def generate_payroll(
        self,
        *,
        start: Any,
        end: Any,
        employee_ids: Optional[Iterable[str]] = None,
        bonus: Any = 0,
        allowances: Any = 0,
        deductions: Any = 0,
        notes: Optional[str] = None,
    ) -> BatchReport:
        """Create draft payroll records for many employees.

        Every employee is attempted; failures are collected in the report and
        never abort the batch. Without ``employee_ids`` all active employees run.
        """
        start, end = _period(start, end)
        adjustments = _adjustments(bonus, allowances, deductions)
        policy = self._policy()
        report = BatchReport()

        if employee_ids is None:
            targets = list(self._employees.list_active_ids())
        else:
            targets = []
            for raw in employee_ids:
                try:
                    emp_id = normalize_employee_id(raw)
                except ValidationError as e:
                    report.errors.append(BatchIssue(str(raw), e.code, e.message))
                    continue
                if emp_id not in targets:
                    targets.append(emp_id)

        for emp_id in targets:
            try:
                record, warnings = self._generate_one(emp_id, start, end, adjustments, policy, notes)
            except DomainError as e:
                report.errors.append(BatchIssue(emp_id, e.code, e.message))
                continue
            except Exception:
                logger.exception("Payroll generation failed for %s", emp_id)
                report.errors.append(BatchIssue(emp_id, "INTERNAL_ERROR", "Unexpected error while generating payroll"))
                continue

            report.generated.append(record)
            for code in warnings:
                report.warnings.append(BatchIssue(emp_id, code, "No attendance with worked hours in period"))

        logger.info(
            "Payroll batch %s..%s: %d generated, %d failed, %d warnings",
            start,
            end,
            len(report.generated),
            len(report.errors),
            len(report.warnings),
        )
        return report

    def _generate_one(
        self,
        employee_id: str,
        start: date,
        end: date,
        adjustments: PayAdjustments,
        policy: PayrollPolicy,
        notes: Optional[str],
    ) -> tuple[PayrollRecord, tuple[str, ...]]:
        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        if not employee.is_active:
            raise ValidationError("Employee is not active")
        if self._payroll.get_for_period(employee.employee_id, start, end):
            raise ConflictError("Payroll already exists for this period", field="pay_period")

        calc = self._calculate(employee, start, end, adjustments, policy)
        payroll_id = self._payroll.create(
            employee_id=employee.employee_id,
            start=start,
            end=end,
            figures=calc.figures,
            status=PayrollStatus.DRAFT,
            notes=notes,
        )
        return self._payroll.get(payroll_id), calc.warnings

    def get_payroll(self, payroll_id: int) -> PayrollRecord:
        record = self._payroll.get(int(payroll_id))
        if not record:
            raise NotFoundError("Payroll record not found")
        return record

    def list_payroll(
        self,
        *,
        employee_id: Optional[str] = None,
        status: Any = None,
        start_date: Any = None,
        end_date: Any = None,
        page: Any = None,
        limit: Any = None,
    ) -> Page[PayrollRecord]:
        page_i, limit_i = page_params(page, limit)
        filters = PayrollFilter(
            employee_id=normalize_employee_id(employee_id) if employee_id else None,
            status=require_enum(PayrollStatus, status, "status") if status else None,
            start_date=require_date(start_date, "start_date") if start_date else None,
            end_date=require_date(end_date, "end_date") if end_date else None,
        )
        items, total = self._payroll.list(filters, offset=(page_i - 1) * limit_i, limit=limit_i)
        return Page(items=items, total=total, page=page_i, limit=limit_i)

    def update_status(self, payroll_id: int, status: Any, *, now: Optional[datetime] = None) -> PayrollRecord:
        """Move a record forward: draft -> processed -> paid."""
        now = now or now_local()
        target = require_enum(PayrollStatus, status, "status")
        record = self.get_payroll(payroll_id)

        if _STATUS_ORDER[target] <= _STATUS_ORDER[record.status]:
            raise ConflictError(
                f"Cannot change payroll status from {record.status.value} to {target.value}",
                field="status",
                code="INVALID_STATUS_TRANSITION",
            )

        self._payroll.update_status(record.payroll_id, target, processed_at=now)
        logger.info("Payroll %s: %s -> %s", record.payroll_id, record.status.value, target.value)
        return self.get_payroll(record.payroll_id)

    def update_payroll(self, payroll_id: int, patch: dict[str, Any]) -> PayrollRecord:
        """Edit a draft: new adjustments or notes, priced again against the period's attendance."""
        record = self.get_payroll(payroll_id)
        if not (set(_ADJUSTMENT_FIELDS) | {"notes"}) & patch.keys():
            raise ValidationError("No updatable fields supplied")
        _require_draft(record, "edited")

        adjustments = PayAdjustments(
            **{
                name: require_decimal(patch[name], name) if name in patch else getattr(record.figures, name)
                for name in _ADJUSTMENT_FIELDS
            }
        )
        notes = record.notes
        if "notes" in patch:
            notes = (str(patch["notes"]).strip() if patch["notes"] is not None else "") or None

        employee = self._employee(record.employee_id)
        calc = self._calculate(employee, record.pay_period_start, record.pay_period_end, adjustments, self._policy())
        if not self._payroll.update_draft(record.payroll_id, calc.figures, notes=notes):
            # processed by someone else in the meantime
            _require_draft(self.get_payroll(record.payroll_id), "edited")

        logger.info("Payroll %s of %s edited", record.payroll_id, record.employee_id)
        return self.get_payroll(record.payroll_id)

    def delete_payroll(self, payroll_id: int) -> None:
        record = self.get_payroll(payroll_id)
        _require_draft(record, "deleted")
        if not self._payroll.delete_draft(record.payroll_id):
            raise ConflictError("Only draft payroll records can be deleted", field="status", code="PAYROLL_NOT_DRAFT")
        logger.info("Payroll %s of %s deleted", record.payroll_id, record.employee_id)

    def next_payday(self, *, now: Optional[datetime] = None) -> NextPayday:
        """One month after the latest pay period end, rolled forward past today.

        Without any payroll yet, payday is the end of the current month.
        """
        today = (now or now_local()).date()
        last_end = self._payroll.latest_period_end()
        if last_end is None:
            payday = month_end(today)
        else:
            months = 1
            payday = add_months(last_end, months)
            while payday < today:
                months += 1
                payday = add_months(last_end, months)
        return NextPayday(next_payday=payday, days_until=(payday - today).days, last_period_end=last_end)


def _require_draft(record: PayrollRecord, action: str) -> None:
    if record.status != PayrollStatus.DRAFT:
        raise ConflictError(
            f"Only draft payroll records can be {action}",
            field="status",
            code="PAYROLL_NOT_DRAFT",
        )
