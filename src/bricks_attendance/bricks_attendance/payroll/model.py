from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import PayrollStatus

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class PayAdjustments:
    bonus: Decimal = ZERO
    allowances: Decimal = ZERO
    deductions: Decimal = ZERO


@dataclass(frozen=True)
class PayrollFigures:
    """Hours and money for one employee over one pay period, all at 2 decimals.

    ``regular_pay + overtime_pay + bonus + allowances - deductions - tax == net_pay``
    holds exactly.
    """

    total_hours: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal
    hourly_rate: Decimal
    overtime_multiplier: Decimal
    regular_pay: Decimal
    overtime_pay: Decimal
    bonus: Decimal
    allowances: Decimal
    gross_pay: Decimal
    deductions: Decimal
    tax: Decimal
    net_pay: Decimal
    days_worked: int = 0

    def to_dict(self) -> dict:
        return {
            "total_hours": self.total_hours,
            "regular_hours": self.regular_hours,
            "overtime_hours": self.overtime_hours,
            "hourly_rate": self.hourly_rate,
            "overtime_multiplier": self.overtime_multiplier,
            "regular_pay": self.regular_pay,
            "overtime_pay": self.overtime_pay,
            "bonus": self.bonus,
            "allowances": self.allowances,
            "gross_pay": self.gross_pay,
            "deductions": self.deductions,
            "tax": self.tax,
            "net_pay": self.net_pay,
            "days_worked": self.days_worked,
        }


@dataclass(frozen=True)
class PayrollRecord:
    payroll_id: int
    employee_id: str
    pay_period_start: date
    pay_period_end: date
    figures: PayrollFigures
    status: PayrollStatus = PayrollStatus.DRAFT
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        out = {
            "payroll_id": self.payroll_id,
            "employee_id": self.employee_id,
            "pay_period_start": self.pay_period_start,
            "pay_period_end": self.pay_period_end,
            "status": self.status.value,
            "notes": self.notes,
            "created_at": self.created_at,
            "processed_at": self.processed_at,
        }
        out.update(self.figures.to_dict())
        return out


@dataclass(frozen=True)
class PayrollCalculation:
    """Unsaved calculation result."""

    employee_id: str
    pay_period_start: date
    pay_period_end: date
    figures: PayrollFigures
    status: PayrollStatus = PayrollStatus.DRAFT
    warnings: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        out = {
            "employee_id": self.employee_id,
            "pay_period_start": self.pay_period_start,
            "pay_period_end": self.pay_period_end,
            "status": self.status.value,
            "warnings": list(self.warnings),
        }
        out.update(self.figures.to_dict())
        return out


@dataclass(frozen=True)
class BatchIssue:
    employee_id: str
    code: str
    message: str

    def to_dict(self) -> dict:
        return {"employee_id": self.employee_id, "code": self.code, "message": self.message}


@dataclass
class BatchReport:
    """Outcome of a batch run: successes and per-employee failures side by side."""

    generated: list[PayrollRecord] = field(default_factory=list)
    errors: list[BatchIssue] = field(default_factory=list)
    warnings: list[BatchIssue] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "generated": [r.to_dict() for r in self.generated],
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "summary": {
                "generated": len(self.generated),
                "failed": len(self.errors),
                "warnings": len(self.warnings),
            },
        }


@dataclass(frozen=True)
class PayrollFilter:
    employee_id: Optional[str] = None
    status: Optional[PayrollStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass(frozen=True)
class NextPayday:
    """Monthly pay cycle anchored on the latest pay period end."""

    next_payday: date
    days_until: int
    last_period_end: Optional[date] = None
    pay_frequency: str = "monthly"

    def to_dict(self) -> dict:
        return {
            "next_payday": self.next_payday,
            "days_until_payday": self.days_until,
            "last_period_end": self.last_period_end,
            "pay_frequency": self.pay_frequency,
        }
