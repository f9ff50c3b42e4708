from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from ...attendance.model import AttendanceRecord
from ...common.money import round2
from ...settings.model import PayrollPolicy
from ..model import PayAdjustments, PayrollFigures
from .base import PayrollCalculator


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: regular hours at the base rate, overtime at rate x multiplier.

    Only records with worked hours count. Each component is rounded half-up
    to cents before it is summed, so the pay identity holds exactly.
    """

    def calculate(
        self,
        records: Sequence[AttendanceRecord],
        *,
        hourly_rate: Decimal,
        policy: PayrollPolicy,
        adjustments: PayAdjustments,
    ) -> PayrollFigures:
        worked = [r for r in records if r.hours_worked > 0]
        total_hours = round2(sum((r.hours_worked for r in worked), Decimal("0")))
        overtime_hours = round2(sum((r.overtime_hours for r in worked), Decimal("0")))
        regular_hours = total_hours - overtime_hours

        rate = round2(hourly_rate)
        regular_pay = round2(regular_hours * rate)
        overtime_pay = round2(overtime_hours * rate * policy.overtime_multiplier)
        bonus = round2(adjustments.bonus)
        allowances = round2(adjustments.allowances)
        gross_pay = regular_pay + overtime_pay + bonus + allowances
        deductions = round2(adjustments.deductions)
        tax = round2(gross_pay * policy.tax_rate)

        return PayrollFigures(
            total_hours=total_hours,
            regular_hours=regular_hours,
            overtime_hours=overtime_hours,
            hourly_rate=rate,
            overtime_multiplier=policy.overtime_multiplier,
            regular_pay=regular_pay,
            overtime_pay=overtime_pay,
            bonus=bonus,
            allowances=allowances,
            gross_pay=gross_pay,
            deductions=deductions,
            tax=tax,
            net_pay=gross_pay - deductions - tax,
            days_worked=len(worked),
        )
