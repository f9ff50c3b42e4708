from datetime import date, datetime
from decimal import Decimal

from src.bricks_attendance.bricks_attendance.attendance.hours import compute_hours
from src.bricks_attendance.bricks_attendance.attendance.model import AttendanceRecord
from src.bricks_attendance.bricks_attendance.core.enums import AttendanceStatus
from src.bricks_attendance.bricks_attendance.payroll.calculator.standard_calculator import StandardPayrollCalculator
from src.bricks_attendance.bricks_attendance.payroll.model import PayAdjustments
from src.bricks_attendance.bricks_attendance.settings.model import PayrollPolicy


def _record(attendance_id, day, hours_in, hours_out, status=AttendanceStatus.PRESENT):
    time_in = datetime(2025, 1, day, *hours_in)
    time_out = datetime(2025, 1, day, *hours_out)
    worked = compute_hours(time_in, time_out)
    return AttendanceRecord(
        attendance_id=attendance_id,
        employee_id="EMP001",
        work_date=date(2025, 1, day),
        time_in=time_in,
        time_out=time_out,
        status=status,
        hours_worked=worked.hours_worked,
        overtime_hours=worked.overtime_hours,
    )


def _absent(attendance_id, day):
    return AttendanceRecord(
        attendance_id=attendance_id,
        employee_id="EMP001",
        work_date=date(2025, 1, day),
        time_in=None,
        time_out=None,
        status=AttendanceStatus.ABSENT,
    )


def test_nine_hour_day_splits_regular_and_overtime():
    records = [_record(1, 6, (8, 0), (17, 0))]

    figures = StandardPayrollCalculator().calculate(
        records,
        hourly_rate=Decimal("25.00"),
        policy=PayrollPolicy(),
        adjustments=PayAdjustments(),
    )

    assert figures.total_hours == Decimal("9.00")
    assert figures.overtime_hours == Decimal("1.00")
    assert figures.regular_hours == Decimal("8.00")
    assert figures.regular_pay == Decimal("200.00")
    assert figures.overtime_pay == Decimal("37.50")
    assert figures.gross_pay == Decimal("237.50")
    assert figures.net_pay == Decimal("237.50")
    assert figures.days_worked == 1


def test_absent_days_do_not_count():
    records = [_record(1, 6, (9, 0), (17, 0)), _absent(2, 7)]

    figures = StandardPayrollCalculator().calculate(
        records,
        hourly_rate=Decimal("20"),
        policy=PayrollPolicy(),
        adjustments=PayAdjustments(),
    )

    assert figures.days_worked == 1
    assert figures.total_hours == Decimal("8.00")
    assert figures.regular_pay == Decimal("160.00")


def test_adjustments_and_tax_keep_the_pay_identity():
    records = [
        _record(1, 6, (8, 0), (17, 20)),
        _record(2, 7, (8, 7), (16, 40)),
        _record(3, 8, (9, 13), (19, 1)),
    ]
    policy = PayrollPolicy(overtime_multiplier=Decimal("1.5"), tax_rate=Decimal("0.123"))
    adjustments = PayAdjustments(
        bonus=Decimal("10.005"),
        allowances=Decimal("3.333"),
        deductions=Decimal("7.777"),
    )

    f = StandardPayrollCalculator().calculate(
        records,
        hourly_rate=Decimal("17.35"),
        policy=policy,
        adjustments=adjustments,
    )

    assert f.bonus == Decimal("10.01")
    assert f.allowances == Decimal("3.33")
    assert f.deductions == Decimal("7.78")
    assert f.regular_hours + f.overtime_hours == f.total_hours
    assert f.gross_pay == f.regular_pay + f.overtime_pay + f.bonus + f.allowances
    assert f.net_pay == f.gross_pay - f.deductions - f.tax
    for value in (f.regular_pay, f.overtime_pay, f.gross_pay, f.tax, f.net_pay):
        assert value == value.quantize(Decimal("0.01"))


def test_no_records_yields_zero_figures():
    figures = StandardPayrollCalculator().calculate(
        [],
        hourly_rate=Decimal("25.00"),
        policy=PayrollPolicy(),
        adjustments=PayAdjustments(),
    )

    assert figures.days_worked == 0
    assert figures.net_pay == Decimal("0.00")
