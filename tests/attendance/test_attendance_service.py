from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from src.bricks_attendance.bricks_attendance.attendance.hours import compute_hours
from src.bricks_attendance.bricks_attendance.core.enums import AttendanceStatus
from src.bricks_attendance.bricks_attendance.core.exceptions import (
    AlreadyClockedIn,
    ConflictError,
    NotClockedIn,
    NotFoundError,
    ValidationError,
)


@pytest.fixture
def service(container):
    return container.attendance_service


@pytest.fixture
def emp_id(make_employee):
    return make_employee().employee.employee_id


def test_clock_in_on_time_then_out_with_overtime(service, emp_id, fixed_now):
    record = service.clock_in(emp_id, now=fixed_now)
    assert record.status == AttendanceStatus.PRESENT
    assert record.is_open

    closed = service.clock_out(emp_id, now=fixed_now + timedelta(hours=9))

    assert closed.hours_worked == Decimal("9.00")
    assert closed.overtime_hours == Decimal("1.00")
    assert closed.status == AttendanceStatus.PRESENT
    assert not closed.is_open


def test_second_clock_in_same_day_conflicts(service, emp_id, fixed_now):
    service.clock_in(emp_id, now=fixed_now)

    with pytest.raises(AlreadyClockedIn) as exc:
        service.clock_in(emp_id, now=fixed_now + timedelta(minutes=1))
    assert isinstance(exc.value, ConflictError)

    # still refused after clocking out
    service.clock_out(emp_id, now=fixed_now + timedelta(hours=8))
    with pytest.raises(AlreadyClockedIn):
        service.clock_in(emp_id, now=fixed_now + timedelta(hours=9))


def test_clock_in_after_start_is_late(service, emp_id):
    record = service.clock_in(emp_id, now=datetime(2025, 3, 10, 9, 20))

    assert record.status == AttendanceStatus.LATE
    assert record.notes == "Late by 20 min"


def test_grace_period_setting_is_respected(service, container, emp_id):
    container.settings_service.update("late_grace_minutes", "30")

    record = service.clock_in(emp_id, now=datetime(2025, 3, 10, 9, 20))

    assert record.status == AttendanceStatus.PRESENT


def test_short_day_becomes_half_day(service, emp_id, fixed_now):
    service.clock_in(emp_id, now=fixed_now)

    closed = service.clock_out(emp_id, now=fixed_now + timedelta(hours=3))

    assert closed.status == AttendanceStatus.HALF_DAY
    assert closed.hours_worked == Decimal("3.00")


def test_clock_out_errors(service, emp_id, fixed_now):
    with pytest.raises(NotClockedIn):
        service.clock_out(emp_id, now=fixed_now)

    service.clock_in(emp_id, now=fixed_now)
    service.clock_out(emp_id, now=fixed_now + timedelta(hours=8))
    with pytest.raises(ConflictError) as exc:
        service.clock_out(emp_id, now=fixed_now + timedelta(hours=9))
    assert exc.value.code == "ALREADY_CLOCKED_OUT"


def test_night_shift_clocks_out_after_midnight(service, emp_id):
    service.clock_in(emp_id, now=datetime(2025, 3, 10, 22, 0))

    closed = service.clock_out(emp_id, now=datetime(2025, 3, 11, 6, 30))

    assert closed.work_date == date(2025, 3, 10)
    assert closed.hours_worked == Decimal("8.50")
    assert closed.overtime_hours == Decimal("0.50")

    # a closed shift from yesterday is not picked up again
    with pytest.raises(NotClockedIn):
        service.clock_out(emp_id, now=datetime(2025, 3, 11, 7, 0))


def test_clock_dispatches_on_action(service, emp_id, fixed_now):
    assert service.clock(emp_id, "IN", now=fixed_now).is_open
    assert not service.clock(emp_id, "out", now=fixed_now + timedelta(hours=8)).is_open

    with pytest.raises(ValidationError):
        service.clock(emp_id, "pause", now=fixed_now)


def test_inactive_employee_cannot_clock_in(service, container, emp_id, fixed_now):
    container.employee_service.soft_delete_employee(emp_id, now=fixed_now)

    with pytest.raises(ValidationError):
        service.clock_in(emp_id, now=fixed_now)


def test_status_reports_today(service, emp_id, fixed_now):
    before = service.get_status(emp_id, now=fixed_now)
    assert before["clocked_in"] is False
    assert before["record"] is None

    service.clock_in(emp_id, now=fixed_now)
    after = service.get_status(emp_id, now=fixed_now)
    assert after["clocked_in"] is True
    assert after["clocked_out"] is False


def test_manual_entry_computes_hours_and_rejects_duplicates(service, emp_id):
    record = service.manual_entry(
        employee_id=emp_id,
        work_date="2025-03-07",
        time_in="09:00",
        time_out="18:00",
        break_minutes=60,
    )

    assert record.manual_entry is True
    assert record.status == AttendanceStatus.PRESENT
    assert record.hours_worked == Decimal("8.00")
    assert record.overtime_hours == Decimal("0.00")

    with pytest.raises(ConflictError) as exc:
        service.manual_entry(employee_id=emp_id, work_date="2025-03-07", status="absent")
    assert exc.value.field == "work_date"


def test_manual_entry_validation(service, emp_id):
    with pytest.raises(ValidationError):
        service.manual_entry(employee_id=emp_id, work_date="2025-03-07")
    with pytest.raises(ValidationError):
        service.manual_entry(employee_id=emp_id, work_date="2025-03-07", time_in="10:00", time_out="09:00")
    with pytest.raises(ValidationError):
        service.manual_entry(employee_id=emp_id, work_date="07/03/2025", status="absent")
    with pytest.raises(NotFoundError):
        service.manual_entry(employee_id="EMP999", work_date="2025-03-07", status="absent")


def test_update_record_recomputes_hours(service, emp_id, fixed_now):
    service.clock_in(emp_id, now=fixed_now)
    record = service.clock_out(emp_id, now=fixed_now + timedelta(hours=8))

    updated = service.update_record(record.attendance_id, {"time_out": "19:55", "notes": "stayed late"})

    assert updated.hours_worked == Decimal("11.00")
    assert updated.overtime_hours == Decimal("3.00")
    assert updated.notes == "stayed late"

    with pytest.raises(ValidationError):
        service.update_record(record.attendance_id, {"time_out": "08:00"})


def test_delete_record(service, emp_id, fixed_now):
    record = service.clock_in(emp_id, now=fixed_now)

    service.delete_record(record.attendance_id)

    with pytest.raises(NotFoundError):
        service.get_record(record.attendance_id)


def test_stats_over_a_range(service, make_employee, emp_id):
    other = make_employee("Ben", "Diaz").employee.employee_id
    third = make_employee("Cara", "Lim", department="Sales").employee.employee_id
    day = date(2025, 3, 7)

    service.manual_entry(employee_id=emp_id, work_date=day, time_in="08:50", time_out="16:50")
    service.manual_entry(employee_id=other, work_date=day, time_in="09:30", time_out="17:30")
    service.manual_entry(employee_id=third, work_date=day, status="absent")

    stats = service.get_stats(on_date="2025-03-07")

    assert stats.total == 3
    assert stats.count(AttendanceStatus.PRESENT) == 1
    assert stats.count(AttendanceStatus.LATE) == 1
    assert stats.count(AttendanceStatus.ABSENT) == 1
    assert stats.total_hours == Decimal("16.00")
    assert stats.attendance_rate == Decimal("66.67")

    sales = service.get_stats(start_date="2025-03-01", end_date="2025-03-31", department="Sales")
    assert sales.total == 1
    assert sales.attendance_rate == Decimal("0.00")

    with pytest.raises(ValidationError):
        service.get_stats(start_date="2025-03-10", end_date="2025-03-01")


def test_stats_on_empty_day_are_zero(service, fixed_now):
    stats = service.get_stats(now=fixed_now)

    assert stats.total == 0
    assert stats.attendance_rate == Decimal("0.00")
    assert stats.start_date == fixed_now.date()


def test_employee_summary_over_periods(service, emp_id, fixed_now):
    service.manual_entry(employee_id=emp_id, work_date="2025-02-27", time_in="08:00", time_out="16:00")
    service.manual_entry(employee_id=emp_id, work_date="2025-03-03", time_in="08:00", time_out="17:00")
    service.manual_entry(employee_id=emp_id, work_date="2025-03-04", time_in="09:30", time_out="13:30")
    service.manual_entry(employee_id=emp_id, work_date="2025-03-05", status="absent")

    month = service.employee_summary(emp_id, now=fixed_now)

    assert (month.start_date, month.end_date) == (date(2025, 3, 1), date(2025, 3, 10))
    assert month.total_days == 3
    assert month.total_hours == Decimal("13.00")
    assert month.overtime_hours == Decimal("1.00")
    # the absent day does not drag the average down
    assert month.average_hours_per_day == Decimal("6.50")
    assert month.status_breakdown == {"present": 1, "late": 1, "absent": 1}

    year = service.employee_summary(emp_id, period="year", now=fixed_now)
    assert year.total_days == 4
    assert year.total_hours == Decimal("21.00")

    one_day = service.employee_summary(emp_id, start_date="2025-03-05", end_date="2025-03-05")
    assert one_day.total_days == 1
    assert one_day.average_hours_per_day == Decimal("0.00")

    with pytest.raises(ValidationError):
        service.employee_summary(emp_id, period="decade", now=fixed_now)
    with pytest.raises(NotFoundError):
        service.employee_summary("EMP999", now=fixed_now)


def test_list_records_scoped_to_employee(service, make_employee, emp_id, fixed_now):
    other = make_employee("Ben", "Diaz").employee.employee_id
    service.clock_in(emp_id, now=fixed_now)
    service.clock_in(other, now=fixed_now)

    page = service.list_records(employee_id=emp_id)

    assert page.total == 1
    assert page.items[0].employee_id == emp_id


def test_compute_hours_subtracts_break_and_never_goes_negative():
    start = datetime(2025, 1, 1, 8, 0)

    worked = compute_hours(start, datetime(2025, 1, 1, 17, 0), break_minutes=60)
    assert worked.hours_worked == Decimal("8.00")
    assert worked.overtime_hours == Decimal("0.00")

    assert compute_hours(start, start + timedelta(minutes=20), break_minutes=60).hours_worked == Decimal("0.00")
    assert compute_hours(start, start + timedelta(minutes=20)).hours_worked == Decimal("0.33")
