from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Optional

from ..common.datetime_utils import now_local, parse_hhmm, parse_iso_datetime, period_bounds
from ..common.money import round2
from ..common.pagination import Page, page_params
from ..common.validators import normalize_employee_id, require_date, require_enum
from ..core.enums import AttendanceStatus, ClockAction, ReportPeriod
from ..core.exceptions import AlreadyClockedIn, ConflictError, NotClockedIn, NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..settings.model import AttendancePolicy
from ..settings.service import SettingsService
from .factory import AttendanceStrategyFactory
from .hours import compute_hours
from .model import AttendanceFilter, AttendanceRecord, AttendanceStats, AttendanceSummary
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

_PRESENT_LIKE = (AttendanceStatus.PRESENT, AttendanceStatus.LATE)


class AttendanceService:
    """Use cases: clock-in/out, manual corrections and attendance statistics."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        *,
        settings: Optional[SettingsService] = None,
        strategy_factory: Optional[AttendanceStrategyFactory] = None,
    ):
        self._attendance = attendance
        self._employees = employees
        self._settings = settings
        self._factory = strategy_factory or AttendanceStrategyFactory()

    def _policy(self) -> AttendancePolicy:
        return self._settings.attendance_policy() if self._settings else AttendancePolicy()

    def _employee(self, employee_id: str, *, active: bool = True) -> Employee:
        employee = self._employees.get_by_id(normalize_employee_id(employee_id))
        if not employee:
            raise NotFoundError("Employee not found")
        if active and not employee.is_active:
            raise ValidationError("Employee is not active")
        return employee

    def clock_in(self, employee_id: str, *, now: Optional[datetime] = None, notes: Optional[str] = None) -> AttendanceRecord:
        now = now or now_local()
        today = now.date()
        employee = self._employee(employee_id)

        if self._attendance.get_for_employee_and_date(employee.employee_id, today):
            raise AlreadyClockedIn()

        policy = self._policy()
        decision = self._factory.for_checkin(now=now, policy=policy).decide_checkin(now=now, policy=policy)
        try:
            attendance_id = self._attendance.create(
                employee_id=employee.employee_id,
                work_date=today,
                time_in=now,
                status=decision.status,
                break_minutes=policy.break_minutes,
                notes=_join_notes(notes, decision.note),
            )
        except ConflictError:
            # lost the race against a concurrent clock-in for the same day
            raise AlreadyClockedIn() from None

        logger.info("Clock-in %s at %s (%s)", employee.employee_id, now, decision.status.value)
        return self._attendance.get(attendance_id)

    def clock_out(self, employee_id: str, *, now: Optional[datetime] = None, notes: Optional[str] = None) -> AttendanceRecord:
        now = now or now_local()
        employee = self._employee(employee_id)

        record = self._open_record(employee.employee_id, now)
        if not record or record.time_in is None:
            raise NotClockedIn()
        if record.time_out is not None:
            raise ConflictError("Already clocked out today", code="ALREADY_CLOCKED_OUT")
        if now < record.time_in:
            raise ValidationError("Clock-out cannot be earlier than clock-in")

        policy = self._policy()
        worked = compute_hours(
            record.time_in,
            now,
            break_minutes=record.break_minutes,
            overtime_threshold=policy.overtime_threshold,
        )
        strategy = self._factory.for_checkout(current=record.status, worked=worked, policy=policy)
        decision = strategy.decide_checkout(current=record.status, worked=worked, policy=policy)

        closed = self._attendance.close(
            record.attendance_id,
            time_out=now,
            hours_worked=worked.hours_worked,
            overtime_hours=worked.overtime_hours,
            status=decision.status,
            notes=_join_notes(record.notes, notes, decision.note),
        )
        if not closed:
            raise ConflictError("Already clocked out today", code="ALREADY_CLOCKED_OUT")

        logger.info("Clock-out %s at %s (%sh)", employee.employee_id, now, worked.hours_worked)
        return self._attendance.get(record.attendance_id)

    def _open_record(self, employee_id: str, now: datetime) -> Optional[AttendanceRecord]:
        record = self._attendance.get_for_employee_and_date(employee_id, now.date())
        if record is not None:
            return record
        # a night shift stays on the day it started
        previous = self._attendance.get_for_employee_and_date(employee_id, now.date() - timedelta(days=1))
        if previous and previous.time_in is not None and previous.time_out is None:
            return previous
        return None

    def clock(self, employee_id: str, action: Any, *, now: Optional[datetime] = None, notes: Optional[str] = None) -> AttendanceRecord:
        action = require_enum(ClockAction, action, "action")
        if action == ClockAction.IN:
            return self.clock_in(employee_id, now=now, notes=notes)
        return self.clock_out(employee_id, now=now, notes=notes)

    def get_status(self, employee_id: str, *, now: Optional[datetime] = None) -> dict:
        now = now or now_local()
        employee = self._employee(employee_id, active=False)
        record = self._attendance.get_for_employee_and_date(employee.employee_id, now.date())
        return {
            "date": now.date(),
            "clocked_in": bool(record and record.time_in),
            "clocked_out": bool(record and record.time_out),
            "record": record.to_dict() if record else None,
        }

    def manual_entry(
        self,
        *,
        employee_id: str,
        work_date: Any,
        time_in: Any = None,
        time_out: Any = None,
        status: Any = None,
        break_minutes: Any = None,
        notes: Optional[str] = None,
    ) -> AttendanceRecord:
        """Administrative entry for a day without a record."""
        employee = self._employee(employee_id, active=False)
        work_date = require_date(work_date, "work_date")
        policy = self._policy()

        t_in = _parse_clock(time_in, work_date, "time_in")
        t_out = _parse_clock(time_out, work_date, "time_out")
        if t_out is not None and t_in is None:
            raise ValidationError("time_out requires time_in")
        breaks = _parse_break(break_minutes, policy.break_minutes)

        if status not in (None, ""):
            status = require_enum(AttendanceStatus, status, "status")
        elif t_in is not None:
            status = self._factory.for_checkin(now=t_in, policy=policy).decide_checkin(now=t_in, policy=policy).status
        else:
            raise ValidationError("status is required when no time_in is given")

        hours_worked = overtime_hours = Decimal("0.00")
        if t_in is not None and t_out is not None:
            if t_out <= t_in:
                raise ValidationError("time_out must be after time_in")
            worked = compute_hours(t_in, t_out, break_minutes=breaks, overtime_threshold=policy.overtime_threshold)
            hours_worked, overtime_hours = worked.hours_worked, worked.overtime_hours

        if self._attendance.get_for_employee_and_date(employee.employee_id, work_date):
            raise ConflictError("Attendance already recorded for this date", field="work_date")

        try:
            attendance_id = self._attendance.create(
                employee_id=employee.employee_id,
                work_date=work_date,
                time_in=t_in,
                time_out=t_out,
                status=status,
                break_minutes=breaks,
                hours_worked=hours_worked,
                overtime_hours=overtime_hours,
                notes=notes,
                manual_entry=True,
            )
        except ConflictError:
            raise ConflictError("Attendance already recorded for this date", field="work_date") from None

        logger.info("Manual attendance for %s on %s (%s)", employee.employee_id, work_date, status.value)
        return self._attendance.get(attendance_id)

    def get_record(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get(int(attendance_id))
        if not record:
            raise NotFoundError("Attendance record not found")
        return record

    def update_record(self, attendance_id: int, patch: dict[str, Any]) -> AttendanceRecord:
        """Correct a record. Hours are recomputed whenever both times are known."""
        record = self.get_record(attendance_id)
        policy = self._policy()

        fields: dict[str, Any] = {}
        if "time_in" in patch:
            fields["time_in"] = _parse_clock(patch["time_in"], record.work_date, "time_in")
        if "time_out" in patch:
            fields["time_out"] = _parse_clock(patch["time_out"], record.work_date, "time_out")
        if "break_minutes" in patch:
            fields["break_minutes"] = _parse_break(patch["break_minutes"], record.break_minutes)
        if "status" in patch:
            fields["status"] = require_enum(AttendanceStatus, patch["status"], "status")
        if "notes" in patch:
            fields["notes"] = (str(patch["notes"]).strip() if patch["notes"] is not None else "") or None
        if not fields:
            raise ValidationError("No updatable fields supplied")

        t_in = fields.get("time_in", record.time_in)
        t_out = fields.get("time_out", record.time_out)
        if t_out is not None and t_in is None:
            raise ValidationError("time_out requires time_in")
        if t_in is not None and t_out is not None:
            if t_out <= t_in:
                raise ValidationError("time_out must be after time_in")
            worked = compute_hours(
                t_in,
                t_out,
                break_minutes=fields.get("break_minutes", record.break_minutes),
                overtime_threshold=policy.overtime_threshold,
            )
            fields["hours_worked"] = worked.hours_worked
            fields["overtime_hours"] = worked.overtime_hours
        elif {"time_in", "time_out"} & fields.keys():
            fields["hours_worked"] = Decimal("0.00")
            fields["overtime_hours"] = Decimal("0.00")

        self._attendance.update(record.attendance_id, fields)
        logger.info("Attendance %s updated (%s)", record.attendance_id, ", ".join(sorted(fields)))
        return self.get_record(record.attendance_id)

    def delete_record(self, attendance_id: int) -> None:
        record = self.get_record(attendance_id)
        self._attendance.delete(record.attendance_id)
        logger.info("Attendance %s of %s deleted", record.attendance_id, record.employee_id)

    def list_records(
        self,
        *,
        employee_id: Optional[str] = None,
        start_date: Any = None,
        end_date: Any = None,
        status: Any = None,
        department: Optional[str] = None,
        page: Any = None,
        limit: Any = None,
    ) -> Page[AttendanceRecord]:
        page_i, limit_i = page_params(page, limit)
        filters = AttendanceFilter(
            employee_id=normalize_employee_id(employee_id) if employee_id else None,
            start_date=require_date(start_date, "start_date") if start_date else None,
            end_date=require_date(end_date, "end_date") if end_date else None,
            status=require_enum(AttendanceStatus, status, "status") if status else None,
            department=(department or "").strip() or None,
        )
        items, total = self._attendance.list(filters, offset=(page_i - 1) * limit_i, limit=limit_i)
        return Page(items=items, total=total, page=page_i, limit=limit_i)

    def get_stats(
        self,
        *,
        on_date: Any = None,
        start_date: Any = None,
        end_date: Any = None,
        department: Optional[str] = None,
        employee_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceStats:
        """Counts per status over a day (default today) or a date range."""
        if on_date:
            start = end = require_date(on_date, "date")
        elif start_date or end_date:
            start = require_date(start_date, "start_date")
            end = require_date(end_date, "end_date") if end_date else start
        else:
            start = end = (now or now_local()).date()
        if end < start:
            raise ValidationError("end_date must not be before start_date")

        records = self._attendance.list_between(
            start,
            end,
            employee_id=normalize_employee_id(employee_id) if employee_id else None,
            department=(department or "").strip() or None,
        )
        return summarize(records, start, end)

    def employee_summary(
        self,
        employee_id: str,
        *,
        start_date: Any = None,
        end_date: Any = None,
        period: Any = None,
        now: Optional[datetime] = None,
    ) -> AttendanceSummary:
        """Totals for one employee. Explicit dates win over ``period`` (week, month or year to date)."""
        employee = self._employee(employee_id, active=False)
        if start_date and end_date:
            start = require_date(start_date, "start_date")
            end = require_date(end_date, "end_date")
            if end < start:
                raise ValidationError("end_date must not be before start_date")
        else:
            period = require_enum(ReportPeriod, period or ReportPeriod.MONTH, "period")
            start, end = period_bounds(period, (now or now_local()).date())

        records = self._attendance.list_between(start, end, employee_id=employee.employee_id)
        worked = [r.hours_worked for r in records if r.hours_worked > 0]
        total_hours = round2(sum(worked, Decimal("0")))
        return AttendanceSummary(
            employee_id=employee.employee_id,
            start_date=start,
            end_date=end,
            total_days=len(records),
            total_hours=total_hours,
            overtime_hours=round2(sum((r.overtime_hours for r in records), Decimal("0"))),
            average_hours_per_day=round2(total_hours / len(worked)) if worked else Decimal("0.00"),
            status_breakdown=dict(Counter(r.status.value for r in records)),
        )


def summarize(records, start: date, end: date) -> AttendanceStats:
    counts = Counter(r.status.value for r in records)
    total = len(records)
    total_hours = round2(sum((r.hours_worked for r in records), Decimal("0")))
    present_like = sum(counts.get(s.value, 0) for s in _PRESENT_LIKE)
    return AttendanceStats(
        start_date=start,
        end_date=end,
        counts={s.value: counts.get(s.value, 0) for s in AttendanceStatus},
        total=total,
        total_hours=total_hours,
        average_hours=round2(total_hours / total) if total else Decimal("0.00"),
        attendance_rate=round2(Decimal(present_like) * 100 / total) if total else Decimal("0.00"),
    )


def _join_notes(*parts: Optional[str]) -> Optional[str]:
    text = "; ".join(p.strip() for p in parts if p and p.strip())
    return text[:500] or None


def _parse_clock(value: Any, work_date: date, field_name: str) -> Optional[datetime]:
    """Accept ``HH:MM`` (on ``work_date``) or a full ISO datetime."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    try:
        if "T" in text or " " in text or len(text) > 8:
            return parse_iso_datetime(text)
        return datetime.combine(work_date, parse_hhmm(text))
    except ValueError:
        raise ValidationError(f"{field_name} must be HH:MM or an ISO datetime")


def _parse_break(value: Any, default: int) -> int:
    if value in (None, ""):
        return int(default)
    try:
        minutes = int(value)
    except (TypeError, ValueError):
        raise ValidationError("break_minutes must be an integer")
    if minutes < 0:
        raise ValidationError("break_minutes must be >= 0")
    return minutes
