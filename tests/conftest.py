from __future__ import annotations

import dataclasses
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

import pytest

from src.bricks_attendance.bricks_attendance.accounts.model import Account, AccountProfile
from src.bricks_attendance.bricks_attendance.accounts.service import AuthPolicy
from src.bricks_attendance.bricks_attendance.attendance.model import AttendanceRecord
from src.bricks_attendance.bricks_attendance.container import wire_services
from src.bricks_attendance.bricks_attendance.core.enums import (
    EmployeeStatus,
    PayrollStatus,
    SettingType,
)
from src.bricks_attendance.bricks_attendance.core.exceptions import ConflictError
from src.bricks_attendance.bricks_attendance.employees.model import Employee, EmployeeOverview, NewAccount
from src.bricks_attendance.bricks_attendance.overtime.model import OvertimeRequest
from src.bricks_attendance.bricks_attendance.payroll.model import PayrollRecord
from src.bricks_attendance.bricks_attendance.sessions.model import Session
from src.bricks_attendance.bricks_attendance.settings.model import Setting

FIXED_NOW = datetime(2025, 3, 10, 8, 55)
TEST_HASH_METHOD = "pbkdf2:sha256:1000"
TEST_JWT_SECRET = "test-jwt-secret"

DEFAULT_SETTINGS = (
    ("work_start_time", "09:00", SettingType.TIME, "attendance"),
    ("late_grace_minutes", "0", SettingType.NUMBER, "attendance"),
    ("break_minutes", "0", SettingType.NUMBER, "attendance"),
    ("working_hours_per_day", "8", SettingType.NUMBER, "attendance"),
    ("overtime_threshold", "8", SettingType.NUMBER, "payroll"),
    ("overtime_multiplier", "1.5", SettingType.NUMBER, "payroll"),
    ("tax_rate", "0", SettingType.NUMBER, "payroll"),
    ("default_hourly_rate", "15.00", SettingType.NUMBER, "payroll"),
    ("currency", "USD", SettingType.STRING, "general"),
)


class InMemoryDB:
    """Shared tables for the fake repositories."""

    def __init__(self):
        self.employees: dict[str, Employee] = {}
        self.accounts: dict[int, Account] = {}
        self.sessions: dict[int, Session] = {}
        self.attendance: dict[int, AttendanceRecord] = {}
        self.payroll: dict[int, PayrollRecord] = {}
        self.overtime: dict[int, OvertimeRequest] = {}
        self.settings: dict[str, Setting] = {
            key: Setting(key=key, value=value, value_type=vtype, category=category)
            for key, value, vtype, category in DEFAULT_SETTINGS
        }
        # usernames a concurrent writer grabs right before our insert
        self.racing_usernames: set[str] = set()
        # make the account insert fail after the employee row was staged
        self.account_insert_error: Optional[Exception] = None
        # make an employee update fail before anything is applied
        self.employee_update_error: Optional[Exception] = None
        self._ids = {"account": 0, "session": 0, "attendance": 0, "payroll": 0, "overtime": 0}

    def next_id(self, kind: str) -> int:
        self._ids[kind] += 1
        return self._ids[kind]

    def account_by_username(self, username: str) -> Optional[Account]:
        return next((a for a in self.accounts.values() if a.username == username), None)

    def insert_account(self, employee_id: str, account: NewAccount) -> Account:
        row = Account(
            account_id=self.next_id("account"),
            employee_id=employee_id,
            username=account.username,
            password_hash=account.password_hash,
            role=account.role,
        )
        self.accounts[row.account_id] = row
        return row


class InMemoryEmployees:
    def __init__(self, db: InMemoryDB):
        self._db = db

    def get_by_id(self, employee_id: str) -> Optional[Employee]:
        return self._db.employees.get(employee_id)

    def get_by_email(self, email: str) -> Optional[Employee]:
        return next((e for e in self._db.employees.values() if e.email == email), None)

    def list(self, filters, *, offset: int, limit: int):
        rows = sorted(self._db.employees.values(), key=lambda e: e.employee_id)
        if filters.status:
            rows = [e for e in rows if e.status == filters.status]
        if filters.department:
            rows = [e for e in rows if e.department == filters.department]
        if filters.position:
            rows = [e for e in rows if e.position == filters.position]
        if filters.search:
            needle = filters.search.lower()
            rows = [
                e
                for e in rows
                if needle in f"{e.first_name} {e.last_name} {e.email} {e.employee_id}".lower()
            ]
        return rows[offset : offset + limit], len(rows)

    def list_active_ids(self):
        return sorted(e.employee_id for e in self._db.employees.values() if e.is_active)

    def max_sequence(self, prefix: str) -> int:
        seqs = [int(eid[len(prefix) :]) for eid in self._db.employees if eid.startswith(prefix)]
        return max(seqs, default=0)

    def create_with_account(self, employee: Employee, account: NewAccount) -> None:
        if employee.employee_id in self._db.employees:
            raise ConflictError("dup", field="employee_id")
        if self.get_by_email(employee.email):
            raise ConflictError("dup", field="email")
        if account.username in self._db.racing_usernames:
            self._db.racing_usernames.discard(account.username)
            self._db.insert_account("EMP999999", account)
            raise ConflictError("dup", field="username")
        if self._db.account_by_username(account.username):
            raise ConflictError("dup", field="username")
        if self._db.account_insert_error is not None:
            # nothing was committed yet, like a rolled back transaction
            raise self._db.account_insert_error
        self._db.employees[employee.employee_id] = employee
        self._db.insert_account(employee.employee_id, account)

    def update(self, employee_id: str, fields: dict[str, Any], *, now: datetime) -> bool:
        current = self._db.employees.get(employee_id)
        if not current:
            return False
        if self._db.employee_update_error is not None:
            raise self._db.employee_update_error
        self._db.employees[employee_id] = dataclasses.replace(current, **fields)
        status = fields.get("status")
        if status == EmployeeStatus.ACTIVE:
            self._set_account_active(employee_id, True)
        elif status is not None:
            self._deactivate_login(employee_id, now)
        return True

    def soft_delete(self, employee_id: str, *, status: EmployeeStatus, now: datetime) -> bool:
        current = self._db.employees.get(employee_id)
        if not current:
            return False
        self._db.employees[employee_id] = dataclasses.replace(current, status=status)
        self._deactivate_login(employee_id, now)
        return True

    def _set_account_active(self, employee_id: str, active: bool) -> None:
        for a in list(self._db.accounts.values()):
            if a.employee_id == employee_id:
                self._db.accounts[a.account_id] = dataclasses.replace(a, is_active=active)

    def _deactivate_login(self, employee_id: str, now: datetime) -> None:
        self._set_account_active(employee_id, False)
        for s in list(self._db.sessions.values()):
            if s.employee_id == employee_id and s.is_active:
                self._db.sessions[s.session_id] = dataclasses.replace(s, is_active=False, revoked_at=now)

    def overview(self, *, hired_since: date) -> EmployeeOverview:
        active = [e for e in self._db.employees.values() if e.is_active]
        by_department: dict[str, int] = {}
        for e in active:
            by_department[e.department] = by_department.get(e.department, 0) + 1
        return EmployeeOverview(
            total_active=len(active),
            by_department=by_department,
            recent_hires=sum(1 for e in active if e.hire_date >= hired_since),
        )


class InMemoryAccounts:
    def __init__(self, db: InMemoryDB):
        self._db = db

    def get_by_id(self, account_id: int) -> Optional[Account]:
        return self._db.accounts.get(account_id)

    def get_by_username(self, username: str) -> Optional[Account]:
        return self._db.account_by_username(username)

    def get_by_employee_id(self, employee_id: str) -> Optional[Account]:
        return next((a for a in self._db.accounts.values() if a.employee_id == employee_id), None)

    def get_profile(self, account_id: int) -> Optional[AccountProfile]:
        account = self._db.accounts.get(account_id)
        employee = self._db.employees.get(account.employee_id) if account else None
        if not account or not employee:
            return None
        return AccountProfile(
            account_id=account.account_id,
            employee_id=account.employee_id,
            username=account.username,
            role=account.role,
            first_name=employee.first_name,
            last_name=employee.last_name,
            email=employee.email,
            department=employee.department,
            position=employee.position,
            employee_status=employee.status,
            is_active=account.is_active,
            last_login=account.last_login,
        )

    def list_usernames_with_prefix(self, prefix: str):
        return [a.username for a in self._db.accounts.values() if a.username.startswith(prefix)]

    def _replace(self, account_id: int, **changes) -> None:
        self._db.accounts[account_id] = dataclasses.replace(self._db.accounts[account_id], **changes)

    def record_failed_login(self, account_id: int, *, attempts: int, locked_until: Optional[datetime]) -> None:
        self._replace(account_id, failed_login_attempts=attempts, locked_until=locked_until)

    def record_successful_login(self, account_id: int, *, now: datetime) -> None:
        self._replace(account_id, failed_login_attempts=0, locked_until=None, last_login=now)

    def update_password(self, account_id: int, password_hash: str, *, now: datetime) -> bool:
        if account_id not in self._db.accounts:
            return False
        self._replace(account_id, password_hash=password_hash, failed_login_attempts=0, locked_until=None)
        return True


class InMemorySessions:
    def __init__(self, db: InMemoryDB):
        self._db = db

    def create(self, *, account_id, employee_id, token_hash, created_at, expires_at, remember_me=False, ip_address=None, user_agent=None) -> int:
        if any(s.token_hash == token_hash for s in self._db.sessions.values()):
            raise ConflictError("dup", field="token_hash")
        session_id = self._db.next_id("session")
        self._db.sessions[session_id] = Session(
            session_id=session_id,
            account_id=account_id,
            employee_id=employee_id,
            token_hash=token_hash,
            created_at=created_at,
            expires_at=expires_at,
            remember_me=remember_me,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        return session_id

    def get_by_token_hash(self, token_hash: str) -> Optional[Session]:
        return next((s for s in self._db.sessions.values() if s.token_hash == token_hash), None)

    def deactivate(self, session_id: int, *, now: datetime) -> bool:
        s = self._db.sessions.get(session_id)
        if not s or not s.is_active:
            return False
        self._db.sessions[session_id] = dataclasses.replace(s, is_active=False, revoked_at=now)
        return True

    def deactivate_for_account(self, account_id: int, *, now: datetime, keep_session_id: Optional[int] = None) -> int:
        count = 0
        for s in list(self._db.sessions.values()):
            if s.account_id == account_id and s.is_active and s.session_id != keep_session_id:
                self._db.sessions[s.session_id] = dataclasses.replace(s, is_active=False, revoked_at=now)
                count += 1
        return count

    def list_for_employee(self, employee_id: str, *, limit: int = 50):
        rows = [s for s in self._db.sessions.values() if s.employee_id == employee_id]
        return sorted(rows, key=lambda s: s.created_at, reverse=True)[:limit]

    def deactivate_expired(self, *, now: datetime) -> int:
        count = 0
        for s in list(self._db.sessions.values()):
            if s.is_active and s.expires_at <= now:
                self._db.sessions[s.session_id] = dataclasses.replace(s, is_active=False, revoked_at=now)
                count += 1
        return count

    def purge_expired_before(self, cutoff: datetime) -> int:
        stale = [sid for sid, s in self._db.sessions.items() if s.expires_at < cutoff]
        for sid in stale:
            del self._db.sessions[sid]
        return len(stale)


class InMemoryAttendance:
    def __init__(self, db: InMemoryDB):
        self._db = db

    def get(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self._db.attendance.get(attendance_id)

    def get_for_employee_and_date(self, employee_id: str, work_date: date) -> Optional[AttendanceRecord]:
        return next(
            (r for r in self._db.attendance.values() if r.employee_id == employee_id and r.work_date == work_date),
            None,
        )

    def create(self, *, employee_id, work_date, time_in, status, time_out=None, break_minutes=0,
               hours_worked=Decimal("0.00"), overtime_hours=Decimal("0.00"), notes=None, manual_entry=False) -> int:
        if self.get_for_employee_and_date(employee_id, work_date):
            raise ConflictError("dup", field="employee_date")
        attendance_id = self._db.next_id("attendance")
        self._db.attendance[attendance_id] = AttendanceRecord(
            attendance_id=attendance_id,
            employee_id=employee_id,
            work_date=work_date,
            time_in=time_in,
            time_out=time_out,
            status=status,
            break_minutes=break_minutes,
            hours_worked=hours_worked,
            overtime_hours=overtime_hours,
            notes=notes,
            manual_entry=manual_entry,
        )
        return attendance_id

    def close(self, attendance_id: int, *, time_out, hours_worked, overtime_hours, status, notes=None) -> bool:
        r = self._db.attendance.get(attendance_id)
        if not r or r.time_out is not None:
            return False
        self._db.attendance[attendance_id] = dataclasses.replace(
            r, time_out=time_out, hours_worked=hours_worked, overtime_hours=overtime_hours, status=status, notes=notes
        )
        return True

    def update(self, attendance_id: int, fields: dict[str, Any]) -> bool:
        r = self._db.attendance.get(attendance_id)
        if not r:
            return False
        self._db.attendance[attendance_id] = dataclasses.replace(r, **fields)
        return True

    def delete(self, attendance_id: int) -> bool:
        return self._db.attendance.pop(attendance_id, None) is not None

    def _matching(self, *, employee_id=None, start_date=None, end_date=None, status=None, department=None):
        rows = sorted(self._db.attendance.values(), key=lambda r: (r.work_date, r.employee_id))
        if employee_id:
            rows = [r for r in rows if r.employee_id == employee_id]
        if start_date:
            rows = [r for r in rows if r.work_date >= start_date]
        if end_date:
            rows = [r for r in rows if r.work_date <= end_date]
        if status:
            rows = [r for r in rows if r.status == status]
        if department:
            rows = [r for r in rows if self._db.employees[r.employee_id].department == department]
        return rows

    def list(self, filters, *, offset: int, limit: int):
        rows = self._matching(**dataclasses.asdict(filters))
        rows.reverse()
        return rows[offset : offset + limit], len(rows)

    def list_between(self, start_date, end_date, *, employee_id=None, department=None):
        return self._matching(employee_id=employee_id, start_date=start_date, end_date=end_date, department=department)


class InMemoryPayroll:
    def __init__(self, db: InMemoryDB):
        self._db = db
        # employee ids whose insert blows up with a non-domain error
        self.broken_for: set[str] = set()

    def get(self, payroll_id: int) -> Optional[PayrollRecord]:
        return self._db.payroll.get(payroll_id)

    def get_for_period(self, employee_id: str, start: date, end: date) -> Optional[PayrollRecord]:
        return next(
            (
                p
                for p in self._db.payroll.values()
                if p.employee_id == employee_id and p.pay_period_start == start and p.pay_period_end == end
            ),
            None,
        )

    def create(self, *, employee_id, start, end, figures, status=PayrollStatus.DRAFT, notes=None) -> int:
        if employee_id in self.broken_for:
            raise RuntimeError("connection lost")
        if self.get_for_period(employee_id, start, end):
            raise ConflictError("dup", field="employee_period")
        payroll_id = self._db.next_id("payroll")
        self._db.payroll[payroll_id] = PayrollRecord(
            payroll_id=payroll_id,
            employee_id=employee_id,
            pay_period_start=start,
            pay_period_end=end,
            figures=figures,
            status=status,
            notes=notes,
        )
        return payroll_id

    def list(self, filters, *, offset: int, limit: int):
        rows = sorted(self._db.payroll.values(), key=lambda p: (p.pay_period_start, p.employee_id), reverse=True)
        if filters.employee_id:
            rows = [p for p in rows if p.employee_id == filters.employee_id]
        if filters.status:
            rows = [p for p in rows if p.status == filters.status]
        return rows[offset : offset + limit], len(rows)

    def update_status(self, payroll_id: int, status: PayrollStatus, *, processed_at) -> bool:
        p = self._db.payroll.get(payroll_id)
        if not p:
            return False
        self._db.payroll[payroll_id] = dataclasses.replace(p, status=status, processed_at=p.processed_at or processed_at)
        return True

    def update_draft(self, payroll_id: int, figures, *, notes) -> bool:
        p = self._db.payroll.get(payroll_id)
        if not p or p.status != PayrollStatus.DRAFT:
            return False
        self._db.payroll[payroll_id] = dataclasses.replace(p, figures=figures, notes=notes)
        return True

    def delete_draft(self, payroll_id: int) -> bool:
        p = self._db.payroll.get(payroll_id)
        if not p or p.status != PayrollStatus.DRAFT:
            return False
        del self._db.payroll[payroll_id]
        return True

    def latest_period_end(self):
        return max((p.pay_period_end for p in self._db.payroll.values()), default=None)


class InMemoryOvertime:
    def __init__(self, db: InMemoryDB):
        self._db = db

    def get(self, request_id: int) -> Optional[OvertimeRequest]:
        return self._db.overtime.get(request_id)

    def find_pending(self, employee_id: str, request_date: date) -> Optional[OvertimeRequest]:
        return next(
            (
                r
                for r in self._db.overtime.values()
                if r.employee_id == employee_id and r.request_date == request_date and r.is_pending
            ),
            None,
        )

    def create(self, *, employee_id, request_date, hours_requested, reason, created_at) -> int:
        if self.find_pending(employee_id, request_date):
            raise ConflictError("dup", field="pending_date")
        request_id = self._db.next_id("overtime")
        self._db.overtime[request_id] = OvertimeRequest(
            request_id=request_id,
            employee_id=employee_id,
            request_date=request_date,
            hours_requested=hours_requested,
            reason=reason,
            created_at=created_at,
        )
        return request_id

    def delete_pending(self, request_id: int) -> bool:
        r = self._db.overtime.get(request_id)
        if not r or not r.is_pending:
            return False
        del self._db.overtime[request_id]
        return True

    def review(self, request_id: int, *, status, reviewed_by, reviewed_at, notes=None) -> bool:
        r = self._db.overtime.get(request_id)
        if not r or not r.is_pending:
            return False
        self._db.overtime[request_id] = dataclasses.replace(
            r, status=status, reviewed_by=reviewed_by, reviewed_at=reviewed_at, review_notes=notes
        )
        return True

    def list(self, filters, *, offset: int, limit: int):
        rows = sorted(self._db.overtime.values(), key=lambda r: (r.created_at, r.request_id), reverse=True)
        if filters.employee_id:
            rows = [r for r in rows if r.employee_id == filters.employee_id]
        if filters.status:
            rows = [r for r in rows if r.status == filters.status]
        if filters.start_date:
            rows = [r for r in rows if r.request_date >= filters.start_date]
        if filters.end_date:
            rows = [r for r in rows if r.request_date <= filters.end_date]
        return rows[offset : offset + limit], len(rows)

    def list_between(self, employee_id: str, start: date, end: date):
        return sorted(
            (r for r in self._db.overtime.values() if r.employee_id == employee_id and start <= r.request_date <= end),
            key=lambda r: r.request_date,
        )


class InMemorySettings:
    def __init__(self, db: InMemoryDB):
        self._db = db

    def list_all(self):
        return sorted(self._db.settings.values(), key=lambda s: (s.category, s.key))

    def get(self, key: str) -> Optional[Setting]:
        return self._db.settings.get(key)

    def update_value(self, key: str, value: str) -> bool:
        if key not in self._db.settings:
            return False
        self._db.settings[key] = dataclasses.replace(self._db.settings[key], value=value)
        return True


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def db() -> InMemoryDB:
    return InMemoryDB()


@pytest.fixture
def repos(db):
    return {
        "employees_repo": InMemoryEmployees(db),
        "accounts_repo": InMemoryAccounts(db),
        "sessions_repo": InMemorySessions(db),
        "attendance_repo": InMemoryAttendance(db),
        "payroll_repo": InMemoryPayroll(db),
        "overtime_repo": InMemoryOvertime(db),
        "settings_repo": InMemorySettings(db),
    }


@pytest.fixture
def container(repos):
    return wire_services(
        **repos,
        jwt_secret=TEST_JWT_SECRET,
        hash_method=TEST_HASH_METHOD,
        auth_policy=AuthPolicy(),
    )


@pytest.fixture
def make_employee(container, fixed_now):
    """Create an employee plus account through the service."""

    counter = {"n": 0}

    def _make(first_name="Erika Bianca", last_name="Api", **overrides):
        counter["n"] += 1
        data = dict(
            first_name=first_name,
            last_name=last_name,
            email=f"person{counter['n']}@example.com",
            department="Engineering",
            position="Developer",
            hire_date="2024-01-15",
            hourly_rate="25.00",
            now=fixed_now,
        )
        data.update(overrides)
        return container.employee_service.create_employee(**data)

    return _make
