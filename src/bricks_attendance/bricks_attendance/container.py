from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .accounts.mysql_account_repository import MySQLAccountRepository
from .accounts.passwords import PasswordHasher
from .accounts.repository import AccountRepository
from .accounts.service import AuthPolicy, AuthService
from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import EmployeeRepository
from .employees.service import EmployeeService
from .overtime.mysql_overtime_repository import MySQLOvertimeRepository
from .overtime.repository import OvertimeRepository
from .overtime.service import OvertimeService
from .payroll.mysql_payroll_repository import MySQLPayrollRepository
from .payroll.repository import PayrollRepository
from .payroll.service import PayrollService
from .sessions.maintenance import SessionMaintenance
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.repository import SessionRepository
from .sessions.tokens import TokenCodec
from .settings.mysql_settings_repository import MySQLSettingsRepository
from .settings.repository import SettingsRepository
from .settings.service import SettingsService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    employees_repo: EmployeeRepository
    accounts_repo: AccountRepository
    sessions_repo: SessionRepository
    attendance_repo: AttendanceRepository
    payroll_repo: PayrollRepository
    overtime_repo: OvertimeRepository
    settings_repo: SettingsRepository

    auth_service: AuthService
    employee_service: EmployeeService
    attendance_service: AttendanceService
    payroll_service: PayrollService
    overtime_service: OvertimeService
    settings_service: SettingsService
    session_maintenance: SessionMaintenance


def wire_services(
    *,
    employees_repo: EmployeeRepository,
    accounts_repo: AccountRepository,
    sessions_repo: SessionRepository,
    attendance_repo: AttendanceRepository,
    payroll_repo: PayrollRepository,
    overtime_repo: OvertimeRepository,
    settings_repo: SettingsRepository,
    jwt_secret: str,
    hash_method: str = "scrypt",
    auth_policy: Optional[AuthPolicy] = None,
    session_retention_days: int = 30,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Build the services on top of any repository implementations."""

    hasher = PasswordHasher(method=hash_method)
    settings_service = SettingsService(settings_repo)

    auth_service = AuthService(
        accounts_repo,
        sessions_repo,
        TokenCodec(jwt_secret),
        hasher=hasher,
        policy=auth_policy or AuthPolicy(),
    )
    employee_service = EmployeeService(employees_repo, accounts_repo, hasher=hasher, settings=settings_service)
    attendance_service = AttendanceService(
        attendance_repo,
        employees_repo,
        settings=settings_service,
        strategy_factory=AttendanceStrategyFactory(),
    )
    payroll_service = PayrollService(payroll_repo, attendance_repo, employees_repo, settings=settings_service)

    return Container(
        conn=conn,
        employees_repo=employees_repo,
        accounts_repo=accounts_repo,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
        payroll_repo=payroll_repo,
        overtime_repo=overtime_repo,
        settings_repo=settings_repo,
        auth_service=auth_service,
        employee_service=employee_service,
        attendance_service=attendance_service,
        payroll_service=payroll_service,
        overtime_service=OvertimeService(overtime_repo, employees_repo),
        settings_service=settings_service,
        session_maintenance=SessionMaintenance(sessions_repo, retention_days=session_retention_days),
    )


def build_container(
    *,
    db_config: dict,
    jwt_secret: str,
    hash_method: str = "scrypt",
    auth_policy: Optional[AuthPolicy] = None,
    session_retention_days: int = 30,
) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    return wire_services(
        employees_repo=MySQLEmployeeRepository(conn),
        accounts_repo=MySQLAccountRepository(conn),
        sessions_repo=MySQLSessionRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        payroll_repo=MySQLPayrollRepository(conn),
        overtime_repo=MySQLOvertimeRepository(conn),
        settings_repo=MySQLSettingsRepository(conn),
        jwt_secret=jwt_secret,
        hash_method=hash_method,
        auth_policy=auth_policy,
        session_retention_days=session_retention_days,
        conn=conn,
    )
