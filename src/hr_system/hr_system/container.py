from __future__ import annotations

from dataclasses import dataclass

from .attendance.engine import AttendanceEngine
from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_BATCH_WORKERS
from .core.policy import PayrollRates, WorkPolicy
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import EmployeeRepository
from .payroll.batch import PayrollBatchRunner
from .payroll.calculator.standard_calculator import StandardPayrollCalculator
from .payroll.mysql_payroll_repository import MySQLPayrollRepository
from .payroll.repository import PayrollRepository
from .payroll.service import PayrollService


@dataclass(frozen=True)
class Container:
    employees_repo: EmployeeRepository
    attendance_repo: AttendanceRepository
    payroll_repo: PayrollRepository

    attendance_service: AttendanceService
    payroll_service: PayrollService
    payroll_batch_runner: PayrollBatchRunner


def wire(
    *,
    employees_repo: EmployeeRepository,
    attendance_repo: AttendanceRepository,
    payroll_repo: PayrollRepository,
    settings=None,
) -> Container:
    """Build services over the given repositories.

    ``settings`` is any object with the config module's attribute names;
    missing attributes fall back to the built-in defaults.
    """
    policy = WorkPolicy.from_settings(settings)
    rates = PayrollRates.from_settings(settings)

    engine = AttendanceEngine(policy, strategy_factory=AttendanceStrategyFactory())
    attendance_service = AttendanceService(attendance_repo, employees_repo, engine=engine)
    payroll_service = PayrollService(
        payroll_repo,
        employees_repo,
        attendance_repo,
        calculator=StandardPayrollCalculator(rates),
        tz=policy.timezone,
    )
    payroll_batch_runner = PayrollBatchRunner(
        payroll_service,
        employees_repo,
        max_workers=int(getattr(settings, "PAYROLL_BATCH_WORKERS", DEFAULT_BATCH_WORKERS)),
    )

    return Container(
        employees_repo=employees_repo,
        attendance_repo=attendance_repo,
        payroll_repo=payroll_repo,
        attendance_service=attendance_service,
        payroll_service=payroll_service,
        payroll_batch_runner=payroll_batch_runner,
    )


def build_container(*, db_config: dict, settings=None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    policy = WorkPolicy.from_settings(settings)

    return wire(
        employees_repo=MySQLEmployeeRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn, tz=policy.timezone),
        payroll_repo=MySQLPayrollRepository(conn),
        settings=settings,
    )
