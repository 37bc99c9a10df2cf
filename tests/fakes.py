"""In-memory repositories shared by the service and API tests."""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date

from src.hr_system.hr_system.attendance.engine import AttendanceEngine
from src.hr_system.hr_system.attendance.model import AttendanceRecord
from src.hr_system.hr_system.attendance.service import AttendanceService
from src.hr_system.hr_system.container import Container
from src.hr_system.hr_system.core.exceptions import DuplicateCheckIn, DuplicatePayrollPeriod
from src.hr_system.hr_system.employees.model import Employee
from src.hr_system.hr_system.payroll.batch import PayrollBatchRunner
from src.hr_system.hr_system.payroll.model import PayrollRecord
from src.hr_system.hr_system.payroll.service import PayrollService


class InMemoryEmployees:
    def __init__(self, *employees: Employee):
        self._by_id = {e.employee_id: e for e in employees}

    def get_by_id(self, employee_id: int) -> Employee | None:
        return self._by_id.get(int(employee_id))

    def list_active(self, *, department=None):
        rows = [e for e in self._by_id.values() if e.is_active]
        if department:
            rows = [e for e in rows if e.department == department]
        return sorted(rows, key=lambda e: e.employee_id)


class InMemoryAttendance:
    def __init__(self, employees: InMemoryEmployees | None = None):
        self._employees = employees
        self._by_id: dict[int, AttendanceRecord] = {}
        self._next_id = 0
        self._lock = threading.Lock()

    def find_record(self, employee_id: int, work_date: date) -> AttendanceRecord | None:
        return self._find(employee_id, work_date)

    def _find(self, employee_id, work_date):
        for r in self._by_id.values():
            if r.employee_id == int(employee_id) and r.work_date == work_date:
                return r
        return None

    def find_records_in_range(self, employee_id: int, start_date: date, end_date: date):
        rows = [r for r in self._by_id.values() if r.employee_id == int(employee_id) and start_date <= r.work_date <= end_date]
        return sorted(rows, key=lambda r: r.work_date)

    def find_all_in_range(self, start_date: date, end_date: date):
        rows = [r for r in self._by_id.values() if start_date <= r.work_date <= end_date]
        return sorted(rows, key=lambda r: (r.work_date, r.employee_id))

    def get_by_id(self, attendance_id: int) -> AttendanceRecord | None:
        return self._by_id.get(int(attendance_id))

    def get_recent_for_employee(self, employee_id: int, limit: int):
        rows = [r for r in self._by_id.values() if r.employee_id == int(employee_id)]
        rows.sort(key=lambda r: r.work_date, reverse=True)
        return rows[:limit]

    def find_filtered(
        self,
        *,
        employee_id=None,
        start_date=None,
        end_date=None,
        status=None,
        department=None,
        sort_by="work_date",
        descending=True,
        offset=0,
        limit=10,
    ):
        rows = list(self._by_id.values())
        if employee_id is not None:
            rows = [r for r in rows if r.employee_id == int(employee_id)]
        if start_date is not None:
            rows = [r for r in rows if r.work_date >= start_date]
        if end_date is not None:
            rows = [r for r in rows if r.work_date <= end_date]
        if status is not None:
            rows = [r for r in rows if r.status == status]
        if department:
            rows = [r for r in rows if self._department_of(r.employee_id) == department]
        rows.sort(key=lambda r: (getattr(r, sort_by), r.attendance_id), reverse=descending)
        return rows[offset : offset + limit], len(rows)

    def _department_of(self, employee_id: int):
        employee = self._employees.get_by_id(employee_id) if self._employees else None
        return employee.department if employee else None

    def create(self, record: AttendanceRecord) -> AttendanceRecord:
        with self._lock:
            if self._find(record.employee_id, record.work_date):
                raise DuplicateCheckIn(record.employee_id, record.work_date)
            self._next_id += 1
            created = replace(record, attendance_id=self._next_id)
            self._by_id[self._next_id] = created
            return created

    def update(self, record: AttendanceRecord) -> bool:
        if record.attendance_id not in self._by_id:
            return False
        self._by_id[record.attendance_id] = record
        return True

    def delete(self, attendance_id: int) -> bool:
        return self._by_id.pop(int(attendance_id), None) is not None


class InMemoryPayroll:
    def __init__(self):
        self._by_id: dict[int, PayrollRecord] = {}
        self._next_id = 0
        self._lock = threading.Lock()

    def find_payroll(self, employee_id: int, month: int, year: int) -> PayrollRecord | None:
        return self._find(employee_id, month, year)

    def _find(self, employee_id, month, year):
        for r in self._by_id.values():
            if (r.employee_id, r.month, r.year) == (int(employee_id), int(month), int(year)):
                return r
        return None

    def get_by_id(self, payroll_id: int) -> PayrollRecord | None:
        return self._by_id.get(int(payroll_id))

    def list_for_period(self, *, month=None, year=None):
        rows = list(self._by_id.values())
        if month is not None:
            rows = [r for r in rows if r.month == int(month)]
        if year is not None:
            rows = [r for r in rows if r.year == int(year)]
        return rows

    def list_for_employee(self, employee_id: int, limit: int):
        rows = [r for r in self._by_id.values() if r.employee_id == int(employee_id)]
        rows.sort(key=lambda r: (r.year, r.month), reverse=True)
        return rows[:limit]

    def create(self, record: PayrollRecord) -> PayrollRecord:
        with self._lock:
            if self._find(record.employee_id, record.month, record.year):
                raise DuplicatePayrollPeriod(record.employee_id, record.month, record.year)
            self._next_id += 1
            created = replace(record.with_totals(), payroll_id=self._next_id)
            self._by_id[self._next_id] = created
            return created

    def update(self, record: PayrollRecord) -> bool:
        if record.payroll_id not in self._by_id:
            return False
        self._by_id[record.payroll_id] = record.with_totals()
        return True

    def delete(self, payroll_id: int) -> bool:
        return self._by_id.pop(int(payroll_id), None) is not None


class Clock:
    """Settable stand-in for ``now_local``."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def build_test_container(clock, *employees: Employee) -> Container:
    employees_repo = InMemoryEmployees(*employees)
    attendance_repo = InMemoryAttendance(employees_repo)
    payroll_repo = InMemoryPayroll()
    payroll_service = PayrollService(payroll_repo, employees_repo, attendance_repo, clock=clock)

    return Container(
        employees_repo=employees_repo,
        attendance_repo=attendance_repo,
        payroll_repo=payroll_repo,
        attendance_service=AttendanceService(attendance_repo, employees_repo, engine=AttendanceEngine(), clock=clock),
        payroll_service=payroll_service,
        payroll_batch_runner=PayrollBatchRunner(payroll_service, employees_repo, max_workers=2),
    )
