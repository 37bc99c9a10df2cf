from __future__ import annotations

import io
import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Sequence
from zoneinfo import ZoneInfo

import pandas as pd

from ..attendance import aggregator
from ..attendance.model import MonthlyAttendanceSummary
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import month_range, now_local
from ..common.validators import normalize_text, parse_enum, require_non_negative, require_period
from ..core.constants import DEFAULT_PAYROLL_HISTORY_LIMIT
from ..core.enums import PaymentMethod, PaymentStatus
from ..core.exceptions import DuplicatePayrollPeriod, EmployeeNotFound, PayrollNotFound, StateError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator
from .model import PayrollRecord
from .repository import PayrollRepository

logger = logging.getLogger(__name__)

_EXPORT_COLUMNS = [
    "payroll_id",
    "employee_id",
    "full_name",
    "department",
    "month",
    "year",
    "total_work_days",
    "total_work_hours",
    "overtime_hours",
    "leave_days",
    "absent_days",
    "late_days",
    "gross_salary",
    "overtime_pay",
    "bonus",
    "allowance",
    "tax",
    "social_security",
    "health_insurance",
    "other_deduction",
    "total_deductions",
    "net_salary",
    "payment_status",
    "payment_method",
    "payment_date",
]


class PayrollService:
    """Monthly payroll: calculation, adjustments, approval and payment."""

    def __init__(
        self,
        payroll: PayrollRepository,
        employees: EmployeeRepository,
        attendance: AttendanceRepository,
        *,
        calculator: PayrollCalculator | None = None,
        clock: Callable[[], datetime] | None = None,
        tz: ZoneInfo | None = None,
    ):
        self._payroll = payroll
        self._employees = employees
        self._attendance = attendance
        self._calculator = calculator or StandardPayrollCalculator()
        self._clock = clock or (lambda: now_local(tz))

    def _require_employee(self, employee_id: int) -> Employee:
        employee = self._employees.get_by_id(int(employee_id))
        if not employee:
            raise EmployeeNotFound(int(employee_id))
        return employee

    def _require_record(self, payroll_id: int) -> PayrollRecord:
        record = self._payroll.get_by_id(int(payroll_id))
        if not record:
            raise PayrollNotFound(f"Payroll record {payroll_id} not found")
        return record

    def _save(self, record: PayrollRecord) -> PayrollRecord:
        record = record.with_totals()
        if not self._payroll.update(record):
            raise PayrollNotFound(f"Payroll record {record.payroll_id} not found")
        return record

    def attendance_summary(self, employee_id: int, month: int, year: int) -> MonthlyAttendanceSummary:
        start, end = month_range(year, month)
        records = self._attendance.find_records_in_range(int(employee_id), start, end)
        return aggregator.summarize(int(employee_id), start, end, records)

    def calculate_payroll(
        self,
        employee_id: int,
        month: int,
        year: int,
        *,
        bonus: float = 0.0,
        allowance: float | None = None,
        other_deduction: float = 0.0,
        notes: str | None = None,
        created_by: int | None = None,
    ) -> PayrollRecord:
        employee = self._require_employee(employee_id)
        return self.create_for_employee(
            employee,
            month,
            year,
            bonus=bonus,
            allowance=allowance,
            other_deduction=other_deduction,
            notes=notes,
            created_by=created_by,
        )

    def create_for_employee(
        self,
        employee: Employee,
        month: int,
        year: int,
        *,
        bonus: float = 0.0,
        allowance: float | None = None,
        other_deduction: float = 0.0,
        notes: str | None = None,
        created_by: int | None = None,
    ) -> PayrollRecord:
        month, year = require_period(month, year)
        if self._payroll.find_payroll(employee.employee_id, month, year):
            raise DuplicatePayrollPeriod(employee.employee_id, month, year)

        if allowance is not None:
            employee = replace(employee, allowance=require_non_negative(allowance, "allowance"))

        summary = self.attendance_summary(employee.employee_id, month, year)
        record = self._calculator.calculate(
            employee,
            month,
            year,
            summary,
            bonus=bonus,
            other_deduction=other_deduction,
        )
        record = replace(record, notes=normalize_text(notes), created_by=created_by)
        created = self._payroll.create(record)
        logger.info(
            "Payroll created employee=%s period=%02d/%s net=%.2f",
            created.employee_id,
            month,
            year,
            created.net_salary,
        )
        return created

    def get(self, payroll_id: int) -> PayrollRecord:
        return self._require_record(payroll_id)

    def list_for_period(
        self,
        *,
        month: int | None = None,
        year: int | None = None,
        status=None,
    ) -> Sequence[PayrollRecord]:
        rows = self._payroll.list_for_period(month=month, year=year)
        if status:
            wanted = parse_enum(PaymentStatus, status, "status")
            rows = [r for r in rows if r.payment_status == wanted]
        return rows

    def employee_history(self, employee_id: int, *, limit: int = DEFAULT_PAYROLL_HISTORY_LIMIT) -> Sequence[PayrollRecord]:
        return self._payroll.list_for_employee(int(employee_id), int(limit))

    def update_adjustments(
        self,
        payroll_id: int,
        *,
        bonus: float | None = None,
        allowance: float | None = None,
        other_deduction: float | None = None,
        notes: str | None = None,
        updated_by: int | None = None,
    ) -> PayrollRecord:
        record = self._require_record(payroll_id)
        if record.payment_status != PaymentStatus.PENDING:
            raise StateError(f"Cannot adjust a {record.payment_status.value} payroll record")

        changes: dict = {"updated_by": updated_by}
        if bonus is not None:
            changes["bonus"] = require_non_negative(bonus, "bonus")
        if allowance is not None:
            changes["allowance"] = require_non_negative(allowance, "allowance")
        if other_deduction is not None:
            changes["deductions"] = replace(
                record.deductions, other=require_non_negative(other_deduction, "other_deduction")
            )
        if notes is not None:
            changes["notes"] = normalize_text(notes)

        updated = self._calculator.recalculate(replace(record, **changes))
        return self._save(updated)

    def approve(self, payroll_id: int, *, approved_by: int, now: datetime | None = None) -> PayrollRecord:
        record = self._require_record(payroll_id)
        if record.payment_status == PaymentStatus.CANCELLED:
            raise StateError("Cannot approve a cancelled payroll record")
        updated = replace(
            record,
            approved_by=int(approved_by),
            approved_at=now or self._clock(),
            updated_by=int(approved_by),
        )
        logger.info("Payroll %s approved by %s", record.payroll_id, approved_by)
        return self._save(updated)

    def mark_paid(
        self,
        payroll_id: int,
        *,
        payment_method=None,
        payment_date: datetime | None = None,
        updated_by: int | None = None,
    ) -> PayrollRecord:
        record = self._require_record(payroll_id)
        if record.payment_status != PaymentStatus.PENDING:
            raise StateError(f"Cannot pay a {record.payment_status.value} payroll record")
        updated = replace(
            record,
            payment_status=PaymentStatus.PAID,
            payment_method=parse_enum(PaymentMethod, payment_method, "payment_method", record.payment_method),
            payment_date=payment_date or self._clock(),
            updated_by=updated_by,
        )
        logger.info("Payroll %s paid via %s", record.payroll_id, updated.payment_method.value)
        return self._save(updated)

    def cancel(self, payroll_id: int, *, updated_by: int | None = None, notes: str | None = None) -> PayrollRecord:
        record = self._require_record(payroll_id)
        if record.payment_status != PaymentStatus.PENDING:
            raise StateError(f"Cannot cancel a {record.payment_status.value} payroll record")
        updated = replace(
            record,
            payment_status=PaymentStatus.CANCELLED,
            notes=normalize_text(notes) or record.notes,
            updated_by=updated_by,
        )
        logger.info("Payroll %s cancelled", record.payroll_id)
        return self._save(updated)

    def delete(self, payroll_id: int) -> None:
        if not self._payroll.delete(int(payroll_id)):
            raise PayrollNotFound(f"Payroll record {payroll_id} not found")
        logger.info("Payroll %s deleted", payroll_id)

    def stats_overview(self, *, month: int | None = None, year: int | None = None) -> dict:
        rows = self._payroll.list_for_period(month=month, year=year)
        by_status = {s: 0 for s in PaymentStatus}
        for r in rows:
            by_status[r.payment_status] += 1

        return {
            "total_records": len(rows),
            "total_gross_salary": sum(r.gross_salary for r in rows),
            "total_overtime_pay": sum(r.overtime_pay for r in rows),
            "total_bonus": sum(r.bonus for r in rows),
            "total_allowance": sum(r.allowance for r in rows),
            "total_deductions": sum(r.total_deductions for r in rows),
            "total_net_salary": sum(r.net_salary for r in rows),
            "paid_records": by_status[PaymentStatus.PAID],
            "pending_records": by_status[PaymentStatus.PENDING],
            "cancelled_records": by_status[PaymentStatus.CANCELLED],
        }

    def export_frame(self, *, month: int | None = None, year: int | None = None) -> pd.DataFrame:
        rows = self._payroll.list_for_period(month=month, year=year)
        names: dict[int, Employee | None] = {}

        data = []
        for r in rows:
            if r.employee_id not in names:
                names[r.employee_id] = self._employees.get_by_id(r.employee_id)
            employee = names[r.employee_id]
            data.append(
                {
                    "payroll_id": r.payroll_id,
                    "employee_id": r.employee_id,
                    "full_name": employee.full_name if employee else "",
                    "department": (employee.department if employee else None) or "-",
                    "month": r.month,
                    "year": r.year,
                    "total_work_days": r.total_work_days,
                    "total_work_hours": round(r.total_work_hours, 2),
                    "overtime_hours": round(r.overtime_hours, 2),
                    "leave_days": r.leave_days,
                    "absent_days": r.absent_days,
                    "late_days": r.late_days,
                    "gross_salary": round(r.gross_salary, 2),
                    "overtime_pay": round(r.overtime_pay, 2),
                    "bonus": round(r.bonus, 2),
                    "allowance": round(r.allowance, 2),
                    "tax": round(r.deductions.tax, 2),
                    "social_security": round(r.deductions.social_security, 2),
                    "health_insurance": round(r.deductions.health_insurance, 2),
                    "other_deduction": round(r.deductions.other, 2),
                    "total_deductions": round(r.total_deductions, 2),
                    "net_salary": round(r.net_salary, 2),
                    "payment_status": r.payment_status.value,
                    "payment_method": r.payment_method.value,
                    "payment_date": r.payment_date.strftime("%Y-%m-%d") if r.payment_date else "",
                }
            )
        return pd.DataFrame(data, columns=_EXPORT_COLUMNS)

    def export_excel(self, *, month: int | None = None, year: int | None = None) -> bytes:
        df = self.export_frame(month=month, year=year)
        buf = io.BytesIO()
        with pd.ExcelWriter(buf, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="Payroll")
        return buf.getvalue()
