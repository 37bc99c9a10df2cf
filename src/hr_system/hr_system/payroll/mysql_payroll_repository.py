from __future__ import annotations

from dataclasses import replace
from typing import Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import PaymentMethod, PaymentStatus
from ..core.exceptions import DuplicatePayrollPeriod
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, is_duplicate_key
from .model import CalculationDetails, Deductions, PayrollRecord
from .repository import PayrollRepository

# Columns written on both insert and update, in parameter order.
_VALUE_COLUMNS = (
    "base_salary",
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
    "hourly_rate",
    "overtime_rate",
    "tax_rate",
    "social_security_rate",
    "health_insurance_rate",
    "payment_status",
    "payment_method",
    "payment_date",
    "approved_by",
    "approved_at",
    "notes",
)

_SELECT = (
    "SELECT payroll_id, employee_id, month, year, "
    + ", ".join(_VALUE_COLUMNS)
    + ", created_by, updated_by FROM payroll_records"
)


def _to_record(r: dict) -> PayrollRecord:
    return PayrollRecord(
        payroll_id=int(r["payroll_id"]),
        employee_id=int(r["employee_id"]),
        month=int(r["month"]),
        year=int(r["year"]),
        base_salary=float(r.get("base_salary") or 0),
        total_work_days=int(r.get("total_work_days") or 0),
        total_work_hours=float(r.get("total_work_hours") or 0),
        overtime_hours=float(r.get("overtime_hours") or 0),
        leave_days=int(r.get("leave_days") or 0),
        absent_days=int(r.get("absent_days") or 0),
        late_days=int(r.get("late_days") or 0),
        gross_salary=float(r.get("gross_salary") or 0),
        overtime_pay=float(r.get("overtime_pay") or 0),
        bonus=float(r.get("bonus") or 0),
        allowance=float(r.get("allowance") or 0),
        deductions=Deductions(
            tax=float(r.get("tax") or 0),
            social_security=float(r.get("social_security") or 0),
            health_insurance=float(r.get("health_insurance") or 0),
            other=float(r.get("other_deduction") or 0),
        ),
        total_deductions=float(r.get("total_deductions") or 0),
        net_salary=float(r.get("net_salary") or 0),
        calculation_details=CalculationDetails(
            hourly_rate=float(r.get("hourly_rate") or 0),
            overtime_rate=float(r.get("overtime_rate") or 0),
            tax_rate=float(r.get("tax_rate") or 0),
            social_security_rate=float(r.get("social_security_rate") or 0),
            health_insurance_rate=float(r.get("health_insurance_rate") or 0),
        ),
        payment_status=PaymentStatus(r.get("payment_status") or PaymentStatus.PENDING.value),
        payment_method=PaymentMethod(r.get("payment_method") or PaymentMethod.BANK_TRANSFER.value),
        payment_date=r.get("payment_date"),
        approved_by=r.get("approved_by"),
        approved_at=r.get("approved_at"),
        notes=r.get("notes"),
        created_by=r.get("created_by"),
        updated_by=r.get("updated_by"),
    )


def _value_params(record: PayrollRecord) -> tuple:
    d = record.deductions
    c = record.calculation_details
    return (
        record.base_salary,
        record.total_work_days,
        record.total_work_hours,
        record.overtime_hours,
        record.leave_days,
        record.absent_days,
        record.late_days,
        record.gross_salary,
        record.overtime_pay,
        record.bonus,
        record.allowance,
        d.tax,
        d.social_security,
        d.health_insurance,
        d.other,
        record.total_deductions,
        record.net_salary,
        c.hourly_rate,
        c.overtime_rate,
        c.tax_rate,
        c.social_security_rate,
        c.health_insurance_rate,
        record.payment_status.value,
        record.payment_method.value,
        record.payment_date,
        record.approved_by,
        record.approved_at,
        record.notes,
    )


class MySQLPayrollRepository(PayrollRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select(self, where: str, params: tuple, *, limit: int | None = None) -> list[PayrollRecord]:
        sql = f"{_SELECT} WHERE {where} ORDER BY year DESC, month DESC, payroll_id DESC"
        if limit is not None:
            sql += " LIMIT %s"
            params = params + (int(limit),)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return [_to_record(r) for r in fetchall(cur)]

    def find_payroll(self, employee_id: int, month: int, year: int) -> PayrollRecord | None:
        rows = self._select("employee_id=%s AND month=%s AND year=%s", (int(employee_id), int(month), int(year)))
        return rows[0] if rows else None

    def get_by_id(self, payroll_id: int) -> PayrollRecord | None:
        rows = self._select("payroll_id=%s", (int(payroll_id),))
        return rows[0] if rows else None

    def list_for_period(self, *, month: int | None = None, year: int | None = None) -> Sequence[PayrollRecord]:
        clauses = ["1=1"]
        params: list[object] = []
        if month is not None:
            clauses.append("month=%s")
            params.append(int(month))
        if year is not None:
            clauses.append("year=%s")
            params.append(int(year))
        return self._select(" AND ".join(clauses), tuple(params))

    def list_for_employee(self, employee_id: int, limit: int) -> Sequence[PayrollRecord]:
        return self._select("employee_id=%s", (int(employee_id),), limit=limit)

    def create(self, record: PayrollRecord) -> PayrollRecord:
        record = record.with_totals()
        columns = ("employee_id", "month", "year", *_VALUE_COLUMNS, "created_by")
        placeholders = ",".join(["%s"] * len(columns))
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"INSERT INTO payroll_records({', '.join(columns)}) VALUES({placeholders})",
                    (record.employee_id, record.month, record.year, *_value_params(record), record.created_by),
                )
                payroll_id = int(cur.lastrowid)
        except IntegrityError as exc:
            if is_duplicate_key(exc):
                raise DuplicatePayrollPeriod(record.employee_id, record.month, record.year) from exc
            raise

        return replace(record, payroll_id=payroll_id)

    def update(self, record: PayrollRecord) -> bool:
        record = record.with_totals()
        assignments = ", ".join(f"{col}=%s" for col in _VALUE_COLUMNS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT payroll_id FROM payroll_records WHERE payroll_id=%s FOR UPDATE",
                (int(record.payroll_id),),
            )
            if not fetchall(cur):
                return False
            cur.execute(
                f"UPDATE payroll_records SET {assignments}, updated_by=%s WHERE payroll_id=%s",
                (*_value_params(record), record.updated_by, int(record.payroll_id)),
            )
            return True

    def delete(self, payroll_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM payroll_records WHERE payroll_id=%s", (int(payroll_id),))
            return cur.rowcount > 0
