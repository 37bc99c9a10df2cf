from __future__ import annotations

from dataclasses import replace

from ...attendance.model import MonthlyAttendanceSummary
from ...common.validators import require_non_negative, require_period
from ...core.policy import PayrollRates
from ...employees.model import Employee
from ..model import CalculationDetails, Deductions, PayrollRecord
from .base import PayrollCalculator


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: base salary plus overtime, flat percentage deductions.

    Base salary is not pro-rated by absences; absent/leave days are carried
    on the record for reporting only.
    """

    def __init__(self, rates: PayrollRates | None = None):
        self._rates = rates or PayrollRates()

    @property
    def rates(self) -> PayrollRates:
        return self._rates

    def _details(self, base_salary: float) -> CalculationDetails:
        hourly_rate = base_salary / self._rates.standard_monthly_hours
        return CalculationDetails(
            hourly_rate=hourly_rate,
            overtime_rate=hourly_rate * self._rates.overtime_multiplier,
            tax_rate=self._rates.tax_rate,
            social_security_rate=self._rates.social_security_rate,
            health_insurance_rate=self._rates.health_insurance_rate,
        )

    @staticmethod
    def _deductions(total_gross: float, details: CalculationDetails, other: float) -> Deductions:
        return Deductions(
            tax=total_gross * details.tax_rate,
            social_security=total_gross * details.social_security_rate,
            health_insurance=total_gross * details.health_insurance_rate,
            other=other,
        )

    def calculate(
        self,
        employee: Employee,
        month: int,
        year: int,
        summary: MonthlyAttendanceSummary,
        *,
        bonus: float = 0.0,
        other_deduction: float = 0.0,
    ) -> PayrollRecord:
        month, year = require_period(month, year)
        base_salary = require_non_negative(employee.base_salary, "base_salary")
        bonus = require_non_negative(bonus, "bonus")
        other_deduction = require_non_negative(other_deduction, "other_deduction")

        details = self._details(base_salary)
        overtime_pay = summary.total_overtime_hours * details.overtime_rate
        allowance = float(employee.allowance or 0.0)

        record = PayrollRecord(
            employee_id=employee.employee_id,
            month=month,
            year=year,
            base_salary=base_salary,
            total_work_days=summary.present_days,
            total_work_hours=summary.total_work_hours,
            overtime_hours=summary.total_overtime_hours,
            leave_days=summary.leave_days,
            absent_days=summary.absent_days,
            late_days=summary.late_days,
            gross_salary=base_salary,
            overtime_pay=overtime_pay,
            bonus=bonus,
            allowance=allowance,
            calculation_details=details,
        )
        record = replace(record, deductions=self._deductions(record.total_gross, details, other_deduction))
        return record.with_totals()

    def recalculate(self, record: PayrollRecord) -> PayrollRecord:
        deductions = self._deductions(record.total_gross, record.calculation_details, record.deductions.other)
        return replace(record, deductions=deductions).with_totals()
