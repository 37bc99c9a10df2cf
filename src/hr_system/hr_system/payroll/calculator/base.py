from __future__ import annotations

from abc import ABC, abstractmethod

from ...attendance.model import MonthlyAttendanceSummary
from ...employees.model import Employee
from ..model import PayrollRecord


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
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
        raise NotImplementedError

    @abstractmethod
    def recalculate(self, record: PayrollRecord) -> PayrollRecord:
        """Re-derive deductions and totals after bonus/allowance/other changed."""
        raise NotImplementedError
