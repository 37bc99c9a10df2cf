from __future__ import annotations

from typing import Protocol, Sequence

from .model import PayrollRecord


class PayrollRepository(Protocol):
    def find_payroll(self, employee_id: int, month: int, year: int) -> PayrollRecord | None:
        raise NotImplementedError

    def get_by_id(self, payroll_id: int) -> PayrollRecord | None:
        raise NotImplementedError

    def list_for_period(self, *, month: int | None = None, year: int | None = None) -> Sequence[PayrollRecord]:
        raise NotImplementedError

    def list_for_employee(self, employee_id: int, limit: int) -> Sequence[PayrollRecord]:
        raise NotImplementedError

    def create(self, record: PayrollRecord) -> PayrollRecord:
        """Insert and return the record with its id.

        Must raise ``DuplicatePayrollPeriod`` when (employee, month, year)
        already has a record, even under a concurrent insert.
        """
        raise NotImplementedError

    def update(self, record: PayrollRecord) -> bool:
        raise NotImplementedError

    def delete(self, payroll_id: int) -> bool:
        raise NotImplementedError
