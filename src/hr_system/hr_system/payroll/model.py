from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime

from ..core.enums import PaymentMethod, PaymentStatus


@dataclass(frozen=True)
class Deductions:
    tax: float = 0.0
    social_security: float = 0.0
    health_insurance: float = 0.0
    other: float = 0.0

    @property
    def total(self) -> float:
        return self.tax + self.social_security + self.health_insurance + self.other


@dataclass(frozen=True)
class CalculationDetails:
    """Rates the record was computed with, kept for audit."""

    hourly_rate: float = 0.0
    overtime_rate: float = 0.0
    tax_rate: float = 0.0
    social_security_rate: float = 0.0
    health_insurance_rate: float = 0.0


@dataclass(frozen=True)
class PayrollRecord:
    """Domain entity: one employee's pay for one (month, year).

    ``total_deductions`` and ``net_salary`` are derived; stores call
    ``with_totals()`` before every write so the net-salary identity holds.
    """

    employee_id: int
    month: int
    year: int
    payroll_id: int | None = None
    base_salary: float = 0.0
    total_work_days: int = 0
    total_work_hours: float = 0.0
    overtime_hours: float = 0.0
    leave_days: int = 0
    absent_days: int = 0
    late_days: int = 0
    gross_salary: float = 0.0
    overtime_pay: float = 0.0
    bonus: float = 0.0
    allowance: float = 0.0
    deductions: Deductions = field(default_factory=Deductions)
    total_deductions: float = 0.0
    net_salary: float = 0.0
    calculation_details: CalculationDetails = field(default_factory=CalculationDetails)
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: PaymentMethod = PaymentMethod.BANK_TRANSFER
    payment_date: datetime | None = None
    approved_by: int | None = None
    approved_at: datetime | None = None
    notes: str | None = None
    created_by: int | None = None
    updated_by: int | None = None

    @property
    def total_gross(self) -> float:
        return self.gross_salary + self.overtime_pay + self.bonus + self.allowance

    @property
    def is_approved(self) -> bool:
        return self.approved_by is not None

    def with_totals(self) -> "PayrollRecord":
        total_deductions = self.deductions.total
        return replace(
            self,
            total_deductions=total_deductions,
            net_salary=self.total_gross - total_deductions,
        )


@dataclass(frozen=True)
class BatchOutcome:
    """What happened to one employee in a batch run."""

    employee_id: int
    record: PayrollRecord | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.record is not None


@dataclass(frozen=True)
class PayrollBatchReport:
    month: int
    year: int
    created: list[PayrollRecord] = field(default_factory=list)
    errors: list[BatchOutcome] = field(default_factory=list)
    cancelled: bool = False

    @property
    def created_count(self) -> int:
        return len(self.created)

    @property
    def error_count(self) -> int:
        return len(self.errors)
