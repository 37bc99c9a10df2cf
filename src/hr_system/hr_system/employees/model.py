from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Employee:
    """Domain entity: employee as seen by attendance and payroll.

    Owned by the employee-management side; this package only reads it.
    """

    employee_id: int
    full_name: str
    base_salary: float
    allowance: float = 0.0
    department: str | None = None
    is_active: bool = True
