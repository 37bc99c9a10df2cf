"""Payroll for every employee of a period in one run.

Each employee is calculated and saved on its own: a failure for one is
recorded in the report and never rolls back or stops the others.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Sequence

from ..common.validators import require_period
from ..core.constants import DEFAULT_BATCH_WORKERS
from ..core.exceptions import DomainError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from .model import BatchOutcome, PayrollBatchReport
from .service import PayrollService

logger = logging.getLogger(__name__)

CANCELLED = "cancelled"


class PayrollBatchRunner:
    def __init__(
        self,
        payroll_service: PayrollService,
        employees: EmployeeRepository,
        *,
        max_workers: int = DEFAULT_BATCH_WORKERS,
    ):
        self._service = payroll_service
        self._employees = employees
        self._max_workers = max(1, int(max_workers))

    def _run_one(self, employee: Employee, month: int, year: int, bonus: float, created_by: int | None) -> BatchOutcome:
        try:
            record = self._service.create_for_employee(employee, month, year, bonus=bonus, created_by=created_by)
            return BatchOutcome(employee_id=employee.employee_id, record=record)
        except DomainError as exc:
            logger.warning("Payroll batch: employee %s skipped: %s", employee.employee_id, exc)
            return BatchOutcome(employee_id=employee.employee_id, error=str(exc))
        except Exception as exc:
            # Storage failures stay local to this employee.
            logger.exception("Payroll batch: employee %s failed", employee.employee_id)
            return BatchOutcome(employee_id=employee.employee_id, error=f"Error creating payroll: {exc}")

    def run_for_all_employees(
        self,
        month: int,
        year: int,
        employees: Sequence[Employee] | None = None,
        *,
        bonus: float = 0.0,
        created_by: int | None = None,
        cancel_event: threading.Event | None = None,
    ) -> PayrollBatchReport:
        month, year = require_period(month, year)
        if employees is None:
            employees = self._employees.list_active()
        employees = list(employees)

        logger.info(
            "Payroll batch %02d/%s started for %s employees (workers=%s)",
            month,
            year,
            len(employees),
            self._max_workers,
        )

        outcomes: list[BatchOutcome | None] = [None] * len(employees)
        cancelled = False
        next_index = 0

        with ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="payroll") as pool:
            pending: dict[Future, int] = {}

            while next_index < len(employees) or pending:
                # Keep at most max_workers in flight; stop feeding once cancelled.
                while next_index < len(employees) and len(pending) < self._max_workers:
                    if cancel_event is not None and cancel_event.is_set():
                        cancelled = True
                        break
                    emp = employees[next_index]
                    pending[pool.submit(self._run_one, emp, month, year, bonus, created_by)] = next_index
                    next_index += 1

                if cancelled and not pending:
                    break
                if not pending:
                    continue

                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for fut in done:
                    outcomes[pending.pop(fut)] = fut.result()

        for i in range(next_index, len(employees)):
            outcomes[i] = BatchOutcome(employee_id=employees[i].employee_id, error=CANCELLED)

        created = [o.record for o in outcomes if o is not None and o.ok]
        errors = [o for o in outcomes if o is not None and not o.ok]
        report = PayrollBatchReport(month=month, year=year, created=created, errors=errors, cancelled=cancelled)

        logger.info(
            "Payroll batch %02d/%s finished: %s created, %s errors%s",
            month,
            year,
            report.created_count,
            report.error_count,
            " (cancelled)" if cancelled else "",
        )
        return report
