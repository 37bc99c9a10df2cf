from __future__ import annotations

from datetime import date
from typing import Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord

# Columns a listing may be ordered by.
SORTABLE_FIELDS = ("work_date", "employee_id", "status", "total_work_hours", "late_minutes")


class AttendanceRepository(Protocol):
    def find_record(self, employee_id: int, work_date: date) -> AttendanceRecord | None:
        raise NotImplementedError

    def find_records_in_range(self, employee_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def find_all_in_range(self, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def get_by_id(self, attendance_id: int) -> AttendanceRecord | None:
        raise NotImplementedError

    def get_recent_for_employee(self, employee_id: int, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def find_filtered(
        self,
        *,
        employee_id: int | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        status: AttendanceStatus | None = None,
        department: str | None = None,
        sort_by: str = "work_date",
        descending: bool = True,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[Sequence[AttendanceRecord], int]:
        """One window of matching records plus the total match count.

        ``sort_by`` is one of ``SORTABLE_FIELDS``; ties are broken by id.
        """
        raise NotImplementedError

    def create(self, record: AttendanceRecord) -> AttendanceRecord:
        """Insert a new record and return it with its id.

        Must raise ``DuplicateCheckIn`` when a record for the same
        (employee, date) already exists, even under a concurrent insert.
        """
        raise NotImplementedError

    def update(self, record: AttendanceRecord) -> bool:
        raise NotImplementedError

    def delete(self, attendance_id: int) -> bool:
        raise NotImplementedError
