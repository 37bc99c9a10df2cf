from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Iterable, Sequence

from ..common.datetime_utils import format_hours, now_local, parse_iso_date, parse_iso_datetime
from ..common.validators import normalize_location, normalize_text, parse_enum
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..core.enums import ApprovalStatus, AttendanceStatus, BreakType, CheckMethod
from ..core.exceptions import (
    AttendanceNotFound,
    DomainError,
    DuplicateCheckIn,
    EmployeeNotFound,
    NoActiveCheckIn,
    StateError,
    ValidationError,
)
from ..employees.repository import EmployeeRepository
from . import aggregator
from .engine import AttendanceEngine
from .model import AttendancePage, AttendanceRecord, BulkImportReport, ImportOutcome, MonthlyAttendanceSummary
from .repository import SORTABLE_FIELDS, AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    """Use cases around daily attendance: punches, breaks, approval, statistics."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        *,
        engine: AttendanceEngine | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._attendance = attendance
        self._employees = employees
        self._engine = engine or AttendanceEngine()
        self._clock = clock or (lambda: now_local(self._engine.policy.timezone))

    def today(self) -> date:
        """Current work date in the policy zone."""
        return self._engine.work_date_for(self._clock())

    def _require_employee(self, employee_id: int):
        employee = self._employees.get_by_id(int(employee_id))
        if not employee:
            raise EmployeeNotFound(int(employee_id))
        return employee

    def _require_record(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(attendance_id))
        if not record:
            raise AttendanceNotFound(f"Attendance record {attendance_id} not found")
        return record

    def _today_record(self, employee_id: int, now: datetime) -> AttendanceRecord:
        record = self._attendance.find_record(int(employee_id), self._engine.work_date_for(now))
        if not record:
            raise NoActiveCheckIn("No check-in record found for today")
        return record

    def _save(self, record: AttendanceRecord) -> AttendanceRecord:
        if not self._attendance.update(record):
            raise AttendanceNotFound(f"Attendance record {record.attendance_id} not found")
        return record

    def check_in(
        self,
        employee_id: int,
        *,
        now: datetime | None = None,
        location=None,
        method=CheckMethod.MANUAL,
        notes: str | None = None,
        created_by: int | None = None,
    ) -> AttendanceRecord:
        now = now or self._clock()
        self._require_employee(employee_id)
        work_date = self._engine.work_date_for(now)

        if self._attendance.find_record(int(employee_id), work_date):
            raise DuplicateCheckIn(int(employee_id), work_date)

        record = self._engine.check_in(
            int(employee_id),
            now=now,
            location=normalize_location(location),
            method=parse_enum(CheckMethod, method, "method", CheckMethod.MANUAL),
            notes=normalize_text(notes),
            created_by=created_by,
        )
        # The store's unique key settles a concurrent check-in for the same day.
        created = self._attendance.create(record)
        logger.info(
            "Check-in employee=%s date=%s status=%s (%s)",
            created.employee_id,
            created.work_date,
            created.status.value,
            self._engine.classify(created).reason or "on time",
        )
        return created

    def check_out(
        self,
        employee_id: int,
        *,
        now: datetime | None = None,
        location=None,
        method=CheckMethod.MANUAL,
        notes: str | None = None,
    ) -> AttendanceRecord:
        now = now or self._clock()
        record = self._today_record(employee_id, now)
        updated = self._engine.check_out(
            record,
            now=now,
            location=normalize_location(location),
            method=parse_enum(CheckMethod, method, "method", CheckMethod.MANUAL),
            notes=normalize_text(notes),
        )
        self._save(updated)
        logger.info(
            "Check-out employee=%s date=%s worked=%s status=%s",
            updated.employee_id,
            updated.work_date,
            format_hours(updated.total_work_hours),
            updated.status.value,
        )
        return updated

    def start_break(self, employee_id: int, *, now: datetime | None = None, break_type=BreakType.LUNCH) -> AttendanceRecord:
        now = now or self._clock()
        record = self._today_record(employee_id, now)
        updated = self._engine.start_break(
            record,
            now=now,
            break_type=parse_enum(BreakType, break_type, "break_type", BreakType.LUNCH),
        )
        return self._save(updated)

    def end_break(self, employee_id: int, *, now: datetime | None = None) -> AttendanceRecord:
        now = now or self._clock()
        record = self._today_record(employee_id, now)
        return self._save(self._engine.end_break(record, now=now))

    def get_today_record(self, employee_id: int, *, now: datetime | None = None) -> AttendanceRecord | None:
        now = now or self._clock()
        return self._attendance.find_record(int(employee_id), self._engine.work_date_for(now))

    def get_history(self, employee_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[AttendanceRecord]:
        return self._attendance.get_recent_for_employee(int(employee_id), int(limit))

    def list_records(
        self,
        *,
        employee_id: int | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        status=None,
        department: str | None = None,
        sort_by: str = "work_date",
        sort_order: str = "desc",
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> AttendancePage:
        if sort_by not in SORTABLE_FIELDS:
            raise ValidationError(f"sort_by must be one of: {', '.join(SORTABLE_FIELDS)}")
        if sort_order not in ("asc", "desc"):
            raise ValidationError("sort_order must be 'asc' or 'desc'")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        if page < 1:
            raise ValidationError("page must be positive")
        if start_date and end_date and end_date < start_date:
            raise ValidationError("end date is earlier than start date")

        records, total = self._attendance.find_filtered(
            employee_id=employee_id,
            start_date=start_date,
            end_date=end_date,
            status=parse_enum(AttendanceStatus, status, "status") if status else None,
            department=normalize_text(department),
            sort_by=sort_by,
            descending=sort_order == "desc",
            offset=(page - 1) * limit,
            limit=limit,
        )
        return AttendancePage(records=list(records), total=total, page=page, limit=limit)

    def get(self, attendance_id: int) -> AttendanceRecord:
        return self._require_record(attendance_id)

    # ----- manager actions -----

    def _decide(self, attendance_id: int, decision: ApprovalStatus, approver_id: int, notes: str | None) -> AttendanceRecord:
        record = self._require_record(attendance_id)
        if record.approval_status != ApprovalStatus.PENDING:
            raise StateError(f"Attendance record already {record.approval_status.value}")
        updated = replace(
            record,
            approval_status=decision,
            approved_by=int(approver_id),
            approval_notes=normalize_text(notes),
            updated_by=int(approver_id),
        )
        self._save(updated)
        logger.info("Attendance %s %s by %s", record.attendance_id, decision.value, approver_id)
        return updated

    def approve(self, attendance_id: int, *, approver_id: int, notes: str | None = None) -> AttendanceRecord:
        return self._decide(attendance_id, ApprovalStatus.APPROVED, approver_id, notes)

    def reject(self, attendance_id: int, *, approver_id: int, notes: str | None = None) -> AttendanceRecord:
        return self._decide(attendance_id, ApprovalStatus.REJECTED, approver_id, notes)

    def admin_update(
        self,
        attendance_id: int,
        *,
        check_in_time: datetime | None = None,
        check_out_time: datetime | None = None,
        declared_status=None,
        clear_declared_status: bool = False,
        notes: str | None = None,
        updated_by: int | None = None,
    ) -> AttendanceRecord:
        record = self._require_record(attendance_id)
        updated = self._engine.correct(
            record,
            check_in_time=check_in_time,
            check_out_time=check_out_time,
            declared_status=parse_enum(AttendanceStatus, declared_status, "status") if declared_status else None,
            clear_declared_status=clear_declared_status,
            notes=normalize_text(notes),
            updated_by=updated_by,
        )
        return self._save(updated)

    def delete(self, attendance_id: int) -> None:
        if not self._attendance.delete(int(attendance_id)):
            raise AttendanceNotFound(f"Attendance record {attendance_id} not found")
        logger.info("Attendance %s deleted", attendance_id)

    def bulk_import(self, rows: Iterable[dict], *, created_by: int | None = None) -> BulkImportReport:
        """Create past records from ``{employee_id, date, check_in, check_out, status}`` rows.

        Each row succeeds or fails on its own; failures are reported, not raised.
        """
        created: list[AttendanceRecord] = []
        errors: list[ImportOutcome] = []

        for index, row in enumerate(rows):
            try:
                employee_id = int(row["employee_id"])
                self._require_employee(employee_id)
                work_date = _as_date(row["date"])
                if self._attendance.find_record(employee_id, work_date):
                    raise DuplicateCheckIn(employee_id, work_date)

                status = row.get("status")
                record = self._engine.build_imported(
                    employee_id,
                    work_date=work_date,
                    check_in_time=_as_datetime(row.get("check_in")),
                    check_out_time=_as_datetime(row.get("check_out")),
                    status=parse_enum(AttendanceStatus, status, "status") if status else None,
                    created_by=created_by,
                )
                created.append(self._attendance.create(record))
            except (DomainError, KeyError, TypeError, ValueError) as exc:
                logger.warning("Attendance import row %s rejected: %s", index, exc)
                errors.append(ImportOutcome(row_index=index, error=str(exc)))

        logger.info("Attendance import: %s created, %s rejected", len(created), len(errors))
        return BulkImportReport(created=created, errors=errors)

    # ----- statistics -----

    def summarize(self, employee_id: int, start_date: date, end_date: date) -> MonthlyAttendanceSummary:
        records = self._attendance.find_records_in_range(int(employee_id), start_date, end_date)
        return aggregator.summarize(int(employee_id), start_date, end_date, records)

    def employee_stats(self, employee_id: int, start_date: date, end_date: date) -> dict:
        records = self._attendance.find_records_in_range(int(employee_id), start_date, end_date)
        return {
            "overview": aggregator.summarize(int(employee_id), start_date, end_date, records),
            "monthly": aggregator.summarize_by_month(int(employee_id), start_date, end_date, records),
        }

    def overview(self, start_date: date, end_date: date, *, employee_id: int | None = None) -> dict:
        if employee_id is not None:
            records = self._attendance.find_records_in_range(int(employee_id), start_date, end_date)
        else:
            records = self._attendance.find_all_in_range(start_date, end_date)

        by_employee: dict[int, list[AttendanceRecord]] = defaultdict(list)
        for r in records:
            by_employee[r.employee_id].append(r)

        return {
            "employees": [
                aggregator.summarize(emp_id, start_date, end_date, rows) for emp_id, rows in sorted(by_employee.items())
            ],
            "status_distribution": aggregator.status_distribution(records),
            "daily": aggregator.daily_breakdown(records),
        }


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_iso_date(str(value)[:10])


def _as_datetime(value) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return parse_iso_datetime(str(value))
