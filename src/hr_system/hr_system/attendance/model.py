from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

from ..core.constants import DEFAULT_LOCATION
from ..core.enums import (
    ApprovalStatus,
    AttendanceState,
    AttendanceStatus,
    BreakType,
    CheckMethod,
)


@dataclass(frozen=True)
class CheckEvent:
    """A check-in or check-out punch."""

    time: datetime
    location: tuple[float, float] = DEFAULT_LOCATION
    method: CheckMethod = CheckMethod.MANUAL
    notes: str | None = None


@dataclass(frozen=True)
class BreakPeriod:
    start_time: datetime
    end_time: datetime | None = None
    duration_minutes: float = 0.0
    break_type: BreakType = BreakType.LUNCH

    @property
    def is_open(self) -> bool:
        return self.end_time is None


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one employee's attendance for one calendar day.

    Derived fields (hours, overtime, late/early minutes, status) are only
    ever written by ``AttendanceEngine.recompute_derived``.
    """

    employee_id: int
    work_date: date
    attendance_id: int | None = None
    check_in: CheckEvent | None = None
    check_out: CheckEvent | None = None
    breaks: tuple[BreakPeriod, ...] = ()
    status: AttendanceStatus = AttendanceStatus.PRESENT
    declared_status: AttendanceStatus | None = None
    total_work_hours: float = 0.0
    total_break_hours: float = 0.0
    overtime_hours: float = 0.0
    late_minutes: int = 0
    early_leave_minutes: int = 0
    approval_status: ApprovalStatus = ApprovalStatus.PENDING
    approved_by: int | None = None
    approval_notes: str | None = None
    notes: str | None = None
    created_by: int | None = None
    updated_by: int | None = None

    @property
    def open_break(self) -> BreakPeriod | None:
        for b in self.breaks:
            if b.is_open:
                return b
        return None

    @property
    def net_work_hours(self) -> float:
        return self.total_work_hours - self.total_break_hours

    @property
    def state(self) -> AttendanceState:
        if self.check_in is None:
            return AttendanceState.NO_RECORD
        if self.check_out is not None:
            return AttendanceState.CHECKED_OUT
        if self.open_break is not None:
            return AttendanceState.ON_BREAK
        return AttendanceState.WORKING


@dataclass(frozen=True)
class MonthlyAttendanceSummary:
    """Per-employee aggregate over a date range. Computed on demand, never stored."""

    employee_id: int
    start_date: date
    end_date: date
    total_days: int = 0
    present_days: int = 0
    absent_days: int = 0
    late_days: int = 0
    leave_days: int = 0
    total_work_hours: float = 0.0
    total_overtime_hours: float = 0.0
    total_late_minutes: int = 0
    work_from_home_days: int = 0
    early_leave_days: int = 0
    half_days: int = 0

    @property
    def average_work_hours(self) -> float:
        if not self.total_days:
            return 0.0
        return self.total_work_hours / self.total_days


@dataclass(frozen=True)
class ImportOutcome:
    row_index: int
    record: AttendanceRecord | None = None
    error: str | None = None


@dataclass(frozen=True)
class BulkImportReport:
    created: list[AttendanceRecord] = field(default_factory=list)
    errors: list[ImportOutcome] = field(default_factory=list)

    @property
    def created_count(self) -> int:
        return len(self.created)

    @property
    def error_count(self) -> int:
        return len(self.errors)


@dataclass(frozen=True)
class AttendancePage:
    """One page of a filtered attendance listing."""

    records: list[AttendanceRecord]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.limit) if self.limit else 0
