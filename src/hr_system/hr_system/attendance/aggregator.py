"""Attendance statistics over a collection of records.

Plain functions over in-memory records; callers load the records from the
store. A missing day is not an absence: only records explicitly marked
``absent`` count towards ``absent_days``.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Sequence

from ..common.datetime_utils import month_range
from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, MonthlyAttendanceSummary

# Counter each status feeds. Anything not listed counts as a present day.
_BUCKET = {
    AttendanceStatus.ON_LEAVE: "leave_days",
    AttendanceStatus.ABSENT: "absent_days",
    AttendanceStatus.LATE: "late_days",
}

_INFO_COUNTERS = {
    AttendanceStatus.WORK_FROM_HOME: "work_from_home_days",
    AttendanceStatus.EARLY_LEAVE: "early_leave_days",
    AttendanceStatus.HALF_DAY: "half_days",
}


def _in_range(record: AttendanceRecord, start_date: date, end_date: date) -> bool:
    return start_date <= record.work_date <= end_date


def summarize(
    employee_id: int,
    start_date: date,
    end_date: date,
    records: Iterable[AttendanceRecord],
) -> MonthlyAttendanceSummary:
    """Summarize one employee's records within ``[start_date, end_date]``.

    Each record lands in exactly one of present/absent/late/leave days.
    Hours and late minutes are summed over every record regardless of status.
    """
    counts: Counter = Counter()
    total_work_hours = 0.0
    total_overtime_hours = 0.0
    total_late_minutes = 0

    for r in records:
        if r.employee_id != employee_id or not _in_range(r, start_date, end_date):
            continue
        counts["total_days"] += 1
        counts[_BUCKET.get(r.status, "present_days")] += 1
        info = _INFO_COUNTERS.get(r.status)
        if info:
            counts[info] += 1
        total_work_hours += r.total_work_hours or 0.0
        total_overtime_hours += r.overtime_hours or 0.0
        total_late_minutes += r.late_minutes or 0

    return MonthlyAttendanceSummary(
        employee_id=employee_id,
        start_date=start_date,
        end_date=end_date,
        total_days=counts["total_days"],
        present_days=counts["present_days"],
        absent_days=counts["absent_days"],
        late_days=counts["late_days"],
        leave_days=counts["leave_days"],
        total_work_hours=total_work_hours,
        total_overtime_hours=total_overtime_hours,
        total_late_minutes=total_late_minutes,
        work_from_home_days=counts["work_from_home_days"],
        early_leave_days=counts["early_leave_days"],
        half_days=counts["half_days"],
    )


def summarize_by_month(
    employee_id: int,
    start_date: date,
    end_date: date,
    records: Iterable[AttendanceRecord],
) -> dict[str, MonthlyAttendanceSummary]:
    """One summary per ``YYYY-MM`` that has at least one record, in month order."""
    by_month: dict[str, list[AttendanceRecord]] = defaultdict(list)
    for r in records:
        if r.employee_id == employee_id and _in_range(r, start_date, end_date):
            by_month[r.work_date.strftime("%Y-%m")].append(r)

    out: dict[str, MonthlyAttendanceSummary] = {}
    for key in sorted(by_month):
        year, month = (int(part) for part in key.split("-"))
        first, last = month_range(year, month)
        out[key] = summarize(employee_id, max(first, start_date), min(last, end_date), by_month[key])
    return out


@dataclass(frozen=True)
class DailyStats:
    work_date: date
    present_count: int
    absent_count: int
    late_count: int
    total_work_hours: float


def daily_breakdown(records: Iterable[AttendanceRecord]) -> list[DailyStats]:
    """Per-day counts across all employees, ordered by date."""
    buckets: dict[date, list[AttendanceRecord]] = defaultdict(list)
    for r in records:
        buckets[r.work_date].append(r)

    out = []
    for day in sorted(buckets):
        rows = buckets[day]
        out.append(
            DailyStats(
                work_date=day,
                present_count=sum(1 for r in rows if r.status == AttendanceStatus.PRESENT),
                absent_count=sum(1 for r in rows if r.status == AttendanceStatus.ABSENT),
                late_count=sum(1 for r in rows if r.status == AttendanceStatus.LATE),
                total_work_hours=sum(r.total_work_hours or 0.0 for r in rows),
            )
        )
    return out


def status_distribution(records: Sequence[AttendanceRecord]) -> list[tuple[AttendanceStatus, int]]:
    """Status counts, most frequent first."""
    return Counter(r.status for r in records).most_common()
