from datetime import date

import pytest

from src.hr_system.hr_system.attendance import aggregator
from src.hr_system.hr_system.attendance.model import AttendanceRecord
from src.hr_system.hr_system.core.enums import AttendanceStatus


def rec(day: int, status=AttendanceStatus.PRESENT, *, employee_id=1, month=6, hours=8.0, overtime=0.0, late=0):
    return AttendanceRecord(
        employee_id=employee_id,
        work_date=date(2024, month, day),
        status=status,
        total_work_hours=hours,
        overtime_hours=overtime,
        late_minutes=late,
    )


def test_missing_days_are_not_absences():
    records = [rec(1), rec(3), rec(5)]
    s = aggregator.summarize(1, date(2024, 6, 1), date(2024, 6, 5), records)

    assert s.total_days == 3
    assert s.present_days == 3
    assert s.absent_days == 0


def test_explicit_absent_record_counts():
    records = [rec(1), rec(2, AttendanceStatus.ABSENT, hours=0), rec(3)]
    s = aggregator.summarize(1, date(2024, 6, 1), date(2024, 6, 5), records)

    assert s.total_days == 3
    assert s.absent_days == 1
    assert s.present_days == 2


def test_each_record_lands_in_one_bucket():
    records = [
        rec(1),
        rec(2, AttendanceStatus.LATE, late=12),
        rec(3, AttendanceStatus.ON_LEAVE, hours=0),
        rec(4, AttendanceStatus.WORK_FROM_HOME),
        rec(5, AttendanceStatus.HALF_DAY, hours=4),
        rec(6, AttendanceStatus.EARLY_LEAVE, hours=7),
    ]
    s = aggregator.summarize(1, date(2024, 6, 1), date(2024, 6, 30), records)

    assert s.total_days == 6
    assert s.present_days + s.absent_days + s.late_days + s.leave_days == s.total_days
    assert (s.present_days, s.late_days, s.leave_days) == (4, 1, 1)
    assert (s.work_from_home_days, s.half_days, s.early_leave_days) == (1, 1, 1)
    assert s.total_late_minutes == 12


def test_hours_sum_across_statuses():
    records = [rec(1, overtime=0.5), rec(2, AttendanceStatus.HALF_DAY, hours=4), rec(3, AttendanceStatus.LATE, hours=9, overtime=1)]
    s = aggregator.summarize(1, date(2024, 6, 1), date(2024, 6, 30), records)

    assert s.total_work_hours == pytest.approx(21.0)
    assert s.total_overtime_hours == pytest.approx(1.5)
    assert s.average_work_hours == pytest.approx(7.0)


def test_filters_by_employee_and_inclusive_range():
    records = [rec(1), rec(30), rec(15, employee_id=2), rec(1, month=7)]
    s = aggregator.summarize(1, date(2024, 6, 1), date(2024, 6, 30), records)

    assert s.total_days == 2


def test_no_records_gives_zero_summary():
    s = aggregator.summarize(9, date(2024, 6, 1), date(2024, 6, 30), [])

    assert s.total_days == 0
    assert s.present_days == s.absent_days == s.late_days == s.leave_days == 0
    assert s.total_work_hours == 0
    assert s.average_work_hours == 0


def test_summarize_by_month():
    records = [rec(10, month=5), rec(11, month=5), rec(3, month=6)]
    by_month = aggregator.summarize_by_month(1, date(2024, 5, 15), date(2024, 6, 30), records)

    # 10 and 11 May fall before the range start
    assert list(by_month) == ["2024-06"]
    june = by_month["2024-06"]
    assert june.total_days == 1
    assert june.start_date == date(2024, 6, 1)


def test_daily_breakdown_and_distribution():
    records = [
        rec(1),
        rec(1, AttendanceStatus.LATE, employee_id=2),
        rec(2, AttendanceStatus.ABSENT, employee_id=2, hours=0),
        rec(2),
    ]
    daily = aggregator.daily_breakdown(records)

    assert [d.work_date.day for d in daily] == [1, 2]
    assert (daily[0].present_count, daily[0].late_count) == (1, 1)
    assert daily[1].absent_count == 1
    assert daily[0].total_work_hours == pytest.approx(16.0)

    dist = aggregator.status_distribution(records)
    assert dist[0] == (AttendanceStatus.PRESENT, 2)
