from __future__ import annotations

from datetime import datetime

import pytest

from src.hr_system.hr_system.core.enums import PaymentMethod, PaymentStatus
from src.hr_system.hr_system.core.exceptions import (
    DuplicatePayrollPeriod,
    EmployeeNotFound,
    PayrollNotFound,
    StateError,
    ValidationError,
)
from src.hr_system.hr_system.employees.model import Employee
from tests.fakes import Clock, build_test_container


@pytest.fixture
def clock():
    return Clock(datetime(2024, 6, 3, 9, 0))


@pytest.fixture
def container(clock):
    return build_test_container(
        clock,
        Employee(employee_id=1, full_name="An", base_salary=17600, department="Ops"),
        Employee(employee_id=2, full_name="Binh", base_salary=20000, allowance=1000),
    )


@pytest.fixture
def service(container):
    return container.payroll_service


def work_day(container, clock, employee_id, day, start_hour, end_hour):
    clock.now = datetime(2024, 6, day, start_hour, 0)
    container.attendance_service.check_in(employee_id)
    clock.now = datetime(2024, 6, day, end_hour, 0)
    container.attendance_service.check_out(employee_id)


def test_payroll_uses_month_attendance(container, clock, service):
    work_day(container, clock, 1, 3, 9, 19)
    work_day(container, clock, 1, 4, 9, 17)

    record = service.calculate_payroll(1, 6, 2024, created_by=9)

    assert record.payroll_id is not None
    assert record.total_work_days == 2
    assert record.total_work_hours == pytest.approx(18)
    assert record.overtime_hours == pytest.approx(2)
    assert record.overtime_pay == pytest.approx(300)
    assert record.payment_status == PaymentStatus.PENDING
    assert record.created_by == 9
    assert record.net_salary == pytest.approx(record.total_gross - record.total_deductions)


def test_attendance_outside_the_month_is_ignored(container, clock, service):
    clock.now = datetime(2024, 5, 31, 9, 0)
    container.attendance_service.check_in(1)
    clock.now = datetime(2024, 5, 31, 21, 0)
    container.attendance_service.check_out(1)

    record = service.calculate_payroll(1, 6, 2024)
    assert record.total_work_days == 0
    assert record.overtime_pay == 0


def test_second_payroll_for_same_period_conflicts(service):
    service.calculate_payroll(1, 6, 2024)
    with pytest.raises(DuplicatePayrollPeriod):
        service.calculate_payroll(1, 6, 2024, bonus=100)
    assert service.calculate_payroll(1, 7, 2024).month == 7


def test_unknown_employee(service):
    with pytest.raises(EmployeeNotFound):
        service.calculate_payroll(42, 6, 2024)


def test_invalid_period(service):
    with pytest.raises(ValidationError):
        service.calculate_payroll(1, 0, 2024)


def test_allowance_override(service):
    assert service.calculate_payroll(2, 6, 2024).allowance == 1000
    assert service.calculate_payroll(2, 7, 2024, allowance=250).allowance == 250


def test_adjustments_recompute_totals(service):
    record = service.calculate_payroll(1, 6, 2024)
    updated = service.update_adjustments(record.payroll_id, bonus=400, other_deduction=50, notes=" q2 ", updated_by=3)

    assert updated.bonus == 400
    assert updated.deductions.other == 50
    assert updated.deductions.tax == pytest.approx(18000 * 0.15)
    assert updated.notes == "q2"
    assert updated.net_salary == pytest.approx(updated.total_gross - updated.total_deductions)
    assert service.get(record.payroll_id) == updated


def test_negative_adjustment_rejected(service):
    record = service.calculate_payroll(1, 6, 2024)
    with pytest.raises(ValidationError):
        service.update_adjustments(record.payroll_id, bonus=-1)


def test_approve_then_pay(service, clock):
    record = service.calculate_payroll(1, 6, 2024)
    approved = service.approve(record.payroll_id, approved_by=7)
    assert approved.is_approved
    assert approved.approved_at == clock.now

    paid = service.mark_paid(record.payroll_id, payment_method="cash", payment_date=datetime(2024, 7, 5, 10, 0))
    assert paid.payment_status == PaymentStatus.PAID
    assert paid.payment_method == PaymentMethod.CASH
    assert paid.payment_date == datetime(2024, 7, 5, 10, 0)


def test_paid_record_is_frozen(service):
    record = service.calculate_payroll(1, 6, 2024)
    service.mark_paid(record.payroll_id)

    with pytest.raises(StateError):
        service.update_adjustments(record.payroll_id, bonus=10)
    with pytest.raises(StateError):
        service.mark_paid(record.payroll_id)
    with pytest.raises(StateError):
        service.cancel(record.payroll_id)


def test_cancelled_record_cannot_be_approved(service):
    record = service.calculate_payroll(1, 6, 2024)
    cancelled = service.cancel(record.payroll_id, notes="left company")
    assert cancelled.payment_status == PaymentStatus.CANCELLED
    assert cancelled.notes == "left company"

    with pytest.raises(StateError):
        service.approve(record.payroll_id, approved_by=7)


def test_missing_record(service):
    with pytest.raises(PayrollNotFound):
        service.get(99)
    with pytest.raises(PayrollNotFound):
        service.delete(99)


def test_list_filters_by_status(service):
    a = service.calculate_payroll(1, 6, 2024)
    service.calculate_payroll(2, 6, 2024)
    service.mark_paid(a.payroll_id)

    paid = service.list_for_period(month=6, year=2024, status="paid")
    assert [r.employee_id for r in paid] == [1]
    with pytest.raises(ValidationError):
        service.list_for_period(status="unknown")


def test_employee_history_newest_first(service):
    for month in (4, 5, 6):
        service.calculate_payroll(1, month, 2024)
    assert [r.month for r in service.employee_history(1, limit=2)] == [6, 5]


def test_stats_overview(service):
    a = service.calculate_payroll(1, 6, 2024)
    b = service.calculate_payroll(2, 6, 2024, bonus=500)
    service.mark_paid(a.payroll_id)
    service.calculate_payroll(1, 7, 2024)

    stats = service.stats_overview(month=6, year=2024)
    assert stats["total_records"] == 2
    assert stats["total_gross_salary"] == pytest.approx(37600)
    assert stats["total_bonus"] == pytest.approx(500)
    assert stats["total_allowance"] == pytest.approx(1000)
    assert stats["total_net_salary"] == pytest.approx(a.net_salary + b.net_salary)
    assert (stats["paid_records"], stats["pending_records"], stats["cancelled_records"]) == (1, 1, 0)


def test_export_frame_and_excel(service):
    service.calculate_payroll(1, 6, 2024)
    service.calculate_payroll(2, 6, 2024)

    df = service.export_frame(month=6, year=2024)
    assert list(df["full_name"]) == ["An", "Binh"]
    assert list(df["department"]) == ["Ops", "-"]

    content = service.export_excel(month=6, year=2024)
    assert content[:2] == b"PK"


def test_export_of_empty_period_keeps_columns(service):
    df = service.export_frame(month=1, year=2030)
    assert df.empty
    assert "net_salary" in df.columns
