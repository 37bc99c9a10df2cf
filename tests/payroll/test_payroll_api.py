from __future__ import annotations

from datetime import datetime

import pytest

from src.hr_system.hr_system.employees.model import Employee
from src.hr_system.hr_system.main import create_app
from tests.fakes import Clock, build_test_container


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    container = build_test_container(
        Clock(datetime(2024, 6, 28, 9, 0)),
        Employee(employee_id=1, full_name="An", base_salary=17600),
        Employee(employee_id=2, full_name="Binh", base_salary=20000),
    )
    return create_app(container).test_client()


def create(client, employee_id=1, **extra):
    return client.post("/api/payroll", json={"employee_id": employee_id, "month": 6, "year": 2024, **extra})


def test_create_payroll(client):
    resp = create(client, bonus=200)

    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert data["bonus"] == 200
    assert data["payment_status"] == "pending"
    assert data["total_gross"] == pytest.approx(17800)
    assert data["is_approved"] is False
    assert data["net_salary"] == pytest.approx(data["total_gross"] - data["total_deductions"])


def test_duplicate_period_is_409(client):
    create(client)
    resp = create(client)
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "ConflictError"


def test_unknown_employee_is_404(client):
    assert create(client, employee_id=77).status_code == 404


def test_bad_month_is_400(client):
    resp = client.post("/api/payroll", json={"employee_id": 1, "month": 13, "year": 2024})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "ValidationError"


def test_bulk_create_reports_per_employee(client):
    create(client, employee_id=2)

    resp = client.post("/api/payroll/bulk-create", json={"month": 6, "year": 2024})

    data = resp.get_json()["data"]
    assert resp.status_code == 200
    assert (data["created_count"], data["error_count"]) == (1, 1)
    assert data["errors"][0]["employee_id"] == 2


def test_bulk_create_requires_period(client):
    assert client.post("/api/payroll/bulk-create", json={"month": 6}).status_code == 400


def test_approve_pay_flow(client):
    payroll_id = create(client).get_json()["data"]["payroll_id"]

    assert client.patch(f"/api/payroll/{payroll_id}/approve").status_code == 400
    approved = client.patch(f"/api/payroll/{payroll_id}/approve", headers={"X-User-Id": "9"})
    assert approved.get_json()["data"]["is_approved"] is True

    paid = client.patch(
        f"/api/payroll/{payroll_id}/pay",
        json={"payment_method": "cash", "payment_date": "2024-07-05T10:00:00"},
    )
    data = paid.get_json()["data"]
    assert data["payment_status"] == "paid"
    assert data["payment_date"] == "2024-07-05T10:00:00"

    again = client.patch(f"/api/payroll/{payroll_id}/pay", json={})
    assert again.status_code == 409
    assert again.get_json()["error"] == "StateError"


def test_adjust_and_cancel(client):
    payroll_id = create(client).get_json()["data"]["payroll_id"]

    resp = client.patch(f"/api/payroll/{payroll_id}", json={"bonus": 500})
    assert resp.get_json()["data"]["bonus"] == 500

    resp = client.patch(f"/api/payroll/{payroll_id}/cancel", json={"notes": "duplicate"})
    assert resp.get_json()["data"]["payment_status"] == "cancelled"
    assert client.patch(f"/api/payroll/{payroll_id}", json={"bonus": 1}).status_code == 409


def test_list_stats_and_history(client):
    create(client)
    create(client, employee_id=2)

    rows = client.get("/api/payroll?month=6&year=2024").get_json()["data"]
    assert len(rows) == 2

    stats = client.get("/api/payroll/stats/overview?month=6&year=2024").get_json()["data"]
    assert stats["total_records"] == 2
    assert stats["pending_records"] == 2

    history = client.get("/api/payroll/employee/1").get_json()["data"]
    assert [r["month"] for r in history] == [6]


def test_get_and_delete(client):
    payroll_id = create(client).get_json()["data"]["payroll_id"]

    assert client.get(f"/api/payroll/{payroll_id}").status_code == 200
    assert client.delete(f"/api/payroll/{payroll_id}").status_code == 200
    assert client.get(f"/api/payroll/{payroll_id}").status_code == 404


def test_export_xlsx(client):
    create(client)
    resp = client.get("/api/payroll/export.xlsx?month=6&year=2024")

    assert resp.status_code == 200
    assert resp.mimetype == "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    assert "payroll_2024_06.xlsx" in resp.headers["Content-Disposition"]
    assert resp.data[:2] == b"PK"
