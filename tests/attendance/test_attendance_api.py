from __future__ import annotations

from datetime import datetime

import pytest

from src.hr_system.hr_system.employees.model import Employee
from src.hr_system.hr_system.main import create_app
from tests.fakes import Clock, build_test_container


@pytest.fixture
def clock():
    return Clock(datetime(2024, 6, 3, 9, 10))


@pytest.fixture
def client(monkeypatch, clock):
    monkeypatch.setenv("APP_ENV", "testing")
    container = build_test_container(clock, Employee(employee_id=1, full_name="An", base_salary=17600))
    app = create_app(container)
    return app.test_client()


def test_checkin_returns_created_record(client):
    resp = client.post("/api/attendance/checkin", json={"employee_id": 1, "location": [1, 2]})

    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert data["status"] == "late"
    assert data["late_minutes"] == 10
    assert data["work_date"] == "2024-06-03"
    assert data["check_in"]["location"] == [1.0, 2.0]
    assert data["state"] == "working"


def test_duplicate_checkin_is_409(client):
    client.post("/api/attendance/checkin", json={"employee_id": 1})
    resp = client.post("/api/attendance/checkin", json={"employee_id": 1})

    assert resp.status_code == 409
    body = resp.get_json()
    assert body["success"] is False
    assert body["error"] == "ConflictError"


def test_employee_id_from_header(client):
    resp = client.post("/api/attendance/checkin", headers={"X-User-Id": "1"})
    assert resp.status_code == 201


def test_unknown_employee_is_404(client):
    resp = client.post("/api/attendance/checkin", json={"employee_id": 5})

    assert resp.status_code == 404
    assert resp.get_json()["error"] == "NotFoundError"


def test_checkout_before_checkin_time_is_400(client, clock):
    client.post("/api/attendance/checkin", json={"employee_id": 1})
    clock.now = datetime(2024, 6, 3, 8, 0)

    resp = client.post("/api/attendance/checkout", json={"employee_id": 1})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "ValidationError"


def test_break_flow(client, clock):
    client.post("/api/attendance/checkin", json={"employee_id": 1})
    clock.now = datetime(2024, 6, 3, 12, 0)
    assert client.post("/api/attendance/break/start", json={"employee_id": 1, "break_type": "coffee"}).status_code == 200

    again = client.post("/api/attendance/break/start", json={"employee_id": 1})
    assert again.status_code == 409

    clock.now = datetime(2024, 6, 3, 12, 15)
    resp = client.post("/api/attendance/break/end", json={"employee_id": 1})
    data = resp.get_json()["data"]
    assert data["breaks"][0]["duration_minutes"] == 15
    assert data["breaks"][0]["break_type"] == "coffee"

    assert client.post("/api/attendance/break/end", json={"employee_id": 1}).status_code == 404


def test_approve_requires_acting_user(client):
    created = client.post("/api/attendance/checkin", json={"employee_id": 1}).get_json()["data"]
    url = f"/api/attendance/{created['attendance_id']}/approve"

    assert client.patch(url).status_code == 400
    resp = client.patch(url, headers={"X-User-Id": "9"}, json={"notes": "fine"})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["approval_status"] == "approved"

    assert client.patch(url, headers={"X-User-Id": "9"}).status_code == 409


def test_delete_missing_record_is_404(client):
    assert client.delete("/api/attendance/123").status_code == 404


def test_stats_endpoints(client, clock):
    client.post("/api/attendance/checkin", json={"employee_id": 1})
    clock.now = datetime(2024, 6, 3, 18, 0)
    client.post("/api/attendance/checkout", json={"employee_id": 1})

    resp = client.get("/api/attendance/employee/1/stats?start=2024-06-01&end=2024-06-30")
    overview = resp.get_json()["data"]["overview"]
    assert overview["total_days"] == 1
    assert overview["late_days"] == 1

    resp = client.get("/api/attendance/stats/overview?start=2024-06-01&end=2024-06-30")
    data = resp.get_json()["data"]
    assert data["status_distribution"] == [{"status": "late", "count": 1}]
    assert data["daily"][0]["work_date"] == "2024-06-03"

    assert client.get("/api/attendance/stats/overview?start=june").status_code == 400


def test_bulk_import_endpoint(client):
    resp = client.post(
        "/api/attendance/bulk-import",
        json={"records": [{"employee_id": 1, "date": "2024-06-01", "status": "on_leave"}, {"employee_id": 3, "date": "2024-06-01"}]},
    )
    data = resp.get_json()["data"]
    assert data["created_count"] == 1
    assert data["error_count"] == 1
    assert data["created"][0]["status"] == "on_leave"

    assert client.post("/api/attendance/bulk-import", json={}).status_code == 400


def test_qr_checkin_toggles(client, clock):
    bad = client.post("/api/attendance/checkin/qr", json={"employee_id": 1, "code": "nope"})
    assert bad.status_code == 400

    first = client.post("/api/attendance/checkin/qr", json={"employee_id": 1, "code": "OFFICE_CHECKIN_SYSTEM"})
    assert first.status_code == 201
    assert first.get_json()["action"] == "check_in"
    assert first.get_json()["data"]["check_in"]["method"] == "qr_code"

    clock.now = datetime(2024, 6, 3, 18, 0)
    second = client.post("/api/attendance/checkin/qr", json={"employee_id": 1, "code": "OFFICE_CHECKIN_SYSTEM"})
    assert second.status_code == 200
    assert second.get_json()["action"] == "check_out"


def test_qr_image_is_png(client):
    resp = client.get("/api/attendance/qr/image")

    assert resp.status_code == 200
    assert resp.mimetype == "image/png"
    assert resp.data.startswith(b"\x89PNG")


def test_list_attendance_with_pagination(client, clock):
    for day in (3, 4, 5):
        clock.now = datetime(2024, 6, day, 9, 0)
        client.post("/api/attendance/checkin", json={"employee_id": 1})

    resp = client.get("/api/attendance?employee_id=1&limit=2&page=1")

    assert resp.status_code == 200
    body = resp.get_json()
    assert [r["work_date"] for r in body["data"]] == ["2024-06-05", "2024-06-04"]
    assert body["pagination"] == {"page": 1, "limit": 2, "total_records": 3, "total_pages": 2}

    resp = client.get("/api/attendance?start=2024-06-04&sort_order=asc")
    assert [r["work_date"] for r in resp.get_json()["data"]] == ["2024-06-04", "2024-06-05"]


def test_list_attendance_rejects_unknown_sort(client):
    resp = client.get("/api/attendance?sort_by=salary")
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "ValidationError"
