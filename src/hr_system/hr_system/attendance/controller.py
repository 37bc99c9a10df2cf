from __future__ import annotations

import io
from datetime import date, timedelta

import qrcode
from flask import Flask, jsonify, request, send_file

from ..common.datetime_utils import parse_iso_date, parse_iso_datetime
from ..common.http import acting_user_id, request_body
from ..common.serialization import to_jsonable
from ..common.validators import require_positive_int
from ..core.constants import DEFAULT_PAGE_SIZE
from ..core.enums import AttendanceState, CheckMethod
from ..core.exceptions import ValidationError
from ..container import Container
from .model import AttendanceRecord, MonthlyAttendanceSummary


def record_json(record: AttendanceRecord) -> dict:
    data = to_jsonable(record)
    data["net_work_hours"] = record.net_work_hours
    data["state"] = record.state.value
    return data


def summary_json(summary: MonthlyAttendanceSummary) -> dict:
    data = to_jsonable(summary)
    data["average_work_hours"] = summary.average_work_hours
    return data


def date_arg(name: str, default: date | None) -> date | None:
    raw = request.args.get(name)
    if not raw:
        return default
    try:
        return parse_iso_date(raw)
    except ValueError:
        raise ValidationError(f"{name} must be YYYY-MM-DD")


def make_qr_png(data: str) -> io.BytesIO:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=2,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    buf.seek(0)
    return buf


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    def _employee_id(body: dict) -> int:
        raw = body.get("employee_id") or request.headers.get("X-User-Id")
        return require_positive_int(raw, "employee_id")

    def _approver_id() -> int:
        user_id = acting_user_id()
        if user_id is None:
            raise ValidationError("X-User-Id header is required")
        return user_id

    def _optional_datetime(body: dict, key: str):
        raw = body.get(key)
        if not raw:
            return None
        try:
            return parse_iso_datetime(str(raw))
        except ValueError:
            raise ValidationError(f"{key} must be an ISO datetime")

    @app.route("/api/attendance", methods=["GET"], endpoint="api_attendance_list")
    def api_list():
        args = request.args
        employee_id = args.get("employee_id")
        result = service.list_records(
            employee_id=require_positive_int(employee_id, "employee_id") if employee_id else None,
            start_date=date_arg("start", None),
            end_date=date_arg("end", None),
            status=args.get("status"),
            department=args.get("department"),
            sort_by=args.get("sort_by", "work_date"),
            sort_order=args.get("sort_order", "desc").lower(),
            page=require_positive_int(args.get("page", 1), "page"),
            limit=require_positive_int(args.get("limit", DEFAULT_PAGE_SIZE), "limit"),
        )
        return jsonify(
            {
                "success": True,
                "data": [record_json(r) for r in result.records],
                "pagination": {
                    "page": result.page,
                    "limit": result.limit,
                    "total_records": result.total,
                    "total_pages": result.total_pages,
                },
            }
        )

    @app.route("/api/attendance/checkin", methods=["POST"], endpoint="api_attendance_checkin")
    def api_checkin():
        body = request_body()
        record = service.check_in(
            _employee_id(body),
            location=body.get("location"),
            method=body.get("method"),
            notes=body.get("notes"),
            created_by=acting_user_id(),
        )
        return jsonify({"success": True, "message": "Check-in recorded", "data": record_json(record)}), 201

    @app.route("/api/attendance/checkout", methods=["POST"], endpoint="api_attendance_checkout")
    def api_checkout():
        body = request_body()
        record = service.check_out(
            _employee_id(body),
            location=body.get("location"),
            method=body.get("method"),
            notes=body.get("notes"),
        )
        return jsonify({"success": True, "message": "Check-out recorded", "data": record_json(record)})

    @app.route("/api/attendance/break/start", methods=["POST"], endpoint="api_attendance_break_start")
    def api_break_start():
        body = request_body()
        record = service.start_break(_employee_id(body), break_type=body.get("break_type") or body.get("type"))
        return jsonify({"success": True, "message": "Break started", "data": record_json(record)})

    @app.route("/api/attendance/break/end", methods=["POST"], endpoint="api_attendance_break_end")
    def api_break_end():
        body = request_body()
        record = service.end_break(_employee_id(body))
        return jsonify({"success": True, "message": "Break ended", "data": record_json(record)})

    @app.route("/api/attendance/employee/<int:employee_id>/today", methods=["GET"], endpoint="api_attendance_today")
    def api_today(employee_id: int):
        record = service.get_today_record(employee_id)
        return jsonify({"success": True, "data": record_json(record) if record else None})

    @app.route("/api/attendance/employee/<int:employee_id>/history", methods=["GET"], endpoint="api_attendance_history")
    def api_history(employee_id: int):
        limit = require_positive_int(request.args.get("limit", 30), "limit")
        rows = service.get_history(employee_id, limit=limit)
        return jsonify({"success": True, "data": [record_json(r) for r in rows]})

    @app.route("/api/attendance/employee/<int:employee_id>/stats", methods=["GET"], endpoint="api_attendance_employee_stats")
    def api_employee_stats(employee_id: int):
        today = service.today()
        start = date_arg("start", today.replace(day=1))
        end = date_arg("end", today)
        stats = service.employee_stats(employee_id, start, end)
        return jsonify(
            {
                "success": True,
                "data": {
                    "overview": summary_json(stats["overview"]),
                    "monthly": {k: summary_json(v) for k, v in stats["monthly"].items()},
                },
            }
        )

    @app.route("/api/attendance/stats/overview", methods=["GET"], endpoint="api_attendance_stats_overview")
    def api_stats_overview():
        today = service.today()
        start = date_arg("start", today - timedelta(days=30))
        end = date_arg("end", today)
        employee_id = request.args.get("employee_id")
        data = service.overview(
            start,
            end,
            employee_id=require_positive_int(employee_id, "employee_id") if employee_id else None,
        )
        return jsonify(
            {
                "success": True,
                "data": {
                    "employees": [summary_json(s) for s in data["employees"]],
                    "status_distribution": [
                        {"status": status.value, "count": count} for status, count in data["status_distribution"]
                    ],
                    "daily": to_jsonable(data["daily"]),
                },
            }
        )

    @app.route("/api/attendance/bulk-import", methods=["POST"], endpoint="api_attendance_bulk_import")
    def api_bulk_import():
        body = request_body()
        rows = body.get("records")
        if not isinstance(rows, list) or not rows:
            raise ValidationError("records must be a non-empty list")
        report = service.bulk_import(rows, created_by=acting_user_id())
        return jsonify(
            {
                "success": True,
                "data": {
                    "created_count": report.created_count,
                    "error_count": report.error_count,
                    "created": [record_json(r) for r in report.created],
                    "errors": to_jsonable(report.errors),
                },
            }
        )

    @app.route("/api/attendance/<int:attendance_id>", methods=["GET"], endpoint="api_attendance_get")
    def api_get(attendance_id: int):
        return jsonify({"success": True, "data": record_json(service.get(attendance_id))})

    @app.route("/api/attendance/<int:attendance_id>", methods=["PATCH"], endpoint="api_attendance_update")
    def api_update(attendance_id: int):
        body = request_body()
        record = service.admin_update(
            attendance_id,
            check_in_time=_optional_datetime(body, "check_in"),
            check_out_time=_optional_datetime(body, "check_out"),
            declared_status=body.get("status"),
            clear_declared_status=bool(body.get("clear_status", False)),
            notes=body.get("notes"),
            updated_by=acting_user_id(),
        )
        return jsonify({"success": True, "data": record_json(record)})

    @app.route("/api/attendance/<int:attendance_id>/approve", methods=["PATCH"], endpoint="api_attendance_approve")
    def api_approve(attendance_id: int):
        body = request_body()
        record = service.approve(attendance_id, approver_id=_approver_id(), notes=body.get("notes"))
        return jsonify({"success": True, "data": record_json(record)})

    @app.route("/api/attendance/<int:attendance_id>/reject", methods=["PATCH"], endpoint="api_attendance_reject")
    def api_reject(attendance_id: int):
        body = request_body()
        record = service.reject(attendance_id, approver_id=_approver_id(), notes=body.get("notes"))
        return jsonify({"success": True, "data": record_json(record)})

    @app.route("/api/attendance/<int:attendance_id>", methods=["DELETE"], endpoint="api_attendance_delete")
    def api_delete(attendance_id: int):
        service.delete(attendance_id)
        return jsonify({"success": True, "message": "Attendance record deleted"})

    # ===== QR CODE =====

    @app.route("/api/attendance/checkin/qr", methods=["POST"], endpoint="api_attendance_checkin_qr")
    def api_checkin_qr():
        """Scan of the office QR code: checks in, or out when already working."""
        body = request_body()
        scanned = str(body.get("code") or "").strip()
        if not scanned:
            raise ValidationError("QR code is required")
        if scanned != app.config.get("QR_TOKEN"):
            raise ValidationError("QR code is invalid or expired")

        employee_id = _employee_id(body)
        today = service.get_today_record(employee_id)
        if today and today.state in (AttendanceState.WORKING, AttendanceState.ON_BREAK):
            record = service.check_out(employee_id, method=CheckMethod.QR_CODE)
            return jsonify({"success": True, "action": "check_out", "data": record_json(record)})

        record = service.check_in(employee_id, method=CheckMethod.QR_CODE, created_by=acting_user_id())
        return jsonify({"success": True, "action": "check_in", "data": record_json(record)}), 201

    @app.route("/api/attendance/qr/image", methods=["GET"], endpoint="api_attendance_qr_image")
    def api_qr_image():
        buf = make_qr_png(app.config.get("QR_TOKEN", ""))
        return send_file(buf, mimetype="image/png")
