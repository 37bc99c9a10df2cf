from __future__ import annotations

import io

from flask import Flask, jsonify, request, send_file

from ..common.datetime_utils import parse_iso_datetime
from ..common.http import acting_user_id, request_body
from ..common.serialization import to_jsonable
from ..common.validators import require_period, require_positive_int
from ..container import Container
from ..core.exceptions import ValidationError
from .model import PayrollRecord


def payroll_json(record: PayrollRecord) -> dict:
    data = to_jsonable(record)
    data["total_gross"] = record.total_gross
    data["is_approved"] = record.is_approved
    return data


def register(app: Flask, container: Container) -> None:
    service = container.payroll_service
    runner = container.payroll_batch_runner

    def _int_arg(name: str):
        raw = request.args.get(name)
        return require_positive_int(raw, name) if raw else None

    @app.route("/api/payroll", methods=["GET"], endpoint="api_payroll_list")
    def api_list():
        rows = service.list_for_period(
            month=_int_arg("month"),
            year=_int_arg("year"),
            status=request.args.get("status"),
        )
        return jsonify({"success": True, "data": [payroll_json(r) for r in rows]})

    @app.route("/api/payroll", methods=["POST"], endpoint="api_payroll_create")
    def api_create():
        body = request_body()
        month, year = require_period(body.get("month"), body.get("year"))
        record = service.calculate_payroll(
            require_positive_int(body.get("employee_id"), "employee_id"),
            month,
            year,
            bonus=body.get("bonus") or 0,
            allowance=body.get("allowance"),
            other_deduction=body.get("other_deduction") or 0,
            notes=body.get("notes"),
            created_by=acting_user_id(),
        )
        return jsonify({"success": True, "data": payroll_json(record)}), 201

    @app.route("/api/payroll/bulk-create", methods=["POST"], endpoint="api_payroll_bulk_create")
    def api_bulk_create():
        body = request_body()
        if not body.get("month") or not body.get("year"):
            raise ValidationError("Month and year are required")
        month, year = require_period(body.get("month"), body.get("year"))
        report = runner.run_for_all_employees(
            month,
            year,
            bonus=body.get("bonus") or 0,
            created_by=acting_user_id(),
        )
        return jsonify(
            {
                "success": True,
                "data": {
                    "created_count": report.created_count,
                    "error_count": report.error_count,
                    "created": [payroll_json(r) for r in report.created],
                    "errors": to_jsonable(report.errors),
                },
            }
        )

    @app.route("/api/payroll/stats/overview", methods=["GET"], endpoint="api_payroll_stats")
    def api_stats():
        stats = service.stats_overview(month=_int_arg("month"), year=_int_arg("year"))
        return jsonify({"success": True, "data": stats})

    @app.route("/api/payroll/employee/<int:employee_id>", methods=["GET"], endpoint="api_payroll_employee_history")
    def api_employee_history(employee_id: int):
        limit = require_positive_int(request.args.get("limit", 12), "limit")
        rows = service.employee_history(employee_id, limit=limit)
        return jsonify({"success": True, "data": [payroll_json(r) for r in rows]})

    @app.route("/api/payroll/export.xlsx", methods=["GET"], endpoint="api_payroll_export")
    def api_export():
        month = _int_arg("month")
        year = _int_arg("year")
        content = service.export_excel(month=month, year=year)
        suffix = f"_{year or 'all'}_{month:02d}" if month else f"_{year or 'all'}"
        return send_file(
            io.BytesIO(content),
            mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            as_attachment=True,
            download_name=f"payroll{suffix}.xlsx",
        )

    @app.route("/api/payroll/<int:payroll_id>", methods=["GET"], endpoint="api_payroll_get")
    def api_get(payroll_id: int):
        return jsonify({"success": True, "data": payroll_json(service.get(payroll_id))})

    @app.route("/api/payroll/<int:payroll_id>", methods=["PATCH"], endpoint="api_payroll_update")
    def api_update(payroll_id: int):
        body = request_body()
        record = service.update_adjustments(
            payroll_id,
            bonus=body.get("bonus"),
            allowance=body.get("allowance"),
            other_deduction=body.get("other_deduction"),
            notes=body.get("notes"),
            updated_by=acting_user_id(),
        )
        return jsonify({"success": True, "data": payroll_json(record)})

    @app.route("/api/payroll/<int:payroll_id>/approve", methods=["PATCH"], endpoint="api_payroll_approve")
    def api_approve(payroll_id: int):
        approver = acting_user_id()
        if approver is None:
            raise ValidationError("X-User-Id header is required")
        return jsonify({"success": True, "data": payroll_json(service.approve(payroll_id, approved_by=approver))})

    @app.route("/api/payroll/<int:payroll_id>/pay", methods=["PATCH"], endpoint="api_payroll_pay")
    def api_pay(payroll_id: int):
        body = request_body()
        raw_date = body.get("payment_date")
        try:
            payment_date = parse_iso_datetime(str(raw_date)) if raw_date else None
        except ValueError:
            raise ValidationError("payment_date must be an ISO date")
        record = service.mark_paid(
            payroll_id,
            payment_method=body.get("payment_method"),
            payment_date=payment_date,
            updated_by=acting_user_id(),
        )
        return jsonify({"success": True, "data": payroll_json(record)})

    @app.route("/api/payroll/<int:payroll_id>/cancel", methods=["PATCH"], endpoint="api_payroll_cancel")
    def api_cancel(payroll_id: int):
        body = request_body()
        record = service.cancel(payroll_id, updated_by=acting_user_id(), notes=body.get("notes"))
        return jsonify({"success": True, "data": payroll_json(record)})

    @app.route("/api/payroll/<int:payroll_id>", methods=["DELETE"], endpoint="api_payroll_delete")
    def api_delete(payroll_id: int):
        service.delete(payroll_id)
        return jsonify({"success": True, "message": "Payroll record deleted successfully"})
