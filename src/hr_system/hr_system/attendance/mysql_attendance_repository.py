from __future__ import annotations

from collections import defaultdict
from dataclasses import replace
from datetime import date, datetime
from typing import Sequence
from zoneinfo import ZoneInfo

from mysql.connector.errors import IntegrityError

from ..common.datetime_utils import to_zone
from ..core.enums import ApprovalStatus, AttendanceStatus, BreakType, CheckMethod
from ..core.exceptions import DuplicateCheckIn
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, is_duplicate_key
from .model import AttendanceRecord, BreakPeriod, CheckEvent
from .repository import SORTABLE_FIELDS, AttendanceRepository

_COLUMNS = """
    attendance_id, employee_id, work_date,
    check_in_time, check_in_lng, check_in_lat, check_in_method, check_in_notes,
    check_out_time, check_out_lng, check_out_lat, check_out_method, check_out_notes,
    status, declared_status, total_work_hours, total_break_hours, overtime_hours,
    late_minutes, early_leave_minutes, approval_status, approved_by, approval_notes,
    notes, created_by, updated_by
"""


def _from_db(ts: datetime | None, tz) -> datetime | None:
    return to_zone(ts, tz) if ts is not None else None


def _to_db(ts: datetime | None, tz) -> datetime | None:
    # DATETIME columns hold naive wall time in the configured zone.
    return to_zone(ts, tz).replace(tzinfo=None) if ts is not None else None


def _event(r: dict, prefix: str, tz) -> CheckEvent | None:
    ts = r.get(f"{prefix}_time")
    if ts is None:
        return None
    return CheckEvent(
        time=_from_db(ts, tz),
        location=(float(r.get(f"{prefix}_lng") or 0), float(r.get(f"{prefix}_lat") or 0)),
        method=CheckMethod(r.get(f"{prefix}_method") or CheckMethod.MANUAL.value),
        notes=r.get(f"{prefix}_notes"),
    )


def _event_params(event: CheckEvent | None, tz) -> tuple:
    if event is None:
        return (None, None, None, None, None)
    lng, lat = event.location
    return (_to_db(event.time, tz), lng, lat, event.method.value, event.notes)


def _to_record(r: dict, breaks: Sequence[BreakPeriod] = (), tz=None) -> AttendanceRecord:
    declared = r.get("declared_status")
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["work_date"],
        check_in=_event(r, "check_in", tz),
        check_out=_event(r, "check_out", tz),
        breaks=tuple(breaks),
        status=AttendanceStatus(r["status"]),
        declared_status=AttendanceStatus(declared) if declared else None,
        total_work_hours=float(r.get("total_work_hours") or 0),
        total_break_hours=float(r.get("total_break_hours") or 0),
        overtime_hours=float(r.get("overtime_hours") or 0),
        late_minutes=int(r.get("late_minutes") or 0),
        early_leave_minutes=int(r.get("early_leave_minutes") or 0),
        approval_status=ApprovalStatus(r.get("approval_status") or ApprovalStatus.PENDING.value),
        approved_by=r.get("approved_by"),
        approval_notes=r.get("approval_notes"),
        notes=r.get("notes"),
        created_by=r.get("created_by"),
        updated_by=r.get("updated_by"),
    )


def _record_params(record: AttendanceRecord, tz=None) -> tuple:
    return (
        *_event_params(record.check_in, tz),
        *_event_params(record.check_out, tz),
        record.status.value,
        record.declared_status.value if record.declared_status else None,
        record.total_work_hours,
        record.total_break_hours,
        record.overtime_hours,
        record.late_minutes,
        record.early_leave_minutes,
        record.approval_status.value,
        record.approved_by,
        record.approval_notes,
        record.notes,
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, tz: ZoneInfo | None = None):
        self._conn_factory = conn_factory
        self._tz = tz

    def _load_breaks(self, cur, attendance_ids: Sequence[int]) -> dict[int, list[BreakPeriod]]:
        out: dict[int, list[BreakPeriod]] = defaultdict(list)
        if not attendance_ids:
            return out
        placeholders = ",".join(["%s"] * len(attendance_ids))
        cur.execute(
            f"""
            SELECT attendance_id, start_time, end_time, duration_minutes, break_type
            FROM attendance_breaks
            WHERE attendance_id IN ({placeholders})
            ORDER BY attendance_id, seq
            """,
            tuple(attendance_ids),
        )
        for b in fetchall(cur):
            out[int(b["attendance_id"])].append(
                BreakPeriod(
                    start_time=_from_db(b["start_time"], self._tz),
                    end_time=_from_db(b.get("end_time"), self._tz),
                    duration_minutes=float(b.get("duration_minutes") or 0),
                    break_type=BreakType(b["break_type"]),
                )
            )
        return out

    def _write_breaks(self, cur, attendance_id: int, breaks: Sequence[BreakPeriod]) -> None:
        cur.execute("DELETE FROM attendance_breaks WHERE attendance_id=%s", (attendance_id,))
        for seq, b in enumerate(breaks):
            cur.execute(
                """
                INSERT INTO attendance_breaks(attendance_id, seq, start_time, end_time, duration_minutes, break_type)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    attendance_id,
                    seq,
                    _to_db(b.start_time, self._tz),
                    _to_db(b.end_time, self._tz),
                    b.duration_minutes,
                    b.break_type.value,
                ),
            )

    def _select(self, where: str, params: tuple, *, order: str = "work_date ASC", limit: int | None = None):
        sql = f"SELECT {_COLUMNS} FROM attendance_records WHERE {where} ORDER BY {order}"
        if limit is not None:
            sql += " LIMIT %s"
            params = params + (int(limit),)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            rows = fetchall(cur)
            breaks = self._load_breaks(cur, [int(r["attendance_id"]) for r in rows])
            return [_to_record(r, breaks.get(int(r["attendance_id"]), ()), self._tz) for r in rows]

    def find_record(self, employee_id: int, work_date: date) -> AttendanceRecord | None:
        rows = self._select("employee_id=%s AND work_date=%s", (int(employee_id), work_date))
        return rows[0] if rows else None

    def find_records_in_range(self, employee_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        return self._select(
            "employee_id=%s AND work_date BETWEEN %s AND %s",
            (int(employee_id), start_date, end_date),
        )

    def find_all_in_range(self, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        return self._select("work_date BETWEEN %s AND %s", (start_date, end_date), order="work_date ASC, employee_id ASC")

    def get_by_id(self, attendance_id: int) -> AttendanceRecord | None:
        rows = self._select("attendance_id=%s", (int(attendance_id),))
        return rows[0] if rows else None

    def get_recent_for_employee(self, employee_id: int, limit: int) -> Sequence[AttendanceRecord]:
        return self._select("employee_id=%s", (int(employee_id),), order="work_date DESC", limit=limit)

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
        if sort_by not in SORTABLE_FIELDS:
            raise ValueError(f"Unsupported sort field: {sort_by!r}")

        clauses: list[str] = []
        params: list = []
        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(employee_id))
        if start_date is not None:
            clauses.append("work_date >= %s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("work_date <= %s")
            params.append(end_date)
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if department:
            clauses.append("employee_id IN (SELECT employee_id FROM employees WHERE department=%s)")
            params.append(department)
        where = " AND ".join(clauses) or "1=1"
        direction = "DESC" if descending else "ASC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM attendance_records WHERE {where}", tuple(params))
            total = int(fetchall(cur)[0]["total"])
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE {where} "
                f"ORDER BY {sort_by} {direction}, attendance_id {direction} LIMIT %s OFFSET %s",
                (*params, int(limit), int(offset)),
            )
            rows = fetchall(cur)
            breaks = self._load_breaks(cur, [int(r["attendance_id"]) for r in rows])
            records = [_to_record(r, breaks.get(int(r["attendance_id"]), ()), self._tz) for r in rows]
        return records, total

    def create(self, record: AttendanceRecord) -> AttendanceRecord:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        employee_id, work_date,
                        check_in_time, check_in_lng, check_in_lat, check_in_method, check_in_notes,
                        check_out_time, check_out_lng, check_out_lat, check_out_method, check_out_notes,
                        status, declared_status, total_work_hours, total_break_hours, overtime_hours,
                        late_minutes, early_leave_minutes, approval_status, approved_by, approval_notes,
                        notes, created_by
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (record.employee_id, record.work_date, *_record_params(record, self._tz), record.created_by),
                )
                attendance_id = int(cur.lastrowid)
                self._write_breaks(cur, attendance_id, record.breaks)
        except IntegrityError as exc:
            if is_duplicate_key(exc):
                raise DuplicateCheckIn(record.employee_id, record.work_date) from exc
            raise

        return replace(record, attendance_id=attendance_id)

    def update(self, record: AttendanceRecord) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT attendance_id FROM attendance_records WHERE attendance_id=%s FOR UPDATE",
                (int(record.attendance_id),),
            )
            if not fetchall(cur):
                return False
            cur.execute(
                """
                UPDATE attendance_records
                SET check_in_time=%s, check_in_lng=%s, check_in_lat=%s, check_in_method=%s, check_in_notes=%s,
                    check_out_time=%s, check_out_lng=%s, check_out_lat=%s, check_out_method=%s, check_out_notes=%s,
                    status=%s, declared_status=%s, total_work_hours=%s, total_break_hours=%s, overtime_hours=%s,
                    late_minutes=%s, early_leave_minutes=%s, approval_status=%s, approved_by=%s, approval_notes=%s,
                    notes=%s, updated_by=%s
                WHERE attendance_id=%s
                """,
                (*_record_params(record, self._tz), record.updated_by, int(record.attendance_id)),
            )
            self._write_breaks(cur, int(record.attendance_id), record.breaks)
            return True

    def delete(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0
