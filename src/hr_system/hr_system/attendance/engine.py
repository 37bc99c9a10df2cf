from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time

from ..common.datetime_utils import hours_between, minutes_between, to_zone
from ..core.enums import DECLARED_STATUSES, AttendanceStatus, BreakType, CheckMethod
from ..core.exceptions import (
    AlreadyCheckedOut,
    AlreadyOnBreak,
    NoActiveBreak,
    NoActiveCheckIn,
    StateError,
    ValidationError,
)
from ..core.policy import OVERTIME_BASIS_NET, WorkPolicy
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, BreakPeriod, CheckEvent
from .strategies.base import StatusDecision


class AttendanceEngine:
    """Life cycle of a single attendance record.

    Every operation validates first and returns a new record, so a failed
    call never leaves the input half-mutated. Store access (duplicate
    check, persistence) belongs to ``AttendanceService``.
    """

    def __init__(self, policy: WorkPolicy | None = None, *, strategy_factory: AttendanceStrategyFactory | None = None):
        self._policy = policy or WorkPolicy()
        self._factory = strategy_factory or AttendanceStrategyFactory()

    @property
    def policy(self) -> WorkPolicy:
        return self._policy

    def work_date_for(self, ts: datetime) -> date:
        return self._at(ts).date()

    def _at(self, ts: datetime) -> datetime:
        return to_zone(ts, self._policy.timezone)

    def _localized(self, record: AttendanceRecord) -> AttendanceRecord:
        """Same record with every stored timestamp expressed in the policy zone."""

        def event(e: CheckEvent | None) -> CheckEvent | None:
            return replace(e, time=self._at(e.time)) if e is not None else None

        breaks = tuple(
            replace(
                b,
                start_time=self._at(b.start_time),
                end_time=self._at(b.end_time) if b.end_time is not None else None,
            )
            for b in record.breaks
        )
        return replace(record, check_in=event(record.check_in), check_out=event(record.check_out), breaks=breaks)

    def check_in(
        self,
        employee_id: int,
        *,
        now: datetime,
        location: tuple[float, float] | None = None,
        method: CheckMethod = CheckMethod.MANUAL,
        notes: str | None = None,
        created_by: int | None = None,
    ) -> AttendanceRecord:
        now = self._at(now)
        event = CheckEvent(time=now, method=method, notes=notes)
        if location is not None:
            event = replace(event, location=location)

        record = AttendanceRecord(
            employee_id=int(employee_id),
            work_date=self.work_date_for(now),
            check_in=event,
            status=AttendanceStatus.PRESENT,
            created_by=created_by,
        )
        return self.recompute_derived(record)

    def check_out(
        self,
        record: AttendanceRecord,
        *,
        now: datetime,
        location: tuple[float, float] | None = None,
        method: CheckMethod = CheckMethod.MANUAL,
        notes: str | None = None,
    ) -> AttendanceRecord:
        record, now = self._localized(record), self._at(now)
        if record.check_in is None:
            raise NoActiveCheckIn("No check-in recorded for this day")
        if record.check_out is not None:
            raise AlreadyCheckedOut("Already checked out for this day")
        minutes_between(record.check_in.time, now)

        # An open break ends with the shift.
        breaks = tuple(self._close_break(b, now) if b.is_open else b for b in record.breaks)

        event = CheckEvent(time=now, method=method, notes=notes)
        if location is not None:
            event = replace(event, location=location)
        return self.recompute_derived(replace(record, check_out=event, breaks=breaks))

    def start_break(
        self,
        record: AttendanceRecord,
        *,
        now: datetime,
        break_type: BreakType = BreakType.LUNCH,
    ) -> AttendanceRecord:
        record, now = self._localized(record), self._at(now)
        if record.check_in is None:
            raise NoActiveCheckIn("Check in before starting a break")
        if record.check_out is not None:
            raise StateError("Cannot start a break after check-out")
        if record.open_break is not None:
            raise AlreadyOnBreak("Already on break")
        minutes_between(record.check_in.time, now)

        new_break = BreakPeriod(start_time=now, break_type=break_type)
        return self.recompute_derived(replace(record, breaks=record.breaks + (new_break,)))

    def end_break(self, record: AttendanceRecord, *, now: datetime) -> AttendanceRecord:
        record, now = self._localized(record), self._at(now)
        if record.open_break is None:
            raise NoActiveBreak("No active break found")
        breaks = tuple(self._close_break(b, now) if b.is_open else b for b in record.breaks)
        return self.recompute_derived(replace(record, breaks=breaks))

    def correct(
        self,
        record: AttendanceRecord,
        *,
        check_in_time: datetime | None = None,
        check_out_time: datetime | None = None,
        declared_status: AttendanceStatus | None = None,
        clear_declared_status: bool = False,
        notes: str | None = None,
        updated_by: int | None = None,
    ) -> AttendanceRecord:
        """Manager correction of punch times or declared status."""
        record = self._localized(record)
        if check_in_time is not None:
            check_in_time = self._at(check_in_time)
        if check_out_time is not None:
            check_out_time = self._at(check_out_time)

        if declared_status is not None and declared_status not in DECLARED_STATUSES:
            raise ValidationError(f"Status '{declared_status.value}' is derived and cannot be set directly")

        check_in = record.check_in
        if check_in_time is not None:
            check_in = replace(check_in, time=check_in_time) if check_in else CheckEvent(time=check_in_time)
        check_out = record.check_out
        if check_out_time is not None:
            check_out = replace(check_out, time=check_out_time) if check_out else CheckEvent(time=check_out_time)

        if check_out is not None:
            if check_in is None:
                raise ValidationError("Check-out requires a check-in")
            minutes_between(check_in.time, check_out.time)

        if clear_declared_status:
            declared = None
        else:
            declared = declared_status if declared_status is not None else record.declared_status

        updated = replace(
            record,
            check_in=check_in,
            check_out=check_out,
            declared_status=declared,
            notes=notes if notes is not None else record.notes,
            updated_by=updated_by if updated_by is not None else record.updated_by,
        )
        return self.recompute_derived(updated)

    def build_imported(
        self,
        employee_id: int,
        *,
        work_date: date,
        check_in_time: datetime | None = None,
        check_out_time: datetime | None = None,
        status: AttendanceStatus | None = None,
        created_by: int | None = None,
    ) -> AttendanceRecord:
        """Build a record for a past day (bulk import), without the live state machine."""
        if check_in_time is not None:
            check_in_time = self._at(check_in_time)
            if check_in_time.date() != work_date:
                raise ValidationError(f"Check-in {check_in_time:%Y-%m-%d %H:%M} is not on {work_date.isoformat()}")
        if check_out_time is not None:
            check_out_time = self._at(check_out_time)
        if status == AttendanceStatus.ABSENT and check_in_time is not None:
            raise ValidationError("An absent record cannot carry a check-in time")
        if check_out_time is not None and check_in_time is None:
            raise ValidationError("Check-out requires a check-in")
        if check_in_time is not None and check_out_time is not None:
            minutes_between(check_in_time, check_out_time)

        record = AttendanceRecord(
            employee_id=int(employee_id),
            work_date=work_date,
            check_in=CheckEvent(time=check_in_time) if check_in_time else None,
            check_out=CheckEvent(time=check_out_time) if check_out_time else None,
            declared_status=status if status in DECLARED_STATUSES else None,
            created_by=created_by,
        )
        return self.recompute_derived(record)

    def recompute_derived(self, record: AttendanceRecord) -> AttendanceRecord:
        """Recompute every derived field from punches and breaks.

        Idempotent: calling it twice without a mutation in between yields the
        same record. Overtime is measured against the policy's overtime basis:
        net hours (breaks deducted) by default, gross hours when configured.
        """
        record = self._localized(record)
        closed_break_minutes = sum(b.duration_minutes for b in record.breaks if not b.is_open)
        total_break_hours = closed_break_minutes / 60

        total_work_hours = 0.0
        if record.check_in is not None and record.check_out is not None:
            total_work_hours = hours_between(record.check_in.time, record.check_out.time)

        worked = total_work_hours
        if self._policy.overtime_basis == OVERTIME_BASIS_NET and total_work_hours:
            worked = total_work_hours - total_break_hours
        overtime_hours = max(0.0, worked - self._policy.standard_shift_hours)

        measured = replace(
            record,
            total_work_hours=total_work_hours,
            total_break_hours=total_break_hours,
            overtime_hours=overtime_hours,
            late_minutes=self._late_minutes(record),
            early_leave_minutes=self._early_leave_minutes(record),
        )
        return replace(measured, status=self.classify(measured).status)

    def classify(self, record: AttendanceRecord) -> StatusDecision:
        return self._factory.for_record(record).decide(record)

    def _shift_boundary(self, record: AttendanceRecord, clock: time) -> datetime:
        return datetime.combine(record.work_date, clock, tzinfo=self._policy.timezone)

    def _late_minutes(self, record: AttendanceRecord) -> int:
        if record.check_in is None:
            return 0
        arrived = record.check_in.time
        shift_start = self._shift_boundary(record, self._policy.shift_start)
        if arrived <= shift_start:
            return 0
        late = minutes_between(shift_start, arrived)
        if late <= self._policy.late_grace_minutes:
            return 0
        return int(late)

    def _early_leave_minutes(self, record: AttendanceRecord) -> int:
        if record.check_out is None:
            return 0
        left = record.check_out.time
        shift_end = self._shift_boundary(record, self._policy.shift_end)
        if left >= shift_end:
            return 0
        return int(minutes_between(left, shift_end))

    @staticmethod
    def _close_break(b: BreakPeriod, now: datetime) -> BreakPeriod:
        return replace(b, end_time=now, duration_minutes=minutes_between(b.start_time, now))
