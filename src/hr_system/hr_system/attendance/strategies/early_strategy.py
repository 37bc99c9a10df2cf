from __future__ import annotations

from ...core.enums import AttendanceStatus
from ..model import AttendanceRecord
from .base import AttendanceStrategy, StatusDecision


class EarlyLeaveStrategy(AttendanceStrategy):
    """Checked out before the shift ended (only reached when check-in was on time)."""

    def decide(self, record: AttendanceRecord) -> StatusDecision:
        return StatusDecision(
            status=AttendanceStatus.EARLY_LEAVE,
            reason=f"left {record.early_leave_minutes} min early",
        )
