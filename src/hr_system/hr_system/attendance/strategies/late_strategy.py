from __future__ import annotations

from ...core.enums import AttendanceStatus
from ..model import AttendanceRecord
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Late check-in. Wins over an early leave on the same day."""

    def decide(self, record: AttendanceRecord) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.LATE, reason=f"late by {record.late_minutes} min")
