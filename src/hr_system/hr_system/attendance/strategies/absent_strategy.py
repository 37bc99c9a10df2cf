from __future__ import annotations

from ...core.enums import AttendanceStatus
from ..model import AttendanceRecord
from .base import AttendanceStrategy, StatusDecision


class AbsentStrategy(AttendanceStrategy):
    """Record exists but the employee never checked in."""

    def decide(self, record: AttendanceRecord) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.ABSENT, reason="no check-in")
