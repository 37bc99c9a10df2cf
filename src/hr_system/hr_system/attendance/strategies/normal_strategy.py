from __future__ import annotations

from ...core.enums import AttendanceStatus
from ..model import AttendanceRecord
from .base import AttendanceStrategy, StatusDecision


class NormalStrategy(AttendanceStrategy):
    """On-time check-in, normal check-out."""

    def decide(self, record: AttendanceRecord) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)
