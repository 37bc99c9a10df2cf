from __future__ import annotations

from ..model import AttendanceRecord
from .base import AttendanceStrategy, StatusDecision


class DeclaredStatusStrategy(AttendanceStrategy):
    """Leave, work-from-home or half-day set explicitly by a manager or an import."""

    def decide(self, record: AttendanceRecord) -> StatusDecision:
        return StatusDecision(status=record.declared_status, reason="declared")
