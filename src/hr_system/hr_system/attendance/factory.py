from __future__ import annotations

from dataclasses import dataclass

from .model import AttendanceRecord
from .strategies.absent_strategy import AbsentStrategy
from .strategies.base import AttendanceStrategy
from .strategies.declared_strategy import DeclaredStatusStrategy
from .strategies.early_strategy import EarlyLeaveStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose the status strategy for a record.

    Precedence: declared status > absent > late > early leave > present.
    Expects the record's late/early-leave minutes to be measured already.
    """

    def for_record(self, record: AttendanceRecord) -> AttendanceStrategy:
        if record.declared_status is not None:
            return DeclaredStatusStrategy()
        if record.check_in is None:
            return AbsentStrategy()
        if record.late_minutes > 0:
            return LateStrategy()
        if record.early_leave_minutes > 0:
            return EarlyLeaveStrategy()
        return NormalStrategy()
