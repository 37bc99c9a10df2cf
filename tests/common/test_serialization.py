from datetime import date, datetime

from src.hr_system.hr_system.attendance.model import BreakPeriod
from src.hr_system.hr_system.common.serialization import to_jsonable
from src.hr_system.hr_system.core.enums import BreakType


def test_nested_dataclass_enum_and_dates():
    b = BreakPeriod(start_time=datetime(2024, 6, 3, 12, 0), break_type=BreakType.COFFEE)
    assert to_jsonable({"day": date(2024, 6, 3), "breaks": (b,)}) == {
        "day": "2024-06-03",
        "breaks": [
            {"start_time": "2024-06-03T12:00:00", "end_time": None, "duration_minutes": 0.0, "break_type": "coffee"}
        ],
    }


def test_plain_values_pass_through():
    assert to_jsonable(3.5) == 3.5
    assert to_jsonable(None) is None
