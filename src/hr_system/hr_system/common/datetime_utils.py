from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from ..core.exceptions import InvalidInterval


def minutes_between(start: datetime, end: datetime) -> float:
    """Minutes from ``start`` to ``end``; fails when ``end`` is earlier."""
    if end < start:
        raise InvalidInterval(start, end)
    return (end - start).total_seconds() / 60


def hours_between(start: datetime, end: datetime) -> float:
    """Hours from ``start`` to ``end``. Not rounded; rounding is a display concern."""
    return minutes_between(start, end) / 60


def local_date_boundary(ts: datetime, tz: ZoneInfo | None = None) -> tuple[datetime, datetime]:
    """Inclusive start and exclusive end of the calendar day containing ``ts``.

    With ``tz`` set, an aware ``ts`` is first converted to that zone and the
    boundaries are returned as aware datetimes in it. Without ``tz`` the
    boundaries keep ``ts``'s own tzinfo (naive local time in most setups).
    """
    if tz is not None:
        ts = to_zone(ts, tz)
    start = ts.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


def to_zone(ts: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Express ``ts`` as wall time in ``tz``.

    Naive values are taken to be wall time in ``tz`` already. Without ``tz``
    the result is naive local time, which is what a DATETIME column holds.
    """
    if tz is None:
        return ts.astimezone().replace(tzinfo=None) if ts.tzinfo else ts
    return ts.astimezone(tz) if ts.tzinfo else ts.replace(tzinfo=tz)


def local_date(ts: datetime, tz: ZoneInfo | None = None) -> date:
    return local_date_boundary(ts, tz)[0].date()


def now_local(tz: ZoneInfo | None = None) -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(tz) if tz else datetime.now()


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value.strip())


def month_range(year: int, month: int) -> tuple[date, date]:
    """First and last calendar day of a month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def format_hours(hours: float) -> str:
    minutes = int(round((hours or 0) * 60))
    return f"{minutes // 60:02d}:{minutes % 60:02d}"
