from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from zoneinfo import ZoneInfo

from . import constants

OVERTIME_BASIS_NET = "net"
OVERTIME_BASIS_GROSS = "gross"


def _parse_clock(value) -> time:
    if isinstance(value, time):
        return value
    return datetime.strptime(str(value).strip(), "%H:%M").time()


@dataclass(frozen=True)
class WorkPolicy:
    """Shift rules used to classify attendance records."""

    shift_start: time = _parse_clock(constants.DEFAULT_SHIFT_START)
    shift_end: time = _parse_clock(constants.DEFAULT_SHIFT_END)
    standard_shift_hours: float = constants.STANDARD_SHIFT_HOURS
    late_grace_minutes: int = constants.DEFAULT_LATE_GRACE_MINUTES
    overtime_basis: str = OVERTIME_BASIS_NET
    timezone: ZoneInfo | None = None

    def __post_init__(self):
        if self.overtime_basis not in (OVERTIME_BASIS_NET, OVERTIME_BASIS_GROSS):
            raise ValueError(f"Unsupported overtime basis: {self.overtime_basis!r}")

    @classmethod
    def from_settings(cls, settings) -> "WorkPolicy":
        tz_name = getattr(settings, "TIMEZONE", None)
        return cls(
            shift_start=_parse_clock(getattr(settings, "SHIFT_START", constants.DEFAULT_SHIFT_START)),
            shift_end=_parse_clock(getattr(settings, "SHIFT_END", constants.DEFAULT_SHIFT_END)),
            standard_shift_hours=float(getattr(settings, "STANDARD_SHIFT_HOURS", constants.STANDARD_SHIFT_HOURS)),
            late_grace_minutes=int(getattr(settings, "LATE_GRACE_MINUTES", constants.DEFAULT_LATE_GRACE_MINUTES)),
            overtime_basis=str(getattr(settings, "OVERTIME_BASIS", OVERTIME_BASIS_NET)).lower(),
            timezone=ZoneInfo(tz_name) if tz_name else None,
        )


@dataclass(frozen=True)
class PayrollRates:
    """Pay-rate and deduction constants for the payroll calculator."""

    standard_monthly_hours: float = constants.STANDARD_MONTHLY_HOURS
    overtime_multiplier: float = constants.OVERTIME_MULTIPLIER
    tax_rate: float = constants.TAX_RATE
    social_security_rate: float = constants.SOCIAL_SECURITY_RATE
    health_insurance_rate: float = constants.HEALTH_INSURANCE_RATE

    @classmethod
    def from_settings(cls, settings) -> "PayrollRates":
        return cls(
            standard_monthly_hours=float(getattr(settings, "STANDARD_MONTHLY_HOURS", constants.STANDARD_MONTHLY_HOURS)),
            overtime_multiplier=float(getattr(settings, "OVERTIME_MULTIPLIER", constants.OVERTIME_MULTIPLIER)),
            tax_rate=float(getattr(settings, "TAX_RATE", constants.TAX_RATE)),
            social_security_rate=float(getattr(settings, "SOCIAL_SECURITY_RATE", constants.SOCIAL_SECURITY_RATE)),
            health_insurance_rate=float(getattr(settings, "HEALTH_INSURANCE_RATE", constants.HEALTH_INSURANCE_RATE)),
        )
