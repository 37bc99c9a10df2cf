from __future__ import annotations

from enum import Enum
from typing import Type, TypeVar

from ..core.constants import DEFAULT_LOCATION
from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def require_positive_int(value, field_name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
    if number <= 0:
        raise ValidationError(f"{field_name} must be positive")
    return number


def require_period(month, year) -> tuple[int, int]:
    month = require_positive_int(month, "month")
    year = require_positive_int(year, "year")
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12")
    return month, year


def require_non_negative(value, field_name: str) -> float:
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if number < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return number


def parse_enum(enum_cls: Type[E], value, field_name: str, default: E | None = None) -> E:
    if value is None or value == "":
        if default is None:
            raise ValidationError(f"{field_name} is required")
        return default
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}")


def normalize_text(value: str | None) -> str | None:
    """Trim free-text notes; blank becomes None."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def normalize_location(value) -> tuple[float, float]:
    """Accept ``[lng, lat]``, ``{"coordinates": [lng, lat]}`` or None."""
    if value is None:
        return DEFAULT_LOCATION
    if isinstance(value, dict):
        value = value.get("coordinates")
        if value is None:
            return DEFAULT_LOCATION
    try:
        lng, lat = value
        return float(lng), float(lat)
    except (TypeError, ValueError):
        raise ValidationError("location must be a [longitude, latitude] pair")
