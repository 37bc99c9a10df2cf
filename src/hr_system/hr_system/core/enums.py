from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Daily attendance status stored with every record."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EARLY_LEAVE = "early_leave"
    HALF_DAY = "half_day"
    WORK_FROM_HOME = "work_from_home"
    ON_LEAVE = "on_leave"


# Statuses a manager (or a bulk import) may declare; they win over anything
# derived from check-in/check-out times.
DECLARED_STATUSES = frozenset(
    {AttendanceStatus.ON_LEAVE, AttendanceStatus.WORK_FROM_HOME, AttendanceStatus.HALF_DAY}
)


class AttendanceState(str, Enum):
    NO_RECORD = "no_record"
    WORKING = "working"
    ON_BREAK = "on_break"
    CHECKED_OUT = "checked_out"


class CheckMethod(str, Enum):
    MANUAL = "manual"
    QR_CODE = "qr_code"
    FINGERPRINT = "fingerprint"
    FACE_RECOGNITION = "face_recognition"
    MOBILE_APP = "mobile_app"


class BreakType(str, Enum):
    LUNCH = "lunch"
    COFFEE = "coffee"
    PERSONAL = "personal"
    MEETING = "meeting"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"
    CHECK = "check"
