"""Settings shared by every environment.

Environment modules star-import this one and override what differs.
"""

import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hr_db"),
}

# Work rules
SHIFT_START = os.getenv("SHIFT_START", "09:00")
SHIFT_END = os.getenv("SHIFT_END", "18:00")
STANDARD_SHIFT_HOURS = float(os.getenv("STANDARD_SHIFT_HOURS", "8"))
LATE_GRACE_MINUTES = int(os.getenv("LATE_GRACE_MINUTES", "0"))
# "net" (breaks excluded) or "gross" (raw check-in to check-out)
OVERTIME_BASIS = os.getenv("OVERTIME_BASIS", "net")
# IANA zone name for "today"; empty means server local time
TIMEZONE = os.getenv("TIMEZONE", "")

# Payroll rules
STANDARD_MONTHLY_HOURS = float(os.getenv("STANDARD_MONTHLY_HOURS", "176"))
OVERTIME_MULTIPLIER = float(os.getenv("OVERTIME_MULTIPLIER", "1.5"))
TAX_RATE = float(os.getenv("TAX_RATE", "0.15"))
SOCIAL_SECURITY_RATE = float(os.getenv("SOCIAL_SECURITY_RATE", "0.14"))
HEALTH_INSURANCE_RATE = float(os.getenv("HEALTH_INSURANCE_RATE", "0.05"))
PAYROLL_BATCH_WORKERS = int(os.getenv("PAYROLL_BATCH_WORKERS", "4"))

# QR Code token for attendance check-in
QR_TOKEN = os.getenv("QR_TOKEN", "OFFICE_CHECKIN_SYSTEM")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

DEBUG = False

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
