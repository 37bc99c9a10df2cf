from __future__ import annotations

from flask import request

from .validators import require_positive_int


def acting_user_id() -> int | None:
    """Id of the caller, passed by the authenticating proxy as ``X-User-Id``."""
    raw = request.headers.get("X-User-Id")
    return require_positive_int(raw, "X-User-Id") if raw else None


def request_body() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}
