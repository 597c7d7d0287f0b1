from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from flask import request
from sqlalchemy import func
from sqlalchemy.orm import InstrumentedAttribute, Session

from app.vendorhub.errors import InvalidInput

# Numeric(10, 2) columns
MAX_MONEY = Decimal("99999999.99")


def iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def money(value: Decimal | None) -> str | None:
    """Decimal columns go over the wire as fixed 2dp strings."""
    if value is None:
        return None
    return str(Decimal(value).quantize(Decimal("0.01")))


def clean_str(value: Any) -> str | None:
    """Strip strings; blank -> None."""
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def parse_decimal(value: Any) -> Decimal | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise ValueError("not a number")
    try:
        d = Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ValueError(f"not a number: {value!r}") from e
    if not d.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    if abs(d) > MAX_MONEY:
        raise ValueError(f"out of range: {value!r}")
    return d


def parse_int(value: Any) -> int | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise ValueError("not an integer")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"not an integer: {value!r}")
    return int(value)


def parse_datetime(value: Any) -> datetime | None:
    """ISO-8601 (date or datetime, trailing Z allowed) -> naive UTC datetime."""
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def next_number(s: Session, column: InstrumentedAttribute) -> int:
    """Next value for a sequential display number (max + 1, starting at 1)."""
    current = s.query(func.max(column)).scalar()
    return int(current or 0) + 1


def json_body() -> dict:
    """Request JSON body as a dict, or InvalidInput."""
    payload = request.get_json(silent=True)
    if payload is None:
        raise InvalidInput("Request body must be JSON")
    if not isinstance(payload, dict):
        raise InvalidInput("Request body must be a JSON object")
    return payload


def query_flag(name: str) -> bool:
    return (request.args.get(name) or "").strip().lower() == "true"


def require_id(value: Any, field: str = "id") -> int:
    """Integer primary key from a body field or query arg, or InvalidInput."""
    try:
        n = parse_int(value)
    except (TypeError, ValueError):
        n = None
    if n is None or n <= 0:
        raise InvalidInput(f"{field} is required", details=[f"{field} must be a positive integer."])
    return n
