from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from app.vendorhub.audit import record_event
from app.vendorhub.constants import DEFAULT_WAREHOUSES
from app.vendorhub.errors import InvalidInput
from app.vendorhub.utils import clean_str

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.vendorhub.models import Profile
    from app.vendorhub.modules.warehouses.models import Warehouse


TEXT_FIELDS = ("name", "address", "city", "state", "zip", "phone")
FLAG_FIELDS = {"allowDropOff": "allow_drop_off", "allowShipping": "allow_shipping", "isActive": "is_active"}


def normalize_code(code: Any) -> str:
    return (clean_str(code) or "").upper()


def validate_warehouse_payload(payload: dict, *, partial: bool = False) -> list[str]:
    errors: list[str] = []
    if not partial or "code" in payload:
        code = normalize_code(payload.get("code"))
        if not code:
            errors.append("code is required.")
        elif len(code) > 16:
            errors.append("code must be at most 16 characters.")
    if not partial or "name" in payload:
        if not clean_str(payload.get("name")):
            errors.append("name is required.")
    for key in FLAG_FIELDS:
        if key in payload and not isinstance(payload.get(key), bool):
            errors.append(f"{key} must be true or false.")
    return errors


def _ensure_code_free(s: "Session", code: str, exclude_id: int | None = None) -> None:
    from app.vendorhub.modules.warehouses.models import Warehouse

    q = s.query(Warehouse).filter(Warehouse.code == code)
    if exclude_id is not None:
        q = q.filter(Warehouse.id != exclude_id)
    if q.first() is not None:
        raise InvalidInput(f"Warehouse code {code} already exists")


def create_warehouse(s: "Session", payload: dict, user: "Profile") -> "Warehouse":
    from app.vendorhub.modules.warehouses.models import Warehouse

    code = normalize_code(payload.get("code"))
    _ensure_code_free(s, code)
    now = datetime.utcnow()
    wh = Warehouse(code=code, allow_drop_off=True, allow_shipping=True, is_active=True, created_at=now, updated_at=now)
    for field in TEXT_FIELDS:
        setattr(wh, field, clean_str(payload.get(field)))
    for key, attr in FLAG_FIELDS.items():
        if key in payload:
            setattr(wh, attr, bool(payload[key]))
    s.add(wh)
    s.flush()
    record_event(
        s,
        actor=user,
        action="warehouse.create",
        entity_type="Warehouse",
        entity_id=str(wh.id),
        metadata={"code": wh.code, "name": wh.name},
    )
    return wh


def update_warehouse(s: "Session", wh: "Warehouse", payload: dict, user: "Profile") -> "Warehouse":
    changes: dict[str, Any] = {}
    if "code" in payload:
        code = normalize_code(payload.get("code"))
        if code != wh.code:
            _ensure_code_free(s, code, exclude_id=wh.id)
            changes["code"] = {"old": wh.code, "new": code}
            wh.code = code
    for field in TEXT_FIELDS:
        if field in payload:
            new = clean_str(payload.get(field))
            if field == "name" and not new:
                continue
            if new != getattr(wh, field):
                changes[field] = {"old": getattr(wh, field), "new": new}
                setattr(wh, field, new)
    for key, attr in FLAG_FIELDS.items():
        if key in payload and bool(payload[key]) != getattr(wh, attr):
            changes[attr] = {"old": getattr(wh, attr), "new": bool(payload[key])}
            setattr(wh, attr, bool(payload[key]))
    wh.updated_at = datetime.utcnow()
    record_event(
        s,
        actor=user,
        action="warehouse.update",
        entity_type="Warehouse",
        entity_id=str(wh.id),
        metadata={"code": wh.code, "changes": changes},
    )
    return wh


def seed_default_warehouses(s: "Session") -> int:
    """Idempotent upsert by code. Returns the number of rows created."""
    from app.vendorhub.modules.warehouses.models import Warehouse

    created = 0
    for default in DEFAULT_WAREHOUSES:
        wh = s.query(Warehouse).filter(Warehouse.code == default["code"]).one_or_none()
        if wh is None:
            wh = Warehouse(code=default["code"], is_active=True)
            s.add(wh)
            created += 1
        wh.name = default["name"]
        wh.allow_drop_off = default["allow_drop_off"]
        wh.allow_shipping = default["allow_shipping"]
    s.flush()
    return created


def warehouse_to_dict(wh: "Warehouse") -> dict[str, Any]:
    return {
        "id": wh.id,
        "code": wh.code,
        "name": wh.name,
        "address": wh.address,
        "city": wh.city,
        "state": wh.state,
        "zip": wh.zip,
        "phone": wh.phone,
        "allowDropOff": wh.allow_drop_off,
        "allowShipping": wh.allow_shipping,
        "isActive": wh.is_active,
    }
