from __future__ import annotations

from flask import Blueprint, jsonify

from app.vendorhub.auth import current_profile
from app.vendorhub.db import db_session
from app.vendorhub.errors import NotFound, raise_for_errors
from app.vendorhub.modules.warehouses.models import Warehouse
from app.vendorhub.modules.warehouses.service import (
    create_warehouse,
    update_warehouse,
    validate_warehouse_payload,
    warehouse_to_dict,
)
from app.vendorhub.rbac import WAREHOUSE_MANAGE, WAREHOUSE_READ, require_action
from app.vendorhub.utils import json_body, require_id

bp = Blueprint("warehouses", __name__)


@bp.get("/warehouses")
@require_action(WAREHOUSE_READ)
def warehouses_list():
    s = db_session()
    rows = s.query(Warehouse).filter(Warehouse.is_active.is_(True)).order_by(Warehouse.code.asc()).all()
    return jsonify([warehouse_to_dict(w) for w in rows])


@bp.post("/warehouses")
@require_action(WAREHOUSE_MANAGE)
def warehouses_create():
    payload = json_body()
    raise_for_errors(validate_warehouse_payload(payload), "code and name required")
    s = db_session()
    wh = create_warehouse(s, payload, current_profile())
    s.commit()
    return jsonify(warehouse_to_dict(wh)), 201


@bp.put("/warehouses")
@require_action(WAREHOUSE_MANAGE)
def warehouses_update():
    payload = json_body()
    warehouse_id = require_id(payload.get("id"), "id")
    raise_for_errors(validate_warehouse_payload(payload, partial=True))
    s = db_session()
    wh = s.get(Warehouse, warehouse_id)
    if not wh:
        raise NotFound("Warehouse not found")
    wh = update_warehouse(s, wh, payload, current_profile())
    s.commit()
    return jsonify(warehouse_to_dict(wh))
