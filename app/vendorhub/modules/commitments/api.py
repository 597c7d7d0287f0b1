from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.vendorhub.auth import current_profile
from app.vendorhub.db import db_session
from app.vendorhub.errors import NotFound, raise_for_errors
from app.vendorhub.modules.commitments.models import Commitment
from app.vendorhub.modules.commitments.service import (
    admin_update_commitment,
    cancel_commitment,
    commitment_to_dict,
    create_commitment,
    patch_commitment,
    update_commitment,
    validate_admin_update_payload,
    validate_create_payload,
    validate_status,
    validate_update_payload,
)
from app.vendorhub.modules.deals.models import Deal
from app.vendorhub.rbac import COMMITMENT_MANAGE, COMMITMENT_OWN, ensure_authorized, require_action
from app.vendorhub.utils import clean_str, json_body, parse_int, require_id

bp = Blueprint("commitments", __name__)


def _own_commitment(commitment_id: int) -> Commitment:
    """The caller's commitment; someone else's reads as missing."""
    s = db_session()
    profile = current_profile()
    c = s.get(Commitment, commitment_id)
    if not c or c.user_id != profile.id:
        raise NotFound("Commitment not found")
    return c


def _filtered(q):
    status = (request.args.get("status") or "").strip()
    warehouse = (request.args.get("warehouse") or "").strip()
    if status:
        q = q.filter(Commitment.status == status)
    else:
        q = q.filter(Commitment.status != "CANCELLED")
    if warehouse:
        q = q.filter(Commitment.warehouse == warehouse)
    return q


@bp.get("/commitments")
@require_action(COMMITMENT_OWN)
def commitments_list():
    s = db_session()
    q = _filtered(s.query(Commitment).filter(Commitment.user_id == current_profile().id))
    rows = q.order_by(Commitment.created_at.desc(), Commitment.id.desc()).all()
    return jsonify([commitment_to_dict(c) for c in rows])


@bp.post("/commitments")
@require_action(COMMITMENT_OWN)
def commitments_create():
    payload = json_body()
    raise_for_errors(validate_create_payload(payload), "Missing required fields: dealId, quantity")
    s = db_session()
    deal = s.get(Deal, parse_int(payload.get("dealId")))
    if not deal:
        raise NotFound("Deal not found")
    c = create_commitment(s, deal, parse_int(payload.get("quantity")), current_profile())
    s.commit()
    return jsonify(commitment_to_dict(c)), 201


@bp.put("/commitments")
@require_action(COMMITMENT_OWN)
def commitments_update():
    payload = json_body()
    commitment_id = require_id(payload.get("id"), "id")
    raise_for_errors(validate_update_payload(payload))
    s = db_session()
    c = update_commitment(s, _own_commitment(commitment_id), payload, current_profile())
    s.commit()
    return jsonify(commitment_to_dict(c))


@bp.delete("/commitments")
@require_action(COMMITMENT_OWN)
def commitments_cancel():
    commitment_id = require_id(request.args.get("id"), "id")
    s = db_session()
    cancel_commitment(s, _own_commitment(commitment_id), current_profile())
    s.commit()
    return jsonify({"success": True})


@bp.get("/commitments/<int:commitment_id>")
@require_action(COMMITMENT_OWN)
def commitments_detail(commitment_id: int):
    s = db_session()
    profile = current_profile()
    c = s.get(Commitment, commitment_id)
    if not c:
        raise NotFound("Commitment not found")
    ensure_authorized(profile, COMMITMENT_OWN, c)
    return jsonify(commitment_to_dict(c, include_user=profile.is_admin))


@bp.patch("/commitments/<int:commitment_id>")
@require_action(COMMITMENT_OWN)
def commitments_patch(commitment_id: int):
    payload = json_body()
    raise_for_errors(validate_status(clean_str(payload.get("status"))))
    s = db_session()
    profile = current_profile()
    c = s.get(Commitment, commitment_id)
    if not c:
        raise NotFound("Commitment not found")
    ensure_authorized(profile, COMMITMENT_OWN, c)
    c = patch_commitment(s, c, payload, profile)
    s.commit()
    return jsonify(commitment_to_dict(c))


# ---------- admin ----------
@bp.get("/admin/commitments")
@require_action(COMMITMENT_MANAGE)
def admin_commitments_list():
    s = db_session()
    q = _filtered(s.query(Commitment))
    user_id = parse_int(request.args.get("userId")) if (request.args.get("userId") or "").isdigit() else None
    if user_id:
        q = q.filter(Commitment.user_id == user_id)
    rows = q.order_by(Commitment.created_at.desc(), Commitment.id.desc()).all()
    return jsonify([commitment_to_dict(c, include_user=True) for c in rows])


@bp.put("/admin/commitments")
@require_action(COMMITMENT_MANAGE)
def admin_commitments_update():
    payload = json_body()
    commitment_id = require_id(payload.get("id"), "id")
    raise_for_errors(validate_admin_update_payload(payload))
    s = db_session()
    c = s.get(Commitment, commitment_id)
    if not c:
        raise NotFound("Commitment not found")
    c = admin_update_commitment(s, c, payload, current_profile())
    s.commit()
    return jsonify(commitment_to_dict(c, include_user=True))
