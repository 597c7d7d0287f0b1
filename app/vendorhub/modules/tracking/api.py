from __future__ import annotations

from flask import Blueprint, jsonify, request
from sqlalchemy import or_

from app.vendorhub.auth import current_profile
from app.vendorhub.db import db_session
from app.vendorhub.errors import NotFound, raise_for_errors
from app.vendorhub.models import Profile
from app.vendorhub.modules.commitments.models import Commitment
from app.vendorhub.modules.deals.models import Deal
from app.vendorhub.modules.tracking.models import Tracking
from app.vendorhub.modules.tracking.service import (
    admin_update_tracking,
    delete_tracking,
    submit_tracking,
    tracking_detail,
    validate_admin_tracking_update,
    validate_tracking_payload,
)
from app.vendorhub.rbac import TRACKING_MANAGE, TRACKING_OWN, require_action
from app.vendorhub.utils import json_body, require_id

bp = Blueprint("tracking", __name__)


def _arg(name: str) -> str:
    value = (request.args.get(name) or "").strip()
    return "" if value == "ALL" else value


@bp.get("/tracking")
@require_action(TRACKING_OWN)
def tracking_list():
    s = db_session()
    q = s.query(Tracking).join(Commitment, Tracking.commitment_id == Commitment.id)
    q = q.filter(Tracking.user_id == current_profile().id)
    if _arg("warehouse"):
        q = q.filter(Commitment.warehouse == _arg("warehouse"))
    if _arg("carrier"):
        q = q.filter(Tracking.carrier == _arg("carrier").upper())
    rows = q.order_by(Tracking.created_at.desc(), Tracking.id.desc()).all()
    return jsonify([tracking_detail(t) for t in rows])


@bp.post("/tracking")
@require_action(TRACKING_OWN)
def tracking_create():
    payload = json_body()
    commitment_id = require_id(payload.get("commitmentId"), "commitmentId")
    raise_for_errors(validate_tracking_payload(payload))
    s = db_session()
    profile = current_profile()
    c = s.get(Commitment, commitment_id)
    if not c or c.user_id != profile.id:
        raise NotFound("Commitment not found")
    t = submit_tracking(s, c, payload, profile)
    s.commit()
    return jsonify(tracking_detail(t)), 201


@bp.delete("/tracking/<int:tracking_id>")
@require_action(TRACKING_OWN)
def tracking_delete(tracking_id: int):
    s = db_session()
    profile = current_profile()
    t = s.get(Tracking, tracking_id)
    if not t or t.user_id != profile.id:
        raise NotFound("Tracking not found")
    delete_tracking(s, t, profile)
    s.commit()
    return jsonify({"success": True})


# ---------- admin ----------
@bp.get("/admin/tracking")
@require_action(TRACKING_MANAGE)
def admin_tracking_list():
    s = db_session()
    q = (
        s.query(Tracking)
        .join(Commitment, Tracking.commitment_id == Commitment.id)
        .join(Deal, Commitment.deal_id == Deal.id)
        .join(Profile, Tracking.user_id == Profile.id)
    )
    if _arg("warehouse"):
        q = q.filter(Commitment.warehouse == _arg("warehouse"))
    if _arg("carrier"):
        q = q.filter(Tracking.carrier == _arg("carrier").upper())
    if _arg("status"):
        q = q.filter(Commitment.status == _arg("status"))
    search = _arg("search")
    if search:
        like = f"%{search}%"
        q = q.filter(
            or_(
                Tracking.tracking_number.ilike(like),
                Profile.email.ilike(like),
                Profile.first_name.ilike(like),
                Profile.last_name.ilike(like),
                Deal.title.ilike(like),
            )
        )
    rows = q.order_by(Tracking.created_at.desc(), Tracking.id.desc()).all()
    return jsonify([tracking_detail(t, include_user=True) for t in rows])


@bp.patch("/admin/tracking")
@require_action(TRACKING_MANAGE)
def admin_tracking_update():
    payload = json_body()
    tracking_id = require_id(payload.get("trackingId"), "trackingId")
    raise_for_errors(validate_admin_tracking_update(payload))
    s = db_session()
    t = s.get(Tracking, tracking_id)
    if not t:
        raise NotFound("Tracking not found")
    t = admin_update_tracking(s, t, payload, current_profile())
    s.commit()
    return jsonify(tracking_detail(t, include_user=True))
