from __future__ import annotations

import hmac
from datetime import datetime

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import nulls_last

from app.vendorhub.auth import current_profile
from app.vendorhub.db import db_session
from app.vendorhub.discord_client import deal_bot_from_config, format_deal_for_discord
from app.vendorhub.errors import InvalidInput, NotFound, Unauthenticated, raise_for_errors
from app.vendorhub.modules.deals.models import Deal
from app.vendorhub.modules.deals.service import (
    create_deal,
    deal_stats,
    deal_to_bot_dict,
    deal_to_dict,
    delete_deal,
    open_commitment_count,
    update_deal,
    validate_deal_payload,
)
from app.vendorhub.rbac import DEAL_READ, DEAL_READ_ANY, DEAL_WRITE, is_authorized, require_action
from app.vendorhub.utils import json_body, query_flag, require_id

bp = Blueprint("deals", __name__)


def _notify_deal_active(deal: Deal) -> None:
    """Announce a newly active deal. Never fails the request."""
    try:
        payload = format_deal_for_discord(deal, current_app.config.get("SITE_URL") or "")
        deal_bot_from_config(current_app.config).notify_deal(payload)
    except Exception as e:
        current_app.logger.error("Deal webhook notify failed for %s: %s", deal.display_id, e)


# ---------- seller + admin ----------
@bp.get("/deals")
@require_action(DEAL_READ)
def deals_list():
    s = db_session()
    profile = current_profile()
    q = s.query(Deal)
    if profile.is_admin:
        status = (request.args.get("status") or "").strip()
        if status:
            q = q.filter(Deal.status == status)
    elif query_flag("includeExpired"):
        q = q.filter(Deal.status.in_(("ACTIVE", "EXPIRED")))
    else:
        q = q.filter(Deal.status == "ACTIVE")
    deals = q.order_by(Deal.created_at.desc(), Deal.id.desc()).all()
    return jsonify([{**deal_to_dict(d), "commitmentCount": len(d.commitments)} for d in deals])


@bp.get("/deals/<int:deal_id>")
@require_action(DEAL_READ)
def deals_detail(deal_id: int):
    s = db_session()
    deal = s.get(Deal, deal_id)
    if not deal:
        raise NotFound("Deal not found")
    # sellers cannot tell a hidden deal from a missing one
    if not is_authorized(current_profile(), DEAL_READ, deal):
        raise NotFound("Deal not available")
    return jsonify(deal_to_dict(deal))


# ---------- admin ----------
@bp.get("/admin/deals")
@require_action(DEAL_READ_ANY)
def admin_deals_list():
    s = db_session()
    deals = s.query(Deal).order_by(Deal.created_at.desc(), Deal.id.desc()).all()
    return jsonify([{**deal_to_dict(d), "stats": deal_stats(d)} for d in deals])


@bp.post("/admin/deals")
@require_action(DEAL_WRITE)
def admin_deals_create():
    payload = json_body()
    raise_for_errors(validate_deal_payload(payload), "Missing required fields: title, retailPrice, payout")
    s = db_session()
    deal = create_deal(s, payload, current_profile())
    s.commit()
    current_app.logger.info("Deal created: %s", deal.display_id)
    if deal.status == "ACTIVE":
        _notify_deal_active(deal)
    return jsonify(deal_to_dict(deal)), 201


@bp.put("/admin/deals")
@require_action(DEAL_WRITE)
def admin_deals_update():
    payload = json_body()
    deal_id = require_id(payload.get("id"), "id")
    raise_for_errors(validate_deal_payload(payload, partial=True))
    s = db_session()
    deal = s.get(Deal, deal_id)
    if not deal:
        raise NotFound("Deal not found")
    deal, became_active = update_deal(s, deal, payload, current_profile())
    s.commit()
    if became_active:
        _notify_deal_active(deal)
    return jsonify(deal_to_dict(deal))


@bp.delete("/admin/deals")
@require_action(DEAL_WRITE)
def admin_deals_delete():
    deal_id = require_id(request.args.get("id"), "id")
    s = db_session()
    deal = s.get(Deal, deal_id)
    if not deal:
        raise NotFound("Deal not found")
    if open_commitment_count(deal) > 0:
        raise InvalidInput("Cannot delete deal with active commitments. Set status to CLOSED instead.")
    delete_deal(s, deal, current_profile())
    s.commit()
    return jsonify({"success": True})


# ---------- bot ----------
@bp.get("/bot/active-deals")
def bot_active_deals():
    expected = current_app.config.get("DISCORD_BOT_API_KEY") or ""
    provided = request.headers.get("X-Bot-API-Key") or ""
    if not expected:
        current_app.logger.error("DISCORD_BOT_API_KEY not configured")
    if not expected or not hmac.compare_digest(provided, expected):
        raise Unauthenticated("Invalid or missing X-Bot-API-Key header")

    s = db_session()
    deals = (
        s.query(Deal)
        .filter(Deal.status == "ACTIVE")
        .order_by(nulls_last(Deal.deadline.asc()), Deal.created_at.desc())
        .all()
    )
    site_url = current_app.config.get("SITE_URL") or ""
    items = [deal_to_bot_dict(d, site_url) for d in deals]
    current_app.logger.info("Bot active-deals returned %s deals", len(items))
    return jsonify(
        {
            "deals": items,
            "count": len(items),
            "generated_at": datetime.utcnow().isoformat() + "Z",
        }
    )
