from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.vendorhub.auth import current_profile
from app.vendorhub.db import db_session
from app.vendorhub.errors import NotFound, raise_for_errors
from app.vendorhub.modules.invoices.models import Invoice
from app.vendorhub.modules.invoices.service import invoice_with_commitment, update_invoice, validate_invoice_update
from app.vendorhub.rbac import INVOICE_MANAGE, INVOICE_OWN, require_action
from app.vendorhub.utils import json_body, require_id

bp = Blueprint("invoices", __name__)


@bp.get("/invoices")
@require_action(INVOICE_OWN)
def invoices_list():
    s = db_session()
    rows = (
        s.query(Invoice)
        .filter(Invoice.user_id == current_profile().id)
        .order_by(Invoice.created_at.desc(), Invoice.id.desc())
        .all()
    )
    return jsonify([invoice_with_commitment(i) for i in rows])


@bp.get("/admin/invoices")
@require_action(INVOICE_MANAGE)
def admin_invoices_list():
    s = db_session()
    q = s.query(Invoice)
    status = (request.args.get("status") or "").strip()
    if status:
        q = q.filter(Invoice.status == status)
    rows = q.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()
    return jsonify([invoice_with_commitment(i, include_user=True) for i in rows])


@bp.put("/admin/invoices")
@require_action(INVOICE_MANAGE)
def admin_invoices_update():
    payload = json_body()
    invoice_id = require_id(payload.get("id"), "id")
    raise_for_errors(validate_invoice_update(payload))
    s = db_session()
    inv = s.get(Invoice, invoice_id)
    if not inv:
        raise NotFound("Invoice not found")
    inv = update_invoice(s, inv, payload, current_profile())
    s.commit()
    return jsonify(invoice_with_commitment(inv, include_user=True))
