from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from app.vendorhub.audit import record_event
from app.vendorhub.constants import INVOICE_STATUSES
from app.vendorhub.utils import clean_str, iso, money

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.vendorhub.models import Profile
    from app.vendorhub.modules.invoices.models import Invoice


def validate_invoice_update(payload: dict) -> list[str]:
    errors: list[str] = []
    status = clean_str(payload.get("status"))
    if status and status not in INVOICE_STATUSES:
        errors.append(f"Invalid status. Must be one of: {', '.join(INVOICE_STATUSES)}")
    return errors


def update_invoice(s: "Session", inv: "Invoice", payload: dict, user: "Profile") -> "Invoice":
    """Mark paid / attach check details. Moving to PAID stamps paid_at."""
    changes: dict[str, Any] = {}
    status = clean_str(payload.get("status"))
    if status and status != inv.status:
        changes["status"] = {"old": inv.status, "new": status}
        inv.status = status
        if status == "PAID":
            inv.paid_at = datetime.utcnow()
    for key, attr in (("checkNumber", "check_number"), ("checkImageUrl", "check_image_url"), ("notes", "notes")):
        if key in payload:
            setattr(inv, attr, clean_str(payload.get(key)))
            changes[attr] = True
    inv.updated_at = datetime.utcnow()

    record_event(
        s,
        actor=user,
        action="invoice.update",
        entity_type="Invoice",
        entity_id=str(inv.id),
        metadata={"changes": changes},
    )
    return inv


def invoice_to_dict(inv: "Invoice") -> dict[str, Any]:
    return {
        "id": inv.id,
        "commitmentId": inv.commitment_id,
        "userId": inv.user_id,
        "amount": money(inv.amount),
        "status": inv.status,
        "externalUrl": inv.external_url,
        "checkNumber": inv.check_number,
        "checkImageUrl": inv.check_image_url,
        "notes": inv.notes,
        "paidAt": iso(inv.paid_at),
        "createdAt": iso(inv.created_at),
        "updatedAt": iso(inv.updated_at),
    }


def invoice_with_commitment(inv: "Invoice", *, include_user: bool = False) -> dict[str, Any]:
    c = inv.commitment
    d = invoice_to_dict(inv)
    d["commitment"] = {
        "id": c.id,
        "commitmentId": c.display_id,
        "quantity": c.quantity,
        "status": c.status,
        "deal": {"id": c.deal.id, "dealId": c.deal.display_id, "title": c.deal.title},
    }
    if include_user:
        u = inv.user
        d["user"] = {
            "id": u.id,
            "firstName": u.first_name,
            "lastName": u.last_name,
            "email": u.email,
            "vendorId": u.vendor_id,
        }
    return d
