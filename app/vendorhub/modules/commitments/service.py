from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from app.vendorhub.audit import record_event
from app.vendorhub.constants import (
    COMMITMENT_OPEN_STATUSES,
    COMMITMENT_STATUSES,
    DEFAULT_VENDOR_LIMIT,
    DELIVERY_METHODS,
)
from app.vendorhub.errors import InvalidInput
from app.vendorhub.utils import clean_str, iso, money, next_number, parse_decimal, parse_int

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.vendorhub.models import Profile
    from app.vendorhub.modules.commitments.models import Commitment
    from app.vendorhub.modules.deals.models import Deal
    from app.vendorhub.modules.invoices.models import Invoice


def _positive_int_error(payload: dict, key: str, *, required: bool) -> str | None:
    if key not in payload or payload.get(key) is None:
        return f"{key} is required." if required else None
    try:
        n = parse_int(payload.get(key))
    except (TypeError, ValueError):
        return f"{key} must be an integer."
    if n is None or n < 1:
        return f"{key} must be at least 1."
    return None


def validate_create_payload(payload: dict) -> list[str]:
    errors: list[str] = []
    for key in ("dealId", "quantity"):
        err = _positive_int_error(payload, key, required=True)
        if err:
            errors.append(err)
    return errors


def validate_update_payload(payload: dict) -> list[str]:
    errors: list[str] = []
    method = clean_str(payload.get("deliveryMethod"))
    if method and method not in DELIVERY_METHODS:
        errors.append(f"Invalid deliveryMethod. Must be one of: {', '.join(DELIVERY_METHODS)}")
    err = _positive_int_error(payload, "quantity", required=False)
    if err:
        errors.append(err)
    return errors


def validate_status(status: str | None, *, required: bool = False) -> list[str]:
    if not status:
        return ["status is required."] if required else []
    if status not in COMMITMENT_STATUSES:
        return [f"Invalid status. Must be one of: {', '.join(COMMITMENT_STATUSES)}"]
    return []


def check_vendor_limit(
    s: "Session", deal: "Deal", user: "Profile", quantity: int, *, current: "Commitment | None" = None
) -> None:
    """
    One open commitment per (deal, vendor); fulfilled + requested stays within the vendor limit.
    `current` is the commitment being edited; it is left out of both checks.
    """
    from app.vendorhub.modules.commitments.models import Commitment

    q = s.query(Commitment).filter(
        Commitment.deal_id == deal.id, Commitment.user_id == user.id, Commitment.status != "CANCELLED"
    )
    if current is not None:
        q = q.filter(Commitment.id != current.id)
    existing = q.all()
    fulfilled_qty = sum(c.quantity for c in existing if c.status == "FULFILLED")
    if any(c.status != "FULFILLED" for c in existing):
        raise InvalidInput("You already have an active commitment for this deal. Check My Commitments.")

    limit = deal.limit_per_vendor or DEFAULT_VENDOR_LIMIT
    if fulfilled_qty >= limit:
        raise InvalidInput(f"You've already fulfilled the max quantity ({limit}) for this deal")
    remaining = limit - fulfilled_qty
    if quantity > remaining:
        raise InvalidInput(
            f"You can only commit {remaining} more units (limit: {limit}/vendor, you've fulfilled: {fulfilled_qty})"
        )


def create_commitment(s: "Session", deal: "Deal", quantity: int, user: "Profile") -> "Commitment":
    from app.vendorhub.modules.commitments.models import Commitment

    if deal.status != "ACTIVE":
        raise InvalidInput("Deal is not active")
    check_vendor_limit(s, deal, user, quantity)

    now = datetime.utcnow()
    c = Commitment(
        commitment_number=next_number(s, Commitment.commitment_number),
        deal_id=deal.id,
        user_id=user.id,
        quantity=quantity,
        warehouse="TBD",
        delivery_method="SHIP",
        status="PENDING",
        created_at=now,
        updated_at=now,
    )
    s.add(c)
    s.flush()
    record_event(
        s,
        actor=user,
        action="commitment.create",
        entity_type="Commitment",
        entity_id=str(c.id),
        metadata={"commitment_id": c.display_id, "deal_id": deal.display_id, "quantity": quantity},
    )
    return c


def check_warehouse(s: "Session", code: str, delivery_method: str) -> None:
    from app.vendorhub.modules.warehouses.models import Warehouse

    if code == "TBD":
        return
    wh = s.query(Warehouse).filter(Warehouse.code == code, Warehouse.is_active.is_(True)).one_or_none()
    if wh is None:
        raise InvalidInput(f"Unknown warehouse: {code}")
    if delivery_method == "DROP_OFF" and not wh.allow_drop_off:
        raise InvalidInput(f"Warehouse {code} does not accept drop-offs")
    if delivery_method == "SHIP" and not wh.allow_shipping:
        raise InvalidInput(f"Warehouse {code} does not accept shipments")


def update_commitment(s: "Session", c: "Commitment", payload: dict, user: "Profile") -> "Commitment":
    """Owner edits (delivery method, warehouse, quantity) while the commitment is open."""
    if c.status not in COMMITMENT_OPEN_STATUSES:
        raise InvalidInput("Can only update pending commitments")

    changes: dict[str, Any] = {}
    method = clean_str(payload.get("deliveryMethod"))
    if method:
        new_status = "DROP_OFF_PENDING" if method == "DROP_OFF" else "PENDING"
        if method != c.delivery_method:
            changes["delivery_method"] = {"old": c.delivery_method, "new": method}
        c.delivery_method = method
        c.status = new_status
    warehouse = clean_str(payload.get("warehouse"))
    if warehouse:
        check_warehouse(s, warehouse, c.delivery_method)
        if warehouse != c.warehouse:
            changes["warehouse"] = {"old": c.warehouse, "new": warehouse}
        c.warehouse = warehouse
    quantity = parse_int(payload.get("quantity"))
    if quantity and quantity != c.quantity:
        check_vendor_limit(s, c.deal, c.user, quantity, current=c)
        changes["quantity"] = {"old": c.quantity, "new": quantity}
        c.quantity = quantity
    c.updated_at = datetime.utcnow()

    record_event(
        s,
        actor=user,
        action="commitment.update",
        entity_type="Commitment",
        entity_id=str(c.id),
        metadata={"commitment_id": c.display_id, "changes": changes},
    )
    return c


def cancel_commitment(s: "Session", c: "Commitment", user: "Profile") -> None:
    if c.status not in COMMITMENT_OPEN_STATUSES:
        raise InvalidInput("Can only cancel pending commitments")
    c.status = "CANCELLED"
    c.updated_at = datetime.utcnow()
    record_event(
        s,
        actor=user,
        action="commitment.cancel",
        entity_type="Commitment",
        entity_id=str(c.id),
        metadata={"commitment_id": c.display_id},
    )


def set_status(c: "Commitment", status: str, user: "Profile", now: datetime | None = None) -> None:
    """Move to `status`, stamping shipped/delivered/fulfilled on first entry."""
    now = now or datetime.utcnow()
    c.status = status
    if status == "IN_TRANSIT" and not c.shipped_at:
        c.shipped_at = now
    if status in ("DELIVERED", "RECEIVED") and not c.delivered_at:
        c.delivered_at = now
    if status == "FULFILLED" and not c.fulfilled_at:
        c.fulfilled_at = now
        c.fulfilled_by_id = user.id


def patch_commitment(s: "Session", c: "Commitment", payload: dict, user: "Profile") -> "Commitment":
    """
    Owners may add notes and mark the commitment shipped (IN_TRANSIT).
    Admins may set any status.
    """
    status = clean_str(payload.get("status"))
    old_status = c.status
    if status:
        if not user.is_admin:
            if status != "IN_TRANSIT":
                raise InvalidInput("Sellers may only mark a commitment as IN_TRANSIT")
            if c.status not in COMMITMENT_OPEN_STATUSES:
                raise InvalidInput("Commitment has already shipped")
        set_status(c, status, user)
    if "notes" in payload:
        c.notes = clean_str(payload.get("notes"))
    c.updated_at = datetime.utcnow()

    record_event(
        s,
        actor=user,
        action="commitment.update",
        entity_type="Commitment",
        entity_id=str(c.id),
        metadata={"commitment_id": c.display_id, "status": {"old": old_status, "new": c.status}},
    )
    return c


def admin_update_commitment(s: "Session", c: "Commitment", payload: dict, user: "Profile") -> "Commitment":
    """
    Admin status change. FULFILLED with an invoiceUrl also creates the invoice
    (amount defaults to quantity * payout).
    """
    from app.vendorhub.modules.invoices.models import Invoice

    status = clean_str(payload.get("status"))
    old_status = c.status
    if status:
        set_status(c, status, user)
    if "notes" in payload:
        c.notes = clean_str(payload.get("notes"))
    c.updated_at = datetime.utcnow()

    invoice: Invoice | None = None
    invoice_url = clean_str(payload.get("invoiceUrl"))
    if status == "FULFILLED" and invoice_url:
        if c.invoice is not None:
            raise InvalidInput("Commitment already has an invoice")
        amount = parse_decimal(payload.get("invoiceAmount"))
        if amount is None:
            amount = Decimal(c.quantity) * Decimal(c.deal.payout)
        now = datetime.utcnow()
        invoice = Invoice(
            commitment_id=c.id,
            user_id=c.user_id,
            amount=amount,
            status="PENDING",
            external_url=invoice_url,
            created_at=now,
            updated_at=now,
        )
        s.add(invoice)
        c.invoice = invoice
        s.flush()
        record_event(
            s,
            actor=user,
            action="invoice.create",
            entity_type="Invoice",
            entity_id=str(invoice.id),
            metadata={"commitment_id": c.display_id, "amount": str(amount)},
        )

    record_event(
        s,
        actor=user,
        action="commitment.admin_update",
        entity_type="Commitment",
        entity_id=str(c.id),
        metadata={"commitment_id": c.display_id, "status": {"old": old_status, "new": c.status}},
    )
    return c


def validate_admin_update_payload(payload: dict) -> list[str]:
    errors = validate_status(clean_str(payload.get("status")))
    if "invoiceAmount" in payload:
        try:
            amount = parse_decimal(payload.get("invoiceAmount"))
        except ValueError:
            errors.append("invoiceAmount must be a number.")
        else:
            if amount is not None and amount < 0:
                errors.append("invoiceAmount must not be negative.")
    return errors


# ---------- serializers ----------
def deal_summary(deal: "Deal") -> dict[str, Any]:
    return {
        "id": deal.id,
        "dealId": deal.display_id,
        "title": deal.title,
        "retailPrice": money(deal.retail_price),
        "payout": money(deal.payout),
        "freeLabelMin": deal.free_label_min,
        "isExclusive": deal.is_exclusive,
        "exclusivePrice": money(deal.exclusive_price),
    }


def commitment_to_dict(c: "Commitment", *, include_user: bool = False) -> dict[str, Any]:
    from app.vendorhub.modules.invoices.service import invoice_to_dict
    from app.vendorhub.modules.labels.service import label_request_to_dict
    from app.vendorhub.modules.tracking.service import tracking_to_dict

    d: dict[str, Any] = {
        "id": c.id,
        "commitmentId": c.display_id,
        "commitmentNumber": c.commitment_number,
        "dealId": c.deal_id,
        "userId": c.user_id,
        "quantity": c.quantity,
        "warehouse": c.warehouse,
        "deliveryMethod": c.delivery_method,
        "status": c.status,
        "notes": c.notes,
        "shippedAt": iso(c.shipped_at),
        "deliveredAt": iso(c.delivered_at),
        "fulfilledAt": iso(c.fulfilled_at),
        "fulfilledById": c.fulfilled_by_id,
        "createdAt": iso(c.created_at),
        "updatedAt": iso(c.updated_at),
        "deal": deal_summary(c.deal),
        "tracking": [tracking_to_dict(t) for t in c.trackings],
        "labelRequest": label_request_to_dict(c.label_request) if c.label_request else None,
        "invoice": invoice_to_dict(c.invoice) if c.invoice else None,
    }
    if include_user:
        from app.vendorhub.modules.profiles.service import profile_to_dict

        d["user"] = profile_to_dict(c.user, include_payment=True)
    return d
