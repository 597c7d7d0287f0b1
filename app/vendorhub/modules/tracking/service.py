from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from app.vendorhub.audit import record_event
from app.vendorhub.constants import CARRIERS, COMMITMENT_STATUSES
from app.vendorhub.errors import InvalidInput
from app.vendorhub.modules.tracking.carriers import UNKNOWN, detect_carrier, normalize_tracking_number
from app.vendorhub.utils import clean_str, iso, money

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.vendorhub.models import Profile
    from app.vendorhub.modules.commitments.models import Commitment
    from app.vendorhub.modules.tracking.models import Tracking


def resolve_carrier(tracking_number: str, carrier: str | None) -> str:
    """Explicit carrier (upper-cased) or one detected from the number."""
    if carrier:
        carrier = carrier.strip().upper()
    else:
        carrier = detect_carrier(tracking_number)
        if carrier == UNKNOWN:
            raise InvalidInput("Could not detect carrier from tracking number; please choose one")
    if carrier not in CARRIERS:
        raise InvalidInput(f"Invalid carrier. Must be one of: {', '.join(CARRIERS)}")
    return carrier


def validate_tracking_payload(payload: dict) -> list[str]:
    errors: list[str] = []
    number = normalize_tracking_number(str(payload.get("trackingNumber") or ""))
    if not number:
        errors.append("trackingNumber is required.")
    elif len(number) > 64:
        errors.append("trackingNumber is too long.")
    return errors


def submit_tracking(s: "Session", c: "Commitment", payload: dict, user: "Profile") -> "Tracking":
    """Attach a tracking number and move the commitment to IN_TRANSIT."""
    from app.vendorhub.modules.commitments.service import set_status
    from app.vendorhub.modules.tracking.models import Tracking

    if c.status != "PENDING":
        raise InvalidInput("Can only submit tracking for pending commitments")
    number = normalize_tracking_number(str(payload.get("trackingNumber") or ""))
    carrier = resolve_carrier(number, clean_str(payload.get("carrier")))

    now = datetime.utcnow()
    t = Tracking(
        commitment_id=c.id,
        user_id=user.id,
        tracking_number=number,
        carrier=carrier,
        last_status="Label Created",
        created_at=now,
        updated_at=now,
    )
    s.add(t)
    c.trackings.append(t)
    set_status(c, "IN_TRANSIT", user, now)
    c.updated_at = now
    s.flush()

    record_event(
        s,
        actor=user,
        action="tracking.create",
        entity_type="Tracking",
        entity_id=str(t.id),
        metadata={"commitment_id": c.display_id, "carrier": carrier},
    )
    return t


def delete_tracking(s: "Session", t: "Tracking", user: "Profile") -> None:
    """Remove a submission and put the commitment back to PENDING."""
    c = t.commitment
    record_event(
        s,
        actor=user,
        action="tracking.delete",
        entity_type="Tracking",
        entity_id=str(t.id),
        metadata={"commitment_id": c.display_id, "tracking_number": t.tracking_number},
    )
    c.trackings.remove(t)
    s.delete(t)
    c.status = "PENDING"
    c.shipped_at = None
    c.updated_at = datetime.utcnow()


def validate_admin_tracking_update(payload: dict) -> list[str]:
    errors: list[str] = []
    status = clean_str(payload.get("commitmentStatus"))
    if status and status not in COMMITMENT_STATUSES:
        errors.append(f"Invalid commitmentStatus. Must be one of: {', '.join(COMMITMENT_STATUSES)}")
    return errors


def admin_update_tracking(s: "Session", t: "Tracking", payload: dict, user: "Profile") -> "Tracking":
    from app.vendorhub.modules.commitments.service import set_status

    changes: dict[str, Any] = {}
    if "lastStatus" in payload:
        t.last_status = clean_str(payload.get("lastStatus"))
        changes["last_status"] = t.last_status
    if "lastLocation" in payload:
        t.last_location = clean_str(payload.get("lastLocation"))
        changes["last_location"] = t.last_location
    t.updated_at = datetime.utcnow()

    status = clean_str(payload.get("commitmentStatus"))
    if status:
        c = t.commitment
        changes["commitment_status"] = {"old": c.status, "new": status}
        set_status(c, status, user)
        c.updated_at = datetime.utcnow()

    record_event(
        s,
        actor=user,
        action="tracking.update",
        entity_type="Tracking",
        entity_id=str(t.id),
        metadata=changes,
    )
    return t


# ---------- serializers ----------
def tracking_to_dict(t: "Tracking") -> dict[str, Any]:
    return {
        "id": t.id,
        "commitmentId": t.commitment_id,
        "userId": t.user_id,
        "trackingNumber": t.tracking_number,
        "carrier": t.carrier,
        "lastStatus": t.last_status,
        "lastLocation": t.last_location,
        "estimatedDelivery": iso(t.estimated_delivery),
        "createdAt": iso(t.created_at),
        "updatedAt": iso(t.updated_at),
    }


def tracking_detail(t: "Tracking", *, include_user: bool = False) -> dict[str, Any]:
    c = t.commitment
    d = tracking_to_dict(t)
    d["commitment"] = {
        "id": c.id,
        "commitmentId": c.display_id,
        "quantity": c.quantity,
        "warehouse": c.warehouse,
        "status": c.status,
        "deal": {
            "id": c.deal.id,
            "dealId": c.deal.display_id,
            "title": c.deal.title,
            "payout": money(c.deal.payout),
        },
    }
    if include_user:
        u = t.user
        d["user"] = {
            "id": u.id,
            "name": f"{u.first_name} {u.last_name}".strip(),
            "email": u.email,
            "vendorId": u.vendor_id,
        }
    return d
