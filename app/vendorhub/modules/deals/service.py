from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from app.vendorhub.audit import record_event
from app.vendorhub.constants import DEAL_STATUSES, PRICE_ABOVE_RETAIL, PRICE_BELOW_COST, PRICE_RETAIL
from app.vendorhub.utils import clean_str, iso, money, next_number, parse_datetime, parse_decimal, parse_int

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.vendorhub.models import Profile
    from app.vendorhub.modules.deals.models import Deal


# wire key -> column, for the plain optional string fields
LINK_FIELDS = {
    "linkAmazon": "link_amazon",
    "linkBestBuy": "link_best_buy",
    "linkWalmart": "link_walmart",
    "linkTarget": "link_target",
    "linkHomeDepot": "link_home_depot",
    "linkLowes": "link_lowes",
    "linkOther": "link_other",
    "linkOtherName": "link_other_name",
}
INT_FIELDS = {
    "maxQuantity": "max_quantity",
    "limitPerVendor": "limit_per_vendor",
    "freeLabelMin": "free_label_min",
}

RETAIL_LINKS = (
    ("link_amazon", "Amazon", "\U0001F4E6"),
    ("link_best_buy", "Best Buy", "\U0001F7E1"),
    ("link_walmart", "Walmart", "\U0001F535"),
    ("link_target", "Target", "\U0001F3AF"),
    ("link_home_depot", "Home Depot", "\U0001F9F0"),
    ("link_lowes", "Lowe's", "\U0001F527"),
)


def classify_price(retail_price: Decimal, payout: Decimal) -> str:
    """
    RETAIL when equal, ABOVE_RETAIL when the payout beats retail, else BELOW_COST.
    """
    retail_price = Decimal(retail_price)
    payout = Decimal(payout)
    if payout == retail_price:
        return PRICE_RETAIL
    if payout > retail_price:
        return PRICE_ABOVE_RETAIL
    return PRICE_BELOW_COST


def validate_deal_payload(payload: dict, *, partial: bool = False) -> list[str]:
    """Validate deal create/update payload. Returns list of errors."""
    errors: list[str] = []
    if not partial or "title" in payload:
        title = clean_str(payload.get("title"))
        if not title:
            errors.append("Title is required.")
        elif len(title) > 200:
            errors.append("Title must be at most 200 characters.")

    for key in ("retailPrice", "payout", "exclusivePrice"):
        required = key != "exclusivePrice" and not partial
        if key not in payload:
            if required:
                errors.append(f"{key} is required.")
            continue
        try:
            value = parse_decimal(payload.get(key))
        except ValueError:
            errors.append(f"{key} must be a number.")
            continue
        if value is None:
            if key != "exclusivePrice":
                errors.append(f"{key} is required.")
        elif value < 0:
            errors.append(f"{key} must not be negative.")

    for key in INT_FIELDS:
        if key in payload:
            try:
                n = parse_int(payload.get(key))
            except (TypeError, ValueError):
                errors.append(f"{key} must be an integer.")
                continue
            if n is not None and n < 0:
                errors.append(f"{key} must not be negative.")

    status = clean_str(payload.get("status"))
    if status and status not in DEAL_STATUSES:
        errors.append(f"Invalid status. Must be one of: {', '.join(DEAL_STATUSES)}")

    if "deadline" in payload:
        try:
            parse_datetime(payload.get("deadline"))
        except ValueError:
            errors.append("deadline must be an ISO-8601 date.")
    return errors


def _apply_optional_fields(deal: "Deal", payload: dict) -> None:
    if "description" in payload:
        deal.description = clean_str(payload.get("description")) or ""
    if "imageUrl" in payload:
        deal.image_url = clean_str(payload.get("imageUrl"))
    for key, attr in INT_FIELDS.items():
        if key in payload:
            setattr(deal, attr, parse_int(payload.get(key)))
    for key, attr in LINK_FIELDS.items():
        if key in payload:
            setattr(deal, attr, clean_str(payload.get(key)))
    if "deadline" in payload:
        deal.deadline = parse_datetime(payload.get("deadline"))
    if "isExclusive" in payload:
        deal.is_exclusive = bool(payload.get("isExclusive"))
    if "exclusivePrice" in payload:
        deal.exclusive_price = parse_decimal(payload.get("exclusivePrice"))


def create_deal(s: "Session", payload: dict, user: "Profile") -> "Deal":
    from app.vendorhub.modules.deals.models import Deal

    now = datetime.utcnow()
    retail = parse_decimal(payload.get("retailPrice"))
    payout = parse_decimal(payload.get("payout"))
    deal = Deal(
        deal_number=next_number(s, Deal.deal_number),
        title=clean_str(payload.get("title")) or "",
        description="",
        retail_price=retail,
        payout=payout,
        price_type=classify_price(retail, payout),
        status=clean_str(payload.get("status")) or "DRAFT",
        is_exclusive=False,
        created_by_id=user.id,
        created_at=now,
        updated_at=now,
    )
    _apply_optional_fields(deal, payload)
    s.add(deal)
    s.flush()

    record_event(
        s,
        actor=user,
        action="deal.create",
        entity_type="Deal",
        entity_id=str(deal.id),
        metadata={"deal_id": deal.display_id, "status": deal.status, "price_type": deal.price_type},
    )
    return deal


def update_deal(s: "Session", deal: "Deal", payload: dict, user: "Profile") -> tuple["Deal", bool]:
    """
    Partial update. Returns (deal, became_active).
    price_type is recomputed whenever either price is touched.
    """
    old_status = deal.status
    changes: dict[str, Any] = {}

    if "title" in payload:
        deal.title = clean_str(payload.get("title")) or deal.title
    if "retailPrice" in payload or "payout" in payload:
        if "retailPrice" in payload:
            deal.retail_price = parse_decimal(payload.get("retailPrice"))
        if "payout" in payload:
            deal.payout = parse_decimal(payload.get("payout"))
        new_type = classify_price(deal.retail_price, deal.payout)
        if new_type != deal.price_type:
            changes["price_type"] = {"old": deal.price_type, "new": new_type}
        deal.price_type = new_type
    status = clean_str(payload.get("status"))
    if status and status != deal.status:
        changes["status"] = {"old": deal.status, "new": status}
        deal.status = status
    _apply_optional_fields(deal, payload)
    deal.updated_at = datetime.utcnow()

    record_event(
        s,
        actor=user,
        action="deal.update",
        entity_type="Deal",
        entity_id=str(deal.id),
        metadata={"deal_id": deal.display_id, "fields": sorted(k for k in payload if k != "id"), "changes": changes},
    )
    return deal, old_status != "ACTIVE" and deal.status == "ACTIVE"


def open_commitment_count(deal: "Deal") -> int:
    return sum(1 for c in deal.commitments if c.status != "CANCELLED")


def delete_deal(s: "Session", deal: "Deal", user: "Profile") -> None:
    record_event(
        s,
        actor=user,
        action="deal.delete",
        entity_type="Deal",
        entity_id=str(deal.id),
        metadata={"deal_id": deal.display_id, "title": deal.title},
    )
    s.delete(deal)


# ---------- serializers ----------
def deal_to_dict(deal: "Deal") -> dict[str, Any]:
    return {
        "id": deal.id,
        "dealId": deal.display_id,
        "dealNumber": deal.deal_number,
        "title": deal.title,
        "description": deal.description,
        "imageUrl": deal.image_url,
        "retailPrice": money(deal.retail_price),
        "payout": money(deal.payout),
        "priceType": deal.price_type,
        "maxQuantity": deal.max_quantity,
        "limitPerVendor": deal.limit_per_vendor,
        "freeLabelMin": deal.free_label_min,
        "status": deal.status,
        "deadline": iso(deal.deadline),
        "isExclusive": deal.is_exclusive,
        "exclusivePrice": money(deal.exclusive_price),
        **{key: getattr(deal, attr) for key, attr in LINK_FIELDS.items()},
        "createdAt": iso(deal.created_at),
        "updatedAt": iso(deal.updated_at),
    }


def deal_stats(deal: "Deal") -> dict[str, int]:
    active = [c for c in deal.commitments if c.status != "CANCELLED"]
    return {
        "totalCommitments": len(active),
        "totalQuantity": sum(c.quantity for c in active),
        "fulfilled": sum(1 for c in active if c.status == "FULFILLED"),
    }


def bot_price_type(buy_price: Decimal, sell_price: Decimal) -> str:
    if sell_price > buy_price:
        return "above_retail"
    if sell_price < buy_price:
        return "below_retail"
    return "at_retail"


def retail_links(deal: "Deal") -> list[dict[str, str]]:
    links = [
        {"name": name, "url": getattr(deal, attr), "emoji": emoji}
        for attr, name, emoji in RETAIL_LINKS
        if getattr(deal, attr)
    ]
    if deal.link_other:
        links.append({"name": deal.link_other_name or "Other", "url": deal.link_other, "emoji": "\U0001F517"})
    return links


def deal_to_bot_dict(deal: "Deal", site_url: str) -> dict[str, Any]:
    buy = Decimal(deal.retail_price)
    sell = Decimal(deal.payout)
    vip = Decimal(deal.exclusive_price) if deal.is_exclusive and deal.exclusive_price else None
    effective = vip or sell
    profit = round(float((effective - buy) / buy * 100), 1) if buy > 0 else 0.0
    return {
        "deal_id": deal.display_id,
        "item": deal.title,
        "description": deal.description or None,
        "image_url": deal.image_url,
        "buy_price": float(buy),
        "sell_price": float(sell),
        "vip_sell_price": float(vip) if vip is not None else None,
        "price_type": bot_price_type(buy, sell),
        "profit_percent": profit,
        "vendor_limit": deal.limit_per_vendor,
        "free_label_min": deal.free_label_min,
        "deadline": iso(deal.deadline),
        "commit_url": f"{site_url.rstrip('/')}/dashboard/deals/{deal.id}",
        "retail_links": retail_links(deal),
    }
