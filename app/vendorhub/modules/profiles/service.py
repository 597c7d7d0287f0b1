from __future__ import annotations

import re
from datetime import datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from app.vendorhub.audit import record_event
from app.vendorhub.constants import EXCLUSIVE_RECHECK_SECONDS, ROLE_SELLER, ROLES
from app.vendorhub.errors import InvalidInput
from app.vendorhub.utils import clean_str, iso, money, next_number

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.vendorhub.discord_client import DiscordUser
    from app.vendorhub.models import Profile


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PASSWORD_MIN = 8
NAME_MAX = 50

BUSINESS_FIELDS = {
    "phone": "phone",
    "companyName": "company_name",
    "address": "address",
    "city": "city",
    "state": "state",
    "zipCode": "zip_code",
    "bankName": "bank_name",
    "bankRouting": "bank_routing",
    "bankAccount": "bank_account",
    "accountingNotes": "accounting_notes",
}


# ---------- validators ----------
def validate_profile_update(payload: dict) -> list[str]:
    errors: list[str] = []
    if not clean_str(payload.get("firstName")) or not clean_str(payload.get("lastName")):
        errors.append("First name and last name are required")
    return errors


def validate_name_update(payload: dict) -> list[str]:
    errors: list[str] = []
    for key in ("firstName", "lastName"):
        value = payload.get(key)
        if value is not None and (not isinstance(value, str) or len(value.strip()) > NAME_MAX):
            errors.append(f"{key} must be a string of at most {NAME_MAX} characters.")
    return errors


def password_errors(password: Any, *, strict: bool = False) -> list[str]:
    if not isinstance(password, str) or len(password) < PASSWORD_MIN:
        return [f"Password must be at least {PASSWORD_MIN} characters"]
    errors: list[str] = []
    if strict and not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if strict and not re.search(r"[0-9]", password):
        errors.append("Password must contain at least one number")
    return errors


def validate_password_change(payload: dict) -> list[str]:
    if not payload.get("currentPassword") or not payload.get("newPassword"):
        return ["Current and new password are required"]
    return password_errors(payload.get("newPassword"))


def validate_new_user(payload: dict) -> list[str]:
    errors: list[str] = []
    email = clean_str(payload.get("email")) or ""
    if not EMAIL_RE.match(email):
        errors.append("Please enter a valid email address")
    errors.extend(password_errors(payload.get("password"), strict=True))
    for key, label in (("firstName", "First name"), ("lastName", "Last name")):
        value = clean_str(payload.get(key))
        if not value:
            errors.append(f"{label} is required")
        elif len(value) > NAME_MAX:
            errors.append(f"{label} must be at most {NAME_MAX} characters")
    role = clean_str(payload.get("role"))
    if role and role not in ROLES:
        errors.append("Invalid role")
    return errors


def validate_role_change(payload: dict) -> list[str]:
    role = clean_str(payload.get("role"))
    if not role:
        return ["userId and role required"]
    if role not in ROLES:
        return ["Invalid role"]
    return []


# ---------- mutations ----------
def create_profile(
    s: "Session",
    *,
    auth_id: str,
    email: str,
    first_name: str,
    last_name: str,
    role: str = ROLE_SELLER,
    phone: str | None = None,
    actor: "Profile | None" = None,
) -> "Profile":
    """
    Administrative profile creation. Login never creates profiles.
    vendor_number is max + 1.
    """
    from app.vendorhub.models import Profile

    email = email.strip().lower()
    if s.query(Profile).filter(Profile.auth_id == auth_id).one_or_none() is not None:
        raise InvalidInput("A profile already exists for this identity")
    if s.query(Profile).filter(Profile.email == email).first() is not None:
        raise InvalidInput("Email already registered")

    now = datetime.utcnow()
    p = Profile(
        auth_id=auth_id,
        email=email,
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        phone=clean_str(phone),
        role=role,
        vendor_number=next_number(s, Profile.vendor_number),
        is_exclusive_member=False,
        created_at=now,
        updated_at=now,
    )
    s.add(p)
    s.flush()
    record_event(
        s,
        actor=actor,
        action="profile.create",
        entity_type="Profile",
        entity_id=str(p.id),
        metadata={"vendor_id": p.vendor_id, "email": p.email, "role": p.role},
    )
    return p


def update_profile(s: "Session", p: "Profile", payload: dict) -> "Profile":
    """Full settings form: names required, blank business/payment fields become NULL."""
    p.first_name = clean_str(payload.get("firstName")) or p.first_name
    p.last_name = clean_str(payload.get("lastName")) or p.last_name
    for key, attr in BUSINESS_FIELDS.items():
        setattr(p, attr, clean_str(payload.get(key)))
    p.updated_at = datetime.utcnow()
    record_event(
        s,
        actor=p,
        action="profile.update",
        entity_type="Profile",
        entity_id=str(p.id),
        metadata={"fields": sorted(k for k in payload if k in BUSINESS_FIELDS or k in ("firstName", "lastName"))},
    )
    return p


def update_names(s: "Session", p: "Profile", payload: dict) -> "Profile":
    if clean_str(payload.get("firstName")):
        p.first_name = clean_str(payload.get("firstName")) or p.first_name
    if clean_str(payload.get("lastName")):
        p.last_name = clean_str(payload.get("lastName")) or p.last_name
    if "phone" in payload:
        p.phone = clean_str(payload.get("phone"))
    p.updated_at = datetime.utcnow()
    record_event(
        s,
        actor=p,
        action="profile.update",
        entity_type="Profile",
        entity_id=str(p.id),
        metadata={"fields": sorted(k for k in payload if k in ("firstName", "lastName", "phone"))},
    )
    return p


def change_role(s: "Session", p: "Profile", role: str, actor: "Profile | None") -> str:
    """Returns the previous role."""
    previous = p.role
    p.role = role
    p.updated_at = datetime.utcnow()
    record_event(
        s,
        actor=actor,
        action="profile.role_change",
        entity_type="Profile",
        entity_id=str(p.id),
        metadata={"vendor_id": p.vendor_id, "role": {"old": previous, "new": role}},
    )
    return previous


def link_discord(
    s: "Session",
    p: "Profile",
    discord_user: "DiscordUser",
    is_exclusive: bool,
    now: datetime | None = None,
) -> "Profile":
    from app.vendorhub.models import Profile

    other = s.query(Profile).filter(Profile.discord_id == discord_user.id, Profile.id != p.id).first()
    if other is not None:
        raise InvalidInput("discord_already_linked")
    now = now or datetime.utcnow()
    p.discord_id = discord_user.id
    p.discord_username = discord_user.username
    p.discord_avatar = discord_user.avatar_url
    p.is_exclusive_member = is_exclusive
    p.exclusive_member_checked_at = now
    p.updated_at = now
    record_event(
        s,
        actor=p,
        action="profile.discord_link",
        entity_type="Profile",
        entity_id=str(p.id),
        metadata={"discord_id": discord_user.id, "is_exclusive_member": is_exclusive},
    )
    return p


def unlink_discord(s: "Session", p: "Profile") -> "Profile":
    previous = p.discord_id
    p.discord_id = None
    p.discord_username = None
    p.discord_avatar = None
    p.is_exclusive_member = False
    p.exclusive_member_checked_at = None
    p.updated_at = datetime.utcnow()
    record_event(
        s,
        actor=p,
        action="profile.discord_unlink",
        entity_type="Profile",
        entity_id=str(p.id),
        metadata={"discord_id": previous},
    )
    return p


def record_membership_check(s: "Session", p: "Profile", is_member: bool, now: datetime | None = None) -> "Profile":
    now = now or datetime.utcnow()
    if is_member != p.is_exclusive_member:
        record_event(
            s,
            actor=p,
            action="profile.exclusive_change",
            entity_type="Profile",
            entity_id=str(p.id),
            metadata={"is_exclusive_member": {"old": p.is_exclusive_member, "new": is_member}},
        )
    p.is_exclusive_member = is_member
    p.exclusive_member_checked_at = now
    p.updated_at = now
    return p


def exclusive_check_is_fresh(p: "Profile", now: datetime | None = None) -> bool:
    if not p.exclusive_member_checked_at:
        return False
    now = now or datetime.utcnow()
    return p.exclusive_member_checked_at > now - timedelta(seconds=EXCLUSIVE_RECHECK_SECONDS)


# ---------- serializers ----------
def profile_to_dict(p: "Profile", *, include_payment: bool = False) -> dict[str, Any]:
    d: dict[str, Any] = {
        "id": p.id,
        "authId": p.auth_id,
        "email": p.email,
        "firstName": p.first_name,
        "lastName": p.last_name,
        "phone": p.phone,
        "role": p.role,
        "vendorId": p.vendor_id,
        "vendorNumber": p.vendor_number,
        "discordId": p.discord_id,
        "discordUsername": p.discord_username,
        "discordAvatar": p.discord_avatar,
        "isExclusiveMember": p.is_exclusive_member,
        "exclusiveMemberCheckedAt": iso(p.exclusive_member_checked_at),
        "createdAt": iso(p.created_at),
        "updatedAt": iso(p.updated_at),
    }
    if include_payment:
        d.update({key: getattr(p, attr) for key, attr in BUSINESS_FIELDS.items()})
    return d


def profile_counts(p: "Profile") -> dict[str, int]:
    return {
        "commitments": len(p.commitments),
        "trackings": len(p.trackings),
        "labelRequests": len(p.label_requests),
        "invoices": len(p.invoices),
    }


def profile_stats(p: "Profile") -> dict[str, Any]:
    statuses = [c.status for c in p.commitments]
    earnings = sum((Decimal(inv.amount) for inv in p.invoices), Decimal("0"))
    return {
        "totalCommitments": len(statuses),
        "fulfilled": statuses.count("FULFILLED"),
        "pending": statuses.count("PENDING"),
        "dropOffPending": statuses.count("DROP_OFF_PENDING"),
        "inTransit": statuses.count("IN_TRANSIT"),
        "totalEarnings": money(earnings),
    }
