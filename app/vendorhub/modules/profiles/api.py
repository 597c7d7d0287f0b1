from __future__ import annotations

import urllib.parse

from flask import Blueprint, current_app, g, jsonify, redirect, request
from sqlalchemy import or_

from app.vendorhub.audit import record_event
from app.vendorhub.auth import current_profile, current_session, get_auth_provider
from app.vendorhub.auth_client import AuthProviderError, AuthTokenInvalid
from app.vendorhub.constants import DISCORD_AUTHORIZE_URL, DISCORD_CALLBACK_PATH, ROLE_ADMIN, ROLE_SELLER
from app.vendorhub.db import db_session
from app.vendorhub.discord_client import (
    DiscordError,
    deal_bot_from_config,
    is_exclusive_member,
    oauth_client_from_config,
)
from app.vendorhub.errors import ApiError, Internal, InvalidInput, NotFound, raise_for_errors
from app.vendorhub.models import Profile
from app.vendorhub.modules.commitments.service import commitment_to_dict
from app.vendorhub.modules.invoices.service import invoice_to_dict
from app.vendorhub.modules.profiles.service import (
    create_profile,
    change_role,
    exclusive_check_is_fresh,
    link_discord,
    profile_counts,
    profile_stats,
    profile_to_dict,
    record_membership_check,
    unlink_discord,
    update_names,
    update_profile,
    validate_name_update,
    validate_new_user,
    validate_password_change,
    validate_profile_update,
    validate_role_change,
)
from app.vendorhub.modules.tracking.service import tracking_to_dict
from app.vendorhub.rbac import PROFILE_SELF, USER_MANAGE, require_action
from app.vendorhub.utils import clean_str, json_body, require_id

bp = Blueprint("profiles", __name__)


def _site_url() -> str:
    return current_app.config.get("SITE_URL", "").rstrip("/")


def _request_id():
    return getattr(g, "request_id", None)


def _guild_membership(user_guild_ids: list[str]) -> bool:
    """Raises DiscordError when the bot cannot be reached."""
    partnered = deal_bot_from_config(current_app.config).partnered_guild_ids()
    return is_exclusive_member(user_guild_ids, partnered)


# ---------- self service ----------
@bp.get("/profile")
@require_action(PROFILE_SELF)
def profile_get():
    return jsonify(profile_to_dict(current_profile(), include_payment=True))


@bp.patch("/profile")
@require_action(PROFILE_SELF)
def profile_update():
    payload = json_body()
    raise_for_errors(validate_profile_update(payload))
    s = db_session()
    p = update_profile(s, current_profile(), payload)
    s.commit()
    return jsonify(profile_to_dict(p, include_payment=True))


@bp.delete("/profile/discord")
@require_action(PROFILE_SELF)
def profile_discord_unlink():
    s = db_session()
    p = unlink_discord(s, current_profile())
    s.commit()
    return jsonify({"success": True, "profile": profile_to_dict(p)})


@bp.post("/profile/discord/refresh")
@require_action(PROFILE_SELF)
def profile_discord_refresh():
    """
    Re-check partnered-guild membership at most once an hour.
    A failed lookup keeps the previous value.
    """
    session = current_session()
    p = session.profile
    if not p.discord_id:
        raise InvalidInput("Discord not linked")
    if exclusive_check_is_fresh(p):
        return jsonify(
            {
                "isExclusiveMember": p.is_exclusive_member,
                "checkedAt": p.exclusive_member_checked_at.isoformat(),
                "message": "Recently checked, using cached status",
            }
        )

    is_member = p.is_exclusive_member
    if session.provider_token:
        try:
            guild_ids = oauth_client_from_config(current_app.config).get_guild_ids(session.provider_token)
            is_member = _guild_membership(guild_ids)
        except DiscordError as e:
            current_app.logger.warning(
                "Discord membership check failed (request_id=%s, profile=%s): %s", _request_id(), p.id, e
            )
    else:
        current_app.logger.info("No Discord token in session; keeping cached membership for profile=%s", p.id)

    s = db_session()
    record_membership_check(s, p, is_member)
    s.commit()
    return jsonify({"isExclusiveMember": p.is_exclusive_member, "checkedAt": p.exclusive_member_checked_at.isoformat()})


@bp.patch("/users/me")
@require_action(PROFILE_SELF)
def users_me_update():
    payload = json_body()
    raise_for_errors(validate_name_update(payload))
    s = db_session()
    p = update_names(s, current_profile(), payload)
    s.commit()
    return jsonify(profile_to_dict(p))


@bp.post("/users/me/password")
@require_action(PROFILE_SELF)
def users_me_password():
    payload = json_body()
    raise_for_errors(validate_password_change(payload))
    session = current_session()
    provider = get_auth_provider()
    try:
        provider.sign_in_with_password(session.profile.email, payload["currentPassword"])
    except AuthTokenInvalid as e:
        raise InvalidInput("Current password is incorrect") from e
    try:
        provider.update_user(session.access_token, {"password": payload["newPassword"]})
    except AuthProviderError as e:
        raise InvalidInput(str(e) or "Failed to update password") from e

    s = db_session()
    record_event(
        s,
        actor=session.profile,
        action="auth.password_change",
        entity_type="Profile",
        entity_id=str(session.profile.id),
    )
    s.commit()
    return jsonify({"success": True, "message": "Password updated successfully"})


# ---------- admin ----------
@bp.post("/users")
@require_action(USER_MANAGE)
def users_create():
    payload = json_body()
    raise_for_errors(validate_new_user(payload))
    email = clean_str(payload.get("email")).lower()  # type: ignore[union-attr]
    s = db_session()
    if s.query(Profile).filter(Profile.email == email).first() is not None:
        raise InvalidInput("Email already registered")

    role = clean_str(payload.get("role")) or ROLE_SELLER
    first_name = clean_str(payload.get("firstName")) or ""
    last_name = clean_str(payload.get("lastName")) or ""
    try:
        identity = get_auth_provider().admin_create_user(
            email,
            payload["password"],
            {"first_name": first_name, "last_name": last_name, "role": role},
        )
    except AuthProviderError as e:
        raise InvalidInput(str(e) or "Failed to create user") from e
    if not identity.id:
        raise Internal("Auth provider returned no user id")

    p = create_profile(
        s,
        auth_id=identity.id,
        email=email,
        first_name=first_name,
        last_name=last_name,
        role=role,
        phone=payload.get("phone"),
        actor=current_profile(),
    )
    s.commit()
    current_app.logger.info("Created profile %s (%s) by admin=%s", p.vendor_id, p.email, current_profile().id)
    return jsonify({"success": True, "profile": profile_to_dict(p)}), 201


@bp.get("/admin/users")
@require_action(USER_MANAGE)
def admin_users_list():
    s = db_session()
    q = s.query(Profile)
    role = clean_str(request.args.get("role"))
    if role:
        q = q.filter(Profile.role == role)
    search = clean_str(request.args.get("search"))
    if search:
        like = f"%{search}%"
        clauses = [Profile.email.ilike(like), Profile.first_name.ilike(like), Profile.last_name.ilike(like)]
        if search.isdigit():
            clauses.append(Profile.vendor_number == int(search))
        q = q.filter(or_(*clauses))
    rows = q.order_by(Profile.created_at.desc(), Profile.id.desc()).all()
    items = []
    for p in rows:
        d = profile_to_dict(p)
        d["stats"] = profile_counts(p)
        items.append(d)
    return jsonify(items)


@bp.post("/admin/users")
@require_action(USER_MANAGE)
def admin_user_detail():
    payload = json_body()
    s = db_session()
    q = s.query(Profile)
    if payload.get("userId") is not None:
        q = q.filter(Profile.id == require_id(payload.get("userId"), "userId"))
    elif payload.get("vendorNumber") is not None:
        q = q.filter(Profile.vendor_number == require_id(payload.get("vendorNumber"), "vendorNumber"))
    else:
        raise InvalidInput("userId or vendorNumber required")
    p = q.first()
    if not p:
        raise NotFound("User not found")

    commitments = sorted(p.commitments, key=lambda c: (c.created_at, c.id), reverse=True)
    trackings = sorted(p.trackings, key=lambda t: (t.created_at, t.id), reverse=True)[:10]
    invoices = sorted(p.invoices, key=lambda i: (i.created_at, i.id), reverse=True)
    d = profile_to_dict(p, include_payment=True)
    d.update(
        {
            "commitments": [commitment_to_dict(c) for c in commitments],
            "trackings": [tracking_to_dict(t) for t in trackings],
            "invoices": [invoice_to_dict(i) for i in invoices],
            "stats": profile_stats(p),
        }
    )
    return jsonify(d)


@bp.put("/admin/users")
@require_action(USER_MANAGE)
def admin_user_role():
    payload = json_body()
    user_id = require_id(payload.get("userId"), "userId")
    raise_for_errors(validate_role_change(payload))
    s = db_session()
    p = s.get(Profile, user_id)
    if not p:
        raise NotFound("User not found")
    role = clean_str(payload.get("role"))
    previous = change_role(s, p, role, current_profile())  # type: ignore[arg-type]
    s.commit()

    # the role is read from the profile on every request; the provider copy is informational
    synced = False
    if previous != role:
        try:
            get_auth_provider().admin_update_user(p.auth_id, {"user_metadata": {"role": role}})
            synced = True
        except AuthProviderError as e:
            current_app.logger.warning(
                "Role metadata sync failed (request_id=%s, profile=%s): %s", _request_id(), p.id, e
            )
    revoked = False
    if payload.get("revokeSession") is True and previous == ROLE_ADMIN and role != ROLE_ADMIN:
        try:
            get_auth_provider().admin_revoke_sessions(p.auth_id)
            revoked = True
        except AuthProviderError as e:
            current_app.logger.warning(
                "Session revocation failed (request_id=%s, profile=%s): %s", _request_id(), p.id, e
            )
    d = profile_to_dict(p)
    d["previousRole"] = previous
    d["metadataSynced"] = synced
    d["sessionsRevoked"] = revoked
    return jsonify(d)


# ---------- discord oauth ----------
def _settings_redirect(query: str):
    return redirect(f"{_site_url()}/dashboard/settings?{query}")


@bp.get("/auth/discord")
def discord_authorize():
    client_id = current_app.config.get("DISCORD_CLIENT_ID")
    if not client_id:
        raise Internal("Discord not configured")
    params = urllib.parse.urlencode(
        {
            "client_id": client_id,
            "redirect_uri": _site_url() + DISCORD_CALLBACK_PATH,
            "response_type": "code",
            "scope": "identify guilds",
        }
    )
    return redirect(f"{DISCORD_AUTHORIZE_URL}?{params}")


@bp.get("/auth/discord/callback")
def discord_callback():
    error = request.args.get("error")
    if error:
        current_app.logger.warning("Discord OAuth error (request_id=%s): %s", _request_id(), error)
        return _settings_redirect("error=discord_denied")
    code = request.args.get("code")
    if not code:
        return _settings_redirect("error=no_code")

    try:
        profile = current_profile()
    except ApiError:
        return redirect(f"{_site_url()}/login?error=not_authenticated")

    oauth = oauth_client_from_config(current_app.config)
    try:
        if not (oauth.client_id and oauth.client_secret):
            raise DiscordError("Discord credentials not configured")
        token = oauth.exchange_code(code, _site_url() + DISCORD_CALLBACK_PATH)
        discord_user = oauth.get_user(token)
    except DiscordError as e:
        current_app.logger.error("Discord callback failed (request_id=%s): %s", _request_id(), e)
        return _settings_redirect("error=discord_failed")

    is_member = False
    try:
        is_member = _guild_membership(oauth.get_guild_ids(token))
    except DiscordError as e:
        current_app.logger.warning("Discord guild lookup failed (request_id=%s): %s", _request_id(), e)

    s = db_session()
    try:
        link_discord(s, profile, discord_user, is_member)
    except InvalidInput:
        s.rollback()
        return _settings_redirect("error=discord_already_linked")
    s.commit()
    return _settings_redirect("discord=linked")
