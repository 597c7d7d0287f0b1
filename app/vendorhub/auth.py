from __future__ import annotations

import base64
import binascii
import json
import time
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from flask import Blueprint, Response, current_app, g, jsonify, request
from sqlalchemy.orm import Session

from app.vendorhub.auth_client import AuthProviderError, AuthTokenInvalid, Identity
from app.vendorhub.db import db_session
from app.vendorhub.errors import Unauthenticated
from app.vendorhub.models import Profile

bp = Blueprint("auth", __name__)

SESSION_COOKIE_MARKER = "auth-token"
BASE64_PREFIX = "base64-"
# refresh a little before the provider would reject the token
EXPIRY_LEEWAY_SECONDS = 10
COOKIE_MAX_AGE = 400 * 24 * 3600


@dataclass(frozen=True)
class CookieMutation:
    name: str
    value: str | None  # None -> delete
    options: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SessionResult:
    identity: Identity
    profile: Profile
    access_token: str
    provider_token: str | None = None
    cookie_mutations: tuple[CookieMutation, ...] = ()


class SessionRejected(Unauthenticated):
    """Unauthenticated, plus cookie mutations that must still reach the client."""

    def __init__(self, message: str | None = None, cookie_mutations: tuple[CookieMutation, ...] = ()) -> None:
        super().__init__(message)
        self.cookie_mutations = cookie_mutations


# ---------- cookie codec ----------
def find_session_cookie(cookies: Mapping[str, str]) -> tuple[str, str, tuple[str, ...]] | None:
    """
    Returns (cookie_name, raw_value, chunk_names) for the provider session cookie.
    Large sessions are split into `<name>.0`, `<name>.1`, ...; those are reassembled.
    """
    for name, value in cookies.items():
        if SESSION_COOKIE_MARKER in name and "." not in name and value:
            return name, value, ()

    chunks: dict[str, dict[int, str]] = {}
    for name, value in cookies.items():
        if SESSION_COOKIE_MARKER not in name or "." not in name:
            continue
        base, _, idx = name.rpartition(".")
        if idx.isdigit():
            chunks.setdefault(base, {})[int(idx)] = value
    for base, parts in chunks.items():
        ordered = [parts[i] for i in sorted(parts)]
        names = tuple(f"{base}.{i}" for i in sorted(parts))
        return base, "".join(ordered), names
    return None


def decode_session_cookie(raw: str) -> dict[str, Any] | None:
    value = raw
    if value.startswith(BASE64_PREFIX):
        encoded = value[len(BASE64_PREFIX):]
        try:
            value = base64.urlsafe_b64decode(encoded + "=" * (-len(encoded) % 4)).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            return None
    try:
        session = json.loads(value)
    except ValueError:
        return None
    if isinstance(session, list) and session:
        # legacy array format: [access_token, refresh_token, ...]
        session = {"access_token": session[0], "refresh_token": session[1] if len(session) > 1 else None}
    if not isinstance(session, dict) or not session.get("access_token"):
        return None
    return session


def encode_session_cookie(session: dict[str, Any], *, as_base64: bool) -> str:
    raw = json.dumps(session, separators=(",", ":"))
    if as_base64:
        return BASE64_PREFIX + base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")
    return raw


def _cookie_options(secure: bool) -> dict[str, Any]:
    return {"path": "/", "samesite": "Lax", "secure": secure, "max_age": COOKIE_MAX_AGE}


def _delete_mutations(name: str, chunk_names: tuple[str, ...]) -> tuple[CookieMutation, ...]:
    return tuple(CookieMutation(n, None, {"path": "/"}) for n in (name, *chunk_names))


# ---------- resolver ----------
def resolve_session(
    cookies: Mapping[str, str],
    provider,
    s: Session,
    *,
    secure_cookies: bool = False,
    now: float | None = None,
) -> SessionResult:
    """
    Validate (and if needed refresh) the provider session carried in `cookies`,
    then load the Profile linked to that identity. Never creates a Profile.

    Cookie rotation is returned in `cookie_mutations`; the caller applies it.
    """
    found = find_session_cookie(cookies)
    if not found:
        raise Unauthenticated("Unauthorized")
    name, raw, chunk_names = found
    session = decode_session_cookie(raw)
    if session is None:
        raise SessionRejected("Unauthorized", _delete_mutations(name, chunk_names))

    now = time.time() if now is None else now
    mutations: tuple[CookieMutation, ...] = ()
    identity: Identity | None = None

    expires_at = session.get("expires_at")
    expired = isinstance(expires_at, (int, float)) and expires_at <= now + EXPIRY_LEEWAY_SECONDS
    if not expired:
        try:
            identity = provider.get_user(session["access_token"])
        except AuthTokenInvalid:
            identity = None

    if identity is None:
        refresh_token = session.get("refresh_token")
        if not refresh_token:
            raise SessionRejected("Session expired", _delete_mutations(name, chunk_names))
        try:
            refreshed = provider.refresh_session(refresh_token)
        except AuthTokenInvalid:
            raise SessionRejected("Session expired", _delete_mutations(name, chunk_names))
        session = {**session, **refreshed}
        if not session.get("expires_at") and session.get("expires_in"):
            session["expires_at"] = int(now) + int(session["expires_in"])
        user_json = refreshed.get("user")
        if isinstance(user_json, dict) and user_json.get("id"):
            identity = Identity.from_user_json(user_json)
        else:
            try:
                identity = provider.get_user(session["access_token"])
            except AuthTokenInvalid:
                raise SessionRejected("Session expired", _delete_mutations(name, chunk_names))
        value = encode_session_cookie(session, as_base64=raw.startswith(BASE64_PREFIX))
        mutations = (
            CookieMutation(name, value, _cookie_options(secure_cookies)),
            *(CookieMutation(n, None, {"path": "/"}) for n in chunk_names),
        )

    if not identity.id:
        raise SessionRejected("Unauthorized", mutations)

    profile = s.query(Profile).filter(Profile.auth_id == identity.id).one_or_none()
    if profile is None:
        raise SessionRejected("Profile not found", mutations)

    return SessionResult(
        identity=identity,
        profile=profile,
        access_token=session["access_token"],
        provider_token=session.get("provider_token"),
        cookie_mutations=mutations,
    )


# ---------- Flask glue ----------
def get_auth_provider():
    return current_app.extensions["auth_provider"]


def current_session() -> SessionResult:
    """
    Resolve once per request and memoize on `g`. Raises Unauthenticated.
    """
    cached = getattr(g, "session_result", None)
    if cached is not None:
        return cached
    try:
        result = resolve_session(
            request.cookies,
            get_auth_provider(),
            db_session(),
            secure_cookies=current_app.config.get("ENV") in ("prod", "production"),
        )
    except SessionRejected as e:
        g.cookie_mutations = list(e.cookie_mutations)
        raise
    except AuthProviderError as e:
        current_app.logger.error("Auth provider error (request_id=%s): %s", getattr(g, "request_id", None), e)
        raise Unauthenticated("Unauthorized") from e
    g.session_result = result
    g.current_profile = result.profile
    g.cookie_mutations = list(result.cookie_mutations)
    return result


def current_profile() -> Profile:
    return current_session().profile


def assign_request_id() -> None:
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex


def apply_cookie_mutations(response: Response) -> Response:
    for m in getattr(g, "cookie_mutations", None) or ():
        if m.value is None:
            response.delete_cookie(m.name, path=m.options.get("path", "/"))
        else:
            response.set_cookie(m.name, m.value, **m.options)
    return response


# ---------- routes ----------
@bp.get("/session")
def session_info():
    result = current_session()
    p = result.profile
    return jsonify(
        {
            "user": {"id": result.identity.id, "email": result.identity.email},
            "profile": {
                "id": p.id,
                "email": p.email,
                "firstName": p.first_name,
                "lastName": p.last_name,
                "role": p.role,
            },
            "vendorId": p.vendor_id,
        }
    )


@bp.post("/logout")
def logout():
    found = find_session_cookie(request.cookies)
    if found:
        name, raw, chunk_names = found
        session = decode_session_cookie(raw)
        if session:
            try:
                get_auth_provider().sign_out(session["access_token"])
            except AuthProviderError as e:
                current_app.logger.warning("Provider sign-out failed (request_id=%s): %s", getattr(g, "request_id", None), e)
        g.cookie_mutations = list(_delete_mutations(name, chunk_names))
    return jsonify({"success": True})
