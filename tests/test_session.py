import time

from app.vendorhub.auth import (
    decode_session_cookie,
    encode_session_cookie,
    find_session_cookie,
    resolve_session,
    SessionRejected,
)
from app.vendorhub.auth_client import Identity
from app.vendorhub.db import session_scope
from app.vendorhub.errors import Unauthenticated

from tests.conftest import COOKIE_NAME, login, make_profile


def _set_cookies(r):
    return [h for h in r.headers.getlist("Set-Cookie") if h.startswith(COOKIE_NAME)]


def test_cookie_codec_handles_base64_and_legacy_list():
    session = {"access_token": "a", "refresh_token": "r"}
    assert decode_session_cookie(encode_session_cookie(session, as_base64=True)) == session
    assert decode_session_cookie(encode_session_cookie(session, as_base64=False)) == session
    assert decode_session_cookie('["a", "r", null]') == {"access_token": "a", "refresh_token": "r"}
    assert decode_session_cookie("base64-!!!") is None
    assert decode_session_cookie('{"refresh_token": "r"}') is None


def test_chunked_cookie_is_reassembled():
    raw = encode_session_cookie({"access_token": "a" * 50, "refresh_token": "r"}, as_base64=True)
    cookies = {f"{COOKIE_NAME}.1": raw[40:], f"{COOKIE_NAME}.0": raw[:40], "other": "x"}
    name, value, chunks = find_session_cookie(cookies)
    assert name == COOKIE_NAME
    assert value == raw
    assert chunks == (f"{COOKIE_NAME}.0", f"{COOKIE_NAME}.1")


def test_valid_session_resolves_profile(client, app):
    pid = make_profile(app, email="sam@example.com")
    login(client, app, pid)
    r = client.get("/api/auth/session")
    assert r.status_code == 200
    assert r.json["profile"]["email"] == "sam@example.com"
    assert r.json["vendorId"] == "U-00001"
    assert _set_cookies(r) == []


def test_expired_session_is_refreshed_and_cookie_rewritten(client, app, provider):
    pid = make_profile(app)
    login(
        client,
        app,
        pid,
        session={"access_token": "stale", "refresh_token": "refresh-1", "expires_at": int(time.time()) - 60},
    )
    provider.refresh_tokens["refresh-1"] = ("renewed", Identity(id="auth-1", email="user1@example.com"))

    r = client.get("/api/profile")
    assert r.status_code == 200
    cookies = _set_cookies(r)
    assert len(cookies) == 1
    assert "Max-Age=" in cookies[0]
    assert "SameSite=Lax" in cookies[0]

    value = cookies[0].split(";", 1)[0].split("=", 1)[1]
    session = decode_session_cookie(value)
    assert session["access_token"] == "renewed"
    assert session["refresh_token"] == "refresh-1-next"


def test_failed_refresh_clears_cookie(client, app):
    pid = make_profile(app)
    login(client, app, pid, session={"access_token": "unknown", "refresh_token": "bad"})
    r = client.get("/api/profile")
    assert r.status_code == 401
    assert r.json["error"] == "Session expired"
    cookies = _set_cookies(r)
    assert cookies and "Expires=Thu, 01 Jan 1970" in cookies[0]


def test_refreshed_token_rejected_on_lookup_clears_cookie(client, app, provider, monkeypatch):
    pid = make_profile(app)
    login(client, app, pid, session={"access_token": "stale", "refresh_token": "refresh-1"})
    # the provider rotates the session but the new access token is already revoked
    monkeypatch.setattr(
        provider, "refresh_session", lambda token: {"access_token": "revoked", "refresh_token": "refresh-2"}
    )

    r = client.get("/api/profile")
    assert r.status_code == 401
    assert r.json["error"] == "Session expired"
    cookies = _set_cookies(r)
    assert cookies and "Expires=Thu, 01 Jan 1970" in cookies[0]


def test_identity_without_profile_is_rejected(app, provider):
    provider.users["orphan"] = Identity(id="auth-nobody", email="nobody@example.com")
    cookies = {COOKIE_NAME: encode_session_cookie({"access_token": "orphan"}, as_base64=False)}
    with app.app_context():
        with session_scope(app) as s:
            try:
                resolve_session(cookies, provider, s)
            except SessionRejected as e:
                assert e.message == "Profile not found"
            else:
                raise AssertionError("expected SessionRejected")


def test_missing_cookie_is_unauthenticated(app, provider):
    with app.app_context():
        with session_scope(app) as s:
            try:
                resolve_session({}, provider, s)
            except Unauthenticated as e:
                assert not isinstance(e, SessionRejected)
            else:
                raise AssertionError("expected Unauthenticated")


def test_logout_signs_out_and_clears_cookie(client, app, provider):
    pid = make_profile(app)
    token = login(client, app, pid)
    r = client.post("/api/auth/logout")
    assert r.status_code == 200
    assert r.json["success"] is True
    assert provider.signed_out == [token]
    assert _set_cookies(r)
