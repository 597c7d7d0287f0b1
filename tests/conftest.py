from __future__ import annotations

from decimal import Decimal
from datetime import datetime

import pytest

from app.vendorhub import create_app
from app.vendorhub.auth import encode_session_cookie
from app.vendorhub.auth_client import AuthTokenInvalid, Identity
from app.vendorhub.db import session_scope
from app.vendorhub.models import Base, Profile
from app.vendorhub.modules.deals.models import Deal
from app.vendorhub.modules.deals.service import classify_price

COOKIE_NAME = "sb-test-auth-token"


class FakeAuthProvider:
    """In-memory stand-in for the hosted auth provider, keyed by access token."""

    def __init__(self) -> None:
        self.users: dict[str, Identity] = {}
        self.refresh_tokens: dict[str, tuple[str, Identity]] = {}
        self.passwords: dict[str, str] = {}
        self.password_updates: list[tuple[str, str]] = []
        self.metadata_updates: list[tuple[str, dict]] = []
        self.signed_out: list[str] = []
        self.created: list[Identity] = []
        self.revoked: list[str] = []

    def get_user(self, access_token: str) -> Identity:
        if access_token not in self.users:
            raise AuthTokenInvalid("invalid JWT")
        return self.users[access_token]

    def refresh_session(self, refresh_token: str) -> dict:
        if refresh_token not in self.refresh_tokens:
            raise AuthTokenInvalid("Invalid Refresh Token")
        access_token, identity = self.refresh_tokens.pop(refresh_token)
        self.users[access_token] = identity
        return {
            "access_token": access_token,
            "refresh_token": f"{refresh_token}-next",
            "expires_in": 3600,
            "user": {"id": identity.id, "email": identity.email},
        }

    def sign_in_with_password(self, email: str, password: str) -> dict:
        if self.passwords.get(email) != password:
            raise AuthTokenInvalid("Invalid login credentials")
        return {"access_token": "fresh-token"}

    def update_user(self, access_token: str, attributes: dict) -> Identity:
        identity = self.get_user(access_token)
        if "password" in attributes:
            self.passwords[identity.email or ""] = attributes["password"]
            self.password_updates.append((identity.id, attributes["password"]))
        return identity

    def sign_out(self, access_token: str) -> None:
        self.signed_out.append(access_token)

    def admin_create_user(self, email: str, password: str, user_metadata: dict | None = None) -> Identity:
        identity = Identity(id=f"auth-created-{len(self.created) + 1}", email=email, user_metadata=user_metadata or {})
        self.created.append(identity)
        self.passwords[email] = password
        return identity

    def admin_update_user(self, auth_id: str, attributes: dict) -> Identity:
        self.metadata_updates.append((auth_id, attributes))
        return Identity(id=auth_id)

    def admin_revoke_sessions(self, auth_id: str) -> None:
        self.revoked.append(auth_id)


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("SUPABASE_URL", "http://auth.invalid")
    monkeypatch.setenv("STORAGE_BACKEND", "local")
    monkeypatch.setenv("LOCAL_STORAGE_ROOT", str(tmp_path / "storage"))
    monkeypatch.setenv("SITE_URL", "https://vendors.example.com")
    monkeypatch.setenv("DISCORD_BOT_API_KEY", "bot-key")
    for k in (
        "DISCORD_CLIENT_ID",
        "DISCORD_CLIENT_SECRET",
        "DISCORD_WEBHOOK_URL",
        "DISCORD_WEBHOOK_SECRET",
        "S3_ENDPOINT",
        "S3_ACCESS_KEY_ID",
        "S3_SECRET_ACCESS_KEY",
    ):
        monkeypatch.delenv(k, raising=False)

    app = create_app()
    app.extensions["auth_provider"] = FakeAuthProvider()

    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def provider(app) -> FakeAuthProvider:
    return app.extensions["auth_provider"]


def make_profile(app, *, role: str = "SELLER", email: str | None = None, vendor_number: int | None = None) -> int:
    with session_scope(app) as s:
        n = vendor_number or (s.query(Profile).count() + 1)
        p = Profile(
            auth_id=f"auth-{n}",
            email=email or f"user{n}@example.com",
            first_name="Test",
            last_name=f"User{n}",
            role=role,
            vendor_number=n,
            is_exclusive_member=False,
        )
        s.add(p)
        s.flush()
        return p.id


def make_deal(app, *, status: str = "ACTIVE", retail: str = "100.00", payout: str = "90.00", **extra) -> int:
    with session_scope(app) as s:
        n = s.query(Deal).count() + 1
        d = Deal(
            deal_number=n,
            title=extra.pop("title", f"Deal {n}"),
            description="",
            retail_price=Decimal(retail),
            payout=Decimal(payout),
            price_type=classify_price(Decimal(retail), Decimal(payout)),
            status=status,
            is_exclusive=False,
            created_at=datetime.utcnow(),
            updated_at=datetime.utcnow(),
            **extra,
        )
        s.add(d)
        s.flush()
        return d.id


def login(client, app, profile_id: int, *, session: dict | None = None) -> str:
    """Register an access token for the profile's identity and set the session cookie."""
    with session_scope(app) as s:
        p = s.get(Profile, profile_id)
        identity = Identity(id=p.auth_id, email=p.email)
    token = f"token-{profile_id}"
    app.extensions["auth_provider"].users[token] = identity
    body = session or {"access_token": token, "refresh_token": f"refresh-{profile_id}"}
    client.set_cookie(COOKIE_NAME, encode_session_cookie(body, as_base64=True))
    return token


@pytest.fixture()
def seller(app):
    return make_profile(app, role="SELLER")


@pytest.fixture()
def admin(app):
    return make_profile(app, role="ADMIN", email="admin@example.com")


@pytest.fixture()
def seller_client(app, seller):
    c = app.test_client()
    login(c, app, seller)
    return c


@pytest.fixture()
def admin_client(app, admin):
    c = app.test_client()
    login(c, app, admin)
    return c
