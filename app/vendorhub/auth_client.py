from __future__ import annotations

import json
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass, field
from typing import Any


class AuthProviderError(RuntimeError):
    pass


class AuthTokenInvalid(AuthProviderError):
    """Access/refresh token rejected (expired, revoked, malformed)."""


@dataclass(frozen=True)
class Identity:
    id: str
    email: str | None = None
    user_metadata: dict[str, Any] = field(default_factory=dict)
    providers: tuple[str, ...] = ()

    @classmethod
    def from_user_json(cls, j: dict[str, Any]) -> "Identity":
        identities = j.get("identities") or []
        providers = tuple(
            str(i.get("provider")) for i in identities if isinstance(i, dict) and i.get("provider")
        )
        return cls(
            id=str(j.get("id") or ""),
            email=j.get("email"),
            user_metadata=j.get("user_metadata") or {},
            providers=providers,
        )


@dataclass(frozen=True)
class SupabaseAuthClient:
    """
    Minimal client for the hosted auth provider's REST API (GoTrue).
    """

    base_url: str
    anon_key: str
    service_role_key: str = ""
    timeout_seconds: int = 15

    def _url(self, path: str, params: dict[str, Any] | None = None) -> str:
        url = self.base_url.rstrip("/") + "/auth/v1" + path
        if params:
            url += "?" + urllib.parse.urlencode({k: v for k, v in params.items() if v is not None})
        return url

    def request_json(
        self,
        method: str,
        path: str,
        *,
        bearer: str | None = None,
        body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        service: bool = False,
    ) -> dict[str, Any]:
        if not self.base_url:
            raise AuthProviderError("SUPABASE_URL is not configured")
        api_key = self.service_role_key if service else self.anon_key
        data = json.dumps(body).encode("utf-8") if body is not None else None
        req = urllib.request.Request(self._url(path, params), data=data, method=method)
        req.add_header("apikey", api_key)
        req.add_header("Authorization", f"Bearer {bearer or api_key}")
        req.add_header("Accept", "application/json")
        if data is not None:
            req.add_header("Content-Type", "application/json")
        try:
            with urllib.request.urlopen(req, timeout=self.timeout_seconds) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as e:
            try:
                detail = e.read().decode("utf-8", errors="ignore")
            except OSError:
                detail = ""
            message = _error_message(detail) or f"HTTP {e.code}"
            if e.code in (401, 403):
                raise AuthTokenInvalid(message) from e
            raise AuthProviderError(message) from e
        except urllib.error.URLError as e:
            raise AuthProviderError(f"Auth provider unreachable: {e.reason}") from e
        if not raw:
            return {}
        try:
            j = json.loads(raw.decode("utf-8"))
        except ValueError as e:
            raise AuthProviderError(f"Invalid JSON from auth provider ({path})") from e
        return j if isinstance(j, dict) else {}

    def get_user(self, access_token: str) -> Identity:
        return Identity.from_user_json(self.request_json("GET", "/user", bearer=access_token))

    def refresh_session(self, refresh_token: str) -> dict[str, Any]:
        try:
            return self.request_json(
                "POST",
                "/token",
                params={"grant_type": "refresh_token"},
                body={"refresh_token": refresh_token},
            )
        except AuthProviderError as e:
            # GoTrue answers 400 for an unknown/used refresh token
            raise AuthTokenInvalid(str(e)) from e

    def sign_in_with_password(self, email: str, password: str) -> dict[str, Any]:
        try:
            return self.request_json(
                "POST",
                "/token",
                params={"grant_type": "password"},
                body={"email": email, "password": password},
            )
        except AuthProviderError as e:
            raise AuthTokenInvalid(str(e)) from e

    def update_user(self, access_token: str, attributes: dict[str, Any]) -> Identity:
        return Identity.from_user_json(self.request_json("PUT", "/user", bearer=access_token, body=attributes))

    def sign_out(self, access_token: str) -> None:
        self.request_json("POST", "/logout", bearer=access_token)

    def admin_create_user(self, email: str, password: str, user_metadata: dict[str, Any] | None = None) -> Identity:
        j = self.request_json(
            "POST",
            "/admin/users",
            body={
                "email": email,
                "password": password,
                "email_confirm": True,
                "user_metadata": user_metadata or {},
            },
            service=True,
        )
        return Identity.from_user_json(j)

    def admin_update_user(self, auth_id: str, attributes: dict[str, Any]) -> Identity:
        j = self.request_json(
            "PUT",
            f"/admin/users/{urllib.parse.quote(auth_id)}",
            body=attributes,
            service=True,
        )
        return Identity.from_user_json(j)

    def admin_revoke_sessions(self, auth_id: str) -> None:
        """Invalidate every refresh token the user holds; access tokens expire on their own."""
        self.admin_update_user(auth_id, {"ban_duration": "1s"})


def _error_message(detail: str) -> str | None:
    if not detail:
        return None
    try:
        j = json.loads(detail)
    except ValueError:
        return detail[:300]
    if isinstance(j, dict):
        for key in ("error_description", "msg", "message", "error"):
            if j.get(key):
                return str(j[key])
    return detail[:300]


def auth_provider_from_config(config: dict) -> SupabaseAuthClient:
    return SupabaseAuthClient(
        base_url=(config.get("SUPABASE_URL") or "").strip(),
        anon_key=(config.get("SUPABASE_ANON_KEY") or "").strip(),
        service_role_key=(config.get("SUPABASE_SERVICE_ROLE_KEY") or "").strip(),
    )
