from __future__ import annotations

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

logger = logging.getLogger(__name__)

DISCORD_API = "https://discord.com/api"
DISCORD_CDN = "https://cdn.discordapp.com"


class DiscordError(RuntimeError):
    pass


@dataclass(frozen=True)
class DiscordUser:
    id: str
    username: str
    avatar_url: str | None

    @classmethod
    def from_json(cls, j: dict[str, Any]) -> "DiscordUser":
        discord_id = str(j.get("id") or "")
        avatar = j.get("avatar")
        return cls(
            id=discord_id,
            username=j.get("global_name") or j.get("username") or "",
            avatar_url=f"{DISCORD_CDN}/avatars/{discord_id}/{avatar}.png" if avatar else None,
        )


def _request_json(req: urllib.request.Request, *, timeout: int, what: str) -> Any:
    req.add_header("Accept", "application/json")
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            raw = resp.read()
    except urllib.error.HTTPError as e:
        try:
            body = e.read().decode("utf-8", errors="ignore")
        except OSError:
            body = ""
        raise DiscordError(f"HTTP {e.code} from {what}: {body[:300]}") from e
    except urllib.error.URLError as e:
        raise DiscordError(f"{what} unreachable: {e.reason}") from e
    if not raw:
        return None
    try:
        return json.loads(raw.decode("utf-8"))
    except ValueError as e:
        raise DiscordError(f"Invalid JSON from {what}") from e


@dataclass(frozen=True)
class DiscordOAuthClient:
    client_id: str
    client_secret: str
    base_url: str = DISCORD_API
    timeout_seconds: int = 15

    def exchange_code(self, code: str, redirect_uri: str) -> str:
        """Authorization code -> user access token."""
        body = urllib.parse.urlencode(
            {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri,
            }
        ).encode("utf-8")
        req = urllib.request.Request(self.base_url + "/oauth2/token", data=body, method="POST")
        req.add_header("Content-Type", "application/x-www-form-urlencoded")
        j = _request_json(req, timeout=self.timeout_seconds, what="Discord token endpoint")
        token = (j or {}).get("access_token") if isinstance(j, dict) else None
        if not token:
            raise DiscordError("Discord token response had no access_token")
        return str(token)

    def _get(self, path: str, access_token: str) -> Any:
        req = urllib.request.Request(self.base_url + path, method="GET")
        req.add_header("Authorization", f"Bearer {access_token}")
        return _request_json(req, timeout=self.timeout_seconds, what=f"Discord {path}")

    def get_user(self, access_token: str) -> DiscordUser:
        j = self._get("/users/@me", access_token)
        if not isinstance(j, dict) or not j.get("id"):
            raise DiscordError("Discord user response had no id")
        return DiscordUser.from_json(j)

    def get_guild_ids(self, access_token: str) -> list[str]:
        j = self._get("/users/@me/guilds", access_token)
        if not isinstance(j, list):
            return []
        return [str(g["id"]) for g in j if isinstance(g, dict) and g.get("id")]


@dataclass(frozen=True)
class DealBotClient:
    """
    The deal-announcement bot: receives new deals and lists its partnered guilds.
    """

    webhook_url: str
    webhook_secret: str
    timeout_seconds: int = 10

    @property
    def configured(self) -> bool:
        return bool(self.webhook_url and self.webhook_secret)

    @property
    def base_url(self) -> str:
        return self.webhook_url.replace("/webhook", "")

    def partnered_guild_ids(self) -> list[str]:
        if not self.configured:
            return []
        req = urllib.request.Request(self.base_url + "/partnered-guilds", method="GET")
        req.add_header("X-Webhook-Secret", self.webhook_secret)
        j = _request_json(req, timeout=self.timeout_seconds, what="deal bot")
        ids = (j or {}).get("guild_ids") if isinstance(j, dict) else None
        return [str(i) for i in ids] if isinstance(ids, list) else []

    def notify_deal(self, payload: dict[str, Any]) -> bool:
        """
        Best-effort announcement. Returns False (and logs) on any failure.
        """
        if not self.webhook_url:
            logger.warning("DISCORD_WEBHOOK_URL not configured; skipping deal notification")
            return False
        if not self.webhook_secret:
            logger.warning("DISCORD_WEBHOOK_SECRET not configured; skipping deal notification")
            return False
        data = json.dumps({k: v for k, v in payload.items() if v is not None}).encode("utf-8")
        req = urllib.request.Request(self.webhook_url, data=data, method="POST")
        req.add_header("Content-Type", "application/json")
        req.add_header("X-Webhook-Secret", self.webhook_secret)
        try:
            _request_json(req, timeout=self.timeout_seconds, what="deal webhook")
        except DiscordError as e:
            logger.error("Deal webhook failed: %s", e)
            return False
        return True


def is_exclusive_member(user_guild_ids: list[str], partnered_guild_ids: list[str]) -> bool:
    partnered = set(partnered_guild_ids)
    return any(gid in partnered for gid in user_guild_ids)


def _dollars(value: Decimal) -> str:
    return f"${Decimal(value).quantize(Decimal('0.01'))}"


def format_deal_for_discord(deal, site_url: str, *, now: datetime | None = None) -> dict[str, Any]:
    """Deal row -> webhook payload understood by the bot."""
    retail = Decimal(deal.retail_price)
    payout = Decimal(deal.payout)
    discount = None
    if retail > payout and retail > 0:
        discount = f"{round((retail - payout) / retail * 100)}% off"

    if deal.price_type == "ABOVE_RETAIL":
        price, exclusive_price = _dollars(retail), _dollars(payout)
    else:
        price, exclusive_price = _dollars(payout), None

    return {
        "item": deal.title,
        "price": price,
        "exclusive_price": exclusive_price,
        "original_price": _dollars(retail),
        "discount": discount,
        "url": f"{site_url.rstrip('/')}/dashboard/deals/{deal.display_id}",
        "image_url": deal.image_url or None,
        "category": "Deals",
        "description": deal.description or None,
        "timestamp": (now or datetime.utcnow()).isoformat() + "Z",
    }


def oauth_client_from_config(config: dict) -> DiscordOAuthClient:
    return DiscordOAuthClient(
        client_id=(config.get("DISCORD_CLIENT_ID") or "").strip(),
        client_secret=(config.get("DISCORD_CLIENT_SECRET") or "").strip(),
    )


def deal_bot_from_config(config: dict) -> DealBotClient:
    return DealBotClient(
        webhook_url=(config.get("DISCORD_WEBHOOK_URL") or "").strip(),
        webhook_secret=(config.get("DISCORD_WEBHOOK_SECRET") or "").strip(),
    )
