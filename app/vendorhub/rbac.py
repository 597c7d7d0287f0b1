from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import current_app, g

from app.vendorhub.auth import current_profile
from app.vendorhub.constants import ROLE_ADMIN, ROLE_SELLER
from app.vendorhub.errors import Forbidden
from app.vendorhub.models import Profile

DEAL_READ = "deal.read"
DEAL_READ_ANY = "deal.read_any"
DEAL_WRITE = "deal.write"
COMMITMENT_OWN = "commitment.own"
COMMITMENT_MANAGE = "commitment.manage"
INVOICE_OWN = "invoice.own"
INVOICE_MANAGE = "invoice.manage"
LABEL_OWN = "label.own"
LABEL_PROCESS = "label.process"
TRACKING_OWN = "tracking.own"
TRACKING_MANAGE = "tracking.manage"
PROFILE_SELF = "profile.self"
USER_MANAGE = "user.manage"
WAREHOUSE_READ = "warehouse.read"
WAREHOUSE_MANAGE = "warehouse.manage"

SELLER_ACTIONS = frozenset(
    {
        DEAL_READ,
        COMMITMENT_OWN,
        INVOICE_OWN,
        LABEL_OWN,
        TRACKING_OWN,
        PROFILE_SELF,
        WAREHOUSE_READ,
    }
)
OWNED_ACTIONS = frozenset({COMMITMENT_OWN, INVOICE_OWN, LABEL_OWN, TRACKING_OWN})


def is_authorized(profile: Profile | None, action: str, target: Any = None) -> bool:
    """
    Single capability check for every handler.

    ADMIN may do anything. SELLER may read ACTIVE deals and act on records it owns.
    """
    if profile is None:
        return False
    if profile.role == ROLE_ADMIN:
        return True
    if profile.role != ROLE_SELLER or action not in SELLER_ACTIONS:
        return False
    if target is None:
        return True
    if action == DEAL_READ:
        return getattr(target, "status", None) == "ACTIVE"
    if action in OWNED_ACTIONS:
        return getattr(target, "user_id", None) == profile.id
    return True


def ensure_authorized(profile: Profile | None, action: str, target: Any = None) -> None:
    if not is_authorized(profile, action, target):
        current_app.logger.warning(
            "Forbidden: action=%s profile_id=%s request_id=%s",
            action,
            profile.id if profile else None,
            getattr(g, "request_id", None),
        )
        raise Forbidden()


def require_action(action: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            # Unauthenticated propagates as 401
            profile = current_profile()
            ensure_authorized(profile, action)
            return fn(*args, **kwargs)

        return wrapped

    return decorator
