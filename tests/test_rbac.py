from types import SimpleNamespace

import pytest

from app.vendorhub.models import Profile
from app.vendorhub.rbac import (
    COMMITMENT_OWN,
    DEAL_READ,
    DEAL_READ_ANY,
    DEAL_WRITE,
    LABEL_PROCESS,
    USER_MANAGE,
    WAREHOUSE_MANAGE,
    WAREHOUSE_READ,
    is_authorized,
)


def _profile(role: str, pid: int = 1) -> Profile:
    return Profile(id=pid, role=role, auth_id=f"auth-{pid}", email=f"p{pid}@example.com", vendor_number=pid)


def test_anonymous_is_always_denied():
    for action in (DEAL_READ, COMMITMENT_OWN, LABEL_PROCESS, WAREHOUSE_READ):
        assert is_authorized(None, action) is False


@pytest.mark.parametrize("action", [DEAL_READ_ANY, DEAL_WRITE, LABEL_PROCESS, USER_MANAGE, WAREHOUSE_MANAGE])
def test_admin_only_actions(action):
    assert is_authorized(_profile("ADMIN"), action) is True
    assert is_authorized(_profile("SELLER"), action) is False


def test_seller_reads_only_active_deals():
    seller = _profile("SELLER")
    assert is_authorized(seller, DEAL_READ) is True
    assert is_authorized(seller, DEAL_READ, SimpleNamespace(status="ACTIVE")) is True
    for status in ("DRAFT", "PAUSED", "CLOSED", "EXPIRED"):
        assert is_authorized(seller, DEAL_READ, SimpleNamespace(status=status)) is False


def test_admin_reads_any_deal():
    admin = _profile("ADMIN")
    for status in ("DRAFT", "ACTIVE", "EXPIRED"):
        assert is_authorized(admin, DEAL_READ, SimpleNamespace(status=status)) is True


def test_seller_acts_only_on_own_records():
    seller = _profile("SELLER", pid=7)
    assert is_authorized(seller, COMMITMENT_OWN, SimpleNamespace(user_id=7)) is True
    assert is_authorized(seller, COMMITMENT_OWN, SimpleNamespace(user_id=8)) is False
    assert is_authorized(_profile("ADMIN"), COMMITMENT_OWN, SimpleNamespace(user_id=8)) is True


def test_unknown_role_is_denied():
    assert is_authorized(_profile("WORKER"), DEAL_READ) is False


def test_seller_forbidden_on_admin_endpoints(seller_client):
    for method, path in (
        ("get", "/api/admin/deals"),
        ("get", "/api/admin/commitments"),
        ("get", "/api/admin/invoices"),
        ("get", "/api/admin/labels"),
        ("get", "/api/admin/tracking"),
        ("get", "/api/admin/users"),
        ("post", "/api/warehouses"),
    ):
        r = getattr(seller_client, method)(path)
        assert r.status_code == 403, path
        assert r.json["error"] == "Forbidden"
