from decimal import Decimal

import pytest

from app.vendorhub.db import session_scope
from app.vendorhub.models import AuditEvent
from app.vendorhub.modules.deals.models import Deal
from app.vendorhub.modules.deals.service import classify_price

from tests.conftest import make_deal


@pytest.mark.parametrize(
    "retail,payout,expected",
    [
        ("1199", "1050", "BELOW_COST"),
        ("1000", "1000", "RETAIL"),
        ("1000.00", "1000", "RETAIL"),
        ("500", "525.50", "ABOVE_RETAIL"),
        ("0", "0", "RETAIL"),
        ("10", "0", "BELOW_COST"),
    ],
)
def test_classify_price(retail, payout, expected):
    assert classify_price(Decimal(retail), Decimal(payout)) == expected


@pytest.mark.parametrize("status", ["DRAFT", "PAUSED", "CLOSED", "EXPIRED"])
def test_seller_gets_404_for_hidden_deal(app, seller_client, status):
    deal_id = make_deal(app, status=status)
    r = seller_client.get(f"/api/deals/{deal_id}")
    assert r.status_code == 404


def test_seller_404_for_missing_deal(seller_client):
    r = seller_client.get("/api/deals/999")
    assert r.status_code == 404
    assert r.json["error"] == "Deal not found"


@pytest.mark.parametrize("status", ["DRAFT", "ACTIVE", "EXPIRED"])
def test_admin_reads_deal_in_any_status(app, admin_client, status):
    deal_id = make_deal(app, status=status)
    r = admin_client.get(f"/api/deals/{deal_id}")
    assert r.status_code == 200
    assert r.json["status"] == status
    assert r.json["dealId"] == "D-00001"


def test_seller_list_shows_active_only(app, seller_client):
    make_deal(app, status="ACTIVE", title="Open")
    make_deal(app, status="DRAFT", title="Hidden")
    make_deal(app, status="EXPIRED", title="Old")
    r = seller_client.get("/api/deals")
    assert [d["title"] for d in r.json] == ["Open"]
    r = seller_client.get("/api/deals?includeExpired=true")
    assert sorted(d["title"] for d in r.json) == ["Old", "Open"]


def test_admin_creates_deal_with_price_type(app, admin_client):
    r = admin_client.post(
        "/api/admin/deals",
        json={"title": "Laptop", "retailPrice": 1199, "payout": "1050", "limitPerVendor": 5},
    )
    assert r.status_code == 201
    body = r.json
    assert body["priceType"] == "BELOW_COST"
    assert body["retailPrice"] == "1199.00"
    assert body["payout"] == "1050.00"
    assert body["status"] == "DRAFT"
    assert body["limitPerVendor"] == 5

    with session_scope(app) as s:
        actions = [e.action for e in s.query(AuditEvent).all()]
    assert "deal.create" in actions


def test_create_deal_validation(admin_client):
    r = admin_client.post("/api/admin/deals", json={"title": "", "payout": "abc"})
    assert r.status_code == 400
    assert "Title is required." in r.json["details"]
    assert "payout must be a number." in r.json["details"]


@pytest.mark.parametrize("price", ["NaN", "nan", "Infinity", "-Infinity", "100000000"])
def test_create_deal_rejects_non_finite_price(app, admin_client, seller_client, price):
    r = admin_client.post(
        "/api/admin/deals",
        json={"title": "Broken", "retailPrice": price, "payout": "10", "status": "ACTIVE"},
    )
    assert r.status_code == 400
    assert "retailPrice must be a number." in r.json["details"]

    with session_scope(app) as s:
        assert s.query(Deal).count() == 0
    assert seller_client.get("/api/deals").status_code == 200


def test_create_deal_rejects_json_nan_and_overflow(admin_client):
    for literal in ("NaN", "1e400"):
        r = admin_client.post(
            "/api/admin/deals",
            data='{"title": "Broken", "retailPrice": 10, "payout": ' + literal + "}",
            content_type="application/json",
        )
        assert r.status_code == 400
        assert "payout must be a number." in r.json["details"]


def test_update_recomputes_price_type(app, admin_client):
    deal_id = make_deal(app, retail="100", payout="90")
    r = admin_client.put("/api/admin/deals", json={"id": deal_id, "payout": "100"})
    assert r.status_code == 200
    assert r.json["priceType"] == "RETAIL"
    r = admin_client.put("/api/admin/deals", json={"id": deal_id, "retailPrice": "80"})
    assert r.json["priceType"] == "ABOVE_RETAIL"


def test_delete_blocked_by_open_commitment(app, admin_client, seller_client):
    deal_id = make_deal(app)
    r = seller_client.post("/api/commitments", json={"dealId": deal_id, "quantity": 1})
    assert r.status_code == 201
    commitment_id = r.json["id"]
    r = admin_client.delete(f"/api/admin/deals?id={deal_id}")
    assert r.status_code == 400

    r = seller_client.delete(f"/api/commitments?id={commitment_id}")
    assert r.status_code == 200
    r = admin_client.delete(f"/api/admin/deals?id={deal_id}")
    assert r.status_code == 200
    with session_scope(app) as s:
        assert s.get(Deal, deal_id) is None


def test_bot_endpoint_requires_key(client):
    r = client.get("/api/bot/active-deals")
    assert r.status_code == 401
    r = client.get("/api/bot/active-deals", headers={"X-Bot-API-Key": "wrong"})
    assert r.status_code == 401


def test_bot_lists_active_deals(app, client):
    make_deal(app, status="ACTIVE", retail="100", payout="120", title="Hot", link_amazon="https://amazon.example/x")
    make_deal(app, status="DRAFT", title="Hidden")
    r = client.get("/api/bot/active-deals", headers={"X-Bot-API-Key": "bot-key"})
    assert r.status_code == 200
    assert r.json["count"] == 1
    deal = r.json["deals"][0]
    assert deal["item"] == "Hot"
    assert deal["price_type"] == "above_retail"
    assert deal["retail_links"][0]["name"] == "Amazon"
