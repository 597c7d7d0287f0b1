import pytest

from app.vendorhub.db import session_scope
from app.vendorhub.modules.warehouses.service import seed_default_warehouses

from tests.conftest import login, make_deal, make_profile


def test_create_commitment_on_active_deal(app, seller_client):
    deal_id = make_deal(app, limit_per_vendor=3)
    r = seller_client.post("/api/commitments", json={"dealId": deal_id, "quantity": 2})
    assert r.status_code == 201
    body = r.json
    assert body["commitmentId"] == "C-00001"
    assert body["status"] == "PENDING"
    assert body["warehouse"] == "TBD"
    assert body["deliveryMethod"] == "SHIP"
    assert body["deal"]["payout"] == "90.00"


def test_commitment_rejected_for_inactive_deal(app, seller_client):
    deal_id = make_deal(app, status="DRAFT")
    r = seller_client.post("/api/commitments", json={"dealId": deal_id, "quantity": 1})
    assert r.status_code == 400
    assert r.json["error"] == "Deal is not active"


def test_one_open_commitment_per_deal(app, seller_client):
    deal_id = make_deal(app)
    assert seller_client.post("/api/commitments", json={"dealId": deal_id, "quantity": 1}).status_code == 201
    r = seller_client.post("/api/commitments", json={"dealId": deal_id, "quantity": 1})
    assert r.status_code == 400
    assert "already have an active commitment" in r.json["error"]


def test_quantity_over_vendor_limit(app, seller_client):
    deal_id = make_deal(app, limit_per_vendor=2)
    r = seller_client.post("/api/commitments", json={"dealId": deal_id, "quantity": 3})
    assert r.status_code == 400
    assert "limit: 2/vendor" in r.json["error"]


def test_validation_errors(seller_client):
    r = seller_client.post("/api/commitments", json={"quantity": 0})
    assert r.status_code == 400
    assert "dealId is required." in r.json["details"]
    assert "quantity must be at least 1." in r.json["details"]


def test_drop_off_update_checks_warehouse(app, seller_client):
    with session_scope(app) as s:
        seed_default_warehouses(s)
    deal_id = make_deal(app)
    cid = seller_client.post("/api/commitments", json={"dealId": deal_id, "quantity": 1}).json["id"]

    r = seller_client.put("/api/commitments", json={"id": cid, "deliveryMethod": "DROP_OFF", "warehouse": "DE"})
    assert r.status_code == 400
    assert "does not accept drop-offs" in r.json["error"]

    r = seller_client.put("/api/commitments", json={"id": cid, "deliveryMethod": "DROP_OFF", "warehouse": "NJ"})
    assert r.status_code == 200
    assert r.json["status"] == "DROP_OFF_PENDING"
    assert r.json["warehouse"] == "NJ"


def test_other_sellers_commitment_is_hidden(app, seller_client):
    deal_id = make_deal(app)
    cid = seller_client.post("/api/commitments", json={"dealId": deal_id, "quantity": 1}).json["id"]

    other = make_profile(app)
    other_client = app.test_client()
    login(other_client, app, other)
    assert other_client.put("/api/commitments", json={"id": cid, "quantity": 2}).status_code == 404
    assert other_client.get(f"/api/commitments/{cid}").status_code == 403
    assert other_client.get("/api/commitments").json == []


def test_seller_marks_shipped(app, seller_client):
    deal_id = make_deal(app)
    cid = seller_client.post("/api/commitments", json={"dealId": deal_id, "quantity": 1}).json["id"]
    r = seller_client.patch(f"/api/commitments/{cid}", json={"status": "FULFILLED"})
    assert r.status_code == 400
    r = seller_client.patch(f"/api/commitments/{cid}", json={"status": "IN_TRANSIT"})
    assert r.status_code == 200
    assert r.json["status"] == "IN_TRANSIT"
    assert r.json["shippedAt"] is not None


def test_cancelled_commitments_hidden_from_list(app, seller_client):
    deal_id = make_deal(app)
    cid = seller_client.post("/api/commitments", json={"dealId": deal_id, "quantity": 1}).json["id"]
    assert seller_client.delete(f"/api/commitments?id={cid}").status_code == 200
    assert seller_client.get("/api/commitments").json == []
    assert len(seller_client.get("/api/commitments?status=CANCELLED").json) == 1


def test_admin_fulfil_creates_invoice(app, admin_client, seller_client):
    deal_id = make_deal(app, payout="90.00")
    cid = seller_client.post("/api/commitments", json={"dealId": deal_id, "quantity": 3}).json["id"]

    r = admin_client.put(
        "/api/admin/commitments",
        json={"id": cid, "status": "FULFILLED", "invoiceUrl": "https://books.example.com/inv/1"},
    )
    assert r.status_code == 200
    assert r.json["status"] == "FULFILLED"
    assert r.json["fulfilledAt"] is not None
    assert r.json["invoice"]["amount"] == "270.00"
    assert r.json["user"]["vendorId"]

    invoices = seller_client.get("/api/invoices").json
    assert len(invoices) == 1
    assert invoices[0]["commitment"]["deal"]["title"] == "Deal 1"

    r = admin_client.put(
        "/api/admin/commitments",
        json={"id": cid, "status": "FULFILLED", "invoiceUrl": "https://books.example.com/inv/2"},
    )
    assert r.status_code == 400


def test_quantity_update_counts_fulfilled_units(app, seller_client, admin_client):
    deal_id = make_deal(app, limit_per_vendor=10)
    first = seller_client.post("/api/commitments", json={"dealId": deal_id, "quantity": 7}).json["id"]
    assert admin_client.put("/api/admin/commitments", json={"id": first, "status": "FULFILLED"}).status_code == 200

    cid = seller_client.post("/api/commitments", json={"dealId": deal_id, "quantity": 2}).json["id"]
    r = seller_client.put("/api/commitments", json={"id": cid, "quantity": 10})
    assert r.status_code == 400
    assert "You can only commit 3 more units" in r.json["error"]

    r = seller_client.put("/api/commitments", json={"id": cid, "quantity": 3})
    assert r.status_code == 200
    assert r.json["quantity"] == 3


@pytest.mark.parametrize("amount", ["nan", "NaN", "Infinity", "1e12"])
def test_invoice_amount_must_be_finite(app, seller_client, admin_client, amount):
    deal_id = make_deal(app)
    cid = seller_client.post("/api/commitments", json={"dealId": deal_id, "quantity": 1}).json["id"]
    r = admin_client.put(
        "/api/admin/commitments",
        json={"id": cid, "status": "FULFILLED", "invoiceUrl": "https://books.example.com/inv/3", "invoiceAmount": amount},
    )
    assert r.status_code == 400
    assert "invoiceAmount must be a number." in r.json["details"]
    assert admin_client.get("/api/admin/invoices").json == []
