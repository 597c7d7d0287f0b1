from tests.conftest import make_deal


def _commitment(app, seller_client) -> int:
    deal_id = make_deal(app, title="Gaming Console")
    return seller_client.post("/api/commitments", json={"dealId": deal_id, "quantity": 1}).json["id"]


def test_submit_tracking_detects_carrier(app, seller_client):
    cid = _commitment(app, seller_client)
    r = seller_client.post("/api/tracking", json={"commitmentId": cid, "trackingNumber": "1z999aa1 0123 4567 84"})
    assert r.status_code == 201
    assert r.json["carrier"] == "UPS"
    assert r.json["trackingNumber"] == "1Z999AA10123456784"
    assert r.json["commitment"]["status"] == "IN_TRANSIT"

    c = seller_client.get(f"/api/commitments/{cid}").json
    assert c["status"] == "IN_TRANSIT"
    assert c["shippedAt"] is not None
    assert len(c["tracking"]) == 1


def test_undetectable_number_needs_carrier(app, seller_client):
    cid = _commitment(app, seller_client)
    r = seller_client.post("/api/tracking", json={"commitmentId": cid, "trackingNumber": "ABCDEFGHIJ"})
    assert r.status_code == 400
    r = seller_client.post(
        "/api/tracking", json={"commitmentId": cid, "trackingNumber": "ABCDEFGHIJ", "carrier": "ups"}
    )
    assert r.status_code == 201
    assert r.json["carrier"] == "UPS"


def test_unknown_carrier_rejected(app, seller_client):
    cid = _commitment(app, seller_client)
    r = seller_client.post(
        "/api/tracking", json={"commitmentId": cid, "trackingNumber": "123456789012", "carrier": "PIGEON"}
    )
    assert r.status_code == 400


def test_delete_tracking_reverts_commitment(app, seller_client):
    cid = _commitment(app, seller_client)
    tid = seller_client.post("/api/tracking", json={"commitmentId": cid, "trackingNumber": "123456789012"}).json["id"]
    assert seller_client.delete(f"/api/tracking/{tid}").status_code == 200
    c = seller_client.get(f"/api/commitments/{cid}").json
    assert c["status"] == "PENDING"
    assert c["shippedAt"] is None
    assert c["tracking"] == []
    assert seller_client.get("/api/tracking").json == []


def test_admin_search_and_update(app, seller_client, admin_client):
    cid = _commitment(app, seller_client)
    tid = seller_client.post("/api/tracking", json={"commitmentId": cid, "trackingNumber": "123456789012"}).json["id"]

    rows = admin_client.get("/api/admin/tracking?search=console&carrier=fedex").json
    assert [r["id"] for r in rows] == [tid]
    assert rows[0]["user"]["vendorId"]
    assert admin_client.get("/api/admin/tracking?carrier=UPS").json == []
    assert len(admin_client.get("/api/admin/tracking?carrier=ALL").json) == 1

    r = admin_client.patch(
        "/api/admin/tracking",
        json={"trackingId": tid, "lastStatus": "Delivered", "commitmentStatus": "DELIVERED"},
    )
    assert r.status_code == 200
    assert r.json["lastStatus"] == "Delivered"
    assert r.json["commitment"]["status"] == "DELIVERED"


def test_seller_cannot_use_admin_tracking(seller_client):
    assert seller_client.get("/api/admin/tracking").status_code == 403
