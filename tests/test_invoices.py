from tests.conftest import login, make_deal, make_profile


def _fulfilled_invoice(app, seller_client, admin_client, *, title: str | None = None) -> int:
    deal_id = make_deal(app, payout="12.50", title=title or "Monitor")
    cid = seller_client.post("/api/commitments", json={"dealId": deal_id, "quantity": 2}).json["id"]
    r = admin_client.put(
        "/api/admin/commitments",
        json={"id": cid, "status": "FULFILLED", "invoiceUrl": "https://books.example.com/inv/9", "invoiceAmount": "30"},
    )
    assert r.status_code == 200
    return r.json["invoice"]["id"]


def test_admin_marks_invoice_paid(app, seller_client, admin_client):
    invoice_id = _fulfilled_invoice(app, seller_client, admin_client)

    rows = admin_client.get("/api/admin/invoices?status=PENDING").json
    assert [r["id"] for r in rows] == [invoice_id]
    assert rows[0]["amount"] == "30.00"
    assert rows[0]["user"]["email"]

    r = admin_client.put("/api/admin/invoices", json={"id": invoice_id, "status": "PAID", "checkNumber": "1042"})
    assert r.status_code == 200
    assert r.json["status"] == "PAID"
    assert r.json["paidAt"] is not None
    assert r.json["checkNumber"] == "1042"

    assert admin_client.get("/api/admin/invoices?status=PENDING").json == []
    assert seller_client.get("/api/invoices").json[0]["status"] == "PAID"


def test_invalid_invoice_status(app, seller_client, admin_client):
    invoice_id = _fulfilled_invoice(app, seller_client, admin_client)
    r = admin_client.put("/api/admin/invoices", json={"id": invoice_id, "status": "VOID"})
    assert r.status_code == 400


def test_seller_cannot_manage_invoices(seller_client):
    assert seller_client.get("/api/admin/invoices").status_code == 403
    assert seller_client.put("/api/admin/invoices", json={"id": 1, "status": "PAID"}).status_code == 403


def test_seller_sees_own_invoices_newest_first(app, seller_client, admin_client):
    first = _fulfilled_invoice(app, seller_client, admin_client, title="Headphones")
    second = _fulfilled_invoice(app, seller_client, admin_client, title="Tablet")

    other_client = app.test_client()
    login(other_client, app, make_profile(app))
    other = _fulfilled_invoice(app, other_client, admin_client, title="Camera")

    rows = seller_client.get("/api/invoices").json
    assert [r["id"] for r in rows] == [second, first]
    assert rows[0]["createdAt"] >= rows[1]["createdAt"]
    assert [r["commitment"]["deal"]["title"] for r in rows] == ["Tablet", "Headphones"]

    assert [r["id"] for r in other_client.get("/api/invoices").json] == [other]
