from app.vendorhub.db import session_scope
from app.vendorhub.modules.warehouses.service import seed_default_warehouses


def test_seed_is_idempotent(app):
    with session_scope(app) as s:
        assert seed_default_warehouses(s) == 5
    with session_scope(app) as s:
        assert seed_default_warehouses(s) == 0


def test_list_active_warehouses(app, seller_client):
    with session_scope(app) as s:
        seed_default_warehouses(s)
    rows = seller_client.get("/api/warehouses").json
    assert [w["code"] for w in rows] == ["CT", "DE", "MA", "NJ", "NY"]
    de = next(w for w in rows if w["code"] == "DE")
    assert de["allowDropOff"] is False
    assert de["allowShipping"] is True


def test_admin_create_and_update(app, admin_client):
    r = admin_client.post("/api/warehouses", json={"code": "pa", "name": "Pennsylvania"})
    assert r.status_code == 201
    assert r.json["code"] == "PA"
    wid = r.json["id"]

    assert admin_client.post("/api/warehouses", json={"code": "PA", "name": "Again"}).status_code == 400

    r = admin_client.put("/api/warehouses", json={"id": wid, "isActive": False})
    assert r.status_code == 200
    assert r.json["isActive"] is False
    assert admin_client.get("/api/warehouses").json == []


def test_create_validation(admin_client):
    r = admin_client.post("/api/warehouses", json={"allowDropOff": "yes"})
    assert r.status_code == 400
    assert r.json["error"] == "code and name required"


def test_seller_cannot_manage(seller_client):
    assert seller_client.post("/api/warehouses", json={"code": "PA", "name": "Pennsylvania"}).status_code == 403
