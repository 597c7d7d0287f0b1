def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True


def test_healthz_plain(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.data == b"ok"


def test_api_requires_session(client):
    for path in ("/api/deals", "/api/profile", "/api/commitments", "/api/invoices", "/api/labels"):
        r = client.get(path)
        assert r.status_code == 401, path
        assert r.json["error"]


def test_unknown_route_is_json(client):
    r = client.get("/api/does-not-exist")
    assert r.status_code == 404
    assert "error" in r.json


def test_request_body_must_be_json(admin_client):
    r = admin_client.post("/api/admin/deals", data="not json", content_type="text/plain")
    assert r.status_code == 400
    assert r.json["error"] == "Request body must be JSON"


def test_health_reports_database(client):
    assert client.get("/health").json["database"] == "ok"
