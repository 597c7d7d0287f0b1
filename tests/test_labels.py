import io
from datetime import datetime

import pytest

from app.vendorhub.db import session_scope
from app.vendorhub.errors import InvalidInput
from app.vendorhub.models import Profile
from app.vendorhub.modules.labels.models import LabelRequest
from app.vendorhub.modules.labels.service import build_label_storage_key, process_label_request

from tests.conftest import make_deal


def _request_label(app, seller_client) -> int:
    deal_id = make_deal(app)
    cid = seller_client.post("/api/commitments", json={"dealId": deal_id, "quantity": 1}).json["id"]
    r = seller_client.post("/api/labels", json={"commitmentId": cid})
    assert r.status_code == 201
    assert r.json["status"] == "PENDING"
    return r.json["id"]


def test_request_twice_rejected(app, seller_client):
    label_id = _request_label(app, seller_client)
    with session_scope(app) as s:
        cid = s.get(LabelRequest, label_id).commitment_id
    r = seller_client.post("/api/labels", json={"commitmentId": cid})
    assert r.status_code == 400
    assert r.json["error"] == "Label already requested for this commitment"


def test_cancel_pending_request(app, seller_client):
    label_id = _request_label(app, seller_client)
    assert seller_client.delete(f"/api/labels?id={label_id}").status_code == 200
    assert seller_client.get("/api/labels").json == []


def test_seller_cannot_process(app, seller_client):
    label_id = _request_label(app, seller_client)
    r = seller_client.patch(f"/api/labels/{label_id}", json={"status": "APPROVED"})
    assert r.status_code == 403
    with session_scope(app) as s:
        lr = s.get(LabelRequest, label_id)
        assert lr.status == "PENDING"
        assert lr.processed_at is None
        assert lr.processed_by_id is None


def test_admin_process_stamps_processor(app, seller_client, admin_client, admin):
    label_id = _request_label(app, seller_client)
    r = admin_client.patch(
        f"/api/labels/{label_id}",
        json={"status": "APPROVED", "labelUrl": "https://labels.example.com/1.pdf"},
    )
    assert r.status_code == 200
    assert r.json["status"] == "APPROVED"
    assert r.json["processedAt"] is not None
    assert r.json["processedById"] == admin
    assert r.json["labelUrl"] == "https://labels.example.com/1.pdf"


def test_pending_is_not_a_target(app, seller_client, admin_client):
    label_id = _request_label(app, seller_client)
    r = admin_client.patch(f"/api/labels/{label_id}", json={"status": "PENDING"})
    assert r.status_code == 400
    r = admin_client.patch(f"/api/labels/{label_id}", json={"status": "APPROVED", "labelUrl": "not a url"})
    assert r.status_code == 400


def test_repeat_processing_moves_timestamp(app, seller_client, admin):
    label_id = _request_label(app, seller_client)
    first = datetime(2024, 1, 1, 12, 0, 0)
    second = datetime(2024, 1, 2, 12, 0, 0)
    with session_scope(app) as s:
        lr = s.get(LabelRequest, label_id)
        user = s.get(Profile, admin)
        process_label_request(s, lr, user, status="APPROVED", now=first)
        assert lr.processed_at == first
        process_label_request(s, lr, user, status="FULFILLED", now=second)
        assert lr.processed_at == second
        assert lr.status == "FULFILLED"
        with pytest.raises(InvalidInput):
            process_label_request(s, lr, user, status="PENDING")


def test_admin_batch_approval_needs_label(app, seller_client, admin_client):
    label_id = _request_label(app, seller_client)
    r = admin_client.put("/api/admin/labels", json={"id": label_id, "status": "APPROVED"})
    assert r.status_code == 400
    assert r.json["error"] == "At least one label file is required for approval"

    r = admin_client.put("/api/admin/labels", json={"id": label_id, "status": "REJECTED", "notes": "Over limit"})
    assert r.status_code == 200
    assert r.json["status"] == "REJECTED"
    assert r.json["notes"] == "Over limit"
    assert r.json["user"]["email"]


def test_admin_upload_label_file(app, seller_client, admin_client):
    label_id = _request_label(app, seller_client)
    r = admin_client.post(
        f"/api/admin/labels/{label_id}/files",
        data={"file": (io.BytesIO(b"%PDF-1.4 label"), "label.pdf")},
        content_type="multipart/form-data",
    )
    assert r.status_code == 201
    path = r.json["path"]
    assert path.startswith("labels/")
    assert path.endswith("/label.pdf")
    assert r.json["labelRequest"]["labelFiles"] == [path]

    r = admin_client.put("/api/admin/labels", json={"id": label_id, "status": "APPROVED"})
    assert r.status_code == 200

    r = admin_client.get(f"/api/files/{path}")
    assert r.status_code == 200
    assert r.data == b"%PDF-1.4 label"


def test_upload_rejects_other_types(app, seller_client, admin_client):
    label_id = _request_label(app, seller_client)
    r = admin_client.post(
        f"/api/admin/labels/{label_id}/files",
        data={"file": (io.BytesIO(b"MZ"), "label.exe")},
        content_type="multipart/form-data",
    )
    assert r.status_code == 400


def test_storage_key_is_deterministic():
    from datetime import date

    assert build_label_storage_key(7, "my label.pdf", date(2024, 3, 1)) == "7/2024-03-01/my_label.pdf"
