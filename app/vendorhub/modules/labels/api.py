from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from app.vendorhub.auth import current_profile
from app.vendorhub.constants import FILE_CONTENT_TYPES
from app.vendorhub.db import db_session
from app.vendorhub.errors import InvalidInput, NotFound, raise_for_errors
from app.vendorhub.modules.commitments.models import Commitment
from app.vendorhub.modules.labels.models import LabelRequest
from app.vendorhub.modules.labels.service import (
    admin_process_label_request,
    allowed_label_file,
    cancel_label_request,
    label_request_detail,
    process_label_request,
    request_label,
    upload_label_file,
    validate_admin_process_payload,
    validate_process_payload,
)
from app.vendorhub.rbac import LABEL_OWN, LABEL_PROCESS, require_action
from app.vendorhub.storage import get_storage
from app.vendorhub.utils import clean_str, json_body, require_id

bp = Blueprint("labels", __name__)


@bp.get("/labels")
@require_action(LABEL_OWN)
def labels_list():
    s = db_session()
    q = s.query(LabelRequest).filter(LabelRequest.user_id == current_profile().id)
    status = (request.args.get("status") or "").strip()
    if status:
        q = q.filter(LabelRequest.status == status)
    rows = q.order_by(LabelRequest.created_at.desc(), LabelRequest.id.desc()).all()
    return jsonify([label_request_detail(lr) for lr in rows])


@bp.post("/labels")
@require_action(LABEL_OWN)
def labels_create():
    payload = json_body()
    commitment_id = require_id(payload.get("commitmentId"), "commitmentId")
    s = db_session()
    profile = current_profile()
    c = s.get(Commitment, commitment_id)
    if not c or c.user_id != profile.id:
        raise NotFound("Commitment not found")
    lr = request_label(s, c, profile)
    s.commit()
    return jsonify(label_request_detail(lr)), 201


@bp.delete("/labels")
@require_action(LABEL_OWN)
def labels_cancel():
    label_id = require_id(request.args.get("id"), "id")
    s = db_session()
    profile = current_profile()
    lr = s.get(LabelRequest, label_id)
    if not lr or lr.user_id != profile.id:
        raise NotFound("Label request not found")
    cancel_label_request(s, lr, profile)
    s.commit()
    return jsonify({"success": True})


@bp.patch("/labels/<int:label_id>")
@require_action(LABEL_PROCESS)
def labels_process(label_id: int):
    payload = json_body()
    raise_for_errors(validate_process_payload(payload))
    s = db_session()
    lr = s.get(LabelRequest, label_id)
    if not lr:
        raise NotFound("Label request not found")
    lr = process_label_request(
        s,
        lr,
        current_profile(),
        status=clean_str(payload.get("status")) or "",
        label_url=clean_str(payload.get("labelUrl")),
        notes=clean_str(payload.get("notes")),
    )
    s.commit()
    return jsonify(label_request_detail(lr))


# ---------- admin ----------
@bp.get("/admin/labels")
@require_action(LABEL_PROCESS)
def admin_labels_list():
    s = db_session()
    q = s.query(LabelRequest)
    status = (request.args.get("status") or "").strip()
    if status:
        q = q.filter(LabelRequest.status == status)
    rows = q.order_by(LabelRequest.created_at.desc(), LabelRequest.id.desc()).all()
    return jsonify([label_request_detail(lr, include_user=True) for lr in rows])


@bp.put("/admin/labels")
@require_action(LABEL_PROCESS)
def admin_labels_process():
    payload = json_body()
    label_id = require_id(payload.get("id"), "id")
    raise_for_errors(validate_admin_process_payload(payload))
    s = db_session()
    lr = s.get(LabelRequest, label_id)
    if not lr:
        raise NotFound("Label request not found")
    lr = admin_process_label_request(s, lr, payload, current_profile())
    s.commit()
    return jsonify(label_request_detail(lr, include_user=True))


@bp.post("/admin/labels/<int:label_id>/files")
@require_action(LABEL_PROCESS)
def admin_labels_upload(label_id: int):
    s = db_session()
    lr = s.get(LabelRequest, label_id)
    if not lr:
        raise NotFound("Label request not found")

    f = request.files.get("file")
    if not f or not f.filename:
        raise InvalidInput("No file provided")
    if not allowed_label_file(f.filename):
        raise InvalidInput("Only PDF, PNG and JPG label files are accepted")
    file_bytes = f.read()
    max_bytes = int(current_app.config.get("MAX_LABEL_BYTES") or 0)
    if max_bytes and len(file_bytes) > max_bytes:
        raise InvalidInput(f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB.")
    if not file_bytes:
        raise InvalidInput("File is empty")

    ext = f.filename.rsplit(".", 1)[-1].lower()
    path = upload_label_file(
        s,
        lr,
        get_storage(),
        current_app.config.get("LABELS_BUCKET") or "labels",
        file_bytes,
        f.filename,
        FILE_CONTENT_TYPES[ext],
        current_profile(),
    )
    s.commit()
    current_app.logger.info("Label file uploaded for request %s: %s", lr.id, path)
    return jsonify({"path": path, "labelRequest": label_request_detail(lr, include_user=True)}), 201
