from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

from werkzeug.utils import secure_filename

from app.vendorhub.audit import record_event
from app.vendorhub.constants import FILE_CONTENT_TYPES, LABEL_ADMIN_STATUSES, LABEL_PENDING, LABEL_PROCESS_STATUSES
from app.vendorhub.errors import InvalidInput
from app.vendorhub.utils import clean_str, iso

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.vendorhub.models import Profile
    from app.vendorhub.modules.commitments.models import Commitment
    from app.vendorhub.modules.labels.models import LabelRequest
    from app.vendorhub.storage import Storage


NOTES_MAX = 500


def is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def validate_process_payload(payload: dict) -> list[str]:
    """Body of PATCH /api/labels/<id>: {status, labelUrl?, notes?}."""
    errors: list[str] = []
    status = clean_str(payload.get("status"))
    if not status:
        errors.append("status is required.")
    elif status not in LABEL_PROCESS_STATUSES:
        errors.append(f"Invalid status. Must be one of: {', '.join(LABEL_PROCESS_STATUSES)}")
    label_url = payload.get("labelUrl")
    if label_url is not None and not (isinstance(label_url, str) and is_http_url(label_url.strip())):
        errors.append("labelUrl must be a valid URL.")
    notes = payload.get("notes")
    if notes is not None and (not isinstance(notes, str) or len(notes) > NOTES_MAX):
        errors.append(f"notes must be a string of at most {NOTES_MAX} characters.")
    return errors


def validate_admin_process_payload(payload: dict) -> list[str]:
    """Body of PUT /api/admin/labels: {id, status, labelUrl?, labelFiles?, notes?}."""
    errors: list[str] = []
    status = clean_str(payload.get("status"))
    if status not in LABEL_ADMIN_STATUSES:
        errors.append("Status must be APPROVED or REJECTED")
    label_url = clean_str(payload.get("labelUrl"))
    if label_url and not is_http_url(label_url):
        errors.append("labelUrl must be a valid URL.")
    files = payload.get("labelFiles")
    if files is not None and not (isinstance(files, list) and all(isinstance(f, str) for f in files)):
        errors.append("labelFiles must be a list of storage paths.")
    return errors


def request_label(s: "Session", c: "Commitment", user: "Profile") -> "LabelRequest":
    from app.vendorhub.modules.labels.models import LabelRequest

    if c.label_request is not None:
        raise InvalidInput("Label already requested for this commitment")
    if c.status != "PENDING":
        raise InvalidInput("Can only request labels for pending commitments")
    if c.delivery_method != "SHIP":
        raise InvalidInput("Labels only available for shipping, not drop-off")

    now = datetime.utcnow()
    lr = LabelRequest(
        commitment_id=c.id,
        user_id=user.id,
        deal_id=c.deal_id,
        status=LABEL_PENDING,
        created_at=now,
        updated_at=now,
    )
    s.add(lr)
    c.label_request = lr
    s.flush()
    record_event(
        s,
        actor=user,
        action="label.request",
        entity_type="LabelRequest",
        entity_id=str(lr.id),
        metadata={"commitment_id": c.display_id},
    )
    return lr


def cancel_label_request(s: "Session", lr: "LabelRequest", user: "Profile") -> None:
    if lr.status != LABEL_PENDING:
        raise InvalidInput("Can only cancel pending requests")
    record_event(
        s,
        actor=user,
        action="label.cancel",
        entity_type="LabelRequest",
        entity_id=str(lr.id),
        metadata={"commitment_id": lr.commitment_id},
    )
    lr.commitment.label_request = None
    s.delete(lr)


def process_label_request(
    s: "Session",
    lr: "LabelRequest",
    user: "Profile",
    *,
    status: str,
    label_url: str | None = None,
    notes: str | None = None,
    now: datetime | None = None,
) -> "LabelRequest":
    """
    Admin decision on a label request. processed_at/processed_by_id are
    stamped together on every call, so a repeated call moves the timestamp.
    """
    if status == LABEL_PENDING or status not in LABEL_PROCESS_STATUSES:
        raise InvalidInput(f"Invalid status. Must be one of: {', '.join(LABEL_PROCESS_STATUSES)}")
    old_status = lr.status
    now = now or datetime.utcnow()
    lr.status = status
    if label_url:
        lr.label_url = label_url
    if notes:
        lr.notes = notes
    lr.processed_at = now
    lr.processed_by_id = user.id
    lr.updated_at = now

    record_event(
        s,
        actor=user,
        action="label.process",
        entity_type="LabelRequest",
        entity_id=str(lr.id),
        metadata={"status": {"old": old_status, "new": status}, "label_url": bool(label_url)},
    )
    return lr


def admin_process_label_request(s: "Session", lr: "LabelRequest", payload: dict, user: "Profile") -> "LabelRequest":
    """Batch-screen form: APPROVED needs a labelUrl or at least one label file."""
    status = clean_str(payload.get("status")) or ""
    label_url = clean_str(payload.get("labelUrl"))
    files = payload.get("labelFiles") or []
    existing_files = list(lr.label_files or [])
    if status == "APPROVED" and not (label_url or files or existing_files):
        raise InvalidInput("At least one label file is required for approval")

    process_label_request(s, lr, user, status=status)
    if status == "APPROVED":
        lr.label_url = label_url
        if files:
            lr.label_files = list(dict.fromkeys(existing_files + list(files)))
    else:
        lr.label_url = None
    lr.notes = clean_str(payload.get("notes"))
    return lr


def allowed_label_file(filename: str) -> bool:
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return ext in FILE_CONTENT_TYPES


def build_label_storage_key(request_id: int, filename: str, upload_date: date | None = None) -> str:
    """Deterministic object key inside the labels bucket."""
    if upload_date is None:
        upload_date = date.today()
    safe_filename = secure_filename(filename) or "label.pdf"
    return f"{request_id}/{upload_date.isoformat()}/{safe_filename}"


def upload_label_file(
    s: "Session",
    lr: "LabelRequest",
    storage: "Storage",
    bucket: str,
    file_bytes: bytes,
    filename: str,
    content_type: str,
    user: "Profile",
) -> str:
    """Store a label file and append its "<bucket>/<key>" path to label_files."""
    key = build_label_storage_key(lr.id, filename)
    storage.put_bytes(bucket, key, file_bytes, content_type=content_type)
    path = f"{bucket}/{key}"
    files = list(lr.label_files or [])
    if path not in files:
        files.append(path)
    # reassign so the JSON column is marked dirty
    lr.label_files = files
    lr.updated_at = datetime.utcnow()

    record_event(
        s,
        actor=user,
        action="label.file_upload",
        entity_type="LabelRequest",
        entity_id=str(lr.id),
        metadata={"path": path, "size_bytes": len(file_bytes), "content_type": content_type},
    )
    return path


# ---------- serializers ----------
def label_request_to_dict(lr: "LabelRequest") -> dict[str, Any]:
    return {
        "id": lr.id,
        "commitmentId": lr.commitment_id,
        "userId": lr.user_id,
        "dealId": lr.deal_id,
        "status": lr.status,
        "labelUrl": lr.label_url,
        "labelFiles": list(lr.label_files or []),
        "notes": lr.notes,
        "processedAt": iso(lr.processed_at),
        "processedById": lr.processed_by_id,
        "createdAt": iso(lr.created_at),
        "updatedAt": iso(lr.updated_at),
    }


def label_request_detail(lr: "LabelRequest", *, include_user: bool = False) -> dict[str, Any]:
    c = lr.commitment
    d = label_request_to_dict(lr)
    d["commitment"] = {
        "id": c.id,
        "commitmentId": c.display_id,
        "quantity": c.quantity,
        "warehouse": c.warehouse,
        "status": c.status,
    }
    d["deal"] = {"id": lr.deal.id, "title": lr.deal.title, "freeLabelMin": lr.deal.free_label_min}
    if include_user:
        u = lr.user
        d["user"] = {
            "id": u.id,
            "firstName": u.first_name,
            "lastName": u.last_name,
            "email": u.email,
            "vendorId": u.vendor_id,
        }
    return d
