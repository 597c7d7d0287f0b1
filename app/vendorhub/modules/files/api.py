from __future__ import annotations

import io

from flask import Blueprint, current_app, g, send_file

from app.vendorhub.auth import current_session
from app.vendorhub.constants import DEFAULT_CONTENT_TYPE, FILE_CONTENT_TYPES
from app.vendorhub.errors import InvalidInput, NotFound
from app.vendorhub.storage import ObjectNotFound, get_storage

bp = Blueprint("files", __name__)


def content_type_for(filename: str) -> str:
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return FILE_CONTENT_TYPES.get(ext, DEFAULT_CONTENT_TYPE)


@bp.get("/files/<bucket>/<path:object_path>")
def file_relay(bucket: str, object_path: str):
    """
    Relay a stored object to any signed-in user.
    """
    current_session()
    segments = [p for p in object_path.split("/") if p]
    if not bucket or not segments:
        raise InvalidInput("Invalid file path")
    filename = segments[-1]
    try:
        fh = get_storage().open(bucket, "/".join(segments))
    except ObjectNotFound as e:
        current_app.logger.info("File not found (request_id=%s): %s", getattr(g, "request_id", None), e)
        raise NotFound("File not found") from e
    try:
        data = fh.read()
    finally:
        fh.close()

    resp = send_file(
        io.BytesIO(data),
        mimetype=content_type_for(filename),
        as_attachment=False,
        download_name=filename,
    )
    resp.headers["Cache-Control"] = "private, max-age=3600"
    return resp
