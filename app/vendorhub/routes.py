from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.vendorhub.db import db_session

bp = Blueprint("routes", __name__)


@bp.get("/health")
def health():
    """Readiness: the app answers and the database accepts a query."""
    try:
        db_session().execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        current_app.logger.error("Health check: database unavailable: %s", e)
        return jsonify({"ok": False, "database": "unavailable"}), 503
    return jsonify({"ok": True, "database": "ok"})


@bp.get("/healthz")
def healthz():
    """Liveness probe. No DB access."""
    return "ok", 200
