import logging

from flask import Flask, g, jsonify
from dotenv import load_dotenv
from werkzeug.exceptions import HTTPException

from app.vendorhub.auth import apply_cookie_mutations, assign_request_id, bp as auth_bp
from app.vendorhub.auth_client import auth_provider_from_config
from app.vendorhub.config import load_config
from app.vendorhub.db import init_db, teardown_db_session
from app.vendorhub.errors import ApiError
from app.vendorhub.modules.commitments.api import bp as commitments_bp
from app.vendorhub.modules.deals.api import bp as deals_bp
from app.vendorhub.modules.files.api import bp as files_bp
from app.vendorhub.modules.invoices.api import bp as invoices_bp
from app.vendorhub.modules.labels.api import bp as labels_bp
from app.vendorhub.modules.profiles.api import bp as profiles_bp
from app.vendorhub.modules.tracking.api import bp as tracking_bp
from app.vendorhub.modules.warehouses.api import bp as warehouses_bp
from app.vendorhub.routes import bp as routes_bp
from app.vendorhub.storage import storage_from_config

logger = logging.getLogger(__name__)

API_BLUEPRINTS = (
    deals_bp,
    commitments_bp,
    invoices_bp,
    labels_bp,
    tracking_bp,
    warehouses_bp,
    profiles_bp,
    files_bp,
)


def _check_config(app: Flask) -> None:
    """Fail fast on unsafe production settings; log integrations that will not work."""
    env = (app.config.get("ENV") or "").strip().lower()
    db_url = str(app.config.get("DATABASE_URL") or "").strip()
    if env in ("prod", "production"):
        if not db_url:
            raise RuntimeError("DATABASE_URL is required in production.")
        if db_url.startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if str(app.config.get("SECRET_KEY") or "") in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    if not app.config.get("SUPABASE_URL"):
        app.logger.error("AUTH CONFIG ERROR: SUPABASE_URL is not set; every session will be rejected")
    if app.config.get("STORAGE_BACKEND") == "s3":
        missing = [
            key
            for key in ("S3_ENDPOINT", "S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY", "LABELS_BUCKET")
            if not app.config.get(key)
        ]
        if missing:
            app.logger.error("STORAGE CONFIG ERROR: Missing required S3 env vars: %s", ", ".join(missing))
    if not app.config.get("DISCORD_BOT_API_KEY"):
        app.logger.warning("DISCORD_BOT_API_KEY is not set; /api/bot endpoints will refuse every caller")


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ApiError)
    def _err_api(e: ApiError):  # type: ignore[no-redef]
        if e.status_code >= 500:
            app.logger.error("%s (request_id=%s): %s", type(e).__name__, getattr(g, "request_id", None), e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def _err_http(e: HTTPException):  # type: ignore[no-redef]
        return jsonify({"error": e.description or e.name}), e.code or 500

    @app.errorhandler(Exception)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return jsonify({"error": "Internal server error"}), 500


def create_app(overrides: dict | None = None) -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())
    if overrides:
        app.config.update(overrides)

    _check_config(app)
    init_db(app)

    # tests and scripts may install their own before the first request
    app.extensions.setdefault("auth_provider", auth_provider_from_config(app.config))
    app.extensions.setdefault("storage", storage_from_config(app.config))

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    for bp in API_BLUEPRINTS:
        app.register_blueprint(bp, url_prefix="/api")

    app.before_request(assign_request_id)
    app.after_request(apply_cookie_mutations)
    app.teardown_appcontext(teardown_db_session)
    _register_error_handlers(app)

    logger.info("create_app() complete; app ready to serve")
    return app
