import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    supabase_url: str
    supabase_anon_key: str
    supabase_service_role_key: str
    site_url: str

    discord_client_id: str
    discord_client_secret: str
    discord_webhook_url: str
    discord_webhook_secret: str
    discord_bot_api_key: str

    storage_backend: str
    local_storage_root: str
    s3_endpoint: str
    s3_region: str
    s3_access_key_id: str
    s3_secret_access_key: str
    labels_bucket: str
    max_label_bytes: int


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///vendorhub.db"),
        supabase_url=_getenv("SUPABASE_URL", ""),
        supabase_anon_key=_getenv("SUPABASE_ANON_KEY", ""),
        supabase_service_role_key=_getenv("SUPABASE_SERVICE_ROLE_KEY", ""),
        site_url=_getenv("SITE_URL", "http://localhost:3000").rstrip("/"),
        discord_client_id=_getenv("DISCORD_CLIENT_ID", ""),
        discord_client_secret=_getenv("DISCORD_CLIENT_SECRET", ""),
        discord_webhook_url=_getenv("DISCORD_WEBHOOK_URL", ""),
        discord_webhook_secret=_getenv("DISCORD_WEBHOOK_SECRET", ""),
        discord_bot_api_key=_getenv("DISCORD_BOT_API_KEY", ""),
        storage_backend=_getenv("STORAGE_BACKEND", "local"),
        local_storage_root=_getenv("LOCAL_STORAGE_ROOT", ""),
        s3_endpoint=_getenv("S3_ENDPOINT", ""),
        s3_region=_getenv("S3_REGION", "us-east-1"),
        s3_access_key_id=_getenv("S3_ACCESS_KEY_ID", ""),
        s3_secret_access_key=_getenv("S3_SECRET_ACCESS_KEY", ""),
        labels_bucket=_getenv("LABELS_BUCKET", "labels"),
        max_label_bytes=_getenv_int("MAX_LABEL_BYTES", 10 * 1024 * 1024),
    )


def load_config() -> dict:
    s = load_settings()
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "SUPABASE_URL": s.supabase_url,
        "SUPABASE_ANON_KEY": s.supabase_anon_key,
        "SUPABASE_SERVICE_ROLE_KEY": s.supabase_service_role_key,
        "SITE_URL": s.site_url,
        "DISCORD_CLIENT_ID": s.discord_client_id,
        "DISCORD_CLIENT_SECRET": s.discord_client_secret,
        "DISCORD_WEBHOOK_URL": s.discord_webhook_url,
        "DISCORD_WEBHOOK_SECRET": s.discord_webhook_secret,
        "DISCORD_BOT_API_KEY": s.discord_bot_api_key,
        "STORAGE_BACKEND": s.storage_backend,
        "LOCAL_STORAGE_ROOT": s.local_storage_root,
        "S3_ENDPOINT": s.s3_endpoint,
        "S3_REGION": s.s3_region,
        "S3_ACCESS_KEY_ID": s.s3_access_key_id,
        "S3_SECRET_ACCESS_KEY": s.s3_secret_access_key,
        "LABELS_BUCKET": s.labels_bucket,
        "MAX_LABEL_BYTES": s.max_label_bytes,
        # label uploads are multipart; keep some headroom over the per-file cap
        "MAX_CONTENT_LENGTH": s.max_label_bytes + 1024 * 1024,
        "JSON_SORT_KEYS": False,
    }
