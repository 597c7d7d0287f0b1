"""
Release phase: check production settings, migrate, then seed.

Usage:
  python scripts/release.py [--skip-seed]
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

REQUIRED_IN_PRODUCTION = ("DATABASE_URL", "SECRET_KEY", "SUPABASE_URL", "SUPABASE_ANON_KEY")


def _env(name: str) -> str:
    return (os.environ.get(name) or "").strip()


def check_environment() -> str:
    """Returns DATABASE_URL. Production refuses missing settings and sqlite."""
    db_url = _env("DATABASE_URL")
    if not db_url:
        raise RuntimeError("Missing required environment variable DATABASE_URL.")
    if _env("ENV").lower() in ("prod", "production"):
        missing = [name for name in REQUIRED_IN_PRODUCTION if not _env(name)]
        if missing:
            raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")
        if db_url.startswith("sqlite"):
            raise RuntimeError("Refusing to run release on sqlite DATABASE_URL in production. Set DATABASE_URL to Postgres.")
    return db_url


def migrate(db_url: str) -> None:
    from alembic import command
    from alembic.config import Config

    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", db_url)
    command.upgrade(cfg, "head")


def run_release(*, skip_seed: bool = False) -> None:
    db_url = check_environment()
    print(f"=== VendorHub release (ENV={_env('ENV') or 'unset'}) ===", flush=True)

    print("Running Alembic migrations...", flush=True)
    migrate(db_url)
    print("Migrations complete.", flush=True)

    if skip_seed:
        print("Seed skipped.", flush=True)
        return
    from app.vendorhub import create_app
    from scripts import init_db

    init_db.seed(create_app({"DATABASE_URL": db_url}))


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--skip-seed", action="store_true")
    args = parser.parse_args()
    run_release(skip_seed=args.skip_seed)


if __name__ == "__main__":
    main()
