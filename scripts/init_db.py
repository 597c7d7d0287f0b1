"""Create tables for local development and seed reference data (idempotent).

Usage:
  python scripts/init_db.py               # seed warehouses
  python scripts/init_db.py --create-all  # local sqlite: create tables first
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from flask import Flask

from app.vendorhub import create_app
from app.vendorhub.db import session_scope
from app.vendorhub.models import Base
from app.vendorhub.modules.warehouses.service import seed_default_warehouses


def create_all(app: Flask) -> None:
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])
    print("Created tables (create_all).", flush=True)


def seed(app: Flask) -> int:
    """Upsert the default warehouses by code. Addresses edited by admins are kept."""
    with session_scope(app) as s:
        created = seed_default_warehouses(s)
    print(f"Warehouses seeded ({created} created).", flush=True)
    return created


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--create-all", action="store_true", help="Create tables without migrations (local dev only)")
    parser.add_argument("--database-url", help="Overrides DATABASE_URL")
    args = parser.parse_args()

    app = create_app({"DATABASE_URL": args.database_url} if args.database_url else None)
    if args.create_all:
        create_all(app)
    seed(app)


if __name__ == "__main__":
    main()
