#!/usr/bin/env python3
"""Give a profile the ADMIN role (idempotent).

Usage:
  python scripts/promote_admin.py --email owner@example.com
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.vendorhub import create_app
from app.vendorhub.constants import ROLE_ADMIN
from app.vendorhub.db import session_scope
from app.vendorhub.models import Profile
from app.vendorhub.modules.profiles.service import change_role


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--email", required=True, help="Profile email to promote")
    args = parser.parse_args()
    email = args.email.strip().lower()

    app = create_app()
    with session_scope(app) as s:
        p = s.query(Profile).filter(Profile.email == email).one_or_none()
        if p is None:
            print(f"Profile not found: {email}")
            sys.exit(1)
        if p.role == ROLE_ADMIN:
            print(f"{p.vendor_id} ({email}) is already ADMIN")
            return
        change_role(s, p, ROLE_ADMIN, actor=None)
        vendor_id = p.vendor_id
    print(f"ADMIN role given to {vendor_id} ({email})")


if __name__ == "__main__":
    main()
