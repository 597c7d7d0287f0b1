#!/usr/bin/env python3
"""Create a profile for an identity that already exists at the auth provider.

Usage:
  python scripts/create_profile.py --auth-id 0b6f... --email seller@example.com \
      --first-name Sam --last-name Lee [--role ADMIN]
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.vendorhub import create_app
from app.vendorhub.constants import ROLE_SELLER, ROLES
from app.vendorhub.db import session_scope
from app.vendorhub.errors import InvalidInput
from app.vendorhub.modules.profiles.service import create_profile


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--auth-id", required=True, help="Identity id at the auth provider")
    parser.add_argument("--email", required=True)
    parser.add_argument("--first-name", required=True)
    parser.add_argument("--last-name", required=True)
    parser.add_argument("--role", default=ROLE_SELLER, choices=ROLES)
    parser.add_argument("--phone")
    args = parser.parse_args()

    app = create_app()
    try:
        with session_scope(app) as s:
            p = create_profile(
                s,
                auth_id=args.auth_id,
                email=args.email,
                first_name=args.first_name,
                last_name=args.last_name,
                role=args.role,
                phone=args.phone,
            )
            vendor_id = p.vendor_id
    except InvalidInput as e:
        print(f"Not created: {e.message}")
        sys.exit(1)
    print(f"Created profile {vendor_id} for {args.email} ({args.role})")


if __name__ == "__main__":
    main()
