#!/usr/bin/env python3
"""
Production entry point: release phase, then exec gunicorn.

Environment:
  PORT             listen port (default 8080)
  WEB_CONCURRENCY  gunicorn workers (default 2)
  SKIP_RELEASE=1   start without migrating (e.g. extra web instances)
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

DEFAULT_PORT = 8080


def parse_port(raw: str | None) -> int:
    raw = (raw or "").strip()
    if not raw:
        return DEFAULT_PORT
    port = int(raw)
    if not 1 <= port <= 65535:
        raise ValueError(f"Port out of range: {port}")
    return port


def gunicorn_argv(port: int, workers: str) -> list[str]:
    return [
        "gunicorn",
        "app.wsgi:app",
        "--bind", f"0.0.0.0:{port}",
        "--workers", workers,
        "--timeout", "60",
        "--preload",
        "--access-logfile", "-",
        "--error-logfile", "-",
    ]


def main() -> None:
    try:
        port = parse_port(os.environ.get("PORT"))
    except ValueError as e:
        print(f"ERROR: invalid PORT ({e}). Must be an integer 1-65535.", flush=True)
        sys.exit(1)
    workers = (os.environ.get("WEB_CONCURRENCY") or "").strip() or "2"

    if os.environ.get("SKIP_RELEASE") != "1":
        from scripts.release import run_release

        try:
            run_release()
        except Exception as e:
            print(f"Release failed: {e}", flush=True)
            sys.exit(1)

    argv = gunicorn_argv(port, workers)
    print(f"=== Starting {' '.join(argv)} ===", flush=True)
    os.execvp("gunicorn", argv)


if __name__ == "__main__":
    main()
