"""
Engine and session plumbing.

Each app owns one engine (re-created lazily in forked workers after
`dispose_db`). Handlers reach the database only through `db_session()`;
scripts and tests use `session_scope(app)`.
"""
from __future__ import annotations

import os
from contextlib import contextmanager
from collections.abc import Generator

from flask import Flask, current_app, g
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

POSTGRES_POOL_OPTIONS = {
    "pool_recycle": 1800,
    "pool_size": 5,
    "max_overflow": 10,
    "pool_timeout": 30,
}


def build_engine(db_url: str) -> Engine:
    options: dict[str, object] = {"future": True, "pool_pre_ping": True}
    if db_url.startswith("postgres"):
        options.update(POSTGRES_POOL_OPTIONS)
    return create_engine(db_url, **options)


def init_db(app: Flask) -> None:
    engine = build_engine(app.config["DATABASE_URL"])
    app.extensions["sqlalchemy_engine"] = engine
    app.extensions["sqlalchemy_sessionmaker"] = sessionmaker(
        bind=engine,
        class_=Session,
        autoflush=False,
        expire_on_commit=False,
    )
    app.logger.debug("Database engine ready (%s)", engine.url.get_backend_name())

    if hasattr(os, "register_at_fork"):
        # gunicorn --preload forks after create_app(); pooled connections must not be shared
        os.register_at_fork(after_in_child=lambda: dispose_db(app))


def dispose_db(app: Flask) -> None:
    engine = app.extensions.get("sqlalchemy_engine")
    if engine is not None:
        engine.dispose()
        app.logger.info("Disposed DB engine (pid=%s)", os.getpid())


def db_session() -> Session:
    """Request-scoped session, created on first use."""
    s = g.get("db_session")
    if s is None:
        s = current_app.extensions["sqlalchemy_sessionmaker"]()
        g.db_session = s
    return s


def teardown_db_session(exc: BaseException | None) -> None:
    s: Session | None = g.pop("db_session", None)
    if s is None:
        return
    if exc is not None and s.in_transaction():
        s.rollback()
    s.close()


@contextmanager
def session_scope(app: Flask) -> Generator[Session, None, None]:
    """Commit on success, roll back on error."""
    s: Session = app.extensions["sqlalchemy_sessionmaker"]()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
