import pytest

from scripts import init_db
from scripts.release import check_environment
from scripts.start import gunicorn_argv, parse_port


def test_parse_port():
    assert parse_port(None) == 8080
    assert parse_port(" 5000 ") == 5000
    with pytest.raises(ValueError):
        parse_port("70000")
    with pytest.raises(ValueError):
        parse_port("web")


def test_gunicorn_argv_targets_wsgi_app():
    argv = gunicorn_argv(9000, "4")
    assert argv[:2] == ["gunicorn", "app.wsgi:app"]
    assert "0.0.0.0:9000" in argv
    assert argv[argv.index("--workers") + 1] == "4"


def test_release_refuses_sqlite_in_production(monkeypatch):
    monkeypatch.setenv("ENV", "production")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///prod.db")
    for name in ("SECRET_KEY", "SUPABASE_URL", "SUPABASE_ANON_KEY"):
        monkeypatch.setenv(name, "set")
    with pytest.raises(RuntimeError, match="sqlite"):
        check_environment()


def test_release_lists_missing_production_settings(monkeypatch):
    monkeypatch.setenv("ENV", "production")
    monkeypatch.setenv("DATABASE_URL", "postgresql://db/vendorhub")
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
    monkeypatch.setenv("SECRET_KEY", "s3cret")
    with pytest.raises(RuntimeError, match="SUPABASE_URL, SUPABASE_ANON_KEY"):
        check_environment()


def test_seed_via_script(app):
    assert init_db.seed(app) == 5
    assert init_db.seed(app) == 0
