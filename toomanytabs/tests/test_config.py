import os

import pytest

from toomanytabs.config import Settings, load_settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("TMT_ADDR")
    s = load_settings()
    assert s.backend == "sqlite"
    assert s.host == "0.0.0.0"
    assert s.port == 9999
    assert s.addr is None
    assert os.path.isdir(s.templates_dir)


def test_yaml_then_env(tmp_path, monkeypatch):
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        "backend: postgres\n"
        "pg_host: db.internal\n"
        "pg_port: 5433\n"
        "pg_user: swizzard\n"
        "pg_database: toomanytabs\n"
        "port: 8080\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("TMT_CONFIG", str(cfg))
    s = load_settings()
    assert (s.backend, s.pg_host, s.pg_port, s.port) == ("postgres", "db.internal", 5433, 8080)
    assert s.pg_conninfo() == "host=db.internal port=5433 user=swizzard dbname=toomanytabs"

    monkeypatch.setenv("TMT_PG_HOST", "localhost")
    monkeypatch.setenv("TMT_PORT", "9000")
    s = load_settings()
    assert s.pg_host == "localhost"
    assert s.port == 9000


def test_explicit_path_argument(tmp_path):
    cfg = tmp_path / "other.yaml"
    cfg.write_text("db_dir: ''\nlog_level: debug\n", encoding="utf-8")
    s = load_settings(str(cfg))
    assert s.log_level == "debug"
    assert s.db_dir == ""


def test_unknown_backend_rejected(monkeypatch):
    monkeypatch.setenv("TMT_BACKEND", "mongo")
    with pytest.raises(ValueError):
        load_settings()


def test_bad_port_rejected(monkeypatch):
    monkeypatch.setenv("TMT_PORT", "ninety")
    with pytest.raises(ValueError):
        load_settings()


def test_sqlite_path_creates_directory(tmp_path):
    s = Settings(db_dir=str(tmp_path / "nested" / ".tmt"))
    path = s.sqlite_path()
    assert path == str(tmp_path / "nested" / ".tmt" / "toomanytabs.db")
    assert os.path.isdir(tmp_path / "nested" / ".tmt")


def test_db_path_wins_over_dir(tmp_path):
    s = Settings(db_dir=str(tmp_path / "a"), db_path=str(tmp_path / "b" / "x.db"))
    assert s.sqlite_path() == str(tmp_path / "b" / "x.db")
