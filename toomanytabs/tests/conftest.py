import os
import sys
import pytest
from pathlib import Path

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    # Never pick up a developer's config.yaml or TMT_* settings
    for key in list(os.environ):
        if key.startswith("TMT_") and key != "TMT_TEST_PG_DSN":
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("TMT_CONFIG", str(tmp_path / "no-config.yaml"))
    monkeypatch.setenv("TMT_ADDR", "127.0.0.1")


@pytest.fixture()
def tmp_db_path(tmp_path, monkeypatch):
    path = tmp_path / "db" / "toomanytabs_test.db"
    # Point the app to this temp DB
    monkeypatch.setenv("TMT_DB_PATH", str(path))
    return str(path)


@pytest.fixture()
def store(tmp_db_path):
    from toomanytabs.config import load_settings
    from toomanytabs.storage import build_store
    s = build_store(load_settings())
    yield s
    s.close()


@pytest.fixture()
def client(tmp_db_path):
    # Lifespan runs on enter, so the store is opened against the temp DB
    from fastapi.testclient import TestClient
    from toomanytabs.api import create_app
    with TestClient(create_app(), follow_redirects=False) as c:
        yield c

