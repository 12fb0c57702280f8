from datetime import datetime, timezone

import pytest

from toomanytabs.api import is_web_url
from toomanytabs.models import DbEntry


EXAMPLE = {"url": "https://example.com", "title": "Example", "notes": ""}


def entry_id_from(response) -> int:
    assert response.status_code == 303
    location = response.headers["location"]
    assert location.startswith("/entries/")
    return int(location.rsplit("/", 1)[1])


def test_create_then_view(client):
    r = client.post("/entry", data=EXAMPLE)
    assert r.headers["location"] == "/entries/1"
    entry_id = entry_id_from(r)

    page = client.get(f"/entries/{entry_id}")
    assert page.status_code == 200
    assert "Example" in page.text
    assert "https://example.com" in page.text
    assert f"http://127.0.0.1:9999/entries/{entry_id}" in page.text


def test_create_via_entries_path(client):
    entry_id = entry_id_from(client.post("/entries", data={"url": "https://a.test", "title": "A", "notes": "n"}))
    assert client.get(f"/entries/{entry_id}").status_code == 200


def test_create_missing_field_is_400(client):
    r = client.post("/entry", data={"url": "https://example.com", "notes": ""})
    assert r.status_code == 400
    assert "title" in r.text
    assert "No entries yet" in client.get("/").text


def test_index_lists_newest_first(client):
    for title in ("first", "second", "third"):
        entry_id_from(client.post("/entry", data={"url": f"https://{title}.test", "title": title, "notes": ""}))
    body = client.get("/").text
    assert body.index("third") < body.index("second") < body.index("first")


def test_get_missing_is_404(client):
    r = client.get("/entries/999")
    assert r.status_code == 404
    assert r.text == "entry not found"


def test_non_numeric_id_is_400(client):
    assert client.get("/entries/abc").status_code == 400


def test_update_via_post_and_put(client):
    entry_id = entry_id_from(client.post("/entry", data=EXAMPLE))

    r = client.post(f"/entries/{entry_id}", data={"url": "https://example.org", "title": "Edited", "notes": "x"})
    assert r.status_code == 303
    assert r.headers["location"] == f"/entries/{entry_id}"
    page = client.get(f"/entries/{entry_id}").text
    assert "Edited" in page and "https://example.org" in page

    r = client.put(f"/entries/{entry_id}", data={"url": "https://example.net", "title": "Put", "notes": ""})
    assert r.status_code == 303
    assert "https://example.net" in client.get(f"/entries/{entry_id}").text


def test_update_missing_title_leaves_entry_unchanged(client):
    entry_id = entry_id_from(client.post("/entry", data=EXAMPLE))
    r = client.post(f"/entries/{entry_id}", data={"url": "https://changed.test", "notes": "changed"})
    assert r.status_code == 400

    page = client.get(f"/entries/{entry_id}").text
    assert "Example" in page
    assert "https://changed.test" not in page


def test_update_missing_entry_is_404(client):
    r = client.post("/entries/42", data=EXAMPLE)
    assert r.status_code == 404


def test_delete_then_404(client):
    entry_id = entry_id_from(client.post("/entry", data=EXAMPLE))
    r = client.post(f"/entries/{entry_id}/delete")
    assert r.status_code == 303
    assert r.headers["location"] == "/"
    assert client.get(f"/entries/{entry_id}").status_code == 404


def test_delete_verb(client):
    entry_id = entry_id_from(client.post("/entry", data=EXAMPLE))
    r = client.delete(f"/entries/{entry_id}")
    assert r.status_code == 303
    assert client.delete(f"/entries/{entry_id}").status_code == 404


def test_titles_are_html_escaped(client):
    entry_id = entry_id_from(client.post("/entry", data={"url": "https://x.test", "title": "<script>boom</script>", "notes": ""}))
    page = client.get(f"/entries/{entry_id}").text
    assert "<script>boom</script>" not in page
    assert "&lt;script&gt;boom&lt;/script&gt;" in page


class _StubStore:
    """In-memory store whose writes report a configurable affected count."""

    def __init__(self, affected: int):
        self.affected = affected
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.entry = DbEntry(id=7, url="https://stub.test", title="stub", notes="", created_at=now, updated_at=now)

    def ensure_schema(self): pass
    def list_all(self): return [self.entry]
    def get_one(self, entry_id): return self.entry if entry_id == 7 else None
    def create(self, data): return 7
    def update(self, entry_id, data): return self.affected
    def delete(self, entry_id): return self.affected
    def close(self): pass


def _stub_client(affected):
    from fastapi.testclient import TestClient
    from toomanytabs.api import create_app
    from toomanytabs.config import Settings
    return TestClient(create_app(Settings(addr="127.0.0.1"), store=_StubStore(affected)), follow_redirects=False)


def test_multiple_rows_affected_is_500():
    with _stub_client(2) as c:
        r = c.post("/entries/7", data=EXAMPLE)
        assert r.status_code == 500
        assert "multiple entries updated" in r.text
        assert c.post("/entries/7/delete").status_code == 500
        assert c.delete("/entries/7").status_code == 500


def test_storage_failure_is_500():
    from toomanytabs.errors import ConnectivityError

    class Broken(_StubStore):
        def list_all(self):
            raise ConnectivityError("database is locked")

    from fastapi.testclient import TestClient
    from toomanytabs.api import create_app
    from toomanytabs.config import Settings
    with TestClient(create_app(Settings(addr="127.0.0.1"), store=Broken(1))) as c:
        r = c.get("/")
        assert r.status_code == 500
        assert r.text.startswith("internal server error")


def test_out_of_range_ids_are_400(client):
    for entry_id in (2**64, -1):
        url = f"/entries/{entry_id}"
        assert client.get(url).status_code == 400
        assert client.post(url, data=EXAMPLE).status_code == 400
        assert client.put(url, data=EXAMPLE).status_code == 400
        assert client.post(f"{url}/delete").status_code == 400
        r = client.delete(url)
        assert r.status_code == 400
        assert r.text.startswith("invalid request")


def test_non_web_urls_are_not_linked(client):
    entry_id = entry_id_from(client.post("/entry", data={"url": "javascript:alert(1)", "title": "js", "notes": ""}))
    for page in (client.get(f"/entries/{entry_id}").text, client.get("/").text):
        assert 'href="javascript:' not in page
        assert "javascript:alert(1)" in page

    entry_id = entry_id_from(client.post("/entry", data={"url": "HTTPS://Example.com/x", "title": "ok", "notes": ""}))
    assert 'href="HTTPS://Example.com/x"' in client.get(f"/entries/{entry_id}").text


@pytest.mark.parametrize(
    "url, linked",
    [
        ("https://example.com", True),
        ("http://example.com/a?b=c", True),
        (" HTTP://example.com", True),
        ("javascript:alert(1)", False),
        ("data:text/html,hi", False),
        ("example.com", False),
        ("http://[", False),
        ("", False),
    ],
)
def test_is_web_url(url, linked):
    assert is_web_url(url) is linked
