import asyncio

import pytest
from fastapi.testclient import TestClient

from backend.app.routers import beers as beers_router

STRONG_URL = "/api/v1/beers/strong"


def _use_settings(monkeypatch, default_min_abv=15.0, max_pages=None):
    class DummySettings:
        pass

    DummySettings.default_min_abv = default_min_abv
    DummySettings.max_pages = max_pages

    monkeypatch.setattr(beers_router, "get_settings", lambda: DummySettings())


def _http_scope(path: str) -> dict:
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "GET",
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "root_path": "",
        "query_string": b"",
        "headers": [(b"host", b"testserver")],
        "client": ("127.0.0.1", 50000),
        "server": ("testserver", 80),
    }


async def _call_asgi(app, path: str, messages: list, disconnect_after_first_chunk: bool = False):
    """
    Drive ``app`` over raw ASGI, recording every message it sends in ``messages``.

    With ``disconnect_after_first_chunk`` the client goes away as soon as the
    first body chunk arrives; otherwise it stays connected until the app
    finishes.
    """
    request_sent = False
    first_chunk_sent = asyncio.Event()

    async def receive():
        nonlocal request_sent
        if not request_sent:
            request_sent = True
            return {"type": "http.request", "body": b"", "more_body": False}
        if disconnect_after_first_chunk:
            await first_chunk_sent.wait()
            return {"type": "http.disconnect"}
        await asyncio.Event().wait()

    async def send(message):
        messages.append(message)
        if message["type"] == "http.response.body" and message.get("body"):
            first_chunk_sent.set()
            if disconnect_after_first_chunk:
                # Give the disconnect a chance to land before the next chunk
                await asyncio.sleep(0.05)

    await app(_http_scope(path), receive, send)


def test_streams_strong_beers_as_json_array(client_for, catalogue_factory, strong_and_weak_pages):
    """Test that matching beers stream out as one JSON array."""
    catalogue = catalogue_factory(strong_and_weak_pages)
    client = client_for(catalogue)

    resp = client.get(STRONG_URL)

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/json")
    assert resp.json() == [
        {"name": "End of History", "tagline": "A 55.0% beer", "abv": 55.0},
        {"name": "Sink the Bismarck", "tagline": "A 16.5% beer", "abv": 16.5},
    ]
    assert catalogue.calls == [1, 2, 3]


def test_empty_catalogue_returns_empty_array(client_for, catalogue_factory):
    """Test that an empty first page yields [] after a single fetch."""
    catalogue = catalogue_factory([[]])
    client = client_for(catalogue)

    resp = client.get(STRONG_URL)

    assert resp.status_code == 200
    assert resp.json() == []
    assert catalogue.calls == [1]


def test_no_matches_still_walks_every_page(client_for, catalogue_factory, strong_and_weak_pages):
    """Test that a threshold nothing passes still fetches up to the empty page."""
    catalogue = catalogue_factory(strong_and_weak_pages)
    client = client_for(catalogue)

    resp = client.get(STRONG_URL, params={"min_abv": 100})

    assert resp.status_code == 200
    assert resp.json() == []
    assert catalogue.calls == [1, 2, 3]


def test_min_abv_query_parameter(client_for, catalogue_factory, strong_and_weak_pages):
    """Test that min_abv overrides the default threshold."""
    client = client_for(catalogue_factory(strong_and_weak_pages))

    resp = client.get(STRONG_URL, params={"min_abv": 5})

    assert [beer["abv"] for beer in resp.json()] == [55.0, 10.0, 16.5]


def test_default_threshold_comes_from_settings(monkeypatch, client_for, catalogue_factory, strong_and_weak_pages):
    """Test that the default threshold is read from settings."""
    _use_settings(monkeypatch, default_min_abv=20.0)
    client = client_for(catalogue_factory(strong_and_weak_pages))

    resp = client.get(STRONG_URL)

    assert [beer["abv"] for beer in resp.json()] == [55.0]


def test_invalid_min_abv_is_rejected(client_for, catalogue_factory):
    """Test that a non-numeric min_abv is a 422 and fetches nothing."""
    catalogue = catalogue_factory([[]])
    client = client_for(catalogue)

    resp = client.get(STRONG_URL, params={"min_abv": "strong"})

    assert resp.status_code == 422
    assert catalogue.calls == []


def test_fetch_error_before_first_match_returns_502(client_for, catalogue_factory):
    """Test that a failure on the first page maps to 502."""
    catalogue = catalogue_factory([], fail_at=1)
    client = client_for(catalogue)

    resp = client.get(STRONG_URL)

    assert resp.status_code == 502
    assert resp.json() == {"detail": "Upstream catalogue request failed", "status_code": 502}
    assert catalogue.calls == [1]


def test_fetch_error_after_weak_pages_returns_502(client_for, catalogue_factory, beer_factory):
    """Test that a failure before any match is still a 502."""
    catalogue = catalogue_factory([[beer_factory(4.0)], [beer_factory(5.0)]], fail_at=3)
    client = client_for(catalogue)

    resp = client.get(STRONG_URL)

    assert resp.status_code == 502
    assert catalogue.calls == [1, 2, 3]


def test_page_limit_returns_502(monkeypatch, client_for, catalogue_factory, beer_factory):
    """Test that hitting max_pages without an empty page maps to 502."""
    _use_settings(monkeypatch, max_pages=2)
    catalogue = catalogue_factory([[beer_factory(4.0)]] * 5)
    client = client_for(catalogue)

    resp = client.get(STRONG_URL)

    assert resp.status_code == 502
    assert resp.json()["detail"] == "Upstream catalogue did not terminate"
    assert catalogue.calls == [1, 2]


def test_fetch_error_mid_stream_truncates_body(use_catalogue, catalogue_factory, beer_factory):
    """Test that a failure after the first match cuts the array short under a committed 200."""
    catalogue = catalogue_factory([[beer_factory(55.0)], [beer_factory(16.5)]], fail_at=2)
    app = use_catalogue(catalogue)
    messages = []

    # The abort propagates out of the app, possibly wrapped in an exception group
    with pytest.raises(Exception):
        asyncio.run(_call_asgi(app, STRONG_URL, messages))

    start = next(m for m in messages if m["type"] == "http.response.start")
    body = b"".join(m.get("body", b"") for m in messages if m["type"] == "http.response.body")

    assert start["status"] == 200
    assert body.startswith(b'[{"name":"beer-55.0","tagline":"A 55.0% beer","abv":55.0}')
    assert not body.endswith(b"]")
    assert catalogue.calls == [1, 2]


def test_client_disconnect_stops_fetching(use_catalogue, catalogue_factory, beer_factory):
    """Test that a client disconnect closes the pipeline before the next page is requested."""
    catalogue = catalogue_factory([[beer_factory(20.0 + page)] for page in range(50)])
    app = use_catalogue(catalogue)
    messages = []

    async def scenario():
        await _call_asgi(app, STRONG_URL, messages, disconnect_after_first_chunk=True)
        # Nothing may resume the pipeline once the request is over
        await asyncio.sleep(0.05)

    asyncio.run(scenario())

    body = b"".join(m.get("body", b"") for m in messages if m["type"] == "http.response.body")
    assert body.startswith(b'[{"name":"beer-20.0"')
    assert not body.endswith(b"]")
    assert catalogue.calls == [1]


def test_upstream_client_not_initialized_returns_503(test_app):
    """Test that the route answers 503 when the lifespan has not opened the client."""
    resp = TestClient(test_app).get(STRONG_URL)

    assert resp.status_code == 503
    assert resp.json()["detail"] == "Upstream client not initialized"


def test_health(test_app):
    """Test the liveness endpoint."""
    resp = TestClient(test_app).get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
