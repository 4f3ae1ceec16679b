"""Tests for the short link HTTP endpoint."""

import json

import pytest
import respx
from httpx import Response
from fastapi.testclient import TestClient

from conftest import BINDING, RULES_PATH, InMemoryContentStore
from shortlink.app.api.links import get_link_service
from shortlink.app.core.config import settings
from shortlink.app.main import app
from shortlink.app.services.content_store import decode_content, encode_content
from shortlink.app.services.link_service import LinkService
from shortlink.app.services.rule_document import decode, encode

FUTURE = 1893456000


@pytest.fixture
def client(link_service):
    app.dependency_overrides[get_link_service] = lambda: link_service
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()


def _create(client, **overrides):
    body = {"pathname": "short1", "url": "https://example.com/x", "expired_at": FUTURE}
    body.update(overrides)
    return client.post("/", json=body)


class TestCreateLink:
    """POST / success and error mapping."""

    def test_success(self, client, store):
        resp = _create(client)

        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"
        data = resp.json()
        assert data["success"] is True
        assert data["short_url"] == "https://s.example.com/short1"
        assert data["commit_url"] == "https://github.com/octo/links/commit/c0ffee0001"
        assert "/short1" in decode(store.text(RULES_PATH))

    @pytest.mark.parametrize(
        ("overrides", "message"),
        [
            ({"pathname": "abcd"}, "Invalid pathname (5-10 chars)"),
            ({"pathname": "ab cd"}, "Invalid characters in pathname"),
            ({"url": "https://e.com/" + "a" * 290}, "Invalid URL (max 300 chars)"),
            ({"url": "nope"}, "Invalid URL format"),
            ({"expired_at": "soon"}, "Invalid expiration timestamp"),
        ],
    )
    def test_validation_errors(self, client, store, overrides, message):
        resp = _create(client, **overrides)

        assert resp.status_code == 400
        assert resp.json() == {"error": message}
        assert resp.headers["access-control-allow-origin"] == "*"
        assert store.reads == []

    def test_missing_fields(self, client):
        resp = client.post("/", json={})

        assert resp.status_code == 400

    @pytest.mark.parametrize("content", [b"{not json", b"[1, 2]"])
    def test_invalid_body(self, client, content):
        resp = client.post("/", content=content, headers={"Content-Type": "application/json"})

        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid JSON body"}
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_duplicate_path(self, client, store):
        store.replace(RULES_PATH, encode({"/short1": {"url": "https://old.example"}}, BINDING))

        resp = _create(client)

        assert resp.status_code == 409
        assert resp.json() == {"error": "Pathname already exists"}
        assert store.writes == []

    def test_fetch_failure(self, client, store):
        store.documents.clear()

        resp = _create(client)

        assert resp.status_code == 502
        assert resp.json() == {"error": "Failed to fetch file from GitHub: 404"}
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_commit_failure(self, link_config):
        class StaleStore(InMemoryContentStore):
            async def read(self, path):
                document = await super().read(path)
                self.replace(path, encode({"/other": {"url": "https://o.example"}}, BINDING))
                return document

        store = StaleStore({RULES_PATH: encode({}, BINDING)})
        app.dependency_overrides[get_link_service] = lambda: LinkService(link_config, store)
        try:
            resp = _create(TestClient(app))
        finally:
            app.dependency_overrides.clear()

        assert resp.status_code == 502
        assert resp.json() == {"error": "Failed to commit to GitHub"}

    def test_corrupt_document(self, client, store):
        store.replace(RULES_PATH, "window.RULES_INTERMEDIATE = oops;\n")

        resp = _create(client)

        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to parse file content"}

    def test_unexpected_error(self, client, store, monkeypatch):
        async def boom(path):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(store, "read", boom)
        monkeypatch.setattr(settings, "debug", False)

        resp = _create(client)

        assert resp.status_code == 500
        assert resp.json() == {"error": "Internal Server Error"}
        assert resp.headers["access-control-allow-origin"] == "*"


def test_missing_configuration(monkeypatch):
    monkeypatch.setattr(settings, "github_token", "")

    resp = TestClient(app).post(
        "/", json={"pathname": "short1", "url": "https://e.com", "expired_at": FUTURE}
    )

    assert resp.status_code == 500
    assert resp.json() == {"error": "Server configuration error"}
    assert resp.headers["access-control-allow-origin"] == "*"


class TestCors:
    """Preflight and method handling."""

    def test_plain_options(self):
        resp = TestClient(app).options("/")

        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"
        assert resp.headers["access-control-allow-methods"] == "POST, OPTIONS"
        assert resp.headers["access-control-allow-headers"] == "Content-Type"

    def test_browser_preflight(self):
        resp = TestClient(app).options(
            "/",
            headers={
                "Origin": "https://tool.example.com",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )

        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_browser_preflight_with_extra_request_headers(self):
        resp = TestClient(app).options(
            "/",
            headers={
                "Origin": "https://tool.example.com",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type, X-Requested-With",
            },
        )

        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"
        assert "x-requested-with" in resp.headers["access-control-allow-headers"].lower()

    def test_get_not_allowed(self):
        resp = TestClient(app).get("/")

        assert resp.status_code == 405


def test_health_reports_store_configuration(monkeypatch):
    monkeypatch.setattr(settings, "github_token", "")

    resp = TestClient(app).get("/health")

    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "degraded"
    assert data["components"]["store"]["status"] == "unconfigured"


@respx.mock
def test_end_to_end_against_github(monkeypatch):
    monkeypatch.setattr(settings, "github_token", "ghp_test")
    monkeypatch.setattr(settings, "github_owner", "octo")
    monkeypatch.setattr(settings, "github_repo", "links")
    monkeypatch.setattr(settings, "base_domain", "s.example.com")
    contents_url = "https://api.github.com/repos/octo/links/contents/js/rules_intermediate.js"
    respx.get(f"{contents_url}?ref=main").mock(
        return_value=Response(200, json={"content": encode_content(encode({}, BINDING)), "sha": "sha1"})
    )
    put = respx.put(contents_url).mock(
        return_value=Response(200, json={"commit": {"sha": "deadbeef"}})
    )

    with TestClient(app) as client:
        resp = client.post(
            "/", json={"pathname": "short1", "url": "https://example.com/x", "expired_at": FUTURE}
        )

    assert resp.status_code == 200
    assert resp.json()["short_url"] == "https://s.example.com/short1"
    assert resp.json()["commit_url"] == "https://github.com/octo/links/commit/deadbeef"
    body = json.loads(put.calls.last.request.content)
    assert body["sha"] == "sha1"
    assert decode(decode_content(body["content"])) == {
        "/short1": {"url": "https://example.com/x", "expired_at": "2030-01-01T00:00:00.000Z"}
    }
