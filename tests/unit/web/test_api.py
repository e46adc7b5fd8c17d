"""End-to-end HTTP tests against the FastAPI app with in-memory stores."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from nextcdn.app import App
from nextcdn.core.modules.preview.models import LinkPreview
from nextcdn.core.modules.signature import codec
from nextcdn.web.server import create_fastapi_app

TOKEN = "valid-token"  # noqa: S105
AUTH = {"Authorization": f"Bearer {TOKEN}"}


@pytest.fixture
def app_instance(config, stores, session_store):
    session_store.add(TOKEN, "user-1")
    return App(config, stores)


@pytest.fixture
def client(app_instance, config):
    with TestClient(create_fastapi_app(app_instance, config), raise_server_exceptions=False) as test_client:
        yield test_client


def _upload(client: TestClient, content: bytes = b"hello world", name: str = "hello.txt") -> dict:
    response = client.post("/api/upload", headers=AUTH, files={"file": (name, content, "text/plain")})
    assert response.status_code == 200, response.text
    return response.json()


class TestHealth:
    def test_health_check(self, client):
        response = client.get("/")
        assert response.status_code == 200
        body = response.json()
        assert body["service"] == "cdn"
        assert isinstance(body["timestamp"], int)
        assert "version" in body


class TestUploadEndpoint:
    def test_missing_header(self, client):
        response = client.post("/api/upload", files={"file": ("a.txt", b"a", "text/plain")})
        assert response.status_code == 401
        assert response.json() == {"error": "Authorization header required"}

    def test_unknown_token(self, client):
        response = client.post(
            "/api/upload", headers={"Authorization": "Bearer nope"}, files={"file": ("a.txt", b"a", "text/plain")}
        )
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid or expired token"}

    def test_expired_session(self, client, session_store):
        session_store.add("old-token", "user-2", expires_in_ms=-1000)
        response = client.post(
            "/api/upload", headers={"Authorization": "old-token"}, files={"file": ("a.txt", b"a", "text/plain")}
        )
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid or expired token"}

    def test_session_store_down(self, client, session_store):
        session_store.fail = True
        response = client.post("/api/upload", headers=AUTH, files={"file": ("a.txt", b"a", "text/plain")})
        assert response.status_code == 401

    def test_no_file(self, client):
        response = client.post("/api/upload", headers=AUTH, data={"other": "x"})
        assert response.status_code == 400
        assert response.json() == {"error": "No file provided"}

    def test_upload_response(self, client, file_store):
        body = _upload(client)
        assert set(body) == {"id", "size", "content_type", "signature", "timestamp", "serve_url"}
        assert body["size"] == 11
        assert body["content_type"] == "text/plain"
        assert body["id"] in file_store.records
        assert file_store.records[body["id"]].user_id == "user-1"

    def test_too_large(self, client, file_store):
        response = client.post("/api/upload", headers=AUTH, files={"file": ("big.bin", b"x" * 2048, "text/plain")})
        assert response.status_code == 413
        assert "received 2048 bytes" in response.json()["error"]
        assert file_store.records == {}

    def test_infected(self, client, scanner):
        scanner.infected = True
        response = client.post("/api/upload", headers=AUTH, files={"file": ("e.com", b"eicar", "text/plain")})
        assert response.status_code == 400
        assert response.json() == {"error": "File is infected with malware"}

    def test_scanner_unavailable(self, client, scanner):
        scanner.fail = True
        response = client.post("/api/upload", headers=AUTH, files={"file": ("a.txt", b"a", "text/plain")})
        assert response.status_code == 500
        assert response.json() == {"error": "An unexpected error occurred."}


class TestRetrieval:
    def test_round_trip(self, client):
        body = _upload(client, b"the bytes", "notes.txt")
        response = client.get(body["serve_url"])

        assert response.status_code == 200
        assert response.content == b"the bytes"
        assert response.headers["content-type"].startswith("text/plain")
        assert response.headers["content-disposition"] == 'inline; filename="notes.txt"'

    def test_no_session_needed(self, client, session_store):
        body = _upload(client)
        session_store.sessions.clear()
        assert client.get(body["serve_url"]).status_code == 200

    def test_signature_for_other_file(self, client):
        first = _upload(client, b"one")
        second = _upload(client, b"two")
        response = client.get(
            f"/files/{first['id']}", params={"signature": second["signature"], "timestamp": second["timestamp"]}
        )
        assert response.status_code == 403
        assert response.json() == {"error": "Invalid or expired signature"}

    def test_tampered_timestamp(self, client):
        body = _upload(client)
        response = client.get(
            f"/files/{body['id']}", params={"signature": body["signature"], "timestamp": body["timestamp"] - 1}
        )
        assert response.status_code == 403

    def test_unknown_file(self, client):
        response = client.get("/files/missing", params={"signature": "00" * 32, "timestamp": 0})
        assert response.status_code == 404
        assert response.json() == {"error": "File not found"}

    def test_hidden_file(self, client, file_store):
        body = _upload(client)
        file_store.records[body["id"]].hidden = True
        response = client.get(body["serve_url"])
        assert response.status_code == 404
        assert response.json() == {"error": "File not found"}

    def test_expired_signature(self, client, monkeypatch):
        body = _upload(client)
        monkeypatch.setattr(codec, "now_seconds", lambda: body["timestamp"] + 3601)
        response = client.get(body["serve_url"])
        assert response.status_code == 403

    def test_missing_parameters(self, client):
        response = client.get("/files/abc")
        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid parameters")

    def test_non_integer_timestamp(self, client):
        response = client.get("/files/abc", params={"signature": "00", "timestamp": "soon"})
        assert response.status_code == 400

    def test_object_missing_is_server_error(self, client, object_store):
        body = _upload(client)
        object_store.objects.clear()
        response = client.get(body["serve_url"])
        assert response.status_code == 500
        assert response.json() == {"error": "An unexpected error occurred."}


class TestPreviewEndpoints:
    def test_requires_session(self, client):
        response = client.get("/api/preview", params={"url": "https://example.com"})
        assert response.status_code == 401

    def test_image_requires_dimension(self, client):
        response = client.get("/api/preview/image", headers=AUTH, params={"url": "https://example.com/a.png"})
        assert response.status_code == 400
        assert response.json() == {"error": "At least one dimension (width or height) must be specified"}

    def test_image_rejects_zero_width(self, client):
        response = client.get(
            "/api/preview/image", headers=AUTH, params={"url": "https://example.com/a.png", "width": 0}
        )
        assert response.status_code == 400

    def test_link_preview(self, client, app_instance, monkeypatch):
        preview = LinkPreview(url="https://example.com", title="Example")
        monkeypatch.setattr(app_instance, "get_link_preview", AsyncMock(return_value=preview))
        response = client.get("/api/preview", headers=AUTH, params={"url": "https://example.com"})
        assert response.status_code == 200
        assert response.json()["title"] == "Example"
