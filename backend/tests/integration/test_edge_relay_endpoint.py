"""
Integration Tests for the Upload Edge Relay Endpoint

Tests POST /api/upload on the edge against in-process and mocked backends.
"""

from pathlib import Path

import httpx
import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from upload_edge.main import create_app as create_edge_app


def capture_files(edge_settings) -> list:
    temp_dir = Path(edge_settings.TEMP_PATH)
    return list(temp_dir.iterdir()) if temp_dir.exists() else []


def recording_backend(calls: list) -> FastAPI:
    """Backend that records what it received and answers with a fixed body."""
    app = FastAPI()

    @app.post("/api/upload")
    async def upload(request: Request):
        form = await request.form()
        calls.append(
            {
                "fields": {k: v for k, v in form.multi_items() if isinstance(v, str)},
                "files": [
                    (k, v.filename, v.content_type, await v.read())
                    for k, v in form.multi_items()
                    if not isinstance(v, str)
                ],
            }
        )
        return {"success": True, "message": "recorded", "custom": {"nested": [1, 2]}}

    return app


@pytest.fixture
def edge_with_backend(edge_settings, relay_to):
    """Edge client relaying to a given ASGI app or transport."""

    def build(target) -> TestClient:
        return TestClient(relay_to(create_edge_app(edge_settings), target))

    return build


class TestPassThrough:
    def test_store_response_returned_unchanged(self, edge_client, edge_settings, png_bytes):
        response = edge_client.post(
            "/api/upload",
            data={"title": "upload image"},
            files=[("images", ("cat.png", png_bytes, "image/png"))],
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["files"][0]["originalName"] == "cat.png"
        assert data["files"][0]["url"].startswith("http://store.test/uploads/")
        assert capture_files(edge_settings) == []

    def test_backend_body_is_passed_verbatim(self, edge_with_backend, png_bytes):
        calls = []
        client = edge_with_backend(recording_backend(calls))

        response = client.post(
            "/api/upload",
            data={"title": "holiday"},
            files=[
                ("images", ("a.png", png_bytes, "image/png")),
                ("images", ("b.gif", b"GIF89a", "image/gif")),
            ],
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "recorded",
            "custom": {"nested": [1, 2]},
        }
        assert calls[0]["fields"] == {"title": "holiday"}
        assert calls[0]["files"] == [
            ("images", "a.png", "image/png", png_bytes),
            ("images", "b.gif", "image/gif", b"GIF89a"),
        ]

    def test_upload_multipart_alias(self, edge_client, png_bytes):
        response = edge_client.post(
            "/api/upload-multipart",
            files=[("images", ("cat.png", png_bytes, "image/png"))],
        )

        assert response.status_code == 200
        assert response.json()["success"] is True


class TestRelayFailures:
    def test_store_rejection_becomes_500(self, edge_client, edge_settings, fake_png_bytes):
        response = edge_client.post(
            "/api/upload",
            files=[("images", ("fake.png", fake_png_bytes, "image/png"))],
        )

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "message": "Internal server error",
            "error": "Backend responded with status: 400",
        }
        assert capture_files(edge_settings) == []

    def test_backend_unreachable(self, edge_with_backend, edge_settings, png_bytes):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        client = edge_with_backend(httpx.MockTransport(refuse))
        response = client.post(
            "/api/upload",
            files=[("images", ("cat.png", png_bytes, "image/png"))],
        )

        assert response.status_code == 500
        assert response.json()["message"] == "Internal server error"
        assert response.json()["error"] == "Connection refused"
        assert capture_files(edge_settings) == []

    def test_backend_server_error(self, edge_with_backend, edge_settings, png_bytes):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(503, json={"success": False, "message": "down"})
        )
        client = edge_with_backend(transport)

        response = client.post(
            "/api/upload",
            files=[("images", ("cat.png", png_bytes, "image/png"))],
        )

        assert response.status_code == 500
        assert response.json()["error"] == "Backend responded with status: 503"
        assert capture_files(edge_settings) == []


class TestCaptureFailures:
    def test_non_multipart_body(self, edge_client):
        response = edge_client.post("/api/upload", json={"images": []})

        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert data["message"] == "Failed to process form data"

    def test_unexpected_field_rejected(self, edge_client, edge_settings, png_bytes):
        response = edge_client.post(
            "/api/upload",
            files=[
                ("images", ("cat.png", png_bytes, "image/png")),
                ("avatar", ("me.png", png_bytes, "image/png")),
            ],
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Unexpected form field 'avatar'"
        assert capture_files(edge_settings) == []

    def test_repeated_title_rejected(self, edge_client, edge_settings, png_bytes):
        response = edge_client.post(
            "/api/upload",
            data={"title": ["one", "two"]},
            files=[("images", ("cat.png", png_bytes, "image/png"))],
        )

        assert response.status_code == 400
        assert capture_files(edge_settings) == []

    def test_get_not_allowed(self, edge_client):
        response = edge_client.get("/api/upload")

        assert response.status_code == 405
        assert response.json()["success"] is False
