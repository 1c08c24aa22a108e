"""
Unit Tests for RelayAssembler

Checks payload assembly against an echo backend and error translation
with mocked transports.
"""

import io
import json
import threading
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest
from fastapi import FastAPI, Request

from upload_edge.middleware.error_handler import RelayError
from upload_edge.models import CapturedForm, UploadedFilePart
from upload_edge.services.relay_assembler import RelayAssembler

BACKEND = "http://store.test"


def echo_backend() -> FastAPI:
    """Backend that reports every multipart item it received, in order."""
    app = FastAPI()

    @app.post("/api/upload")
    async def echo(request: Request):
        form = await request.form()
        items = []
        for name, value in form.multi_items():
            if isinstance(value, str):
                items.append({"field": name, "value": value})
            else:
                content = await value.read()
                items.append(
                    {
                        "field": name,
                        "filename": value.filename,
                        "contentType": value.content_type,
                        "content": content.decode("latin-1"),
                    }
                )
        return {"success": True, "items": items}

    return app


def part(tmp_path, name: str, content: bytes, filename: str, content_type: str, field: str = "images"):
    path = tmp_path / f"capture-{name}"
    path.write_bytes(content)
    return UploadedFilePart(
        field_name=field,
        filename=filename,
        content_type=content_type,
        size=len(content),
        temp_path=path,
    )


@pytest.fixture
def captured(tmp_path):
    form = CapturedForm()
    form.add_field("title", "upload image")
    form.add_field("tag", "one")
    form.add_field("tag", "two")
    form.add_file(part(tmp_path, "a", b"AAA", "a.png", "image/png"))
    form.add_file(part(tmp_path, "b", b"BBBB", "b.gif", "image/gif"))
    return form


def assembler(transport) -> RelayAssembler:
    return RelayAssembler(backend_url=BACKEND, upload_path="/api/upload", timeout=5, transport=transport)


class TestUploadUrl:
    def test_joins_base_and_path(self):
        relay = RelayAssembler(backend_url="http://localhost:8080/", upload_path="api/upload")
        assert relay.upload_url == "http://localhost:8080/api/upload"


class TestBuildPayload:
    def test_fields_expand_in_order(self, captured):
        with assembler(None).build_payload(captured) as payload:
            assert payload.data == {"title": ["upload image"], "tag": ["one", "two"]}
            assert [(field, entry[0], entry[2]) for field, entry in payload.files] == [
                ("images", "a.png", "image/png"),
                ("images", "b.gif", "image/gif"),
            ]

    def test_fallback_filename_and_content_type(self, tmp_path):
        form = CapturedForm()
        form.add_file(part(tmp_path, "x", b"X", "", ""))

        with assembler(None).build_payload(form) as payload:
            field, (filename, _, content_type) = payload.files[0]

        assert field == "images"
        assert filename == "file-0"
        assert content_type == "application/octet-stream"

    def test_handles_closed_after_use(self, captured):
        with assembler(None).build_payload(captured) as payload:
            handles = [entry[1] for _, entry in payload.files]

        assert all(handle.closed for handle in handles)

    def test_missing_temp_file_is_relay_error(self, captured):
        captured.all_parts()[1].temp_path.unlink()

        with pytest.raises(RelayError) as exc_info:
            assembler(None).build_payload(captured)

        assert "Failed to read captured file" in exc_info.value.details


class TestRelay:
    @pytest.mark.asyncio
    async def test_relays_every_field_and_file(self, captured):
        result = await assembler(httpx.ASGITransport(app=echo_backend())).relay(captured)

        assert result["success"] is True
        assert result["items"] == [
            {"field": "title", "value": "upload image"},
            {"field": "tag", "value": "one"},
            {"field": "tag", "value": "two"},
            {"field": "images", "filename": "a.png", "contentType": "image/png", "content": "AAA"},
            {"field": "images", "filename": "b.gif", "contentType": "image/gif", "content": "BBBB"},
        ]

    @pytest.mark.asyncio
    async def test_backend_json_returned_verbatim(self, captured):
        body = {"success": False, "message": "anything", "extra": [1, 2, 3]}
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=body))

        assert await assembler(transport).relay(captured) == body

    @pytest.mark.asyncio
    async def test_posts_multipart_to_upload_url(self, captured):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["content_type"] = request.headers["content-type"]
            return httpx.Response(200, json={"success": True})

        await assembler(httpx.MockTransport(handler)).relay(captured)

        assert seen["url"] == f"{BACKEND}/api/upload"
        assert seen["content_type"].startswith("multipart/form-data; boundary=")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [400, 404, 500, 503])
    async def test_non_2xx_status_is_relay_error(self, captured, status_code):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(status_code, json={"success": False})
        )

        with pytest.raises(RelayError) as exc_info:
            await assembler(transport).relay(captured)

        assert exc_info.value.status_code == 500
        assert exc_info.value.details == f"Backend responded with status: {status_code}"

    @pytest.mark.asyncio
    async def test_connection_failure_is_relay_error(self, captured):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        with pytest.raises(RelayError) as exc_info:
            await assembler(httpx.MockTransport(refuse)).relay(captured)

        assert exc_info.value.details == "Connection refused"

    @pytest.mark.asyncio
    async def test_timeout_is_relay_error(self, captured):
        def hang(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(RelayError):
            await assembler(httpx.MockTransport(hang)).relay(captured)

    @pytest.mark.asyncio
    async def test_non_json_body_is_relay_error(self, captured):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>oops</html>"))

        with pytest.raises(RelayError) as exc_info:
            await assembler(transport).relay(captured)

        assert exc_info.value.details == "Backend returned a non-JSON response"

    @pytest.mark.asyncio
    async def test_relay_does_not_remove_temp_files(self, captured):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=json.dumps({}).encode()))

        await assembler(transport).relay(captured)

        assert all(p.temp_path.exists() for p in captured.all_parts())


class ThreadRecordingFile(io.BytesIO):
    """In-memory file noting which threads read from it."""

    def __init__(self, data: bytes, threads: set):
        super().__init__(data)
        self.threads = threads

    def read(self, *args):
        self.threads.add(threading.get_ident())
        return super().read(*args)


class TestStreaming:
    @pytest.mark.asyncio
    async def test_captured_files_are_read_off_the_event_loop(self, captured):
        threads = set()

        def recording_open(path, mode="rb"):
            return ThreadRecordingFile(Path(path).read_bytes(), threads)

        with patch("upload_edge.services.relay_assembler.open", recording_open, create=True):
            result = await assembler(httpx.ASGITransport(app=echo_backend())).relay(captured)

        assert [item.get("content") for item in result["items"][3:]] == ["AAA", "BBBB"]
        assert threads
        assert threading.get_ident() not in threads

    @pytest.mark.asyncio
    async def test_streamed_body_keeps_content_length(self, captured):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["length"] = request.headers.get("content-length")
            seen["body"] = request.content
            seen["chunked"] = request.headers.get("transfer-encoding")
            return httpx.Response(200, json={"success": True})

        await assembler(httpx.MockTransport(handler)).relay(captured)

        assert seen["length"] == str(len(seen["body"]))
        assert seen["chunked"] is None
        assert b'name="title"' in seen["body"]
