"""
Pytest configuration and fixtures
"""

import io

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from image_store.config import Settings as StoreSettings
from image_store.main import create_app as create_store_app
from upload_edge.config import Settings as EdgeSettings
from upload_edge.main import create_app as create_edge_app
from upload_edge.routes.relay import get_relay_assembler
from upload_edge.services.relay_assembler import RelayAssembler

STORE_URL = "http://store.test"


@pytest.fixture
def store_settings(tmp_path):
    """Image store settings pointing at a per-test directory"""
    return StoreSettings(
        STORAGE_PATH=str(tmp_path / "store" / "uploads"),
        STAGING_PATH=str(tmp_path / "store" / "staging"),
    )


@pytest.fixture
def store_app(store_settings):
    return create_store_app(store_settings)


@pytest.fixture
def store_client(store_app):
    """Image store test client fixture"""
    return TestClient(store_app)


@pytest.fixture
def edge_settings(tmp_path):
    """Upload edge settings pointing at a per-test capture directory"""
    return EdgeSettings(
        BACKEND_URL=STORE_URL,
        TEMP_PATH=str(tmp_path / "edge" / "captures"),
        RELAY_TIMEOUT_SECONDS=5.0,
    )


@pytest.fixture
def relay_to():
    """Factory wiring an edge app's relay to any ASGI app or httpx transport."""

    def wire(edge_app, target):
        transport = target if isinstance(target, httpx.AsyncBaseTransport) else httpx.ASGITransport(app=target)
        settings = edge_app.state.settings
        edge_app.dependency_overrides[get_relay_assembler] = lambda: RelayAssembler(
            backend_url=settings.BACKEND_URL,
            upload_path=settings.BACKEND_UPLOAD_PATH,
            timeout=settings.RELAY_TIMEOUT_SECONDS,
            transport=transport,
        )
        return edge_app

    return wire


@pytest.fixture
def edge_app(edge_settings, store_app, relay_to):
    """Upload edge relaying in-process to the image store"""
    return relay_to(create_edge_app(edge_settings), store_app)


@pytest.fixture
def edge_client(edge_app):
    """Upload edge test client fixture"""
    return TestClient(edge_app)


def _encode_image(fmt: str) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color=(200, 30, 30)).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    """A genuine PNG image"""
    return _encode_image("PNG")


@pytest.fixture
def jpeg_bytes():
    """A genuine JPEG image"""
    return _encode_image("JPEG")


@pytest.fixture
def fake_png_bytes():
    """Bytes declared as PNG whose signature is all zeros"""
    return b"\x00" * 8 + b"not really an image"
