import asyncio
import io
import os
import socket
import sys
import urllib.request
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]

# Prefer repo sources over any installed package.
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

# Settings are read at import time, so they must be in place before the app loads.
TEST_ENV = {
    "APP_PASSWORD": "letmein",
    "SECRET_KEY": "test-secret-key",
    "REDIS_URL": "",
    "LOGIN_RATE_LIMIT": "3",
    "LOGIN_RATE_WINDOW": "300",
    "CONSTANT_CONTACT_CLIENT_ID": "cc-client",
    "CONSTANT_CONTACT_CLIENT_SECRET": "cc-secret",
    "CONSTANT_CONTACT_ACCESS_TOKEN": "",
    "CONSTANT_CONTACT_REFRESH_TOKEN": "",
    "CONSTANT_CONTACT_FROM_EMAIL": "deals@example.com",
    "BUSINESS_ADDRESS_LINE1": "100 Main St",
    "BUSINESS_CITY": "Jacksonville",
    "BUSINESS_STATE": "FL",
    "BUSINESS_POSTAL_CODE": "32202",
    "SQUARE_ENVIRONMENT": "sandbox",
    "SQUARE_ACCESS_TOKEN": "sq-token",
    "SQUARE_APPLICATION_ID": "sq-app",
    "SQUARE_LOCATION_ID": "sq-location",
    "PAYMENT_BASE_AMOUNT": "19900",
    "IMAGE_HOST": "r2",
}
os.environ.update(TEST_ENV)


@pytest.fixture(autouse=True)
def block_network(monkeypatch):
    if os.getenv("LIVE") == "1":
        return

    real_connect = socket.socket.connect

    def guarded_connect(sock, address):
        host = address[0]
        if host not in ("127.0.0.1", "localhost"):
            raise RuntimeError("Network access blocked in tests")
        return real_connect(sock, address)

    monkeypatch.setattr(socket.socket, "connect", guarded_connect)
    monkeypatch.setattr(
        urllib.request,
        "urlopen",
        lambda *args, **kwargs: (_ for _ in ()).throw(
            RuntimeError("Network access blocked in tests")
        ),
    )


@pytest.fixture(autouse=True)
def reset_rate_limits():
    from dealdispo.rate_limiter import reset_rate_limits

    reset_rate_limits()
    yield
    reset_rate_limits()


@pytest.fixture
def app():
    from dealdispo.main import app

    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    return TestClient(app)


@pytest.fixture
def auth_headers():
    from dealdispo.auth import create_session_token

    return {"Authorization": f"Bearer {create_session_token()}"}


def make_image(width: int, height: int, fmt: str = "PNG") -> bytes:
    from PIL import Image

    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=(200, 120, 40)).save(buffer, format=fmt)
    return buffer.getvalue()


class FakeImageHost:
    """Records uploads and hands back predictable URLs"""

    def __init__(self, fail: bool = False, delay: float = 0):
        self.fail = fail
        self.delay = delay
        self.uploads = []

    async def upload(self, contents, filename, content_type):
        from dealdispo.services.image_host import ImageHostError

        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ImageHostError("Upload failed: host unavailable", status_code=503)
        self.uploads.append((filename, content_type, len(contents)))
        return f"https://cdn.example.com/listings/{len(self.uploads)}-{filename}"


@pytest.fixture
def image_factory():
    return make_image


@pytest.fixture
def fake_host():
    return FakeImageHost()


@pytest.fixture
def failing_host():
    return FakeImageHost(fail=True)


@pytest.fixture
def slow_host():
    return FakeImageHost(delay=0.2)
