import io
import struct
import zlib
from functools import partial

import httpx
import pytest
import pytest_asyncio
from PIL import Image
from fastapi.testclient import TestClient

from metadata_viewer import main
from metadata_viewer.metadata.fetcher import BoundedFetcher
from metadata_viewer.storage.blob_store import TransientBlobStore


def make_image_bytes(fmt="PNG", size=(100, 50), **save_kwargs):
    """Generate a small valid image in-memory."""
    img = Image.new("RGB", size, color="red")
    buf = io.BytesIO()
    img.save(buf, format=fmt, **save_kwargs)
    return buf.getvalue()


def png_header_bytes(width, height):
    """A PNG holding only IHDR, an empty IDAT and IEND."""
    def chunk(kind, payload):
        crc = zlib.crc32(kind + payload) & 0xFFFFFFFF
        return struct.pack(">I", len(payload)) + kind + payload + struct.pack(">I", crc)

    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", ihdr) + chunk(b"IDAT", b"") + chunk(b"IEND", b"")


class FakeClock:
    """Manually advanced stand-in for time.time."""

    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeRemote:
    """Serves canned responses through httpx.MockTransport.

    A route is either (status, content, headers) or a callable taking the
    request and returning an httpx.Response (sync or async).
    """

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, url, status=200, content=b"", headers=None):
        self.routes[url] = (status, content, headers or {})

    def handler(self, request):
        self.requests.append(request)
        route = self.routes.get(str(request.url))
        if route is None:
            raise httpx.ConnectError("connection refused", request=request)
        if callable(route):
            return route(request)
        status, content, headers = route
        return httpx.Response(status, content=content, headers=headers)

    @property
    def transport(self):
        return httpx.MockTransport(self.handler)


@pytest.fixture
def png_bytes():
    return make_image_bytes("PNG", (100, 50))


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def remote():
    return FakeRemote()


@pytest_asyncio.fixture
async def fetcher(remote):
    f = BoundedFetcher(timeout=2.0, transport=remote.transport)
    yield f
    await f.aclose()


@pytest.fixture(scope="function")
def test_client(monkeypatch, remote, fake_clock):
    # The lifespan builds its resources from these names
    monkeypatch.setattr(main, "BoundedFetcher", partial(BoundedFetcher, transport=remote.transport))
    monkeypatch.setattr(main, "TransientBlobStore", partial(TransientBlobStore, clock=fake_clock, start_sweeper=False))

    with TestClient(main.app) as client:
        yield client
