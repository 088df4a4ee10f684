"""
Pytest configuration and fixtures for image cache tests.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import AsyncGenerator, AsyncIterator, Generator
from unittest.mock import patch

import httpx
import pytest

from imgcache.cache.store import ImageCacheStore
from imgcache.config import Settings, clear_settings_cache
from imgcache.resolution.policy import ImageResolver
from imgcache.retrieval.fetch import ImageFetcher

DEFAULT_URI = "https://images.unsplash.com/photo-1587174486073-ae5e5cff23aa?w=800"


class _TruncatedStream(httpx.AsyncByteStream):
    """Body that yields its head and then drops the connection."""

    def __init__(self, head: bytes) -> None:
        self.head = head

    async def __aiter__(self) -> AsyncIterator[bytes]:
        yield self.head
        raise httpx.ReadError("connection reset mid-body")


class FakeImageServer:
    """In-process HTTP origin for httpx.MockTransport.

    Unknown URLs answer 404. Setting ``gate`` holds every response until
    the event is set, which lets tests act while a download is in flight.
    URLs registered with ``truncate`` send a 200 and part of the body, then
    fail with a read error.
    """

    def __init__(self) -> None:
        self.routes: dict[str, tuple[int, bytes]] = {}
        self.requests: list[httpx.Request] = []
        self.failures: dict[str, int] = {}
        self.truncated: dict[str, bytes] = {}
        self.gate: asyncio.Event | None = None

    def add(self, url: str, body: bytes, status: int = 200) -> None:
        self.routes[url] = (status, body)

    def fail_times(self, url: str, count: int) -> None:
        """Raise a connect error for the next ``count`` requests to url."""
        self.failures[url] = count

    def truncate(self, url: str, head: bytes) -> None:
        """Serve head for url, then reset the connection before the body ends."""
        self.truncated[url] = head

    def requested(self, url: str) -> int:
        return sum(1 for request in self.requests if str(request.url) == url)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)

        if self.gate is not None:
            await self.gate.wait()

        if self.failures.get(url, 0) > 0:
            self.failures[url] -= 1
            raise httpx.ConnectError("connection refused", request=request)

        if url in self.truncated:
            return httpx.Response(
                200,
                stream=_TruncatedStream(self.truncated[url]),
                headers={"Content-Type": "image/jpeg"},
            )

        status, body = self.routes.get(url, (404, b""))
        return httpx.Response(status, content=body, headers={"Content-Type": "image/jpeg"})


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test outputs."""
    return tmp_path


@pytest.fixture
def image_server() -> FakeImageServer:
    return FakeImageServer()


@pytest.fixture
async def fetcher(image_server: FakeImageServer) -> AsyncGenerator[ImageFetcher, None]:
    """Fetcher wired to the fake image server, with no retry delay."""
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(image_server.handler),
        headers={"User-Agent": "imgcache-tests"},
    )
    yield ImageFetcher(client=client, max_attempts=2, backoff=0)
    await client.aclose()


@pytest.fixture
def store(temp_dir: Path, fetcher: ImageFetcher) -> ImageCacheStore:
    """Image cache store rooted in the temp directory."""
    return ImageCacheStore(temp_dir / "course-images", ".jpg", fetcher)


@pytest.fixture
def resolver(store: ImageCacheStore) -> ImageResolver:
    return ImageResolver(store, default_uri=DEFAULT_URI)


@pytest.fixture
def mock_env_vars(temp_dir: Path) -> Generator[dict[str, str], None, None]:
    """Provide environment variables pointing the cache at temp_dir."""
    env_vars = {
        "CACHE_DIR": str(temp_dir / "cache"),
        "IMAGE_CACHE_SUBDIR": "course-images",
        "IMAGE_EXTENSION": ".jpg",
        "FETCH_TIMEOUT_SECONDS": "5",
        "FETCH_MAX_ATTEMPTS": "2",
        "LOG_LEVEL": "DEBUG",
    }

    with patch.dict(os.environ, env_vars, clear=False):
        clear_settings_cache()
        yield env_vars


@pytest.fixture
def mock_settings(mock_env_vars: dict[str, str]) -> Generator[Settings, None, None]:
    """Provide a Settings instance with mock configuration."""
    from imgcache.config import get_settings

    settings = get_settings()
    yield settings
    clear_settings_cache()


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Automatically reset settings cache before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()
