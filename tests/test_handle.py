"""
Tests for the per-consumer image handle.
"""

from __future__ import annotations

import asyncio

import pytest

from imgcache.cache.store import ImageCacheStore
from imgcache.resolution.handle import ImageHandle
from imgcache.resolution.policy import ImageResolver
from tests.conftest import DEFAULT_URI, FakeImageServer

FIRST = "https://img.example.com/first.jpg"
SECOND = "https://img.example.com/second.jpg"


class TestImageHandleState:
    """Test the displayed URI and checked flag."""

    @pytest.mark.asyncio
    async def test_starts_on_default(self, resolver: ImageResolver) -> None:
        handle = ImageHandle(resolver)

        assert handle.uri == DEFAULT_URI
        assert handle.checked is False
        assert handle.current is None

    @pytest.mark.asyncio
    async def test_update_sets_immediate_answer(
        self, resolver: ImageResolver, image_server: FakeImageServer
    ) -> None:
        image_server.add(FIRST, b"img")
        handle = ImageHandle(resolver)

        assert handle.update("course-1", authoritative=FIRST) == FIRST
        assert handle.checked is True
        await resolver.wait_pending()

    @pytest.mark.asyncio
    async def test_upgrade_replaces_remote_uri(
        self, resolver: ImageResolver, store: ImageCacheStore, image_server: FakeImageServer
    ) -> None:
        image_server.add(FIRST, b"img")
        changes: list[str] = []
        handle = ImageHandle(resolver, on_change=changes.append)

        handle.update("course-1", authoritative=FIRST)
        await resolver.wait_pending()

        local = str(store.path_for("course-1"))
        assert handle.uri == local
        assert changes == [FIRST, local]

    @pytest.mark.asyncio
    async def test_failed_upgrade_keeps_remote_uri(
        self, resolver: ImageResolver, image_server: FakeImageServer
    ) -> None:
        image_server.add(FIRST, b"", status=404)
        handle = ImageHandle(resolver)

        handle.update("course-1", authoritative=FIRST)
        await resolver.wait_pending()

        assert handle.uri == FIRST


class TestImageHandleSupersession:
    """Test cancellation when identifiers change or the handle closes."""

    @pytest.mark.asyncio
    async def test_unchanged_identifiers_keep_request(
        self, resolver: ImageResolver, image_server: FakeImageServer
    ) -> None:
        image_server.add(FIRST, b"img")
        handle = ImageHandle(resolver)

        handle.update("course-1", authoritative=FIRST)
        current = handle.current
        handle.update("course-1", authoritative=FIRST)

        assert handle.current is current
        assert resolver.pending == 1
        await resolver.wait_pending()

    @pytest.mark.asyncio
    async def test_new_identifiers_supersede_pending_upgrade(
        self, resolver: ImageResolver, store: ImageCacheStore, image_server: FakeImageServer
    ) -> None:
        image_server.add(FIRST, b"first")
        image_server.add(SECOND, b"second")
        image_server.gate = asyncio.Event()
        handle = ImageHandle(resolver)

        handle.update("course-1", authoritative=FIRST)
        stale = handle.current
        handle.update("course-2", authoritative=SECOND)
        image_server.gate.set()
        await resolver.wait_pending()

        assert stale.token.is_cancelled()
        assert handle.uri == str(store.path_for("course-2"))
        # The superseded download still lands for future callers
        assert store.path_for("course-1").read_bytes() == b"first"

    @pytest.mark.asyncio
    async def test_close_suppresses_upgrade(
        self, resolver: ImageResolver, image_server: FakeImageServer
    ) -> None:
        image_server.add(FIRST, b"img")
        image_server.gate = asyncio.Event()
        changes: list[str] = []
        handle = ImageHandle(resolver, on_change=changes.append)

        handle.update("course-1", authoritative=FIRST)
        handle.close()
        image_server.gate.set()
        await resolver.wait_pending()

        assert handle.uri == FIRST
        assert changes == [FIRST]
        assert handle.closed

    @pytest.mark.asyncio
    async def test_update_after_close_raises(self, resolver: ImageResolver) -> None:
        handle = ImageHandle(resolver)
        handle.close()

        with pytest.raises(RuntimeError):
            handle.update("course-1")
