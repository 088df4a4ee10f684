"""
Resolution policy: what to display now, and what to fetch in the background.

Order of the synchronous answer (first match wins):
1. a real authoritative or legacy candidate, with a background cache write
2. an existing cache entry for the resource
3. any non-empty candidate, even a placeholder
4. the default placeholder URI

The remote source of truth always beats the local cache, so an updated
remote image is never hidden behind a stale cached copy. Without a real
remote source the cache beats leftover candidate values, since it was only
ever filled from a real source.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from imgcache.cache.base import ImageStore
from imgcache.cache.store import ImageCacheStore
from imgcache.config import DEFAULT_COURSE_IMAGE, Settings
from imgcache.exceptions import ImageCacheError
from imgcache.logging import get_logger, log_context
from imgcache.resolution.classify import is_real_image
from imgcache.resolution.tokens import RequestToken
from imgcache.types import CandidateSource, ResolutionOrigin, ResourceId

logger = get_logger(__name__)

UpgradeCallback = Callable[[str], None]


@dataclass
class Resolution:
    """Synchronous answer of a resolution plus its pending upgrade."""

    resource_id: ResourceId
    uri: str
    origin: ResolutionOrigin
    token: RequestToken
    upgrade: asyncio.Task[Path | None] | None = None

    def cancel(self) -> None:
        """Stop delivering the upgrade for this request."""
        self.token.cancel()


class ImageResolver:
    """Resolves display URIs for cached images.

    resolve() never blocks on the network and never raises; background
    upgrades run as asyncio tasks on the running loop.
    """

    def __init__(self, store: ImageStore, default_uri: str = DEFAULT_COURSE_IMAGE) -> None:
        """Initialize the resolver.

        Args:
            store: Persistent store that background upgrades write into.
            default_uri: Placeholder returned when nothing else is known.
        """
        self.store = store
        self.default_uri = default_uri
        self._tasks: set[asyncio.Task[Path | None]] = set()

    @classmethod
    def from_settings(cls, settings: Settings) -> ImageResolver:
        """Build a resolver and its store from application settings."""
        return cls(ImageCacheStore.from_settings(settings), settings.DEFAULT_IMAGE_URL)

    @property
    def pending(self) -> int:
        """Number of background upgrades still running."""
        return len(self._tasks)

    def resolve(
        self,
        resource_id: ResourceId,
        authoritative: str | None = None,
        legacy: str | None = None,
        on_upgrade: UpgradeCallback | None = None,
    ) -> Resolution:
        """Resolve the best URI to display right now.

        Args:
            resource_id: Resource to resolve.
            authoritative: URL or inline payload from the system of record.
            legacy: Deprecated fallback URL.
            on_upgrade: Called with the local path once a background write
                succeeds, unless the request was cancelled first.

        Returns:
            Resolution with the URI to display immediately.
        """
        sources = CandidateSource(authoritative, legacy)
        token = RequestToken((resource_id, authoritative, legacy))

        for origin, url in sources.candidates():
            if is_real_image(url):
                upgrade = self._schedule_upgrade(token, url, on_upgrade)
                logger.debug("Resolved to remote source", resource_id=resource_id, origin=origin.value)
                return Resolution(resource_id, url, origin, token, upgrade)

        try:
            cached = self.store.read(resource_id)
        except (ImageCacheError, OSError) as e:
            logger.warning("Cache lookup failed", resource_id=resource_id, error=str(e))
            cached = None

        if cached is not None:
            logger.debug("Resolved to cached image", resource_id=resource_id)
            return Resolution(resource_id, str(cached), ResolutionOrigin.CACHE, token)

        candidates = sources.candidates()
        if candidates:
            return Resolution(resource_id, candidates[0][1], ResolutionOrigin.UNCLASSIFIED, token)

        return Resolution(resource_id, self.default_uri, ResolutionOrigin.DEFAULT, token)

    def _schedule_upgrade(
        self,
        token: RequestToken,
        url: str,
        on_upgrade: UpgradeCallback | None,
    ) -> asyncio.Task[Path | None] | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop, skipping background upgrade", resource_id=token.resource_id)
            return None

        task = loop.create_task(
            self._upgrade(token, url, on_upgrade),
            name=f"imgcache-upgrade-{token.request_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    async def _upgrade(
        self,
        token: RequestToken,
        url: str,
        on_upgrade: UpgradeCallback | None,
    ) -> Path | None:
        with log_context(resource_id=token.resource_id, request_id=token.request_id):
            path = await self.store.write(token.resource_id, url)

            if path is None:
                logger.info("Background upgrade failed, keeping remote source")
                return None

            if token.is_cancelled():
                logger.debug("Request no longer current, upgrade not delivered")
                return path

            if on_upgrade is not None:
                on_upgrade(str(path))
            return path

    def _on_task_done(self, task: asyncio.Task[Path | None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background upgrade raised", task=task.get_name(), error=repr(exc))

    async def wait_pending(self) -> None:
        """Wait for every in-flight background upgrade to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Drain background upgrades and close the store."""
        await self.wait_pending()
        await self.store.close()
