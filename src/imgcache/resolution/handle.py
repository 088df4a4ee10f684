"""
Per-consumer image handle.

An ImageHandle holds the URI one display surface is currently showing. When
its identifiers change it cancels the previous request before resolving
again, and close() stops any pending upgrade from reaching it.
"""

from __future__ import annotations

from collections.abc import Callable

from imgcache.resolution.policy import ImageResolver, Resolution
from imgcache.types import ResourceId


class ImageHandle:
    """Tracks the displayed URI for one consumer.

    Attributes:
        uri: URI to display; starts as the resolver's default placeholder.
        checked: True once a resolution has produced a synchronous answer.
    """

    def __init__(
        self,
        resolver: ImageResolver,
        on_change: Callable[[str], None] | None = None,
    ) -> None:
        self.resolver = resolver
        self.on_change = on_change
        self.uri = resolver.default_uri
        self.checked = False
        self._current: Resolution | None = None
        self._closed = False

    @property
    def current(self) -> Resolution | None:
        """The request this handle is currently listening to."""
        return self._current

    @property
    def closed(self) -> bool:
        return self._closed

    def update(
        self,
        resource_id: ResourceId,
        authoritative: str | None = None,
        legacy: str | None = None,
    ) -> str:
        """Point the handle at a resource and return the URI to display.

        Unchanged identifiers keep the current request; anything else
        supersedes it.
        """
        if self._closed:
            raise RuntimeError("ImageHandle is closed")

        key = (resource_id, authoritative, legacy)
        if self._current is not None:
            if self._current.token.key == key:
                return self.uri
            self._current.cancel()

        self._current = self.resolver.resolve(
            resource_id, authoritative, legacy, on_upgrade=self._set_uri
        )
        self._set_uri(self._current.uri)
        self.checked = True
        return self.uri

    def _set_uri(self, uri: str) -> None:
        if uri == self.uri:
            return
        self.uri = uri
        if self.on_change is not None:
            self.on_change(uri)

    def close(self) -> None:
        """Stop listening; pending upgrades are no longer delivered."""
        if self._current is not None:
            self._current.cancel()
        self._closed = True
