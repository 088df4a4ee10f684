"""
Classification of candidate image URLs.

A candidate is "real" when it is an inline base64 payload or a URL that
does not point at the baked-in default image. Any other ``data:`` string
cannot be cached and is treated as unsupported.
"""

from __future__ import annotations

from imgcache.cache.store import INLINE_HEADER, INLINE_PREFIX
from imgcache.types import SourceKind

# Substrings identifying the default course image
PLACEHOLDER_MARKERS: tuple[str, ...] = (
    "unsplash.com",
    "photo-1587174486073-ae5e5cff23aa",
)


def is_inline_payload(url: str | None) -> bool:
    """Whether url is a ``data:<mime>;base64,`` payload the store can decode."""
    return bool(url) and INLINE_HEADER.match(url) is not None


def is_placeholder(url: str | None) -> bool:
    """Whether url points at the default placeholder image."""
    if not url or url.startswith(INLINE_PREFIX):
        return False
    return any(marker in url for marker in PLACEHOLDER_MARKERS)


def classify(url: str | None) -> SourceKind:
    if not url:
        return SourceKind.ABSENT
    if is_inline_payload(url):
        return SourceKind.INLINE
    if url.startswith(INLINE_PREFIX):
        return SourceKind.UNSUPPORTED
    if is_placeholder(url):
        return SourceKind.PLACEHOLDER
    return SourceKind.REMOTE


def is_real_image(url: str | None) -> bool:
    return classify(url).is_real
