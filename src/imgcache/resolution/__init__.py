"""
Resolution policy for cached images.

- classify: Placeholder detection and source classification
- RequestToken: Request-scoped cancellation of background upgrades
- ImageResolver / Resolution: Synchronous answer plus background upgrade
- ImageHandle: Per-consumer holder of the displayed URI
"""

from imgcache.resolution.classify import (
    PLACEHOLDER_MARKERS,
    classify,
    is_inline_payload,
    is_placeholder,
    is_real_image,
)
from imgcache.resolution.handle import ImageHandle
from imgcache.resolution.policy import ImageResolver, Resolution
from imgcache.resolution.tokens import RequestToken

__all__ = [
    "PLACEHOLDER_MARKERS",
    "ImageHandle",
    "ImageResolver",
    "RequestToken",
    "Resolution",
    "classify",
    "is_inline_payload",
    "is_placeholder",
    "is_real_image",
]
