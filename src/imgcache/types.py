"""
Core types for the image cache.

This module defines the fundamental data structures used throughout the system:
- Enums for source classification and resolution origin
- Frozen dataclass for the candidate sources presented at call time
- Helper for request ID generation
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from uuid6 import uuid7

# Opaque, filesystem-safe identifier of a cacheable image (e.g. a course ID)
ResourceId = str


def generate_id(prefix: str = "") -> str:
    """Generate a time-ordered unique ID using UUID7.

    Args:
        prefix: Optional prefix for the ID (e.g., "req")

    Returns:
        A unique ID string, optionally prefixed.
    """
    uid = str(uuid7())
    return f"{prefix}_{uid}" if prefix else uid


class SourceKind(str, Enum):
    """Classification of a candidate image URL."""

    INLINE = "inline"  # data:<mime>;base64,<payload>
    REMOTE = "remote"  # Real remote image URL
    PLACEHOLDER = "placeholder"  # Points at the baked-in default image
    UNSUPPORTED = "unsupported"  # data: URL without a base64 payload
    ABSENT = "absent"  # None or empty

    @property
    def is_real(self) -> bool:
        return self in (SourceKind.INLINE, SourceKind.REMOTE)


class ResolutionOrigin(str, Enum):
    """Which rule produced the synchronous answer of a resolution."""

    AUTHORITATIVE = "authoritative"
    LEGACY = "legacy"
    CACHE = "cache"
    UNCLASSIFIED = "unclassified"  # Placeholder-classified candidate passed through
    DEFAULT = "default"


@dataclass(frozen=True)
class CandidateSource:
    """Candidate URLs for a resource, presented per resolution call.

    Neither URL is persisted; the cache only stores bytes keyed by
    resource ID. Empty strings are treated as absent.
    """

    authoritative: str | None = None
    legacy: str | None = None

    def candidates(self) -> list[tuple[ResolutionOrigin, str]]:
        """Non-empty candidates in precedence order."""
        ordered = [
            (ResolutionOrigin.AUTHORITATIVE, self.authoritative),
            (ResolutionOrigin.LEGACY, self.legacy),
        ]
        return [(origin, url) for origin, url in ordered if url]
