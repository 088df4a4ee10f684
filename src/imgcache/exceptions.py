"""
Custom exception hierarchy for the image cache.

All exceptions inherit from ImageCacheError, which provides optional context
for structured error handling and logging. The runtime kinds (decode,
transfer, storage) are raised internally and absorbed at the store and
resolver boundaries; callers only see degraded return values.
"""

from __future__ import annotations

from typing import Any


class ImageCacheError(Exception):
    """Base exception for all image cache errors.

    Attributes:
        message: Human-readable error message.
        context: Optional structured context for logging/debugging.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class ConfigurationError(ImageCacheError):
    """Raised when configuration is invalid or missing."""

    pass


class DecodeError(ImageCacheError):
    """Raised when an inline data payload cannot be decoded.

    Context includes:
        - prefix: Start of the payload, when the data URL header is wrong
        - mime: Declared MIME type, when the base64 body is invalid
        - error: Decoder message for an invalid body
    """

    pass


class TransferError(ImageCacheError):
    """Raised when fetching a remote image fails.

    Context should include:
        - url: The URL that was being fetched
        - status_code: HTTP status code if a response was received
        - error: Underlying transport error, if any
    """

    pass


class StorageError(ImageCacheError):
    """Raised when a filesystem operation on the cache fails.

    Context should include:
        - path: The path being accessed
        - error: The underlying OS error
    """

    pass
