"""
On-disk image cache keyed by resource ID.

Each cached image lives at ``<root>/<resource_id><extension>``; the file's
presence is the only persisted state. Writes land in a hidden temp file in
the same directory and are moved into place with an atomic replace, so a
reader only ever sees no file or a complete one.
"""

from __future__ import annotations

import base64
import binascii
import os
import re
import shutil
from pathlib import Path
from uuid import uuid4

from imgcache.cache.base import ImageSource, ImageStore
from imgcache.config import Settings
from imgcache.exceptions import DecodeError, StorageError, TransferError
from imgcache.logging import get_logger
from imgcache.retrieval.fetch import ImageFetcher
from imgcache.types import ResourceId

logger = get_logger(__name__)

INLINE_PREFIX = "data:"
INLINE_HEADER = re.compile(r"^data:[^;,]+;base64,")
_INLINE_PATTERN = re.compile(r"^data:([^;,]+);base64,(.+)$", re.DOTALL)


def decode_inline(payload: str) -> bytes:
    """Decode a ``data:<mime>;base64,<payload>`` string.

    Raises:
        DecodeError: If the string is not a base64 data URL or the payload
            is not valid base64.
    """
    match = _INLINE_PATTERN.match(payload)
    if not match:
        raise DecodeError(
            "Inline payload is not a base64 data URL",
            context={"prefix": payload[:40]},
        )

    try:
        return base64.b64decode(match.group(2), validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(
            "Inline payload is not valid base64",
            context={"mime": match.group(1), "error": str(e)},
        ) from e


class ImageCacheStore(ImageStore):
    """Filesystem-backed image cache.

    Safe under concurrent writers to the same resource: each write uses its
    own temp file and the last replace wins.
    """

    def __init__(
        self,
        root: str | Path,
        extension: str = ".jpg",
        fetcher: ImageFetcher | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            root: Directory dedicated to cached images.
            extension: File extension for every entry.
            fetcher: Fetcher used for remote URLs.
        """
        self.root = Path(root)
        self.extension = extension
        self.fetcher = fetcher or ImageFetcher()

    @classmethod
    def from_settings(cls, settings: Settings) -> ImageCacheStore:
        """Build a store from application settings."""
        fetcher = ImageFetcher(
            timeout=settings.FETCH_TIMEOUT_SECONDS,
            max_attempts=settings.FETCH_MAX_ATTEMPTS,
            user_agent=settings.USER_AGENT,
        )
        return cls(settings.image_cache_dir, settings.IMAGE_EXTENSION, fetcher)

    async def close(self) -> None:
        """Close the underlying fetcher."""
        await self.fetcher.close()

    def path_for(self, resource_id: ResourceId) -> Path:
        return self.root / f"{resource_id}{self.extension}"

    def exists(self, resource_id: ResourceId) -> bool:
        try:
            return self.path_for(resource_id).is_file()
        except OSError as e:
            logger.debug("Cache existence check failed", resource_id=resource_id, error=str(e))
            return False

    def read(self, resource_id: ResourceId) -> Path | None:
        if self.exists(resource_id):
            return self.path_for(resource_id)
        return None

    def _ensure_root(self) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(
                "Failed to create cache directory",
                context={"path": str(self.root), "error": str(e)},
            ) from e

    def _temp_path(self, resource_id: ResourceId) -> Path:
        return self.root / f".{resource_id}.tmp.{uuid4().hex}"

    def _commit(self, tmp_path: Path, target: Path) -> None:
        try:
            os.replace(tmp_path, target)
        except OSError as e:
            raise StorageError(
                "Failed to move image into cache",
                context={"path": str(target), "error": str(e)},
            ) from e

    async def _write_to(self, source: ImageSource, tmp_path: Path) -> None:
        if isinstance(source, str) and not source.startswith(INLINE_PREFIX):
            await self.fetcher.download(source, tmp_path)
            return

        data = source if isinstance(source, bytes) else decode_inline(source)
        try:
            tmp_path.write_bytes(data)
        except OSError as e:
            raise StorageError(
                "Failed to write image",
                context={"path": str(tmp_path), "error": str(e)},
            ) from e

    async def write(self, resource_id: ResourceId, source: ImageSource) -> Path | None:
        """Persist an image from bytes, an inline payload, or a URL.

        Args:
            resource_id: Resource to store the image under.
            source: Raw bytes, ``data:<mime>;base64,<payload>``, or a URL.

        Returns:
            Path of the cached file, or None if anything failed. No partial
            file is left behind on failure.
        """
        target = self.path_for(resource_id)
        tmp_path: Path | None = None

        try:
            self._ensure_root()
            tmp_path = self._temp_path(resource_id)
            await self._write_to(source, tmp_path)
            self._commit(tmp_path, target)
        except DecodeError as e:
            logger.warning("Malformed inline image payload", resource_id=resource_id, error=str(e))
            return None
        except TransferError as e:
            logger.warning("Image transfer failed", resource_id=resource_id, error=str(e))
            return None
        except StorageError as e:
            logger.error("Image cache storage failure", resource_id=resource_id, error=str(e))
            return None
        finally:
            if tmp_path is not None:
                self._discard(tmp_path)

        logger.info("Cached image", resource_id=resource_id, path=str(target))
        return target

    def _discard(self, tmp_path: Path) -> None:
        # After a successful replace the temp name no longer exists
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Failed to remove temp file", path=str(tmp_path), error=str(e))

    def delete(self, resource_id: ResourceId) -> None:
        path = self.path_for(resource_id)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error("Failed to delete cached image", path=str(path), error=str(e))

    def clear(self) -> None:
        try:
            shutil.rmtree(self.root)
        except FileNotFoundError:
            return
        except OSError as e:
            logger.error("Failed to clear image cache", path=str(self.root), error=str(e))
            return
        logger.info("Cleared image cache", path=str(self.root))
