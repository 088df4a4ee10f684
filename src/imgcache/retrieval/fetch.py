"""
Remote image fetcher.

Streams an HTTP response body into a local file. Only a success (2xx)
status is treated as a usable result; anything else raises TransferError.
"""

from __future__ import annotations

from pathlib import Path

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from imgcache import __version__
from imgcache.exceptions import StorageError, TransferError
from imgcache.logging import get_logger

logger = get_logger(__name__)

USER_AGENT = f"imgcache/{__version__}"

# Request timeout
REQUEST_TIMEOUT = 30.0

# Transient failures worth another attempt; status failures are not retried
RETRYABLE_ERRORS = (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError)


class ImageFetcher:
    """Downloads remote images over HTTP.

    Features:
    - Lazily created, reusable httpx.AsyncClient
    - Streaming writes so large images never sit fully in memory
    - Exponential backoff on transport errors via tenacity
    """

    def __init__(
        self,
        timeout: float = REQUEST_TIMEOUT,
        max_attempts: int = 3,
        user_agent: str = USER_AGENT,
        backoff: float = 1.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            timeout: Request timeout in seconds.
            max_attempts: Attempts per download on transport errors.
            user_agent: User-Agent header value.
            backoff: Base delay in seconds for exponential backoff.
            client: Optional pre-built client (not closed by close()).
        """
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.user_agent = user_agent
        self.backoff = backoff
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _stream_to(self, client: httpx.AsyncClient, url: str, dest: Path) -> int:
        async with client.stream("GET", url) as response:
            if not response.is_success:
                raise TransferError(
                    f"Unexpected status {response.status_code} fetching image",
                    context={"url": url, "status_code": response.status_code},
                )

            written = 0
            try:
                with dest.open("wb") as fh:
                    async for chunk in response.aiter_bytes():
                        fh.write(chunk)
                        written += len(chunk)
            except OSError as e:
                raise StorageError(
                    "Failed to write downloaded image",
                    context={"path": str(dest), "error": str(e)},
                ) from e

        return written

    async def download(self, url: str, dest: Path) -> int:
        """Download url into dest, overwriting it.

        dest may be left partially written on failure; callers are
        expected to write to a temporary path and rename on success.

        Args:
            url: Remote URL to GET.
            dest: Local file to write the body to.

        Returns:
            Number of bytes written.

        Raises:
            TransferError: On transport failure or a non-2xx status.
            StorageError: If dest cannot be written.
        """
        client = await self._get_client()
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff, min=self.backoff, max=10 * self.backoff),
            reraise=True,
        )

        try:
            written = await retrying(self._stream_to, client, url, dest)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransferError(
                "Failed to fetch image",
                context={"url": url, "error": f"{type(e).__name__}: {e}"},
            ) from e

        logger.debug("Downloaded image", url=url[:80], size=written)
        return written
