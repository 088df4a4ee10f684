"""
Request-scoped cancellation for background upgrades.

Each resolution gets a RequestToken. A background upgrade delivers its
result only while the token is current; cancelling it suppresses the
notification but leaves the in-flight download running, since the cached
file stays useful to later requests.
"""

from __future__ import annotations

from imgcache.types import ResourceId, generate_id

# (resource_id, authoritative, legacy)
RequestKey = tuple[ResourceId, str | None, str | None]


class RequestToken:
    """Cooperative cancellation token bound to one resolution request.

    Examples:
        >>> token = RequestToken(("course-42", None, None))
        >>> token.is_cancelled()
        False
        >>> token.cancel()
        >>> token.is_cancelled()
        True
    """

    def __init__(self, key: RequestKey) -> None:
        self.key = key
        self.request_id = generate_id("req")
        self._cancelled = False

    @property
    def resource_id(self) -> ResourceId:
        return self.key[0]

    def cancel(self) -> None:
        """Withdraw interest in this request's results."""
        self._cancelled = True

    def is_cancelled(self) -> bool:
        return self._cancelled

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"RequestToken({self.request_id!r}, resource_id={self.resource_id!r}, {state})"
