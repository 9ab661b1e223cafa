"""Abstract base class for upstream status sources.

A status source turns a target URL into a parsed JSON document, or raises
one of the ``FetchError`` subclasses below. Each subclass carries the
exact reason text that is reported to the client when a READYFORDATA
command fails, so callers never have to map exceptions to messages.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

logger = logging.getLogger(__name__)


class StatusSource(ABC):
    """Interface for fetching one status document from an upstream target.

    Example usage::

        async with HttpStatusFetcher(max_response_size=2048) as fetcher:
            document = await fetcher.fetch("https://example.org/status")
    """

    @abstractmethod
    async def open(self) -> None:
        """Acquire any network resources needed for fetching."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release network resources. Safe to call more than once."""
        ...

    @abstractmethod
    async def fetch(self, target: str) -> Any:
        """Fetch and parse the JSON document served at ``target``.

        Args:
            target: Absolute HTTP(S) URL of the status endpoint.

        Returns:
            The parsed JSON value (usually a dict).

        Raises:
            UpstreamStatusError: The upstream answered with a non-200 status.
            InvalidDocumentError: The body was not valid JSON.
            UpstreamTransportError: The request failed before a usable
                body arrived (network error, timeout, oversize body).
        """
        ...

    async def __aenter__(self) -> StatusSource:
        await self.open()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.close()


class FetchError(Exception):
    """Raised when a status document cannot be obtained."""

    def __init__(self, message: str, reason: str) -> None:
        super().__init__(message)
        self.reason = reason


class UpstreamStatusError(FetchError):
    """The upstream answered with something other than 200 OK."""

    def __init__(self, status_code: int, target: str = "") -> None:
        super().__init__(
            f"Upstream {target or '<unknown>'} returned HTTP {status_code}",
            reason="Couldn't read status.",
        )
        self.status_code = status_code


class InvalidDocumentError(FetchError):
    """The upstream body could not be used as a status document."""

    def __init__(self, message: str) -> None:
        super().__init__(message, reason="Didn't get valid JSON.")


class SchemaMismatchError(InvalidDocumentError):
    """The document parsed as JSON but lacks the expected status fields."""


class UpstreamTransportError(FetchError):
    """The request failed at the network level."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Upstream request failed: {detail}", reason=f"Couldn't read: {detail}")
        self.detail = detail
