"""HTTP status fetcher.

Performs a single bounded GET against an upstream status endpoint and
parses the body as JSON.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from statusrelay.upstream.base import (
    InvalidDocumentError,
    StatusSource,
    UpstreamStatusError,
    UpstreamTransportError,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESPONSE_SIZE = 2048
DEFAULT_TIMEOUT = 10.0


class HttpStatusFetcher(StatusSource):
    """Fetches status documents over HTTP(S) with a capped body size."""

    def __init__(
        self,
        max_response_size: int = DEFAULT_MAX_RESPONSE_SIZE,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._max_response_size = max_response_size
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def is_open(self) -> bool:
        return self._client is not None

    async def open(self) -> None:
        """Create the shared HTTP client."""
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            timeout=self._timeout,
            follow_redirects=True,
            transport=self._transport,
        )
        logger.info(
            "Upstream fetcher ready (timeout=%.1fs, max_response_size=%d)",
            self._timeout,
            self._max_response_size,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Upstream fetcher closed")

    async def fetch(self, target: str) -> Any:
        """GET ``target`` and return its parsed JSON body."""
        if not self.is_open:
            raise UpstreamTransportError("Fetcher is not open.")

        try:
            async with self._client.stream("GET", target) as response:
                if response.status_code != httpx.codes.OK:
                    logger.debug("Upstream %s answered %d", target, response.status_code)
                    raise UpstreamStatusError(response.status_code, target)
                body = await self._read_capped(response)
        except (httpx.HTTPError, httpx.StreamError, httpx.InvalidURL) as e:
            logger.debug("Upstream %s request failed: %r", target, e)
            raise UpstreamTransportError(str(e) or type(e).__name__) from e

        try:
            return json.loads(body)
        except (ValueError, RecursionError) as e:
            raise InvalidDocumentError(f"Upstream {target} did not return JSON: {e}") from e

    async def _read_capped(self, response: httpx.Response) -> bytes:
        """Read the response body, refusing anything over the size cap."""
        chunks: list[bytes] = []
        received = 0
        async for chunk in response.aiter_bytes():
            received += len(chunk)
            if received > self._max_response_size:
                raise UpstreamTransportError(
                    f"Response exceeded {self._max_response_size} bytes."
                )
            chunks.append(chunk)
        return b"".join(chunks)
