"""Upstream status sources for the relay.

Public API:
    StatusSource -- Abstract base class for fetching a status document
    HttpStatusFetcher -- httpx-backed fetcher for HTTP(S) status endpoints
    FetchError and subclasses -- typed upstream failures
"""

from statusrelay.upstream.base import (
    FetchError,
    InvalidDocumentError,
    SchemaMismatchError,
    StatusSource,
    UpstreamStatusError,
    UpstreamTransportError,
)

__all__ = [
    "FetchError",
    "HttpStatusFetcher",
    "InvalidDocumentError",
    "SchemaMismatchError",
    "StatusSource",
    "UpstreamStatusError",
    "UpstreamTransportError",
]


def __getattr__(name: str) -> type:
    """Lazy import for the httpx-backed implementation."""
    if name == "HttpStatusFetcher":
        from statusrelay.upstream.http_fetcher import HttpStatusFetcher
        return HttpStatusFetcher
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
