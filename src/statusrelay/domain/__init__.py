"""Domain models shared across the relay."""

from statusrelay.domain.models import (
    COMMAND_DELIMITER,
    PROTOCOL_VERSION,
    CacheEntry,
    StatusProjection,
    format_reply,
)

__all__ = [
    "COMMAND_DELIMITER",
    "PROTOCOL_VERSION",
    "CacheEntry",
    "StatusProjection",
    "format_reply",
]
