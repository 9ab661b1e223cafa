"""Core domain models for the status relay.

These models describe the data that moves through a connection: the
upstream document as it sits in the cache, and the five-field projection
that goes back to the client on the wire.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Wire constants
# ---------------------------------------------------------------------------

COMMAND_DELIMITER = "\x07"
PROTOCOL_VERSION = "0.0.0"
REPLY_PREFIX = "REPLY:"


def format_reply(command: str, *fields: object) -> str:
    """Build a reply frame: ``REPLY:<command>`` followed by delimited fields.

    A reply with no fields still carries the trailing delimiter, which is
    how an empty acknowledgement looks on the wire.
    """
    payload = COMMAND_DELIMITER.join(str(f) for f in fields)
    return f"{REPLY_PREFIX}{command}{COMMAND_DELIMITER}{payload}"


# ---------------------------------------------------------------------------
# Status models
# ---------------------------------------------------------------------------


class StatusProjection(BaseModel):
    """The subset of an upstream status document relayed to clients.

    Validation is strict: integers must be JSON integers and strings must
    be JSON strings. Nothing is coerced.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    players: int = Field(description="Players currently connected")
    max_players: int = Field(alias="soft_max_players", description="Soft player cap")
    name: str = Field(description="Server display name")
    round_start_time: str = Field(description="Round start timestamp, as reported")
    run_level: int = Field(description="Server run level")

    def to_fields(self) -> tuple[int, int, str, str, int]:
        """Return the fields in wire order."""
        return (
            self.players,
            self.max_players,
            self.name,
            self.round_start_time,
            self.run_level,
        )

    def encode(self) -> str:
        """Render the projection as a delimiter-joined payload."""
        return COMMAND_DELIMITER.join(str(f) for f in self.to_fields())


class CacheEntry(BaseModel):
    """Last document fetched for one target."""

    model_config = ConfigDict(frozen=True)

    fetched_at: float = Field(description="Clock reading (seconds) when the document arrived")
    document: Any = Field(description="Parsed JSON document")

    def age(self, now: float) -> float:
        return now - self.fetched_at
