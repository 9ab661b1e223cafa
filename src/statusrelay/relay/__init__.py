"""The relay core: command state machine, response cache and extractor."""

from statusrelay.relay.cache import ResponseCache
from statusrelay.relay.extractor import extract_status
from statusrelay.relay.session import CommandFailed, CommandSession, ProtocolViolation

__all__ = [
    "CommandFailed",
    "CommandSession",
    "ProtocolViolation",
    "ResponseCache",
    "extract_status",
]
