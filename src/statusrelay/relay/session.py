"""Per-connection command protocol.

Each inbound text frame carries one command. The frame is split on the
0x07 control character: token 0 is the command name and the remaining
tokens are its arguments.

    VERSION                    -> REPLY:VERSION\\x070.0.0
    SETTARGET\\x07<http-url>     -> REPLY:SETTARGET\\x07
    READYFORDATA               -> REPLY:READYFORDATA\\x07<players>\\x07<max>\\x07<name>\\x07<start>\\x07<level>

Anything the client gets wrong is fatal to the connection. The session
raises ``ProtocolViolation`` and the transport closes the socket with the
violation's code and reason. Unknown commands are ignored unless the
session runs with ``strict_commands``.
"""

from __future__ import annotations

import logging

import httpx
from fastapi import status

from statusrelay.domain.models import COMMAND_DELIMITER, PROTOCOL_VERSION, format_reply
from statusrelay.relay.cache import ResponseCache
from statusrelay.upstream.base import FetchError, StatusSource

logger = logging.getLogger(__name__)

CMD_VERSION = "VERSION"
CMD_SET_TARGET = "SETTARGET"
CMD_READY = "READYFORDATA"

DEFAULT_MAX_MESSAGE_SIZE = 512


class ProtocolViolation(Exception):
    """Raised when a client frame must terminate the connection."""

    def __init__(self, reason: str, code: int = status.WS_1002_PROTOCOL_ERROR) -> None:
        super().__init__(reason)
        self.reason = reason
        self.code = code


class CommandFailed(ProtocolViolation):
    """A recognised command could not be carried out."""

    def __init__(self, command: str, reason: str) -> None:
        super().__init__(f"Command {command} failed: {reason}")
        self.command = command


class CommandSession:
    """Command state machine for one WebSocket connection.

    The only state is the selected target. It starts unset, and only
    SETTARGET changes it.
    """

    def __init__(
        self,
        cache: ResponseCache,
        source: StatusSource,
        max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE,
        strict_commands: bool = False,
    ) -> None:
        self._cache = cache
        self._source = source
        self._max_message_size = max_message_size
        self._strict_commands = strict_commands
        self.target: str | None = None

    async def handle_frame(self, text: str) -> str | None:
        """Process one inbound text frame.

        Returns:
            The reply frame to send, or None when nothing is sent back.

        Raises:
            ProtocolViolation: The connection must be closed.
        """
        if len(text.encode("utf-8")) > self._max_message_size:
            raise ProtocolViolation(
                f"Max message size is {self._max_message_size}.",
                code=status.WS_1009_MESSAGE_TOO_BIG,
            )

        command, *args = text.split(COMMAND_DELIMITER)
        logger.debug("Got command %s with %d argument(s)", command, len(args))

        if command == CMD_VERSION:
            return format_reply(CMD_VERSION, PROTOCOL_VERSION)
        if command == CMD_SET_TARGET:
            return self._set_target(args)
        if command == CMD_READY:
            return await self._ready_for_data()

        if self._strict_commands:
            raise ProtocolViolation(f"Unknown command {command!r}.")
        logger.debug("Ignoring unknown command %r", command)
        return None

    def _set_target(self, args: list[str]) -> str:
        if not args:
            raise CommandFailed(CMD_SET_TARGET, "Expected an argument.")

        target = parse_target(args[0])
        if target is None:
            raise CommandFailed(CMD_SET_TARGET, "Bad URI.")

        self.target = target
        logger.info("Target set to %s", target)
        return format_reply(CMD_SET_TARGET)

    async def _ready_for_data(self) -> str:
        if self.target is None:
            raise CommandFailed(CMD_READY, "No target set.")

        try:
            projection = await self._cache.get_or_fetch(self.target, self._source)
        except FetchError as e:
            logger.info("Fetching %s failed: %s", self.target, e)
            raise CommandFailed(CMD_READY, e.reason) from e

        return format_reply(CMD_READY, projection.encode())


def parse_target(raw: str) -> str | None:
    """Normalize ``raw`` into an absolute http(s) URL, or None if it is not one."""
    try:
        url = httpx.URL(raw)
    except httpx.InvalidURL:
        return None
    if url.scheme not in ("http", "https") or not url.host:
        return None
    return str(url)
