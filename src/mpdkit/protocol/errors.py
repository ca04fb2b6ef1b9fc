"""Error types raised by the mpdkit protocol engine."""

from __future__ import annotations

import re
from enum import IntEnum

ACK_PREFIX = "ACK "

_ACK_RE = re.compile(r"^ACK \[(?P<code>\d+)@(?P<index>\d+)\] \{(?P<command>[^}]*)\} ?(?P<text>.*)$")


class ErrorCode(IntEnum):
    """Error codes the daemon embeds in ACK lines."""

    NOT_LIST = 1
    ARG = 2
    PASSWORD = 3
    PERMISSION = 4
    UNKNOWN = 5

    NO_EXIST = 50
    PLAYLIST_MAX = 51
    SYSTEM = 52
    PLAYLIST_LOAD = 53
    UPDATE_ALREADY = 54
    PLAYER_SYNC = 55
    EXIST = 56


class MPDError(Exception):
    """Base class for every mpdkit error."""


class ACKError(MPDError):
    """The daemon rejected or failed a command.

    The message is the ACK line exactly as received. When the line follows the
    usual ``ACK [code@index] {command} text`` layout the parts are exposed as
    attributes; otherwise they are ``None``.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.code: ErrorCode | int | None = None
        self.list_index: int | None = None
        self.command: str | None = None
        self.description: str | None = None

        match = _ACK_RE.match(message.strip())
        if match:
            code = int(match.group("code"))
            try:
                self.code = ErrorCode(code)
            except ValueError:
                self.code = code
            self.list_index = int(match.group("index"))
            self.command = match.group("command")
            self.description = match.group("text")


class ConnectionLostError(MPDError):
    """The peer closed the connection before a response was complete."""


class NotConnectedError(MPDError):
    """A command was issued on a session that is not connected."""


class AlreadyIdlingError(MPDError):
    """``idle`` was issued while an idle request is still outstanding."""


class MalformedResponseError(MPDError):
    """A response could not be parsed (bad greeting or binary header)."""


class ConfigurationError(MPDError):
    """Host or port could not be resolved."""


def check_ack(response: str) -> str:
    """Raise ACKError if the response is an ACK, else return it unchanged."""
    if response.startswith(ACK_PREFIX):
        raise ACKError(response)
    index = response.find("\n" + ACK_PREFIX)
    if index != -1:
        # Command lists report the failing command after earlier output.
        raise ACKError(response[index + 1:])
    return response
