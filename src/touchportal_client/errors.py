"""Exception hierarchy for the Touch Portal client.

::

    TouchPortalError
    +-- MessageDecodeError    (one inbound line could not be decoded)
    +-- PreconditionError     (outbound command rejected before writing)
    +-- NotConnectedError     (no connection attached to the sender)
    +-- ConnectError          (connection could not be established)
        +-- ConnectTimeout

Only ``PreconditionError`` and the connect errors reach consumer code.
Decode errors are logged and skipped by the session.
"""

from __future__ import annotations


class TouchPortalError(Exception):
    """Base exception for all client errors."""


class MessageDecodeError(TouchPortalError):
    """A single framed line is not a valid protocol message."""

    def __init__(self, message: str, line: str) -> None:
        super().__init__(message)
        self.line = line


class PreconditionError(TouchPortalError, ValueError):
    """An outbound command failed validation; nothing was written."""


class NotConnectedError(TouchPortalError, ConnectionError):
    """A command was sent while no connection is attached."""


class ConnectError(TouchPortalError, ConnectionError):
    """The connection to the host could not be established."""


class ConnectTimeout(ConnectError, TimeoutError):
    """The connection attempt did not complete within the configured timeout."""
