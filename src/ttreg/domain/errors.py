"""Exception taxonomy for the protocol client and account layer.

Every layer either handles a condition completely or propagates one of
these classes untouched. Nothing here is retried automatically.
The service façade (:mod:`ttreg.services.registration`) is the single
place where they are translated into ``ServiceError`` codes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ttreg.domain.accounts import ServerEndpoint


class TtRegError(Exception):
    """Base class for all ttreg failures."""


class ServerUnavailableError(TtRegError):
    """The TCP connection to a server could not be established."""

    def __init__(self, endpoint: ServerEndpoint, reason: str = "") -> None:
        self.endpoint = endpoint
        msg = f"Unable to connect to {endpoint.host}:{endpoint.port}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class ConnectionLostError(TtRegError):
    """The server closed the stream before a reply was complete."""

    def __init__(self, endpoint: ServerEndpoint) -> None:
        self.endpoint = endpoint
        super().__init__(f"Connection to {endpoint.host}:{endpoint.port} was closed by the server")


class ReplyTimeoutError(TtRegError):
    """No complete reply arrived within the configured timeout."""

    def __init__(self, command_id: int, timeout: float) -> None:
        self.command_id = command_id
        self.timeout = timeout
        super().__init__(f"No reply to command id={command_id} within {timeout:g}s")


class CommandFailedError(TtRegError):
    """The server answered a command with ``error``.

    Attributes:
        command: The encoded command line as sent (without the trailing CRLF).
        error_code: Value of the reply's ``number`` parameter.
        server_message: Value of the reply's ``message`` parameter, verbatim.
    """

    def __init__(self, command: str, error_code: int | None, server_message: str | None) -> None:
        self.command = command
        self.error_code = error_code
        self.server_message = server_message
        msg = f"The following command failed:\n{command}"
        if error_code is not None or server_message is not None:
            msg += f"\nThe server returned error code {error_code} and said:\n{server_message}"
        super().__init__(msg)


class AccountAlreadyExistsError(TtRegError):
    """The username is already registered or already waiting for approval."""

    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__(
            f"Unable to create account named {username} because this username is already taken"
        )


class InvalidArgumentError(TtRegError, ValueError):
    """A caller broke a precondition (reserved parameter, unknown key, bad field)."""


class DecodeError(TtRegError, ValueError):
    """A wire line does not match the protocol grammar."""

    def __init__(self, line: str, position: int, reason: str) -> None:
        self.line = line
        self.position = position
        super().__init__(f"{reason} at column {position}: {line!r}")


class QueueCorruptedError(TtRegError, RuntimeError):
    """A premoderation entry cannot be turned back into an account."""
