"""Command executor — one command in, one classified reply out.

``execute`` always sends and then immediately awaits the same id, which
is what keeps the single-cursor transport scan safe.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Literal, overload

from ttreg.domain.errors import CommandFailedError
from ttreg.domain.wire import Command, decode_reply_block, encode

if TYPE_CHECKING:
    from ttreg.infrastructure.transport import Session

logger = logging.getLogger(__name__)

ERROR_COMMAND = "error"


class ReplyMode(Enum):
    """How :func:`execute` hands back the reply."""

    TEXT = "text"
    ARRAY = "array"


def _describe(command: Command) -> str:
    """Render *command* for error messages, masking passwords."""
    params = {k: ("***" if k == "password" else v) for k, v in command.params.items()}
    # id is assigned by the session; 0 is a placeholder stripped below
    line = encode(Command(command.name, params), 0)
    return line.removesuffix(" id=0\r\n")


@overload
def execute(session: Session, command: Command, mode: Literal[ReplyMode.TEXT]) -> str: ...


@overload
def execute(
    session: Session, command: Command, mode: Literal[ReplyMode.ARRAY] = ...
) -> list[Command]: ...


def execute(
    session: Session,
    command: Command,
    mode: ReplyMode = ReplyMode.ARRAY,
) -> str | list[Command]:
    """Send *command*, wait for its reply and return it.

    In ``ARRAY`` mode the reply is decoded and, if its last command is
    ``error``, :class:`CommandFailedError` is raised with the server's
    ``number`` and ``message``. ``TEXT`` mode returns the raw body and
    never raises ``CommandFailedError``.

    Raises:
        CommandFailedError: ARRAY mode only, on a server-side error.
        DecodeError: ARRAY mode only, on a malformed reply line.
        ReplyTimeoutError, ConnectionLostError: From the transport.
    """
    command_id = session.send(command)
    raw = session.await_reply(command_id)

    if mode is ReplyMode.TEXT:
        return raw

    commands = decode_reply_block(raw)
    if commands and commands[-1].name == ERROR_COMMAND:
        last = commands[-1]
        error_code = last.get("number")
        server_message = last.get("message")
        logger.debug(
            "Command %s id=%d failed: %s %s", command.name, command_id, error_code, server_message
        )
        raise CommandFailedError(
            _describe(command),
            error_code if isinstance(error_code, int) else None,
            server_message if isinstance(server_message, str) else None,
        )
    return commands
