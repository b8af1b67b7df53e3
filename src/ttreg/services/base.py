"""BaseService — shared plumbing for ServiceResult-returning services.

Services receive the frozen :class:`TtregSettings` at construction time
and translate the core exception taxonomy into :class:`ServiceError`
codes through :meth:`BaseService._failure`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from ttreg.domain.errors import (
    AccountAlreadyExistsError,
    CommandFailedError,
    ConnectionLostError,
    DecodeError,
    InvalidArgumentError,
    QueueCorruptedError,
    ReplyTimeoutError,
    ServerUnavailableError,
    TtRegError,
)
from ttreg.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from ttreg.config.settings import TtregSettings

log = structlog.get_logger(__name__)

# Most specific classes first: DecodeError and InvalidArgumentError are
# both ValueErrors but map to different codes.
_ERROR_CODES: tuple[tuple[type[TtRegError], str], ...] = (
    (ServerUnavailableError, "SERVER_UNAVAILABLE"),
    (ConnectionLostError, "CONNECTION_LOST"),
    (ReplyTimeoutError, "TIMEOUT"),
    (CommandFailedError, "COMMAND_FAILED"),
    (AccountAlreadyExistsError, "ACCOUNT_EXISTS"),
    (DecodeError, "DECODE_ERROR"),
    (InvalidArgumentError, "INVALID_ARGUMENT"),
    (QueueCorruptedError, "QUEUE_CORRUPTED"),
)


def error_from_exception(exc: TtRegError) -> ServiceError:
    """Build the ServiceError shown to an operator for *exc*."""
    code = next((c for cls, c in _ERROR_CODES if isinstance(exc, cls)), "ERROR")
    detail: dict[str, Any] = {}
    message = str(exc)

    if isinstance(exc, CommandFailedError):
        detail = {
            "command": exc.command,
            "error_code": exc.error_code,
            "server_message": exc.server_message,
        }
        if exc.server_message is not None:
            message = f"Server error {exc.error_code}: {exc.server_message}"
    elif isinstance(exc, AccountAlreadyExistsError):
        detail = {"username": exc.username}
        message = f"The username {exc.username!r} is already taken. Please choose another one."
    elif isinstance(exc, ServerUnavailableError | ConnectionLostError):
        detail = {"host": exc.endpoint.host, "port": exc.endpoint.port}
    elif isinstance(exc, ReplyTimeoutError):
        detail = {"command_id": exc.command_id, "timeout": exc.timeout}

    return ServiceError(code=code, message=message, detail=detail)


class BaseService:
    """Base for services that sit between the CLI and the protocol core."""

    def __init__(self, settings: TtregSettings) -> None:
        self._settings = settings

    @staticmethod
    def _failure(op: str, exc: TtRegError) -> ServiceResult:
        error = error_from_exception(exc)
        log.warning("service.failed", op=op, code=error.code, error=error.message)
        return ServiceResult.failure(op, error)
