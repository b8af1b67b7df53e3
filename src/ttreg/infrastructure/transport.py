"""Session transport — one TCP connection, request ids, reply extraction.

Replies are framed only by sentinel lines::

    begin id=N\r\n
    ...reply body...\r\n
    end id=N\r\n

INVARIANT: at most one :meth:`Session.await_reply` may be outstanding per
session. The scan consumes the stream linearly from the current read
position and discards every line that does not belong to the requested
id, including whole replies to other requests. Callers must pair each
``send`` with an immediate ``await_reply`` (see :mod:`.executor`).
"""

from __future__ import annotations

import logging
import socket
import time
from typing import TYPE_CHECKING

from ttreg.domain.errors import ConnectionLostError, ReplyTimeoutError, ServerUnavailableError
from ttreg.domain.wire import encode

if TYPE_CHECKING:
    from types import TracebackType

    from ttreg.domain.accounts import ServerEndpoint
    from ttreg.domain.wire import Command

logger = logging.getLogger(__name__)

ENCODING = "utf-8"


class Session:
    """A single connection to a server with its own id counter.

    The id counter starts at 1, is only ever incremented, and lives and
    dies with this object, so ids are unique within the session.

    Args:
        endpoint: The server this socket is connected to.
        sock: A connected stream socket. The session takes ownership.
        timeout: Upper bound in seconds for one :meth:`await_reply` scan.
            ``None`` waits forever.
    """

    def __init__(
        self,
        endpoint: ServerEndpoint,
        sock: socket.socket,
        *,
        timeout: float | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout = timeout or None
        self._sock = sock
        self._sock.settimeout(self.timeout)
        self._reader = sock.makefile("rb")
        self._next_id = 1
        self._closed = False

    @classmethod
    def connect(cls, endpoint: ServerEndpoint, *, timeout: float | None = None) -> Session:
        """Open a TCP stream to *endpoint*. No protocol handshake is attempted.

        Raises:
            ServerUnavailableError: If the connection cannot be established.
        """
        try:
            sock = socket.create_connection((endpoint.host, endpoint.port), timeout=timeout or None)
        except OSError as exc:
            logger.debug("Connect to %s:%d failed: %s", endpoint.host, endpoint.port, exc)
            raise ServerUnavailableError(endpoint, str(exc)) from exc
        logger.debug("Connected to %s:%d", endpoint.host, endpoint.port)
        return cls(endpoint, sock, timeout=timeout)

    # ------------------------------------------------------------------
    # Ids
    # ------------------------------------------------------------------

    @property
    def next_id(self) -> int:
        return self._next_id

    @property
    def closed(self) -> bool:
        return self._closed

    def allocate_id(self) -> int:
        """Return the next request id and advance the counter."""
        command_id = self._next_id
        self._next_id += 1
        return command_id

    # ------------------------------------------------------------------
    # I/O
    # ------------------------------------------------------------------

    def send(self, command: Command) -> int:
        """Encode *command* with a fresh id, write it, and return the id.

        Does not wait for the reply.

        Raises:
            InvalidArgumentError: If the command cannot be encoded.
            ConnectionLostError: If the write fails.
        """
        command_id = self.allocate_id()
        line = encode(command, command_id)
        try:
            self._sock.sendall(line.encode(ENCODING))
        except OSError as exc:
            self.close()
            raise ConnectionLostError(self.endpoint) from exc
        logger.debug("Sent %s id=%d", command.name, command_id)
        return command_id

    def await_reply(self, command_id: int) -> str:
        """Block until the reply for *command_id* has been read; return its body.

        The body excludes the ``begin``/``end`` sentinels and keeps each
        inner line verbatim, terminators included.

        Raises:
            ReplyTimeoutError: If the session timeout elapses first.
            ConnectionLostError: If the server closes the stream first.
        """
        begin = f"begin id={command_id}"
        end = f"end id={command_id}"
        deadline = None if self.timeout is None else time.monotonic() + self.timeout
        inside = False
        body: list[str] = []

        while True:
            line = self._readline(command_id, deadline)
            stripped = line.rstrip("\r\n")
            if not inside:
                if stripped == begin:
                    inside = True
                else:
                    logger.debug("Discarding line while awaiting id=%d: %r", command_id, stripped)
                continue
            if stripped == end:
                return "".join(body)
            body.append(line)

    def _readline(self, command_id: int, deadline: float | None) -> str:
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                self.close()
                raise ReplyTimeoutError(command_id, self.timeout or 0.0)
            self._sock.settimeout(remaining)
        try:
            raw = self._reader.readline()
        except TimeoutError as exc:
            self.close()
            raise ReplyTimeoutError(command_id, self.timeout or 0.0) from exc
        except OSError as exc:
            self.close()
            raise ConnectionLostError(self.endpoint) from exc
        if not raw:
            self.close()
            raise ConnectionLostError(self.endpoint)
        return raw.decode(ENCODING, errors="replace")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the socket. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        try:
            self._reader.close()
        finally:
            self._sock.close()
        logger.debug("Closed connection to %s:%d", self.endpoint.host, self.endpoint.port)

    def __enter__(self) -> Session:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
