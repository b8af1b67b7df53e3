"""Tests for execute(): send, await, classify."""

from __future__ import annotations

import socket
from collections.abc import Iterator

import pytest

from ttreg.domain.accounts import ServerEndpoint
from ttreg.domain.errors import CommandFailedError, DecodeError
from ttreg.domain.wire import Command
from ttreg.infrastructure.executor import ReplyMode, execute
from ttreg.infrastructure.transport import Session

ENDPOINT = ServerEndpoint(host="127.0.0.1", port=10333)


@pytest.fixture
def pair() -> Iterator[tuple[Session, socket.socket]]:
    ours, peer = socket.socketpair()
    session = Session(ENDPOINT, ours, timeout=2)
    try:
        yield session, peer
    finally:
        session.close()
        peer.close()


def _reply(peer: socket.socket, command_id: int, body: str) -> None:
    """Queue a framed reply before the command is sent; the ids are predictable."""
    peer.sendall(f"begin id={command_id}\r\n{body}end id={command_id}\r\n".encode())


class TestArrayMode:
    def test_returns_decoded_commands(self, pair: tuple[Session, socket.socket]) -> None:
        session, peer = pair
        _reply(peer, 1, 'useraccount username="a" usertype=1\r\nok\r\n')
        reply = execute(session, Command("listaccounts"))
        assert [c.name for c in reply] == ["useraccount", "ok"]
        assert reply[0].params == {"username": "a", "usertype": 1}

    def test_sent_line_uses_session_id(self, pair: tuple[Session, socket.socket]) -> None:
        session, peer = pair
        _reply(peer, 1, "ok\r\n")
        _reply(peer, 2, "ok\r\n")
        execute(session, Command("ping"))
        execute(session, Command("ping"))
        assert peer.recv(4096) == b"ping id=1\r\nping id=2\r\n"

    def test_empty_reply(self, pair: tuple[Session, socket.socket]) -> None:
        session, peer = pair
        _reply(peer, 1, "")
        assert execute(session, Command("ping")) == []

    def test_trailing_error_raises(self, pair: tuple[Session, socket.socket]) -> None:
        session, peer = pair
        _reply(peer, 1, 'error number=2002 message="Invalid username or password"\r\n')
        cmd = Command("login", {"username": "admin", "password": "hunter2"})
        with pytest.raises(CommandFailedError) as info:
            execute(session, cmd)
        exc = info.value
        assert exc.error_code == 2002
        assert exc.server_message == "Invalid username or password"
        assert exc.command == 'login username="admin" password="***"'
        assert "hunter2" not in str(exc)

    def test_error_not_last_is_not_a_failure(self, pair: tuple[Session, socket.socket]) -> None:
        session, peer = pair
        _reply(peer, 1, 'error number=1 message="x"\r\nok\r\n')
        assert [c.name for c in execute(session, Command("ping"))] == ["error", "ok"]

    def test_error_without_fields(self, pair: tuple[Session, socket.socket]) -> None:
        session, peer = pair
        _reply(peer, 1, "error\r\n")
        with pytest.raises(CommandFailedError) as info:
            execute(session, Command("ping"))
        assert info.value.error_code is None
        assert info.value.server_message is None

    def test_malformed_reply(self, pair: tuple[Session, socket.socket]) -> None:
        session, peer = pair
        _reply(peer, 1, "ok value=?\r\n")
        with pytest.raises(DecodeError):
            execute(session, Command("ping"))


class TestTextMode:
    def test_returns_raw_body(self, pair: tuple[Session, socket.socket]) -> None:
        session, peer = pair
        _reply(peer, 1, "ok value=?\r\n")
        assert execute(session, Command("ping"), ReplyMode.TEXT) == "ok value=?\r\n"

    def test_error_is_not_raised(self, pair: tuple[Session, socket.socket]) -> None:
        session, peer = pair
        _reply(peer, 1, 'error number=1001 message="Unknown command"\r\n')
        text = execute(session, Command("bogus"), ReplyMode.TEXT)
        assert text.startswith("error number=1001")
