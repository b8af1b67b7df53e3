"""In-process TeamTalk stand-in speaking the text control protocol.

Runs on 127.0.0.1 in a background thread. Each connection gets a
greeting line, and every reply is preceded by an unrelated event line so
clients must discard traffic outside the ``begin``/``end`` block.
"""

from __future__ import annotations

import socketserver
import threading
from typing import Any

from ttreg.domain.accounts import UserRight, UserType
from ttreg.domain.wire import Command, decode_line, encode_value

ADMIN_USERNAME = "regsystem"
ADMIN_PASSWORD = "qwerty123456"


def line(name: str, **params: Any) -> str:
    """Render one server line (no ``id``)."""
    parts = [name, *(f"{k}={encode_value(v)}" for k, v in params.items())]
    return " ".join(parts) + "\r\n"


def error_line(number: int, message: str) -> str:
    return line("error", number=number, message=message)


class _Handler(socketserver.StreamRequestHandler):
    server: FakeTeamTalkServer

    def handle(self) -> None:
        self._write(line("teamtalk", userid=1, servername="Fake", protocol="5.0"))
        logged_in = False
        for raw in self.rfile:
            text = raw.decode("utf-8")
            if not text.strip():
                continue
            command = decode_line(text)
            with self.server.lock:
                self.server.received.append(command)
            if self.server.drop:
                return
            if self.server.silent:
                continue
            body, logged_in = self._dispatch(command, logged_in)
            cid = command.get("id")
            self._write(
                line("serverupdate", servername="Fake")
                + f"begin id={cid}\r\n"
                + body
                + f"end id={cid}\r\n"
            )

    def _write(self, text: str) -> None:
        self.wfile.write(text.encode("utf-8"))
        self.wfile.flush()

    def _dispatch(self, command: Command, logged_in: bool) -> tuple[str, bool]:
        srv = self.server
        if command.name == "login":
            if (command.get("username"), command.get("password")) != srv.admin:
                return error_line(2002, "Invalid username or password"), False
            return line("accepted", userid=1, usertype=int(UserType.ADMIN)) + "ok\r\n", True
        if command.name in ("listaccounts", "newaccount") and not logged_in:
            return error_line(2006, "Not logged in"), logged_in
        if command.name == "listaccounts":
            with srv.lock:
                records = list(srv.accounts.values())
            body = "".join(line("useraccount", **rec, opchannels=[]) for rec in records)
            return body + "ok\r\n", logged_in
        if command.name == "newaccount":
            username = str(command.get("username"))
            if srv.newaccount_error is not None:
                return error_line(*srv.newaccount_error), logged_in
            with srv.lock:
                if username in srv.accounts:
                    return error_line(3002, "Account already exists"), logged_in
                srv.accounts[username] = {
                    "username": username,
                    "password": command.get("password", ""),
                    "usertype": command.get("usertype", int(UserType.DEFAULT)),
                    "userrights": command.get("userrights", int(UserRight.DEFAULT)),
                    "nickname": "",
                    "note": "",
                }
            return "ok\r\n", logged_in
        return error_line(1001, "Unknown command"), logged_in


class FakeTeamTalkServer(socketserver.ThreadingTCPServer):
    """Scriptable fake server.

    Attributes:
        accounts: Live accounts by username, as ``useraccount`` parameters.
        received: Every command received, in order, across connections.
        silent: Read commands but never answer.
        drop: Close the connection on the next command.
        newaccount_error: ``(number, message)`` to fail every ``newaccount``.
    """

    daemon_threads = True
    allow_reuse_address = True

    def __init__(self) -> None:
        super().__init__(("127.0.0.1", 0), _Handler)
        self.admin = (ADMIN_USERNAME, ADMIN_PASSWORD)
        self.accounts: dict[str, dict[str, Any]] = {}
        self.received: list[Command] = []
        self.silent = False
        self.drop = False
        self.newaccount_error: tuple[int, str] | None = None
        self.lock = threading.Lock()
        self._thread: threading.Thread | None = None

    @property
    def port(self) -> int:
        return self.server_address[1]

    def add_account(
        self,
        username: str,
        *,
        password: str = "secret",
        nickname: str = "",
        usertype: int = int(UserType.DEFAULT),
        userrights: int = int(UserRight.DEFAULT),
    ) -> None:
        with self.lock:
            self.accounts[username] = {
                "username": username,
                "password": password,
                "usertype": usertype,
                "userrights": userrights,
                "nickname": nickname,
                "note": "",
            }

    def commands_named(self, command: str) -> list[Command]:
        """Received commands called *command*."""
        with self.lock:
            return [c for c in self.received if c.name == command]

    def start(self) -> None:
        self._thread = threading.Thread(target=self.serve_forever, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self.shutdown()
        self.server_close()
