"""RegistrationService — the operator-facing façade over the protocol core.

Resolves server names through settings, opens one logged-in session per
operation, and returns ServiceResult. This is the only place where core
exceptions become ``ServiceError`` values.

Registration flow:
  VALIDATE → CONNECT + LOGIN → (premoderated: SUBMIT to queue | CREATE) → RESPOND
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog

from ttreg.domain.accounts import UserRight, UserType
from ttreg.domain.errors import TtRegError
from ttreg.domain.validation import Validator
from ttreg.domain.wire import decode_line
from ttreg.infrastructure.premod_store import PremodStore
from ttreg.services.accounts import AccountService, open_session
from ttreg.services.base import BaseService
from ttreg.services.premod import PremoderationQueue
from ttreg.services.result import ServiceResult

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ttreg.config.settings import TtregSettings

log = structlog.get_logger(__name__)


class RegistrationService(BaseService):
    """Account registration and premoderation against configured servers."""

    def __init__(self, settings: TtregSettings) -> None:
        super().__init__(settings)
        self.validator = Validator(settings.validation.rules())
        self.queue = PremoderationQueue(PremodStore(settings.queue_path), self.validator)

    @contextmanager
    def _accounts(self, server_name: str) -> Iterator[AccountService]:
        server = self._settings.server(server_name)
        protocol = self._settings.protocol
        with (
            structlog.contextvars.bound_contextvars(server=server_name),
            open_session(
                server.endpoint(server_name),
                server.system_user(),
                timeout=self._settings.reply_timeout,
                protocol_version=protocol.version,
            ) as session,
        ):
            yield AccountService(session, queue=self.queue, protocol_version=protocol.version)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def servers(self) -> ServiceResult:
        """List configured servers."""
        items = [
            {
                "name": name,
                "title": server.title or name,
                "host": server.host,
                "port": server.port,
                "premod": server.premod.enabled,
            }
            for name, server in sorted(self._settings.servers.items())
        ]
        return ServiceResult(ok=True, op="servers", data={"count": len(items), "items": items})

    def register(
        self,
        server_name: str,
        username: str,
        password: str,
        nickname: str = "",
    ) -> ServiceResult:
        """Register a default account, or queue it if the server is premoderated.

        For a premoderated server the result carries the approval key and
        the moderators' addresses; the key must reach a moderator
        out-of-band since nothing else identifies the entry.
        """
        op = "register"
        try:
            server = self._settings.server(server_name)
            account = self.validator.build_account(username, password, nickname)
            with self._accounts(server_name) as accounts:
                if server.premod.enabled:
                    key = self.queue.submit(accounts, account)
                    data = {
                        "status": "queued",
                        "server": server_name,
                        "username": account.username,
                        "key": key,
                        "moderators": [m.email for m in server.premod.moderators],
                    }
                else:
                    accounts.create_account(account)
                    data = {"status": "created", "server": server_name, "username": username}
        except TtRegError as exc:
            return self._failure(op, exc)
        log.info("registration.complete", server=server_name, status=data["status"])
        return ServiceResult(ok=True, op=op, data=data)

    def create_account(
        self,
        server_name: str,
        username: str,
        password: str,
        nickname: str = "",
        *,
        user_type: UserType = UserType.DEFAULT,
        rights: UserRight = UserRight.DEFAULT,
    ) -> ServiceResult:
        """Create an account directly, bypassing premoderation but not its check."""
        op = "create_account"
        try:
            account = self.validator.build_account(
                username, password, nickname, user_type=user_type, rights=rights
            )
            with self._accounts(server_name) as accounts:
                accounts.create_account(account)
        except TtRegError as exc:
            return self._failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"server": server_name, **account.public_dict()},
        )

    def list_accounts(self, server_name: str) -> ServiceResult:
        op = "list_accounts"
        try:
            with self._accounts(server_name) as accounts:
                items = [acc.public_dict() for acc in accounts.list_accounts()]
        except TtRegError as exc:
            return self._failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"server": server_name, "count": len(items), "items": items},
        )

    def account_exists(self, server_name: str, username: str) -> ServiceResult:
        op = "account_exists"
        try:
            with self._accounts(server_name) as accounts:
                exists = accounts.account_exists(username)
            queued = self.queue.is_delayed(server_name, username)
        except TtRegError as exc:
            return self._failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"server": server_name, "username": username, "exists": exists, "queued": queued},
        )

    def pending(self, server_name: str | None = None) -> ServiceResult:
        """List queued registration requests."""
        op = "pending"
        try:
            if server_name is not None:
                self._settings.server(server_name)
            entries = self.queue.entries(server_name)
        except TtRegError as exc:
            return self._failure(op, exc)
        items = [
            {
                "key": e.key,
                "server": e.server_name,
                "username": e.account.username,
                "nickname": e.account.nickname,
                "created": e.created,
            }
            for e in entries
        ]
        warnings = [
            f"Entry {e.key} is for unconfigured server '{e.server_name}' and cannot be accepted"
            for e in entries
            if e.server_name not in self._settings.servers
        ]
        return ServiceResult(
            ok=True, op=op, data={"count": len(items), "items": items}, warnings=warnings
        )

    def accept(self, key: str) -> ServiceResult:
        """Approve the queued request *key*: create the account, drop the entry."""
        op = "accept"
        try:
            entry = self.queue.get(key)
            with self._accounts(entry.server_name) as accounts:
                username = self.queue.accept(accounts, key)
        except TtRegError as exc:
            return self._failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"server": entry.server_name, "username": username},
        )

    def raw(self, server_name: str, command_text: str) -> ServiceResult:
        """Send one protocol command and return the unclassified reply text."""
        op = "raw"
        try:
            command = decode_line(command_text)
            with self._accounts(server_name) as accounts:
                reply = accounts.raw(command)
        except TtRegError as exc:
            return self._failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"server": server_name, "command": command.name, "reply": reply},
        )
