"""PremoderationQueue — registration requests awaiting manual approval.

Entry lifecycle: absent → queued (:meth:`~PremoderationQueue.delay`) →
absent (:meth:`~PremoderationQueue.accept`, on success only). A failed
accept leaves the entry in place so the operator can see and retry it.

Each entry is addressed by a random token that doubles as the capability
to approve it, so tokens come from :mod:`secrets`.
"""

from __future__ import annotations

import secrets
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, Field, ValidationError

from ttreg.domain.accounts import Account
from ttreg.domain.errors import AccountAlreadyExistsError, InvalidArgumentError, QueueCorruptedError
from ttreg.domain.validation import Validator

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ttreg.infrastructure.premod_store import PremodStore
    from ttreg.services.accounts import AccountService

log = structlog.get_logger(__name__)

KEY_BYTES = 24


def new_key() -> str:
    """24 random bytes, URL-safe base64 without padding (32 characters)."""
    return secrets.token_urlsafe(KEY_BYTES)


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()


class PremodEntry(BaseModel):
    """One queued registration request."""

    model_config = {"frozen": True, "populate_by_name": True}

    key: str
    server_name: str = Field(alias="serverName")
    account: Account
    created: str = Field(default_factory=_utc_now)

    def to_record(self) -> dict[str, Any]:
        """Stored form: everything but the key, which is the document key."""
        return self.model_dump(mode="json", by_alias=True, exclude={"key"})


def _matches(record: Any, server_name: str, username: str) -> bool:
    if not isinstance(record, dict):
        return False
    account = record.get("account")
    return (
        record.get("serverName") == server_name
        and isinstance(account, dict)
        and account.get("username") == username
    )


class PremoderationQueue:
    """Durable queue of accounts waiting for approval.

    Args:
        store: The locked JSON document holding the entries.
        validator: Used to reject stored accounts that could not have been
            queued legitimately. Defaults to the permissive built-in rules.
    """

    def __init__(self, store: PremodStore, validator: Validator | None = None) -> None:
        self._store = store
        self._validator = validator or Validator()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_delayed(self, server_name: str, username: str) -> bool:
        """Whether a request for *username* on *server_name* is queued."""
        data = self._store.read()
        return any(_matches(record, server_name, username) for record in data.values())

    def get(self, key: str) -> PremodEntry:
        """Return the entry for *key*.

        Raises:
            InvalidArgumentError: If no entry has that key.
            QueueCorruptedError: If the entry cannot be reconstructed.
        """
        data = self._store.read()
        if key not in data:
            msg = f"No premoderation entry with key {key!r}"
            raise InvalidArgumentError(msg)
        return self._reconstruct(key, data[key])

    def entries(self, server_name: str | None = None) -> list[PremodEntry]:
        """All queued entries, optionally limited to one server."""
        data = self._store.read()
        result = [self._reconstruct(key, record) for key, record in data.items()]
        if server_name is not None:
            result = [e for e in result if e.server_name == server_name]
        return sorted(result, key=lambda e: (e.created, e.key))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def delay(self, server_name: str, account: Account) -> str:
        """Queue *account* for *server_name* and return its approval key.

        Does not check for duplicates; callers that need the check should
        use :meth:`submit`, which runs it under the same lock.
        """
        with self._store.transaction() as data:
            key = new_key()
            data[key] = self._record(key, server_name, account)
        log.info("premod.delayed", server=server_name, username=account.username)
        return key

    def submit(self, accounts: AccountService, account: Account) -> str:
        """Queue *account* unless its username is already queued or live.

        The queue check, the live check and the insert share one exclusive
        lock, so two concurrent submissions cannot both succeed.

        Raises:
            AccountAlreadyExistsError: If the name is queued or live.
        """
        server_name = accounts.server_name
        with self._store.transaction() as data:
            if any(_matches(r, server_name, account.username) for r in data.values()):
                raise AccountAlreadyExistsError(account.username)
            if accounts.account_exists(account.username):
                raise AccountAlreadyExistsError(account.username)
            key = new_key()
            data[key] = self._record(key, server_name, account)
        log.info("premod.delayed", server=server_name, username=account.username)
        return key

    @contextmanager
    def reserve(self, server_name: str, username: str) -> Iterator[None]:
        """Hold the queue lock while the caller creates *username* live.

        No submission can queue the name until the block exits.

        Raises:
            AccountAlreadyExistsError: If the name is already queued.
        """
        with self._store.transaction() as data:
            if any(_matches(r, server_name, username) for r in data.values()):
                raise AccountAlreadyExistsError(username)
            yield

    def accept(self, accounts: AccountService, key: str) -> str:
        """Create the account queued under *key* and drop the entry.

        The entry is removed only after the server accepted ``newaccount``.

        Raises:
            InvalidArgumentError: Unknown key, or the entry belongs to a
                different server than *accounts* is connected to.
            QueueCorruptedError: The stored fields are not a valid account.
            AccountAlreadyExistsError, CommandFailedError: From creation;
                the entry stays queued.
        """
        with self._store.transaction() as data:
            if key not in data:
                msg = f"No premoderation entry with key {key!r}"
                raise InvalidArgumentError(msg)
            entry = self._reconstruct(key, data[key])
            if entry.server_name != accounts.server_name:
                msg = (
                    f"Entry {key!r} belongs to server {entry.server_name!r}, "
                    f"not {accounts.server_name!r}"
                )
                raise InvalidArgumentError(msg)
            username = accounts.create_account(entry.account, check_premod=False)
            del data[key]
        log.info("premod.accepted", server=entry.server_name, username=username)
        return username

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _record(key: str, server_name: str, account: Account) -> dict[str, Any]:
        entry = PremodEntry(key=key, server_name=server_name, account=account)
        return entry.to_record()

    def _reconstruct(self, key: str, record: Any) -> PremodEntry:
        if not isinstance(record, dict):
            msg = f"Premoderation entry {key!r} is not an object"
            raise QueueCorruptedError(msg)
        try:
            entry = PremodEntry.model_validate({**record, "key": key})
        except ValidationError as exc:
            msg = f"Premoderation entry {key!r} cannot be read as an account: {exc}"
            raise QueueCorruptedError(msg) from exc
        acc = entry.account
        invalid = self._validator.invalid_fields(acc.username, acc.password, acc.nickname)
        if invalid:
            msg = f"Premoderation entry {key!r} has invalid fields: {', '.join(invalid)}"
            raise QueueCorruptedError(msg)
        return entry
