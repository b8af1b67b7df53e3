"""AccountService — login, listing, existence checks and account creation.

Built on :func:`ttreg.infrastructure.executor.execute`; holds no state
beyond the session it wraps. Failures propagate as the classified
exceptions from :mod:`ttreg.domain.errors`.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog

from ttreg.domain.accounts import Account, UserRight, UserType
from ttreg.domain.errors import AccountAlreadyExistsError
from ttreg.domain.wire import Command
from ttreg.infrastructure.executor import ReplyMode, execute
from ttreg.infrastructure.transport import Session

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ttreg.domain.accounts import ServerEndpoint
    from ttreg.services.premod import PremoderationQueue

logger = logging.getLogger(__name__)
log = structlog.get_logger(__name__)

DEFAULT_PROTOCOL_VERSION = "5.0"
ACCOUNT_RECORD = "useraccount"


def account_from_command(command: Command) -> Account:
    """Project a ``useraccount`` reply line onto an :class:`Account`."""
    usertype = command.get("usertype", int(UserType.NONE))
    rights = command.get("userrights", int(UserRight.NONE))
    try:
        user_type = UserType(usertype)
    except ValueError:
        user_type = UserType.NONE
    return Account(
        username=str(command.get("username", "")),
        password=str(command.get("password", "")),
        nickname=str(command.get("nickname", "")),
        type=user_type,
        rights=int(rights) & int(UserRight.ALL) if isinstance(rights, int) else UserRight.NONE,
    )


class AccountService:
    """Account operations over one logged-in :class:`Session`.

    Args:
        session: The connection to operate on.
        queue: Premoderation queue consulted by :meth:`create_account`.
            Without one, the premoderation check is skipped.
        protocol_version: Sent with ``login``.
    """

    def __init__(
        self,
        session: Session,
        *,
        queue: PremoderationQueue | None = None,
        protocol_version: str = DEFAULT_PROTOCOL_VERSION,
    ) -> None:
        self.session = session
        self._queue = queue
        self._protocol_version = protocol_version

    @property
    def server_name(self) -> str:
        return self.session.endpoint.name

    def login(self, account: Account) -> None:
        """Authenticate the session as *account*.

        Raises:
            CommandFailedError: If the server rejects the credentials.
                The session must then be treated as unusable.
        """
        execute(
            self.session,
            Command(
                "login",
                {
                    "username": account.username,
                    "password": account.password,
                    "nickname": account.nickname,
                    "protocol": self._protocol_version,
                },
            ),
        )
        log.info("session.login", server=self.server_name, username=account.username)

    def list_accounts(self) -> list[Account]:
        """Return every account on the server.

        The list is the leading run of ``useraccount`` lines in the reply;
        the first line with another name ends it.
        """
        reply = execute(self.session, Command("listaccounts"))
        accounts: list[Account] = []
        for command in reply:
            if command.name != ACCOUNT_RECORD:
                break
            accounts.append(account_from_command(command))
        logger.debug("Listed %d accounts on %s", len(accounts), self.server_name)
        return accounts

    def account_exists(self, username: str) -> bool:
        return any(acc.username == username for acc in self.list_accounts())

    def create_account(self, account: Account, *, check_premod: bool = True) -> str:
        """Create *account* on the server and return its username.

        Checks, in order: the premoderation queue (when *check_premod* and a
        queue is attached), then the live account list. ``newaccount`` is
        only issued if both are clear. With the queue check the queue stays
        locked until ``newaccount`` returns.

        Raises:
            AccountAlreadyExistsError: If the name is queued or live.
            CommandFailedError: If the server rejects ``newaccount``.
        """
        if check_premod and self._queue is not None:
            with self._queue.reserve(self.server_name, account.username):
                return self._create(account)
        return self._create(account)

    def _create(self, account: Account) -> str:
        if self.account_exists(account.username):
            raise AccountAlreadyExistsError(account.username)

        execute(
            self.session,
            Command(
                "newaccount",
                {
                    "username": account.username,
                    "password": account.password,
                    "usertype": int(account.type),
                    "userrights": int(account.rights),
                },
            ),
        )
        log.info(
            "account.created",
            server=self.server_name,
            username=account.username,
            type=account.type.name.lower(),
        )
        return account.username

    def raw(self, command: Command) -> str:
        """Execute *command* and return the unclassified reply text."""
        return execute(self.session, command, ReplyMode.TEXT)


@contextmanager
def open_session(
    endpoint: ServerEndpoint,
    system_account: Account,
    *,
    timeout: float | None = None,
    protocol_version: str = DEFAULT_PROTOCOL_VERSION,
) -> Iterator[Session]:
    """Connect to *endpoint*, log in as *system_account*, and yield the session.

    The socket is closed when the block exits, and also when login fails.

    Raises:
        ServerUnavailableError: If the connection cannot be established.
        CommandFailedError: If login is rejected.
    """
    with Session.connect(endpoint, timeout=timeout) as session:
        AccountService(session, protocol_version=protocol_version).login(system_account)
        yield session
