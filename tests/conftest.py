"""Shared pytest fixtures and test helpers for ttreg tests."""

from __future__ import annotations

import logging
from collections.abc import Generator, Iterator
from pathlib import Path

import pytest
import structlog
from click.testing import CliRunner

from tests.fake_server import ADMIN_PASSWORD, ADMIN_USERNAME, FakeTeamTalkServer
from ttreg.config.settings import TtregSettings
from ttreg.domain.accounts import Account, ServerEndpoint, UserRight, UserType
from ttreg.services.accounts import AccountService, open_session
from ttreg.services.registration import RegistrationService

ADMIN = Account(
    username=ADMIN_USERNAME,
    password=ADMIN_PASSWORD,
    nickname="Registration System",
    type=UserType.ADMIN,
    rights=UserRight.ALL,
)

CONFIG_TEMPLATE = """\
[servers.main]
title = "Main server"
host = "127.0.0.1"
port = {port}

[servers.main.system_account]
username = "{admin}"
password = "{password}"

[servers.moderated]
host = "127.0.0.1"
port = {port}

[servers.moderated.system_account]
username = "{admin}"
password = "{password}"

[servers.moderated.premod]
enabled = true
moderators = [{{ email = "mod@example.org" }}]

[validation]
username = "[A-Za-z0-9_.-]{{3,32}}"

[protocol]
timeout = 5
"""


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Keep TTREG_CONFIG and global logging state from leaking between tests."""
    monkeypatch.delenv("TTREG_CONFIG", raising=False)
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("ttreg").setLevel(logging.NOTSET)
    structlog.reset_defaults()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def fake_server() -> Iterator[FakeTeamTalkServer]:
    """A running fake TeamTalk server on an ephemeral local port."""
    server = FakeTeamTalkServer()
    server.start()
    try:
        yield server
    finally:
        server.stop()


@pytest.fixture
def endpoint(fake_server: FakeTeamTalkServer) -> ServerEndpoint:
    return ServerEndpoint(host="127.0.0.1", port=fake_server.port, name="main")


@pytest.fixture
def accounts(endpoint: ServerEndpoint) -> Iterator[AccountService]:
    """AccountService on a session logged in as the system account."""
    with open_session(endpoint, ADMIN, timeout=5) as session:
        yield AccountService(session)


@pytest.fixture
def deploy_root(tmp_path: Path, fake_server: FakeTeamTalkServer) -> Path:
    """Directory holding a ttreg.toml with a ``main`` and a premoderated server.

    Both entries point at the same fake server; premoderation entries are
    scoped by server name, not address.
    """
    (tmp_path / "ttreg.toml").write_text(
        CONFIG_TEMPLATE.format(
            port=fake_server.port, admin=ADMIN_USERNAME, password=ADMIN_PASSWORD
        ),
        encoding="utf-8",
    )
    return tmp_path


@pytest.fixture
def settings(deploy_root: Path) -> TtregSettings:
    return TtregSettings.from_cli(root=deploy_root)


@pytest.fixture
def service(settings: TtregSettings) -> RegistrationService:
    return RegistrationService(settings)


@pytest.fixture
def _in_deploy_root(deploy_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to the deployment root so the CLI discovers its ttreg.toml.

    Use via ``@pytest.mark.usefixtures("_in_deploy_root")`` on command test
    classes.
    """
    monkeypatch.chdir(deploy_root)
