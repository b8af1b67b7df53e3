"""Tests for the register command."""

import json

import pytest
from click.testing import CliRunner

from tests.fake_server import FakeTeamTalkServer
from ttreg.cli import cli


@pytest.mark.usefixtures("_in_deploy_root")
class TestRegisterCommand:
    def test_creates_account(
        self, cli_runner: CliRunner, fake_server: FakeTeamTalkServer
    ) -> None:
        result = cli_runner.invoke(
            cli, ["register", "main", "alice", "--password", "s3cret", "--nickname", "Alice"]
        )
        assert result.exit_code == 0, result.output
        assert "OK  register" in result.output
        assert "status: created" in result.output
        assert fake_server.accounts["alice"]["password"] == "s3cret"

    def test_json_output(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["--json", "register", "moderated", "alice", "--password", "s3cret"]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["ok"] is True
        assert data["data"]["status"] == "queued"
        assert data["data"]["moderators"] == ["mod@example.org"]

    def test_quiet_prints_key(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["-q", "register", "moderated", "alice", "--password", "s3cret"]
        )
        assert result.exit_code == 0, result.output
        assert len(result.output.strip()) == 32

    def test_password_prompt(
        self, cli_runner: CliRunner, fake_server: FakeTeamTalkServer
    ) -> None:
        result = cli_runner.invoke(cli, ["register", "main", "alice"], input="s3cret\ns3cret\n")
        assert result.exit_code == 0, result.output
        assert "s3cret" not in result.output
        assert fake_server.accounts["alice"]["password"] == "s3cret"

    def test_duplicate_fails(
        self, cli_runner: CliRunner, fake_server: FakeTeamTalkServer
    ) -> None:
        fake_server.add_account("alice")
        result = cli_runner.invoke(cli, ["register", "main", "alice", "--password", "pw"])
        assert result.exit_code == 1
        assert "already taken" in result.output

    def test_invalid_username(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["register", "main", "x", "--password", "pw"])
        assert result.exit_code == 1
        assert "The following user properties are invalid: username" in result.output

    def test_unknown_server(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["register", "nowhere", "alice", "--password", "pw"])
        assert result.exit_code == 1
        assert 'No server named "nowhere"' in result.output
