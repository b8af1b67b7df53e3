"""Root CLI group for ttreg with global flags and command registration."""

from __future__ import annotations

from typing import Any

import click

from ttreg import __version__
from ttreg.commands import register_commands
from ttreg.commands._context import AppContext
from ttreg.config.settings import TtregSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="ttreg")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug logging.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option(
    "--timeout",
    type=click.FloatRange(min=0),
    default=None,
    help="Seconds to wait for each server reply (0 waits forever).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    timeout: float | None,
) -> None:
    """ttreg — account registration for TeamTalk servers.

    Servers, system accounts and premoderation are configured in
    ttreg.toml, found by walking up from the current directory.
    """
    overrides: dict[str, Any] = {}
    if timeout is not None:
        overrides["protocol"] = {"timeout": timeout}
    settings = TtregSettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
        **overrides,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
