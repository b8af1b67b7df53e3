"""Standalone command: send one protocol command and print the raw reply."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from ttreg.commands._base import TtCommand, server_argument

if TYPE_CHECKING:
    from ttreg.commands._context import AppContext


@click.command(
    cls=TtCommand,
    examples="""\
  ttreg raw main listaccounts
  ttreg raw main 'listaccounts index=0 count=10'""",
)
@server_argument
@click.argument("command")
@click.pass_obj
def raw(app: AppContext, server: str, command: str) -> None:
    """Run COMMAND on SERVER as the system account and print the reply verbatim.

    Server-side errors are shown as part of the reply, not as a failure.
    """
    app.emit(app.service.raw(server, command))
