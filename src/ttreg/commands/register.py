"""Standalone command: register a new account on a server."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from ttreg.commands._base import TtCommand, server_argument

if TYPE_CHECKING:
    from ttreg.commands._context import AppContext

_REGISTER_EXAMPLES = """\
  ttreg register main alice
  ttreg register main alice --password 's3cret' --nickname Alice
  ttreg --json register moderated bob --password hunter2"""


@click.command(cls=TtCommand, examples=_REGISTER_EXAMPLES)
@server_argument
@click.argument("username")
@click.option(
    "--password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Account password (prompted when omitted).",
)
@click.option("--nickname", default="", help="Nickname stored with the request.")
@click.pass_obj
def register(app: AppContext, server: str, username: str, password: str, nickname: str) -> None:
    """Register USERNAME on SERVER.

    On a premoderated server the request is queued and an approval key is
    printed; otherwise the account is created immediately.
    """
    app.emit(app.service.register(server, username, password, nickname))
