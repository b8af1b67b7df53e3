"""Command group: account administration (list, exists, create)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from ttreg.commands._base import TtGroup, server_argument
from ttreg.domain.accounts import UserRight, UserType, parse_rights

if TYPE_CHECKING:
    from ttreg.commands._context import AppContext

_ACCOUNTS_EXAMPLES = """\
  ttreg accounts list main
  ttreg accounts exists main alice
  ttreg accounts create main carol --password pw --type admin
  ttreg accounts create main dave --password pw --right transmit_voice --right view_all_users"""


def _rights_callback(
    _ctx: click.Context, _param: click.Parameter, value: tuple[str, ...]
) -> UserRight:
    if not value:
        return UserRight.DEFAULT
    try:
        return parse_rights(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc


@click.group(cls=TtGroup, examples=_ACCOUNTS_EXAMPLES)
def accounts() -> None:
    """Inspect and create accounts on a server."""


@accounts.command("list", examples="  ttreg accounts list main\n  ttreg -v accounts list main")
@server_argument
@click.pass_obj
def list_cmd(app: AppContext, server: str) -> None:
    """List every account on SERVER."""
    app.emit(app.service.list_accounts(server))


@accounts.command()
@server_argument
@click.argument("username")
@click.pass_obj
def exists(app: AppContext, server: str, username: str) -> None:
    """Check whether USERNAME is registered or queued on SERVER."""
    app.emit(app.service.account_exists(server, username))


@accounts.command(examples=_ACCOUNTS_EXAMPLES)
@server_argument
@click.argument("username")
@click.option(
    "--password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Account password (prompted when omitted).",
)
@click.option("--nickname", default="", help="Nickname.")
@click.option(
    "--type",
    "user_type",
    type=click.Choice(["default", "admin"], case_sensitive=False),
    default="default",
    show_default=True,
    help="Account type.",
)
@click.option(
    "--right",
    "rights",
    multiple=True,
    callback=_rights_callback,
    help="User right, e.g. transmit_voice (repeatable). Defaults to the standard set.",
)
@click.pass_obj
def create(
    app: AppContext,
    server: str,
    username: str,
    password: str,
    nickname: str,
    user_type: str,
    rights: UserRight,
) -> None:
    """Create USERNAME on SERVER immediately, without premoderation."""
    app.emit(
        app.service.create_account(
            server,
            username,
            password,
            nickname,
            user_type=UserType[user_type.upper()],
            rights=rights,
        )
    )
