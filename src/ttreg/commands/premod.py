"""Command group: premoderation queue (list, accept)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from ttreg.commands._base import TtGroup, complete_server

if TYPE_CHECKING:
    from ttreg.commands._context import AppContext

_PREMOD_EXAMPLES = """\
  ttreg premod list
  ttreg premod list --server moderated
  ttreg premod accept 3q2Xb7V0d9kP1mZcL4aHf8YwTnRs6EuJ"""


@click.group(cls=TtGroup, examples=_PREMOD_EXAMPLES)
def premod() -> None:
    """Review and approve queued registrations."""


@premod.command("list")
@click.option(
    "--server",
    default=None,
    shell_complete=complete_server,
    help="Only show requests for this server.",
)
@click.pass_obj
def list_cmd(app: AppContext, server: str | None) -> None:
    """Show registration requests awaiting approval."""
    app.emit(app.service.pending(server))


@premod.command(examples="  ttreg premod accept 3q2Xb7V0d9kP1mZcL4aHf8YwTnRs6EuJ")
@click.argument("key")
@click.pass_obj
def accept(app: AppContext, key: str) -> None:
    """Create the account queued under KEY and remove it from the queue.

    If creation fails the request stays queued.
    """
    app.emit(app.service.accept(key))
