"""Standalone command: list configured servers."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from ttreg.commands._base import TtCommand

if TYPE_CHECKING:
    from ttreg.commands._context import AppContext


@click.command(cls=TtCommand, examples="  ttreg servers\n  ttreg --json servers")
@click.pass_obj
def servers(app: AppContext) -> None:
    """List the servers defined in ttreg.toml."""
    app.emit(app.service.servers())
