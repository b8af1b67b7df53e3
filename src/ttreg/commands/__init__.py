"""Subcommand modules for ttreg.

register_commands() imports lazily so ``ttreg --help`` stays fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Attach the command groups and standalone commands to the root group."""
    # --- Groups ---
    from ttreg.commands.accounts import accounts
    from ttreg.commands.premod import premod

    cli.add_command(accounts)
    cli.add_command(premod)

    # --- Standalone commands ---
    from ttreg.commands.raw import raw
    from ttreg.commands.register import register
    from ttreg.commands.servers import servers

    cli.add_command(servers)
    cli.add_command(register)
    cli.add_command(raw)
