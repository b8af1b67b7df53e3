"""Click building blocks shared by every ttreg command.

- ``TtCommand`` / ``TtGroup`` accept an ``examples`` keyword; ``--examples``
  prints invocation samples and exits, so ``--help`` stays short.
- ``server_argument`` is the SERVER positional, with shell completion of
  the server names configured in ``ttreg.toml``.
"""

from __future__ import annotations

from typing import Any

import click
from click.shell_completion import CompletionItem

from ttreg.config.settings import TtregSettings


def complete_server(
    ctx: click.Context, _param: click.Parameter, incomplete: str
) -> list[CompletionItem]:
    """Offer configured server names matching *incomplete*.

    Runs during shell completion, before the root callback, so settings
    are loaded here from the root ``--config`` value, if any.
    """
    config_path = ctx.find_root().params.get("config_path")
    try:
        settings = TtregSettings.from_cli(config_path=config_path)
    except click.ClickException:
        return []
    return [
        CompletionItem(name, help=server.title or None)
        for name, server in sorted(settings.servers.items())
        if name.startswith(incomplete)
    ]


def server_argument(func: Any) -> Any:
    """Decorator adding the SERVER positional argument."""
    return click.argument("server", shell_complete=complete_server)(func)


def _add_examples_option(cmd: click.Command, examples: str) -> None:
    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class TtCommand(click.Command):
    """Command that accepts an ``examples`` keyword."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        if examples:
            _add_examples_option(self, examples)


class TtGroup(click.Group):
    """Group whose subcommands are :class:`TtCommand` by default."""

    command_class = TtCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        if examples:
            _add_examples_option(self, examples)
