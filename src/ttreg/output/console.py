"""Rich Console factory and theme for ttreg output.

Consoles render into a StringIO buffer so renderers keep a
``-> str`` contract. Outside a TTY (tests, pipes) Rich emits no color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

TTREG_THEME = Theme(
    {
        "tt.ok": "bold green",
        "tt.error": "bold red",
        "tt.warning": "bold yellow",
        "tt.op": "bold cyan",
        "tt.key": "dim",
        "tt.user": "bold blue",
        "tt.token": "bold magenta",
        "tt.admin": "yellow",
    }
)


def create_console(*, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=TTREG_THEME,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()
