"""Operation-specific Rich renderers for ServiceResult.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer. Server-provided
text is always wrapped in ``Text`` so brackets in replies are never read
as Rich markup.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from ttreg.output.console import create_console, get_output

if TYPE_CHECKING:
    from collections.abc import Callable

    from rich.console import Console

    from ttreg.services.result import ServiceResult


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    for warning in result.warnings if verbose else ():
        console.print(Text(f"WARNING: {warning}", style="tt.warning"))

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Minimal output: one identifier per line, or the bare status."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} - {msg}"

    items = result.data.get("items")
    if isinstance(items, list):
        return "\n".join(_identifier(item) for item in items)
    if result.op == "raw":
        return str(result.data.get("reply", "")).replace("\r\n", "\n").rstrip("\n")
    if result.op == "account_exists":
        return "yes" if result.data.get("exists") else "no"
    return _identifier(result.data) or f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _identifier(item: dict[str, Any]) -> str:
    for key in ("key", "username", "name"):
        if item.get(key):
            return str(item[key])
    return ""


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text.assemble(("OK", "tt.ok"), (f"  {result.op}", "tt.op")))


def _field(console: Console, key: str, value: Any) -> None:
    style = {"username": "tt.user", "key": "tt.token"}.get(key, "")
    if isinstance(value, list):
        value = ", ".join(str(v) for v in value)
    console.print(Text.assemble((f"  {key}: ", "tt.key"), (str(value), style)))


def _table(columns: list[str]) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    for col in columns:
        table.add_column(col.replace("_", " ").title(), no_wrap=col in ("key", "username"))
    return table


# ── Renderers ─────────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    console.print(Text.assemble(("ERROR", "tt.error"), (f"  {result.op}", "tt.op"), " - ", msg))
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(Text(f"    {k}: {v}"))


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


def _render_accounts(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    columns = ["username", "nickname", "type"] + (["rights"] if verbose else [])
    table = _table(columns)
    for item in items:
        row = [Text(str(item.get(c, ""))) for c in columns]
        if item.get("type") == "admin":
            row[2].stylize("tt.admin")
        table.add_row(*row)
    console.print(table)
    count = result.data.get("count", len(items))
    console.print(Text(f"\n{count} accounts on {result.data.get('server', '?')}"))


def _render_servers(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    columns = ["name", "title", "host", "port", "premod"]
    table = _table(columns)
    for item in result.data.get("items", []):
        table.add_row(*(Text(str(item.get(c, ""))) for c in columns))
    console.print(table)


def _render_pending(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    if not items:
        console.print(Text("No pending registrations."))
        return
    columns = ["key", "server", "username", "nickname"] + (["created"] if verbose else [])
    table = _table(columns)
    for item in items:
        table.add_row(*(Text(str(item.get(c, ""))) for c in columns))
    console.print(table)
    console.print(Text(f"\n{result.data.get('count', len(items))} pending"))


def _render_register(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    for key in ("server", "username", "status", "key", "moderators"):
        if key in d:
            _field(console, key, d[key])
    if d.get("status") == "queued":
        console.print(Text("  Awaiting approval: pass the key to a moderator.", style="dim"))


def _render_raw(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    reply = str(result.data.get("reply", "")).replace("\r\n", "\n")
    console.print(Text(reply.rstrip("\n")))


_OP_RENDERERS: dict[str, Callable[..., None]] = {
    "list_accounts": _render_accounts,
    "servers": _render_servers,
    "pending": _render_pending,
    "register": _render_register,
    "raw": _render_raw,
}
