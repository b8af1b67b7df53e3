"""Wire codec for the line-oriented ``tag=value`` control protocol.

Outbound lines look like::

    newaccount username="bob" password="s3cret" usertype=1 id=4\r\n

Values come in exactly four shapes, recognised in this order:
boolean (``true``/``false``), signed integer, bracketed integer list
(``[1,2,3]``, ``[]``), and double-quoted string with backslash escapes.

Pure functions only. No I/O.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TypeAlias

from ttreg.domain.errors import DecodeError, InvalidArgumentError

Value: TypeAlias = bool | int | tuple[int, ...] | str

LINE_END = "\r\n"
RESERVED_PARAM = "id"

_IDENT = r"[A-Za-z_][A-Za-z0-9_]*"
_TOKEN_END = r"(?=\s|$)"

_NAME_RE = re.compile(_IDENT)
_PARAM_RE = re.compile(rf"({_IDENT})=")
_SPACE_RE = re.compile(r"[ \t]+")
_BOOL_RE = re.compile(rf"(true|false){_TOKEN_END}")
_INT_RE = re.compile(rf"-?[0-9]+{_TOKEN_END}")
_LIST_RE = re.compile(rf"\[((?:-?[0-9]+(?:,-?[0-9]+)*)?)\]{_TOKEN_END}")
_STR_RE = re.compile(rf'"((?:[^"\\]|\\.)*)"{_TOKEN_END}', re.DOTALL)
_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)
_LINE_SPLIT_RE = re.compile(r"\r?\n")

_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r"}
_UNESCAPES = {"n": "\n", "r": "\r"}


@dataclass(frozen=True, slots=True)
class Command:
    """One protocol message: a bare name followed by ordered parameters."""

    name: str
    params: dict[str, Value] = field(default_factory=dict)

    def get(self, key: str, default: Value | None = None) -> Value | None:
        return self.params.get(key, default)


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def escape_string(text: str) -> str:
    """Escape backslashes, quotes and line breaks for a quoted value."""
    return "".join(_ESCAPES.get(ch, ch) for ch in text)


def encode_value(value: Value | list[int]) -> str:
    """Render a single parameter value.

    Raises:
        InvalidArgumentError: If *value* is not one of the four protocol types.
    """
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (list, tuple)):
        if not all(isinstance(v, int) and not isinstance(v, bool) for v in value):
            msg = f"Integer lists may only contain integers: {value!r}"
            raise InvalidArgumentError(msg)
        return "[" + ",".join(str(v) for v in value) + "]"
    if isinstance(value, str):
        return f'"{escape_string(value)}"'
    msg = f"Unsupported parameter value type: {type(value).__name__}"
    raise InvalidArgumentError(msg)


def encode(command: Command, command_id: int) -> str:
    """Render *command* as a wire line tagged with *command_id*.

    The ``id`` parameter is appended here and must never be supplied by
    the caller.

    Raises:
        InvalidArgumentError: On a reserved or malformed parameter name,
            a malformed command name, or an unsupported value type.
    """
    if _NAME_RE.fullmatch(command.name) is None:
        msg = f"Invalid command name: {command.name!r}"
        raise InvalidArgumentError(msg)
    parts = [command.name]
    for key, value in command.params.items():
        if key == RESERVED_PARAM:
            msg = f"Parameter {RESERVED_PARAM!r} is reserved and assigned by the session"
            raise InvalidArgumentError(msg)
        if _NAME_RE.fullmatch(key) is None:
            msg = f"Invalid parameter name: {key!r}"
            raise InvalidArgumentError(msg)
        parts.append(f"{key}={encode_value(value)}")
    parts.append(f"{RESERVED_PARAM}={command_id}")
    return " ".join(parts) + LINE_END


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def unescape_string(raw: str) -> str:
    """Reverse :func:`escape_string`."""
    return _ESCAPE_RE.sub(lambda m: _UNESCAPES.get(m.group(1), m.group(1)), raw)


def _decode_value(text: str, pos: int, line: str) -> tuple[Value, int]:
    """Match one value at *pos*; return ``(value, end)``."""
    if m := _BOOL_RE.match(text, pos):
        return m.group(1) == "true", m.end()
    if m := _INT_RE.match(text, pos):
        return int(m.group()), m.end()
    if m := _LIST_RE.match(text, pos):
        body = m.group(1)
        items = tuple(int(v) for v in body.split(",")) if body else ()
        return items, m.end()
    if m := _STR_RE.match(text, pos):
        return unescape_string(m.group(1)), m.end()
    raise DecodeError(line, pos, "Unrecognised value")


def decode_line(line: str) -> Command:
    """Parse one protocol line into a :class:`Command`.

    Raises:
        DecodeError: If any token fails to match the grammar.
    """
    text = line.rstrip("\r\n")
    m = _NAME_RE.match(text)
    if m is None:
        raise DecodeError(line, 0, "Expected command name")
    name = m.group()
    pos = m.end()
    params: dict[str, Value] = {}

    while pos < len(text):
        gap = _SPACE_RE.match(text, pos)
        if gap is None:
            raise DecodeError(line, pos, "Expected whitespace")
        pos = gap.end()
        if pos == len(text):
            break
        pm = _PARAM_RE.match(text, pos)
        if pm is None:
            raise DecodeError(line, pos, "Expected parameter name")
        value, pos = _decode_value(text, pm.end(), line)
        params[pm.group(1)] = value

    return Command(name, params)


def decode_reply_block(text: str) -> list[Command]:
    """Decode every non-blank line of a reply body, preserving order."""
    return [decode_line(line) for line in _LINE_SPLIT_RE.split(text) if line.strip()]
