"""
MPD request-line building.

Every request is a single line: the command name followed by its
arguments. Arguments are written in one of two encodings:

- TOKENS: each argument is stringified on its own. A token containing
  whitespace is wrapped in double quotes verbatim so it stays a single
  argument; nothing inside it is escaped.
- QUOTED: the arguments are pre-formatted into one string in which every
  value is wrapped in double quotes, with embedded backslashes and double
  quotes backslash-escaped.

Which encoding a command uses is fixed per command (see COMMAND_ENCODINGS).
The search resolver is the only caller that deliberately tries both.

This module also parses the daemon's ``ACK`` error line.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum


class ArgEncoding(Enum):
    """How a command's arguments are written on the request line."""

    TOKENS = "tokens"
    QUOTED = "quoted"


# Commands whose values may contain protocol-significant characters.
COMMAND_ENCODINGS: dict[str, ArgEncoding] = {
    "add": ArgEncoding.QUOTED,
    "search": ArgEncoding.QUOTED,
    "find": ArgEncoding.QUOTED,
    "listallinfo": ArgEncoding.QUOTED,
}

# Reply terminators
RESPONSE_OK = "OK"
RESPONSE_ERR = "ACK"
GREETING_PREFIX = "OK MPD "

_ACK_RE = re.compile(r"^ACK \[(\d+)@(\d+)\] \{([^}]*)\}\s?(.*)$")


def encoding_for(command: str) -> ArgEncoding:
    """Get the fixed argument encoding of a command."""
    return COMMAND_ENCODINGS.get(command, ArgEncoding.TOKENS)


def _check_single_line(value: str) -> str:
    if "\n" in value or "\r" in value:
        raise ValueError(f"Argument must not contain a line break: {value!r}")
    return value


def format_token(arg: object) -> str:
    """Stringify one token. Tokens with whitespace are wrapped in quotes verbatim."""
    if isinstance(arg, bool):
        text = "1" if arg else "0"
    else:
        text = str(arg)
    _check_single_line(text)
    if not text or any(ch.isspace() for ch in text):
        return f'"{text}"'
    return text


def quote(value: object) -> str:
    """Wrap a value in double quotes, escaping backslashes and double quotes."""
    text = _check_single_line(str(value))
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def format_quoted(args: Iterable[object]) -> str:
    """Pre-format arguments as one quoted-string argument block."""
    return " ".join(quote(arg) for arg in args)


def build_command_line(command: str, args: Iterable[object] | str = ()) -> str:
    """
    Build a request line (without the trailing newline).

    Args:
        command: Command name, e.g. ``"status"``.
        args: Either a sequence of tokens, or a single pre-formatted string
            (see format_quoted) appended as-is.

    Returns:
        The request line.

    Raises:
        ValueError: If the command or an argument contains a line break.
    """
    _check_single_line(command)

    if isinstance(args, str):
        tail = _check_single_line(args)
    else:
        tail = " ".join(format_token(arg) for arg in args)

    return f"{command} {tail}" if tail else command


@dataclass(frozen=True, slots=True)
class AckInfo:
    """Fields of a daemon ``ACK [code@index] {command} message`` line."""

    code: int
    index: int
    command: str
    message: str


def parse_ack(line: str) -> AckInfo:
    """
    Parse an ``ACK`` error line.

    Lines that start with ``ACK`` but do not follow the usual layout are
    kept whole in ``message`` with code and index set to 0.
    """
    match = _ACK_RE.match(line)
    if match is None:
        message = line[len(RESPONSE_ERR) :].strip()
        return AckInfo(code=0, index=0, command="", message=message)

    code, index, command, message = match.groups()
    return AckInfo(code=int(code), index=int(index), command=command, message=message)
