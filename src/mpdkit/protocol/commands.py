"""Command line serialization.

Every function here is pure: typed arguments in, one command line out (no
trailing newline; the session appends it at send time).
"""

from __future__ import annotations

from typing import Iterable

from .filters import AnyFilter, compile_filter, quote
from .messages import RangeOrIndex, Tag, enum_value

CLIST_BEGIN = "command_list_begin"
CLIST_OK_BEGIN = "command_list_ok_begin"
CLIST_END = "command_list_end"
LIST_OK = "list_OK"


def format_range(value: RangeOrIndex | tuple[int, int | None]) -> str:
    """Render ``(start, end)`` as ``start:end`` and an index as itself.

    An end of ``None`` yields the open range ``start:``.
    """
    if isinstance(value, (tuple, list)):
        start, end = value
        return f"{start}:{'' if end is None else end}"
    return str(value)


def format_relative(position: int | None, relative: str | None = None) -> str:
    """Render a queue position, optionally relative (``+n``/``-n``) to the current song."""
    if position is None:
        return ""
    if relative:
        return f"{relative}{position}"
    return str(position)


def format_sort(tag: Tag | str, descending: bool = False) -> str:
    order = "-" if descending else ""
    return f"{order}{enum_value(tag)}"


def quote_argument(value: str) -> str:
    """Double-quote a free-form argument such as a URI or playlist name."""
    return quote(str(value))


def format_bool(value: bool | int) -> str:
    return "1" if value else "0"


def build_command(name: str, *args: object) -> str:
    """Join the command name and its non-empty arguments with single spaces."""
    parts = [name]
    for arg in args:
        if arg is None:
            continue
        text = enum_value(arg)
        if text:
            parts.append(text)
    return " ".join(parts)


def build_query(
    name: str,
    filter: AnyFilter | None = None,
    *,
    sort: Tag | str | None = None,
    descending: bool = False,
    window: RangeOrIndex | None = None,
    position: int | None = None,
    relative: str | None = None,
    group: Tag | str | None = None,
    prefix: Iterable[str] = (),
) -> str:
    """Build a database query command.

    Clauses follow a fixed order: command, prefix arguments, filter, sort,
    window, then position or group. Each clause appears only when given.
    """
    args: list[str] = list(prefix)
    args.append(compile_filter(filter))
    if sort is not None:
        args.append(f"sort {format_sort(sort, descending)}")
    if window is not None:
        args.append(f"window {format_range(window)}")
    if position is not None:
        args.append(f"position {format_relative(position, relative)}")
    if group is not None:
        args.append(f"group {enum_value(group)}")
    return build_command(name, *args)


def command_list(commands: Iterable[str], ok: bool = False) -> str:
    """Wrap command lines in a command-list block."""
    begin = CLIST_OK_BEGIN if ok else CLIST_BEGIN
    return "\n".join([begin, *commands, CLIST_END])


def split_command_list_ok(response: str) -> list[str]:
    """Split a ``command_list_ok_begin`` response into one chunk per command."""
    body = response
    if body.endswith("OK\n"):
        body = body[: -len("OK\n")]
    chunks = body.split(LIST_OK + "\n")
    if chunks and chunks[-1] == "":
        chunks.pop()
    return chunks
