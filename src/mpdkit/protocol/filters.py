"""Compilation of filters into the daemon's filter-expression syntax."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Union

from .messages import CompareMethod, Tag, enum_value


@dataclass(frozen=True)
class Filter:
    """A single ``(tag <op> 'value')`` term."""

    tag: Tag | str
    value: str
    compare: CompareMethod | str = CompareMethod.EQUAL


AnyFilter = Union[Filter, List[Filter], str]


def quote(value: str, quote_char: str = '"') -> str:
    """Wrap value in quote_char unless it is already delimited by it.

    When the quotes are added here, backslashes and embedded quote characters
    are escaped. Already-delimited input is returned untouched.
    """
    if len(value) >= 2 and value.startswith(quote_char) and value.endswith(quote_char):
        return value
    escaped = value.replace("\\", "\\\\").replace(quote_char, "\\" + quote_char)
    return f"{quote_char}{escaped}{quote_char}"


def compile_filter(filter: AnyFilter | None = None) -> str:
    """Render a filter, list of filters or raw expression as a command argument."""
    if not filter:
        return ""
    if isinstance(filter, str):
        return quote(filter)
    if isinstance(filter, (list, tuple)):
        return " ".join(compile_filter(f) for f in filter)

    tag = enum_value(filter.tag)
    compare = enum_value(filter.compare or CompareMethod.EQUAL)
    value = quote(filter.value, quote_char="'")
    return quote(f"({tag} {compare} {value})")
