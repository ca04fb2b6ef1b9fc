"""Parsing of ``Key: Value`` responses into records.

Field coercion is table driven: a table maps a response key to a
:class:`FieldKind`, and each kind has one coercion function. Keys missing from
a table are dropped unless ``allow_unknown`` is set, in which case the raw
string is kept.
"""

from __future__ import annotations

import math
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping, Tuple, Union

from .errors import MalformedResponseError

DELIMITER = ": "
BINARY_MARKER = b"binary: "


class FieldKind(str, Enum):
    """How a response value is coerced."""

    STRING = "string"
    NUMBER = "number"
    FLAG = "flag"
    TRISTATE = "tristate"
    BOOLEAN = "boolean"
    STRING_LIST = "string_list"


def _to_number(value: str) -> int | float:
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return math.nan


def _to_flag(value: str) -> int:
    return 1 if value == "1" else 0


def _to_tristate(value: str) -> int | str:
    if value == "1":
        return 1
    if value == "0":
        return 0
    return "oneshot"


def _to_list(value: str | list[str]) -> list[str]:
    if isinstance(value, list):
        return list(value)
    return [value]


COERCIONS: Mapping[FieldKind, Callable[[Any], Any]] = MappingProxyType(
    {
        FieldKind.STRING: str,
        FieldKind.NUMBER: _to_number,
        FieldKind.FLAG: _to_flag,
        FieldKind.TRISTATE: _to_tristate,
        FieldKind.BOOLEAN: bool,
        FieldKind.STRING_LIST: _to_list,
    }
)

FieldTable = Mapping[str, FieldKind]

STATUS_FIELDS: FieldTable = MappingProxyType(
    {
        "partition": FieldKind.STRING,
        "volume": FieldKind.NUMBER,
        "repeat": FieldKind.FLAG,
        "random": FieldKind.FLAG,
        "single": FieldKind.TRISTATE,
        "consume": FieldKind.FLAG,
        "playlist": FieldKind.NUMBER,
        "playlistlength": FieldKind.NUMBER,
        "state": FieldKind.STRING,
        "song": FieldKind.NUMBER,
        "songid": FieldKind.NUMBER,
        "nextsong": FieldKind.NUMBER,
        "nextsongid": FieldKind.NUMBER,
        "time": FieldKind.STRING,
        "elapsed": FieldKind.NUMBER,
        "duration": FieldKind.NUMBER,
        "bitrate": FieldKind.NUMBER,
        "xfade": FieldKind.NUMBER,
        "mixrampdb": FieldKind.NUMBER,
        "mixrampdelay": FieldKind.NUMBER,
        "audio": FieldKind.STRING,
        "updating_db": FieldKind.BOOLEAN,
        "error": FieldKind.STRING,
        "lastloadedplaylist": FieldKind.STRING,
    }
)

STATS_FIELDS: FieldTable = MappingProxyType(
    {
        "artists": FieldKind.NUMBER,
        "albums": FieldKind.NUMBER,
        "songs": FieldKind.NUMBER,
        "uptime": FieldKind.NUMBER,
        "db_playtime": FieldKind.NUMBER,
        "db_update": FieldKind.NUMBER,
        "playtime": FieldKind.NUMBER,
    }
)

TRACK_FIELDS: FieldTable = MappingProxyType(
    {
        "file": FieldKind.STRING,
        "Last-Modified": FieldKind.STRING,
        "Format": FieldKind.STRING,
        "Name": FieldKind.STRING,
        "Album": FieldKind.STRING,
        "Comment": FieldKind.STRING,
        "Disc": FieldKind.NUMBER,
        "Track": FieldKind.NUMBER,
        "Title": FieldKind.STRING,
        "Date": FieldKind.STRING,
        "Artist": FieldKind.STRING,
        "OriginalDate": FieldKind.STRING,
        "MUSICBRAINZ_ALBUMID": FieldKind.STRING,
        "MUSICBRAINZ_ALBUMARTISTID": FieldKind.STRING,
        "MUSICBRAINZ_TRACKID": FieldKind.STRING,
        "MUSICBRAINZ_ARTISTID": FieldKind.STRING,
        "MUSICBRAINZ_RELEASETRACKID": FieldKind.STRING,
        "AlbumArtist": FieldKind.STRING,
        "AlbumArtistSort": FieldKind.STRING,
        "Label": FieldKind.STRING,
        "ArtistSort": FieldKind.STRING,
        "Genre": FieldKind.STRING_LIST,
        "Time": FieldKind.NUMBER,
        "duration": FieldKind.NUMBER,
        "Composer": FieldKind.STRING,
        "ComposerSort": FieldKind.STRING,
        "Conductor": FieldKind.STRING,
        "Performer": FieldKind.STRING_LIST,
        "Pos": FieldKind.NUMBER,
        "Id": FieldKind.NUMBER,
        "Prio": FieldKind.NUMBER,
    }
)

OUTPUT_FIELDS: FieldTable = MappingProxyType(
    {
        "outputid": FieldKind.NUMBER,
        "outputname": FieldKind.STRING,
        "plugin": FieldKind.STRING,
        "outputenabled": FieldKind.FLAG,
    }
)

# Keys that open a new entry in directory listings.
ENTRY_KEYS = ("file", "directory", "playlist")

Separator = Union[str, Tuple[str, ...], None]


def coerce(kind: FieldKind, value: Any) -> Any:
    """Apply the coercion for kind.

    A list of raw values (a repeated key) is coerced element by element and
    stays a single flat list.
    """
    func = COERCIONS[kind]
    if isinstance(value, list):
        if kind is FieldKind.STRING_LIST:
            return func(value)
        return [func(item) for item in value]
    return func(value)


def split_line(line: str) -> tuple[str, str] | None:
    """Split ``Key: Value`` on the first delimiter; None for other lines."""
    index = line.find(DELIMITER)
    if index == -1:
        return None
    return line[:index], line[index + len(DELIMITER):]


def iter_pairs(text: str):
    """Yield ``(key, value)`` for every ``Key: Value`` line of text."""
    for line in text.split("\n"):
        pair = split_line(line)
        if pair is not None:
            yield pair


def parse_record(
    text: str,
    table: FieldTable | None = None,
    allow_unknown: bool = False,
) -> dict[str, Any]:
    """Parse one paragraph of ``Key: Value`` lines into a dict.

    With no table every key is kept as a raw string, as with ``allow_unknown``.
    Array-typed fields accumulate across repeated lines; other repeated keys
    keep the last value.
    """
    if table is None:
        table = {}
        allow_unknown = True

    record: dict[str, Any] = {}
    for key, value in iter_pairs(text):
        kind = table.get(key)
        if kind is not None:
            coerced = coerce(kind, value)
            if isinstance(coerced, list) and isinstance(record.get(key), list):
                record[key] = [*record[key], *coerced]
            else:
                record[key] = coerced
        elif allow_unknown:
            record[key] = value
    return record


def _separators(separator: Separator) -> frozenset[str] | None:
    if not separator:
        return None
    if isinstance(separator, str):
        separator = (separator,)
    return frozenset(s.lower() for s in separator)


def parse_flat_list(text: str, separator: Separator = None) -> list[dict[str, Any]]:
    """Split a flat response into records.

    Every occurrence of separator (compared case-insensitively; a tuple means
    any of its keys) opens a new record. Without a separator the first key of
    the response is used. Lines before the first separator are dropped. A key
    repeated within a record becomes one flat list of its values in input
    order.
    """
    result: list[dict[str, Any]] = []
    seps = _separators(separator)

    for key, value in iter_pairs(text):
        if seps is None:
            seps = frozenset([key.lower()])

        if key.lower() in seps:
            result.append({key: value})
            continue

        if not result:
            continue
        current = result[-1]
        if key in current:
            previous = current[key]
            if isinstance(previous, list):
                previous.append(value)
            else:
                current[key] = [previous, value]
        else:
            current[key] = value
    return result


def parse_grouped_list(text: str, group_key: str) -> list[dict[str, Any]]:
    """Group values under each occurrence of group_key.

    Returns ``[{"group": ..., "values": [...]}, ...]``; every other line's value
    is appended to the open group whatever its key.
    """
    groups: list[dict[str, Any]] = []
    wanted = group_key.lower()

    for key, value in iter_pairs(text):
        if key.lower() == wanted:
            groups.append({"group": value, "values": []})
        elif groups:
            groups[-1]["values"].append(value)
    return groups


def parse_typed_list(
    text: str,
    table: FieldTable,
    separator: Separator = None,
    allow_unknown: bool = False,
) -> list[dict[str, Any]]:
    """:func:`parse_flat_list` followed by per-field coercion from table."""
    typed: list[dict[str, Any]] = []
    for item in parse_flat_list(text, separator):
        record: dict[str, Any] = {}
        for key, value in item.items():
            kind = table.get(key)
            if kind is not None:
                record[key] = coerce(kind, value)
            elif allow_unknown:
                record[key] = value
        typed.append(record)
    return typed


def parse_values(text: str, key: str | None = None) -> list[str]:
    """Collect values in order, optionally only those of key (case-insensitive)."""
    wanted = key.lower() if key else None
    return [v for k, v in iter_pairs(text) if wanted is None or k.lower() == wanted]


def parse_changed(text: str) -> list[str]:
    """Subsystems named by the ``changed:`` lines of an idle response."""
    return parse_values(text, "changed")


def parse_binary_chunk(data: bytes) -> tuple[dict[str, Any], bytes]:
    """Split one binary response into headers and payload chunk.

    Headers are the ``key: value`` lines before the ``binary: <n>`` line;
    ``size`` is required and numeric, ``binary`` gives the chunk length.
    """
    marker = data.find(BINARY_MARKER)
    if marker == -1:
        raise MalformedResponseError("Binary response without 'binary:' header")
    header_end = data.find(b"\n", marker)
    if header_end == -1:
        raise MalformedResponseError("Binary header is not terminated by a newline")

    header_text = data[:header_end].decode("utf-8", errors="replace")
    raw = parse_record(header_text)

    try:
        size = int(raw["size"])
        length = int(raw["binary"])
    except KeyError as e:
        raise MalformedResponseError(f"Binary response is missing '{e.args[0]}'") from e
    except ValueError as e:
        raise MalformedResponseError(f"Non-numeric binary header: {e}") from e

    start = header_end + 1
    payload = data[start:start + length]
    if len(payload) != length:
        raise MalformedResponseError(
            f"Binary chunk truncated: expected {length} bytes, got {len(payload)}"
        )

    headers: dict[str, Any] = {"size": size, "binary": length}
    if "type" in raw:
        headers["type"] = raw["type"]
    return headers, payload
