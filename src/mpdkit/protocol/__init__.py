"""mpdkit protocol - framing-independent pieces of the MPD line protocol."""

from .commands import build_command, build_query, command_list
from .errors import (
    ACKError,
    AlreadyIdlingError,
    ConfigurationError,
    ConnectionLostError,
    ErrorCode,
    MalformedResponseError,
    MPDError,
    NotConnectedError,
)
from .filters import Filter, compile_filter, quote
from .messages import BinaryMeta, BinaryResponse, CompareMethod, Subsystem, Tag
from .parser import (
    FieldKind,
    parse_flat_list,
    parse_grouped_list,
    parse_record,
    parse_typed_list,
)

__all__ = [
    "Filter",
    "compile_filter",
    "quote",
    "build_command",
    "build_query",
    "command_list",
    "Tag",
    "CompareMethod",
    "Subsystem",
    "BinaryMeta",
    "BinaryResponse",
    "FieldKind",
    "parse_record",
    "parse_flat_list",
    "parse_grouped_list",
    "parse_typed_list",
    "MPDError",
    "ACKError",
    "ConnectionLostError",
    "NotConnectedError",
    "AlreadyIdlingError",
    "MalformedResponseError",
    "ConfigurationError",
    "ErrorCode",
]
