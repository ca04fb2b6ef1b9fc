"""mpdkit - asyncio client for the Music Player Daemon protocol."""

from .client import MPDClient
from .protocol import ACKError, CompareMethod, Filter, MPDError, Subsystem, Tag
from .session import MPDProtocol, SessionState
from .transport import MemoryConnection, TCPConnection, open_tcp_connection

__version__ = "0.1.0"

__all__ = [
    "MPDClient",
    "MPDProtocol",
    "SessionState",
    "TCPConnection",
    "MemoryConnection",
    "open_tcp_connection",
    "Filter",
    "Tag",
    "CompareMethod",
    "Subsystem",
    "MPDError",
    "ACKError",
]
