"""Byte-stream transports and response framing.

A :class:`Connection` is a bidirectional byte stream to the daemon. Two
variants exist: :class:`TCPConnection` over asyncio streams and
:class:`MemoryConnection`, an in-process stream driven by a responder
callable. Sessions receive a *connector*, an async callable
``(host, port) -> Connection``, so either variant can be injected.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Union

from .protocol.errors import ConnectionLostError, MalformedResponseError

_logger = logging.getLogger("mpdkit.transport")

CHUNK_SIZE = 4096
ENCODING = "utf-8"

OK = b"OK\n"
ACK = b"ACK "
BINARY_HEADER = b"binary: "
GREETING_PREFIX = "OK MPD "


class Connection(ABC):
    """Abstract connection consumed by the protocol session."""

    def __init__(self) -> None:
        self.read_lock = asyncio.Lock()

    @abstractmethod
    async def read(self, size: int = CHUNK_SIZE) -> bytes:
        """Read up to size bytes; ``b""`` means end of stream."""

    @abstractmethod
    async def write(self, data: bytes) -> int:
        """Write all of data and return the number of bytes written."""

    @abstractmethod
    async def close(self) -> None:
        """Close the stream. Safe to call more than once."""

    async def read_until_complete(self, binary: bool = False) -> str | bytes:
        return await read_until_complete(self, binary=binary)


Connector = Callable[[str, int], Awaitable[Connection]]


# ---------------------------------------------------------------------------
# Framing
# ---------------------------------------------------------------------------


def _ends_with_ok(data: bytes | bytearray) -> bool:
    return data == OK or data.endswith(b"\n" + OK)


def _find_ack_line(data: bytes | bytearray) -> int:
    """Offset of a complete ``ACK `` line in data, or -1."""
    if data.startswith(ACK):
        start = 0
    else:
        index = data.find(b"\n" + ACK)
        if index == -1:
            return -1
        start = index + 1
    return start if data.find(b"\n", start) != -1 else -1


class ResponseFramer:
    """Accumulates response bytes and reports when a response is complete.

    In text mode a response ends with an ``OK`` line or a complete ``ACK``
    line. In binary mode the ``binary: <n>`` header announces a payload of
    exactly n bytes; the payload is skipped when looking for terminators, so
    payload bytes that happen to look like ``OK\\n`` or ``ACK `` never end
    the read early.
    """

    def __init__(self, binary: bool = False):
        self.binary = binary
        self.buffer = bytearray()
        self._payload_end: int | None = None

    def feed(self, chunk: bytes) -> bool:
        self.buffer.extend(chunk)
        return self.complete

    @property
    def complete(self) -> bool:
        if not self.binary:
            return _ends_with_ok(self.buffer) or _find_ack_line(self.buffer) != -1

        if self._payload_end is None:
            self._payload_end = self._locate_payload()

        if self._payload_end is None:
            # Still in the text headers, or the response carries no payload.
            return _find_ack_line(self.buffer) != -1 or _ends_with_ok(self.buffer)

        if len(self.buffer) < self._payload_end:
            return False
        trailer = bytes(self.buffer[self._payload_end:])
        return _ends_with_ok(trailer) or _find_ack_line(trailer) != -1

    def _locate_payload(self) -> int | None:
        if self.buffer.startswith(BINARY_HEADER):
            marker = 0
        else:
            index = self.buffer.find(b"\n" + BINARY_HEADER)
            if index == -1:
                return None
            marker = index + 1
        line_end = self.buffer.find(b"\n", marker)
        if line_end == -1:
            return None
        value = bytes(self.buffer[marker + len(BINARY_HEADER):line_end])
        try:
            length = int(value)
        except ValueError as e:
            raise MalformedResponseError(f"Non-numeric binary length: {value!r}") from e
        return line_end + 1 + length


async def read_until_complete(connection: Connection, binary: bool = False) -> str | bytes:
    """Read one framed response from connection.

    Returns bytes in binary mode and UTF-8 text otherwise. ACK responses are
    returned as-is; classifying them is the caller's job. A stream that ends
    before a terminator raises :class:`ConnectionLostError`.
    """
    framer = ResponseFramer(binary=binary)
    async with connection.read_lock:
        while True:
            chunk = await connection.read(CHUNK_SIZE)
            if not chunk:
                raise ConnectionLostError(
                    f"Connection closed by peer after {len(framer.buffer)} bytes"
                )
            if framer.feed(chunk):
                break

    data = bytes(framer.buffer)
    if binary:
        return data
    return data.decode(ENCODING)


async def read_greeting(connection: Connection) -> str:
    """Read the ``OK MPD <version>`` banner and return the version."""
    buffer = bytearray()
    async with connection.read_lock:
        while b"\n" not in buffer:
            chunk = await connection.read(CHUNK_SIZE)
            if not chunk:
                raise ConnectionLostError("Connection closed before greeting")
            buffer.extend(chunk)

    line = buffer.split(b"\n", 1)[0].decode(ENCODING, errors="replace")
    if not line.startswith(GREETING_PREFIX):
        raise MalformedResponseError(f"Unexpected greeting: {line!r}")
    return line[len(GREETING_PREFIX):].strip()


# ---------------------------------------------------------------------------
# TCP
# ---------------------------------------------------------------------------


class TCPConnection(Connection):
    """Connection over an asyncio stream pair."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        super().__init__()
        self._reader = reader
        self._writer = writer
        self._closed = False

    async def read(self, size: int = CHUNK_SIZE) -> bytes:
        return await self._reader.read(size)

    async def write(self, data: bytes) -> int:
        self._writer.write(data)
        await self._writer.drain()
        return len(data)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except ConnectionError:
            # Peer already went away; the socket is closed either way.
            pass


async def open_tcp_connection(
    host: str, port: int, timeout: float | None = None
) -> TCPConnection:
    """Open a TCP connection, optionally bounding connection setup by timeout."""
    _logger.debug(f"Opening TCP connection to {host}:{port}")
    reader, writer = await asyncio.wait_for(
        asyncio.open_connection(host, port), timeout=timeout
    )
    return TCPConnection(reader, writer)


# ---------------------------------------------------------------------------
# In-process
# ---------------------------------------------------------------------------

Reply = Union[bytes, str, None]


class MemoryConnection(Connection):
    """In-process connection answering written lines through a responder.

    The responder is called with every complete line written (without the
    newline) and returns the bytes to make readable, or None to answer
    nothing yet. Data can also be pushed at any time with :meth:`feed`.
    ``max_chunk`` limits how many bytes a single :meth:`read` returns, which
    lets tests exercise fragmented responses.
    """

    def __init__(
        self,
        responder: Callable[[str], Reply] | None = None,
        greeting: Reply = b"OK MPD 0.23.5\n",
        max_chunk: int | None = None,
    ):
        super().__init__()
        self._responder = responder
        self._max_chunk = max_chunk
        self._buffer = bytearray()
        self._pending = bytearray()
        self._data_ready = asyncio.Event()
        self._eof = False
        self.closed = False
        self.written: list[str] = []
        if greeting:
            self.feed(greeting)

    def feed(self, data: bytes | str) -> None:
        if isinstance(data, str):
            data = data.encode(ENCODING)
        self._buffer.extend(data)
        self._data_ready.set()

    def feed_eof(self) -> None:
        self._eof = True
        self._data_ready.set()

    async def read(self, size: int = CHUNK_SIZE) -> bytes:
        while not self._buffer and not self._eof:
            self._data_ready.clear()
            await self._data_ready.wait()
        if self._max_chunk is not None:
            size = min(size, self._max_chunk)
        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        return data

    async def write(self, data: bytes) -> int:
        if self.closed:
            raise ConnectionResetError("Connection is closed")
        self._pending.extend(data)
        while b"\n" in self._pending:
            raw, _, rest = bytes(self._pending).partition(b"\n")
            self._pending = bytearray(rest)
            line = raw.decode(ENCODING)
            self.written.append(line)
            if self._responder is not None:
                reply = self._responder(line)
                if reply:
                    self.feed(reply)
        return len(data)

    async def close(self) -> None:
        self.closed = True
        self.feed_eof()
