"""Pytest configuration and fixtures for mpdkit tests."""

from __future__ import annotations

import logging

import pytest

from mpdkit.protocol.commands import CLIST_BEGIN, CLIST_END, CLIST_OK_BEGIN
from mpdkit.session import MPDProtocol
from mpdkit.transport import MemoryConnection


class FakeDaemon:
    """Scripted daemon answering every connection a test opens.

    Replies are looked up by exact command line (or by the whole command-list
    block, lines joined with newlines); unknown commands get ``OK``. A list of
    replies is consumed one per request. ``idle`` is held until a change is
    queued, :meth:`notify` is called or ``noidle`` arrives, which is how the
    daemon behaves.
    """

    def __init__(self, greeting: bytes = b"OK MPD 0.23.5\n", max_chunk: int | None = None):
        self.greeting = greeting
        self.max_chunk = max_chunk
        self.responses: dict[str, bytes | str | list] = {}
        self.hangups: dict[str, bytes] = {}
        self.held: set[str] = set()
        self.changes: list[list[str]] = []
        self.commands: list[str] = []
        self.addresses: list[tuple[str, int]] = []
        self.connections: list[MemoryConnection] = []
        self._idling: list[MemoryConnection] = []
        self._block: list[str] | None = None

    def reply(self, line: str, response: bytes | str | list) -> None:
        self.responses[line] = response

    def hold(self, line: str) -> None:
        """Answer nothing when line arrives; the test feeds the reply later."""
        self.held.add(line)

    def hang_up(self, line: str, partial: bytes = b"") -> None:
        """Close the connection after writing partial when line arrives."""
        self.hangups[line] = partial

    def notify(self, *subsystems: str) -> None:
        """Report changes to every connection currently idling."""
        body = "".join(f"changed: {s}\n" for s in subsystems) + "OK\n"
        idling, self._idling = self._idling, []
        for conn in idling:
            conn.feed(body)

    async def connect(self, host: str, port: int) -> MemoryConnection:
        self.addresses.append((host, port))

        def respond(line: str):
            return self._respond(conn, line)

        conn = MemoryConnection(respond, greeting=self.greeting, max_chunk=self.max_chunk)
        self.connections.append(conn)
        return conn

    def _lookup(self, key: str):
        response = self.responses.get(key, "OK\n")
        if isinstance(response, list):
            return response.pop(0)
        return response

    def _respond(self, conn: MemoryConnection, line: str):
        self.commands.append(line)

        if line in self.hangups:
            conn.feed(self.hangups[line])
            conn.feed_eof()
            return None
        if line in self.held:
            return None

        if line in (CLIST_BEGIN, CLIST_OK_BEGIN):
            self._block = [line]
            return None
        if self._block is not None:
            self._block.append(line)
            if line != CLIST_END:
                return None
            key, self._block = "\n".join(self._block), None
            return self._lookup(key)

        if line == "idle" or line.startswith("idle "):
            if line in self.responses:
                return self._lookup(line)
            if self.changes:
                return "".join(f"changed: {s}\n" for s in self.changes.pop(0)) + "OK\n"
            self._idling.append(conn)
            return None

        if line == "noidle":
            if conn in self._idling:
                self._idling.remove(conn)
                return "OK\n"
            return None

        return self._lookup(line)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep the user's environment and config file out of tests."""
    monkeypatch.delenv("MPD_HOST", raising=False)
    monkeypatch.delenv("MPD_PORT", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    yield
    logger = logging.getLogger("mpdkit")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def daemon() -> FakeDaemon:
    """A fresh scripted daemon."""
    return FakeDaemon()


@pytest.fixture
def protocol(daemon: FakeDaemon) -> MPDProtocol:
    """An unconnected session wired to the fake daemon."""
    return MPDProtocol(daemon.connect, "localhost", 6600)
