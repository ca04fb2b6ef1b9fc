"""High-level client built on a protocol session."""

from __future__ import annotations

import functools
import logging
from typing import Any

from .config import resolve_address
from .protocol.filters import AnyFilter, Filter
from .protocol.messages import Tag
from .session import MPDProtocol
from .transport import Connector, open_tcp_connection

_logger = logging.getLogger("mpdkit.client")


def _first_value(record: dict[str, Any]) -> Any:
    return next(iter(record.values()), None)


class MPDClient:
    """Convenience operations for everyday playback and library browsing."""

    def __init__(self, protocol: MPDProtocol):
        self.protocol = protocol

    @classmethod
    async def connect(
        cls,
        host: str | None = None,
        port: int | None = None,
        connector: Connector | None = None,
        password: str | None = None,
        timeout: float | None = None,
    ) -> MPDClient:
        """Resolve the address, connect and authenticate when a password is known."""
        address = resolve_address(host, port)
        if connector is None:
            connector = functools.partial(open_tcp_connection, timeout=timeout)

        protocol = MPDProtocol(connector, address.host, address.port)
        await protocol.connect()
        secret = password or address.password
        if secret:
            try:
                await protocol.password(secret)
            except BaseException:
                await protocol.disconnect()
                raise
            _logger.debug("Authenticated")
        return cls(protocol)

    async def __aenter__(self) -> MPDClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.disconnect()

    async def disconnect(self) -> None:
        await self.protocol.disconnect()

    # --- Playback ---

    async def play(self, position: int | None = None) -> None:
        await self.protocol.play(position)

    async def pause(self, state: bool | None = None) -> None:
        await self.protocol.pause(state)

    async def next(self) -> None:
        await self.protocol.next()

    async def previous(self) -> None:
        await self.protocol.previous()

    # --- Queue ---

    async def queue(self) -> list[dict[str, Any]]:
        return await self.protocol.playlist_info()

    async def clear_queue(self) -> None:
        await self.protocol.clear()

    async def clear_rest_of_queue(self) -> None:
        """Remove every queued song after the current one."""
        position = (await self.protocol.current_song()).get("Pos")
        if position is None:
            return
        length = (await self.protocol.status()).get("playlistlength", 0)
        if position + 1 < length:
            await self.protocol.delete((position + 1, length))

    async def add_to_queue(self, uri: str | None = None, filter: AnyFilter | None = None) -> None:
        """Queue a URI, or every song matching filter. The URI wins when both are given."""
        if uri:
            await self.protocol.add(uri)
        elif filter:
            await self.protocol.find_add(filter)

    async def add_album_to_queue(
        self,
        album: str,
        artist: str | None = None,
        artist_tag: Tag | str = Tag.ARTIST,
    ) -> None:
        filters = [Filter(Tag.ALBUM, album)]
        if artist:
            filters.append(Filter(artist_tag, artist))
        await self.protocol.find_add(filters)

    # --- Library ---

    async def list_artists(self) -> list[str]:
        records = await self.protocol.list(Tag.ALBUMARTIST)
        return [v for v in map(_first_value, records) if v]

    async def list_albums(self, artist: str | None = None) -> list[dict[str, Any]]:
        """Albums grouped by album artist, optionally restricted to one artist."""
        filter = Filter(Tag.ALBUMARTIST, artist) if artist else None
        return await self.protocol.list(Tag.ALBUM, filter, group=Tag.ALBUMARTIST)

    async def list_tracks(self, album: str) -> list[dict[str, Any]]:
        return await self.protocol.find(Filter(Tag.ALBUM, album))

    # --- State ---

    async def current_song(self) -> dict[str, Any]:
        return await self.protocol.current_song()

    async def status(self) -> dict[str, Any]:
        return await self.protocol.status()

    async def stats(self) -> dict[str, Any]:
        return await self.protocol.stats()

    async def info(self) -> dict[str, Any]:
        return {
            "current_song": await self.current_song(),
            "status": await self.status(),
            "stats": await self.stats(),
        }
