"""Protocol session: idle state machine and the daemon's command surface."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any

from .protocol.commands import (
    build_command,
    build_query,
    command_list,
    format_bool,
    format_range,
    format_relative,
    quote_argument,
    split_command_list_ok,
)
from .protocol.errors import (
    ACKError,
    AlreadyIdlingError,
    MalformedResponseError,
    NotConnectedError,
    check_ack,
)
from .protocol.filters import AnyFilter
from .protocol.messages import BinaryMeta, BinaryResponse, RangeOrIndex, Tag
from .protocol.parser import (
    ENTRY_KEYS,
    OUTPUT_FIELDS,
    STATS_FIELDS,
    STATUS_FIELDS,
    TRACK_FIELDS,
    parse_binary_chunk,
    parse_changed,
    parse_flat_list,
    parse_grouped_list,
    parse_record,
    parse_typed_list,
    parse_values,
)
from .transport import Connection, Connector, read_greeting, read_until_complete

_logger = logging.getLogger("mpdkit.session")

Record = dict[str, Any]


class SessionState(str, Enum):
    """Idle state of a session."""

    IDLE_FREE = "idle_free"
    IDLING = "idling"


def _tracks(text: str) -> list[Record]:
    return parse_typed_list(text, TRACK_FIELDS, "file", allow_unknown=True)


def _split_sticker(raw: str) -> tuple[str, str]:
    name, _, value = raw.partition("=")
    return name, value


class MPDProtocol:
    """One client session with the daemon.

    Commands run on a single command connection, one write/read round trip at
    a time. ``idle`` runs on a second connection owned by the session; any
    other command issued while idling first sends ``noidle`` on that
    connection and waits for the idle response to drain.
    """

    def __init__(self, connector: Connector, host: str, port: int):
        self._connector = connector
        self.host = host
        self.port = port
        self.state = SessionState.IDLE_FREE
        self.protocol_version: str | None = None
        self._conn: Connection | None = None
        self._idle_conn: Connection | None = None
        self._idle_task: asyncio.Task | None = None
        self._idle_sent = asyncio.Event()
        self._lock = asyncio.Lock()

    async def __aenter__(self) -> MPDProtocol:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.disconnect()

    @property
    def connected(self) -> bool:
        return self._conn is not None

    # --- Connection lifecycle ---

    async def _open(self) -> Connection:
        conn = await self._connector(self.host, self.port)
        try:
            version = await read_greeting(conn)
        except BaseException:
            await conn.close()
            raise
        self.protocol_version = version
        return conn

    async def connect(self) -> None:
        """Open the command connection and read the daemon greeting."""
        if self._conn is not None:
            return
        self._conn = await self._open()
        _logger.info(f"Connected to {self.host}:{self.port} (protocol {self.protocol_version})")

    async def disconnect(self) -> None:
        """Cancel any idle wait and close every connection."""
        if self._conn is None and self._idle_conn is None:
            return
        try:
            await self._cancel_idle()
        finally:
            conn, idle_conn = self._conn, self._idle_conn
            self._conn = None
            self._idle_conn = None
            self.state = SessionState.IDLE_FREE
            for c in (conn, idle_conn):
                if c is not None:
                    await c.close()
            _logger.info(f"Disconnected from {self.host}:{self.port}")

    def _ensure_connected(self) -> Connection:
        if self._conn is None:
            raise NotConnectedError("Not connected to MPD")
        return self._conn

    # --- Idle state machine ---

    async def idle(self, *subsystems: str) -> list[str]:
        """Wait until one of subsystems (all when empty) changes.

        Returns the changed subsystems. The list is empty when the wait was
        cancelled by ``noidle`` before anything changed.
        """
        self._ensure_connected()
        if self.state is SessionState.IDLING:
            raise AlreadyIdlingError("Already idling")

        self.state = SessionState.IDLING
        self._idle_sent = asyncio.Event()
        task = asyncio.create_task(self._idle_worker(build_command("idle", *subsystems)))
        self._idle_task = task
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.done():
                await self._cancel_idle()
            raise
        finally:
            if self._idle_task is task and task.done():
                self._idle_task = None

    async def _idle_worker(self, line: str) -> list[str]:
        try:
            if self._idle_conn is None:
                self._idle_conn = await self._open()
            conn = self._idle_conn
            _logger.debug(f"> {line} (idle connection)")
            try:
                await conn.write((line + "\n").encode("utf-8"))
                self._idle_sent.set()
                response = await read_until_complete(conn)
            except BaseException:
                await self._abort(conn)
                raise
            changed = parse_changed(check_ack(response))
            _logger.debug(f"Idle finished, changed: {changed}")
            return changed
        finally:
            self._idle_sent.set()
            self.state = SessionState.IDLE_FREE

    async def _cancel_idle(self) -> None:
        """Send ``noidle`` and join the idle task, if one is outstanding.

        The idle result (or error) stays with the caller of :meth:`idle`.
        """
        task = self._idle_task
        if task is None:
            return
        if not task.done():
            await self._idle_sent.wait()
            if not task.done() and self._idle_conn is not None:
                _logger.debug("> noidle (idle connection)")
                await self._idle_conn.write(b"noidle\n")
            await asyncio.wait({task})
        if not task.cancelled():
            task.exception()
        # The idle caller may already have started a new idle.
        if self._idle_task is task:
            self._idle_task = None
            self.state = SessionState.IDLE_FREE

    async def noidle(self) -> list[str]:
        """Cancel an outstanding idle; returns what it reported, if anything."""
        task = self._idle_task
        if task is None:
            return []
        await self._cancel_idle()
        if task.cancelled() or task.exception() is not None:
            return []
        return task.result()

    # --- Command execution ---

    async def send_command(self, line: str) -> str:
        """Send one command (or command-list block) and return the ACK-checked text."""
        self._ensure_connected()
        async with self._lock:
            if self.state is SessionState.IDLING:
                await self._cancel_idle()
            conn = self._ensure_connected()
            if line.startswith("password "):
                _logger.debug("> password ******")
            else:
                _logger.debug(f"> {line}")
            response = await self._round_trip(conn, line)
        return check_ack(response)

    async def _round_trip(self, conn: Connection, line: str, binary: bool = False) -> str | bytes:
        """Write one command and read its whole response.

        A round trip that does not finish leaves the response unread, so the
        connection is closed and later commands raise NotConnectedError.
        """
        try:
            await conn.write((line + "\n").encode("utf-8"))
            return await read_until_complete(conn, binary=binary)
        except BaseException:
            name = line.split(" ", 1)[0]
            _logger.warning(f"Closing connection after unfinished {name!r}")
            await self._abort(conn)
            raise

    async def _abort(self, conn: Connection) -> None:
        if self._conn is conn:
            self._conn = None
        if self._idle_conn is conn:
            self._idle_conn = None
        await conn.close()

    async def send_binary_command(self, command: str, uri: str, offset: int = 0) -> BinaryResponse:
        """Fetch a chunked binary resource starting at offset and reassemble it."""
        self._ensure_connected()
        chunks: list[bytes] = []
        async with self._lock:
            if self.state is SessionState.IDLING:
                await self._cancel_idle()
            conn = self._ensure_connected()
            while True:
                line = build_command(command, quote_argument(uri), offset)
                _logger.debug(f"> {line}")
                raw = await self._round_trip(conn, line, binary=True)
                if raw.startswith(b"ACK "):
                    raise ACKError(raw.decode("utf-8", errors="replace"))

                headers, payload = parse_binary_chunk(raw)
                chunks.append(payload)
                offset += headers["binary"]
                if offset >= headers["size"]:
                    break
                if headers["binary"] == 0:
                    raise MalformedResponseError(
                        f"Empty binary chunk at offset {offset} of {headers['size']}"
                    )

        meta = BinaryMeta(size=headers["size"], type=headers.get("type"))
        return BinaryResponse(meta=meta, binary=b"".join(chunks))

    async def _run(self, name: str, *args: object) -> str:
        return await self.send_command(build_command(name, *args))

    # --- Status ---

    async def clear_error(self) -> None:
        await self._run("clearerror")

    async def current_song(self) -> Record:
        return parse_record(await self._run("currentsong"), TRACK_FIELDS, allow_unknown=True)

    async def status(self) -> Record:
        return parse_record(await self._run("status"), STATUS_FIELDS)

    async def stats(self) -> Record:
        return parse_record(await self._run("stats"), STATS_FIELDS)

    # --- Playback options ---

    async def consume(self, state: bool | int | str) -> None:
        """Enable (1), disable (0) or set ``oneshot`` consume mode."""
        await self._run("consume", state if isinstance(state, str) else format_bool(state))

    async def crossfade(self, seconds: int) -> None:
        await self._run("crossfade", seconds)

    async def mixrampdb(self, decibels: float) -> None:
        await self._run("mixrampdb", decibels)

    async def mixrampdelay(self, seconds: float | str) -> None:
        """A value of ``nan`` disables MixRamp overlapping."""
        await self._run("mixrampdelay", seconds)

    async def random(self, state: bool | int) -> None:
        await self._run("random", format_bool(state))

    async def repeat(self, state: bool | int) -> None:
        await self._run("repeat", format_bool(state))

    async def set_volume(self, volume: int) -> None:
        await self._run("setvol", volume)

    async def get_volume(self) -> int | None:
        """Current volume, or None when the daemon has no mixer."""
        return parse_record(await self._run("getvol"), STATUS_FIELDS).get("volume")

    async def single(self, state: bool | int | str) -> None:
        await self._run("single", state if isinstance(state, str) else format_bool(state))

    async def replay_gain_mode(self, mode: str) -> None:
        """One of off, track, album, auto."""
        await self._run("replay_gain_mode", mode)

    async def replay_gain_status(self) -> Record:
        return parse_record(await self._run("replay_gain_status"))

    # --- Playback control ---

    async def next(self) -> None:
        await self._run("next")

    async def pause(self, state: bool | int | None = None) -> None:
        """Pause (true), resume (false) or toggle (None)."""
        await self._run("pause", None if state is None else format_bool(state))

    async def play(self, position: int | None = None) -> None:
        await self._run("play", position)

    async def play_id(self, song_id: int) -> None:
        await self._run("playid", song_id)

    async def previous(self) -> None:
        await self._run("previous")

    async def seek(self, position: int, time: float) -> None:
        await self._run("seek", position, time)

    async def seek_id(self, song_id: int, time: float) -> None:
        await self._run("seekid", song_id, time)

    async def seek_cur(self, time: float, relative: str | None = None) -> None:
        """Seek in the current song; relative ``+``/``-`` seeks from the current position."""
        await self._run("seekcur", f"{relative or ''}{time}")

    async def stop(self) -> None:
        await self._run("stop")

    # --- Queue ---

    async def add(self, uri: str, position: int | None = None, relative: str | None = None) -> None:
        await self._run("add", quote_argument(uri), format_relative(position, relative))

    async def add_id(
        self, uri: str, position: int | None = None, relative: str | None = None
    ) -> int:
        """Add one song and return its queue id."""
        text = await self._run("addid", quote_argument(uri), format_relative(position, relative))
        return int(parse_record(text)["Id"])

    async def clear(self) -> None:
        await self._run("clear")

    async def delete(self, position: RangeOrIndex) -> None:
        await self._run("delete", format_range(position))

    async def delete_id(self, song_id: int) -> None:
        await self._run("deleteid", song_id)

    async def move(self, source: RangeOrIndex, to: int, relative: str | None = None) -> None:
        await self._run("move", format_range(source), format_relative(to, relative))

    async def move_id(self, song_id: int, to: int, relative: str | None = None) -> None:
        await self._run("moveid", song_id, format_relative(to, relative))

    async def playlist_find(self, filter: AnyFilter) -> list[Record]:
        return _tracks(await self.send_command(build_query("playlistfind", filter)))

    async def playlist_search(self, filter: AnyFilter) -> list[Record]:
        return _tracks(await self.send_command(build_query("playlistsearch", filter)))

    async def playlist_id(self, song_id: int | None = None) -> list[Record]:
        return _tracks(await self._run("playlistid", song_id))

    async def playlist_info(self, position: RangeOrIndex | None = None) -> list[Record]:
        arg = None if position is None else format_range(position)
        return _tracks(await self._run("playlistinfo", arg))

    async def playlist_changes(self, version: int, window: RangeOrIndex | None = None) -> list[Record]:
        arg = None if window is None else format_range(window)
        return _tracks(await self._run("plchanges", version, arg))

    async def playlist_changes_pos_id(
        self, version: int, window: RangeOrIndex | None = None
    ) -> list[Record]:
        arg = None if window is None else format_range(window)
        text = await self._run("plchangesposid", version, arg)
        return parse_typed_list(text, TRACK_FIELDS, "cpos", allow_unknown=True)

    async def prio(self, priority: int, *ranges: RangeOrIndex) -> None:
        await self._run("prio", priority, *(format_range(r) for r in ranges))

    async def prio_id(self, priority: int, *song_ids: int) -> None:
        await self._run("prioid", priority, *song_ids)

    async def range_id(self, song_id: int, start: float | None = None, end: float | None = None) -> None:
        """Play only the portion start..end (seconds) of a song; both None clears it."""
        span = f"{'' if start is None else start}:{'' if end is None else end}"
        await self._run("rangeid", song_id, span)

    async def shuffle(self, window: RangeOrIndex | None = None) -> None:
        await self._run("shuffle", None if window is None else format_range(window))

    async def swap(self, pos1: int, pos2: int) -> None:
        await self._run("swap", pos1, pos2)

    async def swap_id(self, id1: int, id2: int) -> None:
        await self._run("swapid", id1, id2)

    async def add_tag_id(self, song_id: int, tag: Tag | str, value: str) -> None:
        await self._run("addtagid", song_id, tag, quote_argument(value))

    async def clear_tag_id(self, song_id: int, tag: Tag | str | None = None) -> None:
        await self._run("cleartagid", song_id, tag)

    # --- Stored playlists ---

    async def list_playlist(self, name: str) -> list[str]:
        return parse_values(await self._run("listplaylist", quote_argument(name)), "file")

    async def list_playlist_info(self, name: str) -> list[Record]:
        return _tracks(await self._run("listplaylistinfo", quote_argument(name)))

    async def list_playlists(self) -> list[Record]:
        return parse_flat_list(await self._run("listplaylists"), "playlist")

    async def load_playlist(
        self,
        name: str,
        window: RangeOrIndex | tuple[int, int | None] | None = None,
        position: int | None = None,
        relative: str | None = None,
    ) -> None:
        """Load a stored playlist into the queue, optionally a slice at a position."""
        arg = None if window is None else format_range(window)
        await self._run("load", quote_argument(name), arg, format_relative(position, relative))

    async def playlist_add(self, name: str, uri: str, position: int | None = None) -> None:
        await self._run("playlistadd", quote_argument(name), quote_argument(uri), position)

    async def playlist_clear(self, name: str) -> None:
        await self._run("playlistclear", quote_argument(name))

    async def playlist_delete(self, name: str, position: RangeOrIndex) -> None:
        await self._run("playlistdelete", quote_argument(name), format_range(position))

    async def playlist_move(self, name: str, source: RangeOrIndex, to: int) -> None:
        await self._run("playlistmove", quote_argument(name), format_range(source), to)

    async def rename_playlist(self, name: str, new_name: str) -> None:
        await self._run("rename", quote_argument(name), quote_argument(new_name))

    async def remove_playlist(self, name: str) -> None:
        await self._run("rm", quote_argument(name))

    async def save_playlist(self, name: str, mode: str | None = None) -> None:
        """Save the queue; mode is create, append or replace."""
        await self._run("save", quote_argument(name), mode)

    # --- Music database ---

    async def album_art(self, uri: str, offset: int = 0) -> BinaryResponse:
        return await self.send_binary_command("albumart", uri, offset)

    async def read_picture(self, uri: str, offset: int = 0) -> BinaryResponse:
        return await self.send_binary_command("readpicture", uri, offset)

    async def count(self, filter: AnyFilter, group: Tag | str | None = None) -> Record | list[Record]:
        """Count songs and playtime; grouped results are one record per group value."""
        text = await self.send_command(build_query("count", filter, group=group))
        if group is None:
            return parse_record(text, STATS_FIELDS)
        return parse_typed_list(text, STATS_FIELDS, str(getattr(group, "value", group)), allow_unknown=True)

    async def get_fingerprint(self, uri: str) -> str | None:
        return parse_record(await self._run("getfingerprint", quote_argument(uri))).get("chromaprint")

    async def find(
        self,
        filter: AnyFilter,
        sort: Tag | str | None = None,
        descending: bool = False,
        window: RangeOrIndex | None = None,
    ) -> list[Record]:
        line = build_query("find", filter, sort=sort, descending=descending, window=window)
        return _tracks(await self.send_command(line))

    async def find_add(
        self,
        filter: AnyFilter,
        sort: Tag | str | None = None,
        descending: bool = False,
        window: RangeOrIndex | None = None,
        position: int | None = None,
        relative: str | None = None,
    ) -> None:
        await self.send_command(
            build_query(
                "findadd", filter, sort=sort, descending=descending,
                window=window, position=position, relative=relative,
            )
        )

    async def search(
        self,
        filter: AnyFilter,
        sort: Tag | str | None = None,
        descending: bool = False,
        window: RangeOrIndex | None = None,
    ) -> list[Record]:
        line = build_query("search", filter, sort=sort, descending=descending, window=window)
        return _tracks(await self.send_command(line))

    async def search_add(
        self,
        filter: AnyFilter,
        sort: Tag | str | None = None,
        descending: bool = False,
        window: RangeOrIndex | None = None,
        position: int | None = None,
        relative: str | None = None,
    ) -> None:
        await self.send_command(
            build_query(
                "searchadd", filter, sort=sort, descending=descending,
                window=window, position=position, relative=relative,
            )
        )

    async def search_add_playlist(
        self,
        name: str,
        filter: AnyFilter,
        sort: Tag | str | None = None,
        descending: bool = False,
        window: RangeOrIndex | None = None,
        position: int | None = None,
    ) -> None:
        await self.send_command(
            build_query(
                "searchaddpl", filter, sort=sort, descending=descending,
                window=window, position=position, prefix=[quote_argument(name)],
            )
        )

    async def list(
        self,
        tag: Tag | str,
        filter: AnyFilter | None = None,
        group: Tag | str | None = None,
    ) -> list[Record]:
        """Unique values of tag; with group, ``[{"group", "values"}]`` records."""
        text = await self.send_command(build_query(f"list {getattr(tag, 'value', tag)}", filter, group=group))
        if group is not None:
            return parse_grouped_list(text, str(getattr(group, "value", group)))
        return parse_flat_list(text, str(getattr(tag, "value", tag)))

    async def list_all(self, uri: str | None = None) -> list[Record]:
        arg = None if uri is None else quote_argument(uri)
        return parse_flat_list(await self._run("listall", arg), ENTRY_KEYS)

    async def list_all_info(self, uri: str | None = None) -> list[Record]:
        arg = None if uri is None else quote_argument(uri)
        return parse_typed_list(await self._run("listallinfo", arg), TRACK_FIELDS, ENTRY_KEYS, allow_unknown=True)

    async def list_files(self, uri: str | None = None) -> list[Record]:
        arg = None if uri is None else quote_argument(uri)
        return parse_flat_list(await self._run("listfiles", arg), ENTRY_KEYS)

    async def ls_info(self, uri: str | None = None) -> list[Record]:
        arg = None if uri is None else quote_argument(uri)
        return parse_typed_list(await self._run("lsinfo", arg), TRACK_FIELDS, ENTRY_KEYS, allow_unknown=True)

    async def read_comments(self, uri: str) -> Record:
        return parse_record(await self._run("readcomments", quote_argument(uri)))

    async def update(self, path: str | None = None) -> int:
        """Start a database update and return its job id."""
        arg = None if path is None else quote_argument(path)
        return int(parse_record(await self._run("update", arg))["updating_db"])

    async def rescan(self, path: str | None = None) -> int:
        arg = None if path is None else quote_argument(path)
        return int(parse_record(await self._run("rescan", arg))["updating_db"])

    # --- Mounts and neighbors ---

    async def mount(self, path: str, uri: str) -> None:
        await self._run("mount", quote_argument(path), quote_argument(uri))

    async def unmount(self, path: str) -> None:
        await self._run("unmount", quote_argument(path))

    async def list_mounts(self) -> list[Record]:
        return parse_flat_list(await self._run("listmounts"), "mount")

    async def list_neighbors(self) -> list[Record]:
        return parse_flat_list(await self._run("listneighbors"), "neighbor")

    # --- Stickers ---

    async def sticker_get(self, type: str, uri: str, name: str) -> str | None:
        text = await self._run("sticker get", type, quote_argument(uri), quote_argument(name))
        raw = parse_record(text).get("sticker")
        return None if raw is None else _split_sticker(raw)[1]

    async def sticker_set(self, type: str, uri: str, name: str, value: str) -> None:
        await self._run("sticker set", type, quote_argument(uri), quote_argument(name), quote_argument(value))

    async def sticker_delete(self, type: str, uri: str, name: str | None = None) -> None:
        await self._run("sticker delete", type, quote_argument(uri), None if name is None else quote_argument(name))

    async def sticker_list(self, type: str, uri: str) -> dict[str, str]:
        text = await self._run("sticker list", type, quote_argument(uri))
        return dict(_split_sticker(raw) for raw in parse_values(text, "sticker"))

    async def sticker_find(
        self,
        type: str,
        uri: str,
        name: str,
        value: str | None = None,
        compare: str = "=",
    ) -> list[Record]:
        """Objects below uri carrying sticker name, optionally compared to value.

        Each record holds the object key (``file`` for songs) and the sticker value.
        """
        args: list[object] = [type, quote_argument(uri), quote_argument(name)]
        if value is not None:
            args += [compare, quote_argument(value)]
        found = parse_flat_list(await self._run("sticker find", *args))
        for item in found:
            if "sticker" in item:
                item["sticker"] = _split_sticker(item["sticker"])[1]
        return found

    # --- Connection settings ---

    async def password(self, password: str) -> None:
        await self._run("password", quote_argument(password))

    async def ping(self) -> None:
        await self._run("ping")

    async def binary_limit(self, size: int) -> None:
        await self._run("binarylimit", size)

    async def tag_types(self) -> list[str]:
        return parse_values(await self._run("tagtypes"), "tagtype")

    async def tag_types_disable(self, *tags: Tag | str) -> None:
        await self._run("tagtypes disable", *tags)

    async def tag_types_enable(self, *tags: Tag | str) -> None:
        await self._run("tagtypes enable", *tags)

    async def tag_types_clear(self) -> None:
        await self._run("tagtypes clear")

    async def tag_types_all(self) -> None:
        await self._run("tagtypes all")

    # --- Partitions ---

    async def partition(self, name: str) -> None:
        await self._run("partition", quote_argument(name))

    async def list_partitions(self) -> list[str]:
        return parse_values(await self._run("listpartitions"), "partition")

    async def new_partition(self, name: str) -> None:
        await self._run("newpartition", quote_argument(name))

    async def delete_partition(self, name: str) -> None:
        await self._run("delpartition", quote_argument(name))

    async def move_output(self, output_name: str) -> None:
        await self._run("moveoutput", quote_argument(output_name))

    # --- Audio outputs ---

    async def outputs(self) -> list[Record]:
        return parse_typed_list(await self._run("outputs"), OUTPUT_FIELDS, "outputid", allow_unknown=True)

    async def enable_output(self, output_id: int) -> None:
        await self._run("enableoutput", output_id)

    async def disable_output(self, output_id: int) -> None:
        await self._run("disableoutput", output_id)

    async def toggle_output(self, output_id: int) -> None:
        await self._run("toggleoutput", output_id)

    async def output_set(self, output_id: int, name: str, value: str) -> None:
        await self._run("outputset", output_id, quote_argument(name), quote_argument(value))

    # --- Reflection ---

    async def config(self) -> Record:
        return parse_record(await self._run("config"))

    async def commands(self) -> list[str]:
        return parse_values(await self._run("commands"), "command")

    async def not_commands(self) -> list[str]:
        return parse_values(await self._run("notcommands"), "command")

    async def url_handlers(self) -> list[str]:
        return parse_values(await self._run("urlhandlers"), "handler")

    async def decoders(self) -> list[Record]:
        return parse_flat_list(await self._run("decoders"), "plugin")

    # --- Client to client ---

    async def subscribe(self, channel: str) -> None:
        await self._run("subscribe", quote_argument(channel))

    async def unsubscribe(self, channel: str) -> None:
        await self._run("unsubscribe", quote_argument(channel))

    async def channels(self) -> list[str]:
        return parse_values(await self._run("channels"), "channel")

    async def read_messages(self) -> list[Record]:
        return parse_flat_list(await self._run("readmessages"), "channel")

    async def send_message(self, channel: str, text: str) -> None:
        await self._run("sendmessage", quote_argument(channel), quote_argument(text))

    # --- Command lists ---

    async def command_list(self, *commands: str) -> str:
        """Run commands as one block; the daemon stops at the first failure."""
        return await self.send_command(command_list(commands))

    async def command_list_ok(self, *commands: str) -> list[Record]:
        """Run commands as one block and return one raw record per command."""
        text = await self.send_command(command_list(commands, ok=True))
        return [parse_record(chunk) for chunk in split_command_list_ok(text)]
