"""mpdkit CLI: Click commands and output formatters."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

import click

from .client import MPDClient
from .config import load_config
from .protocol.errors import ConfigurationError, MPDError
from .protocol.filters import Filter
from .protocol.messages import CompareMethod

_logger = logging.getLogger("mpdkit.cli")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def setup_logging(level_name: str) -> None:
    """Send mpdkit log records to stderr at the given level."""
    level = getattr(logging, level_name.upper(), logging.WARNING)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger("mpdkit")
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    root_logger.addHandler(console_handler)


# ---------------------------------------------------------------------------
# Output formatters
# ---------------------------------------------------------------------------


def fmt_time(seconds: float) -> str:
    if seconds != seconds or seconds < 0:
        return "0:00"
    h, rem = divmod(int(seconds), 3600)
    m, s = divmod(rem, 60)
    return f"{h}:{m:02d}:{s:02d}" if h else f"{m}:{s:02d}"


def fmt_track(track: dict | None, duration: bool = True) -> str:
    if not track:
        return "(no track)"
    parts = []
    if track.get("Artist"):
        parts.append(str(track["Artist"]))
    if track.get("Title"):
        parts.append(str(track["Title"]))
    elif track.get("file"):
        parts.append(track["file"].split("/")[-1])
    text = " - ".join(parts) if parts else track.get("file", "(unknown)")
    length = track.get("duration", track.get("Time"))
    if duration and length:
        text += f" [{fmt_time(length)}]"
    return text


def fmt_status(data: dict) -> str:
    status = data.get("status", {})
    lines = []
    state = status.get("state", "stop")
    icon = {"play": "▶", "pause": "⏸", "stop": "⏹"}.get(state, "?")
    lines.append(f"{icon} {fmt_track(data.get('song'), duration=False)}")

    elapsed, total = status.get("elapsed", 0), status.get("duration", 0)
    if data.get("song") and total:
        filled = int(40 * elapsed / total)
        bar = "▓" * filled + "░" * (40 - filled)
        lines.append(f"  {bar} {fmt_time(elapsed)} / {fmt_time(total)}")

    volume = status.get("volume")
    flags = [
        name
        for name in ("repeat", "random", "single", "consume")
        if status.get(name) not in (None, 0)
    ]
    vol = "n/a" if volume is None else f"{volume}%"
    lines.append(f"  Volume: {vol}  {' '.join(flags)}".rstrip())

    qlen = status.get("playlistlength", 0)
    if qlen:
        lines.append(f"  Queue: {status.get('song', 0) + 1}/{qlen}")
    if status.get("error"):
        lines.append(f"  Error: {status['error']}")
    return "\n".join(lines)


def fmt_queue(data: dict) -> str:
    tracks = data.get("tracks", [])
    if not tracks:
        return "(empty queue)"
    cur = data.get("current")
    lines = []
    for i, t in enumerate(tracks):
        prefix = "▶ " if i == cur else "  "
        lines.append(f"{prefix}{i + 1}. {fmt_track(t)}")
    return "\n".join(lines)


def fmt_tracks(tracks: list) -> str:
    if not tracks:
        return "(no matches)"
    return "\n".join(fmt_track(t) for t in tracks)


def fmt_values(records: list) -> str:
    lines = []
    for record in records:
        if "group" in record:
            lines.append(f"{record['group']}:")
            lines.extend(f"  {v}" for v in record["values"])
        else:
            lines.extend(str(v) for v in record.values())
    return "\n".join(lines) if lines else "(none)"


def fmt_playlists(playlists: list) -> str:
    if not playlists:
        return "(no saved playlists)"
    return "\n".join(
        f"  {p['playlist']}" + (f" ({p['Last-Modified']})" if p.get("Last-Modified") else "")
        for p in playlists
    )


def fmt_outputs(outputs: list) -> str:
    if not outputs:
        return "(no outputs)"
    lines = []
    for o in outputs:
        mark = "*" if o.get("outputenabled") else " "
        plugin = f" [{o['plugin']}]" if o.get("plugin") else ""
        lines.append(f"{mark} {o.get('outputid')}: {o.get('outputname', 'Unknown')}{plugin}")
    return "\n".join(lines)


def fmt_stats(stats: dict) -> str:
    lines = []
    for key in ("artists", "albums", "songs"):
        if key in stats:
            lines.append(f"{key}: {stats[key]}")
    for key in ("uptime", "playtime", "db_playtime"):
        if key in stats:
            lines.append(f"{key}: {fmt_time(stats[key])}")
    return "\n".join(lines)


def fmt_changed(changed: list) -> str:
    return " ".join(changed) if changed else "(no changes)"


def print_response(data, json_output: bool = False, formatter=None) -> None:
    if json_output:
        print(json.dumps(data, indent=2, default=str))
        return
    if formatter:
        print(formatter(data))
    elif isinstance(data, dict) and data:
        for k, v in data.items():
            print(f"{k}: {v}")
    else:
        print("OK")


# ---------------------------------------------------------------------------
# Seek parser
# ---------------------------------------------------------------------------


def parse_seek(position: str) -> float | str:
    """Parse seek position: 30, +5, -10, 1:30, 1:02:30."""
    if position.startswith("+") or position.startswith("-"):
        return position  # Relative, handled by seekcur
    try:
        if ":" in position:
            parts = position.split(":")
            if len(parts) == 2:
                return int(parts[0]) * 60 + float(parts[1])
            if len(parts) == 3:
                return int(parts[0]) * 3600 + int(parts[1]) * 60 + float(parts[2])
            raise click.BadParameter(f"Invalid time: {position}")
        return float(position)
    except ValueError as e:
        raise click.BadParameter(f"Invalid time: {position}") from e


# ---------------------------------------------------------------------------
# Client runner
# ---------------------------------------------------------------------------


def run_client(ctx, action, formatter=None, echo: bool = True) -> None:
    """Connect, run action(client), print its result and disconnect."""
    obj = ctx.obj

    async def _run():
        client = await MPDClient.connect(
            host=obj["host"],
            port=obj["port"],
            connector=obj.get("connector"),
            password=obj.get("password"),
            timeout=obj.get("timeout"),
        )
        async with client:
            return await action(client)

    try:
        data = asyncio.run(_run())
    except (MPDError, OSError, asyncio.TimeoutError) as e:
        _logger.debug(f"Command failed: {e!r}")
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    if echo:
        print_response(data, obj["json"], formatter)


# ---------------------------------------------------------------------------
# Click CLI
# ---------------------------------------------------------------------------


@click.group(invoke_without_command=True)
@click.option("--host", help="Daemon host (default: config, then MPD_HOST)")
@click.option("--port", type=int, help="Daemon port (default: config, then MPD_PORT)")
@click.option("--json", "json_output", is_flag=True, help="Output raw JSON")
@click.option("-v", "--verbose", is_flag=True, help="Log protocol traffic to stderr")
@click.pass_context
def cli(ctx, host, port, json_output: bool, verbose: bool):
    """mpdkit - control a music player daemon."""
    try:
        config = load_config()
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e
    setup_logging("debug" if verbose else config.logging.log_level)

    ctx.ensure_object(dict)
    ctx.obj["json"] = json_output
    ctx.obj["host"] = host or config.connection.host or None
    ctx.obj["port"] = port or config.connection.port or None
    ctx.obj["password"] = config.connection.password or None
    ctx.obj["timeout"] = config.connection.timeout
    if ctx.invoked_subcommand is None:
        ctx.invoke(status)


# ── Playback ───────────────────────────────────────────────────────────────


@cli.command()
@click.argument("position", type=int, required=False)
@click.pass_context
def play(ctx, position):
    """Start playback, optionally at a queue position."""
    run_client(ctx, lambda c: c.play(position))


@cli.command()
@click.pass_context
def pause(ctx):
    """Toggle pause."""
    run_client(ctx, lambda c: c.pause())


@cli.command()
@click.pass_context
def stop(ctx):
    """Stop playback."""
    run_client(ctx, lambda c: c.protocol.stop())


@cli.command("next")
@click.pass_context
def next_track(ctx):
    """Skip to next track."""
    run_client(ctx, lambda c: c.next())


@cli.command("prev")
@click.pass_context
def prev_track(ctx):
    """Go to previous track."""
    run_client(ctx, lambda c: c.previous())


@cli.command()
@click.argument("position")
@click.pass_context
def seek(ctx, position):
    """Seek in the current song (30, +5, -10, 1:30)."""
    target = parse_seek(position)
    if isinstance(target, str):
        run_client(ctx, lambda c: c.protocol.seek_cur(parse_seek(target[1:]), target[0]))
    else:
        run_client(ctx, lambda c: c.protocol.seek_cur(target))


@cli.command()
@click.argument("level", type=click.IntRange(0, 100), required=False)
@click.pass_context
def volume(ctx, level):
    """Show or set volume (0-100)."""
    if level is None:
        run_client(ctx, _volume)
    else:
        run_client(ctx, lambda c: c.protocol.set_volume(level))


async def _volume(client: MPDClient) -> dict:
    return {"volume": await client.protocol.get_volume()}


# ── Queue ──────────────────────────────────────────────────────────────────


@cli.command()
@click.pass_context
def queue(ctx):
    """Show queue contents."""

    async def action(client: MPDClient) -> dict:
        status = await client.status()
        return {"tracks": await client.queue(), "current": status.get("song")}

    run_client(ctx, action, fmt_queue)


@cli.command()
@click.pass_context
def clear(ctx):
    """Clear the queue."""
    run_client(ctx, lambda c: c.clear_queue())


@cli.command()
@click.argument("uri")
@click.pass_context
def add(ctx, uri):
    """Add a song or directory to the queue."""
    run_client(ctx, lambda c: c.add_to_queue(uri=uri))


# ── Library ────────────────────────────────────────────────────────────────


@cli.command()
@click.argument("tag")
@click.argument("value")
@click.option("--sort", help="Tag to sort by")
@click.pass_context
def find(ctx, tag, value, sort):
    """Find songs whose TAG equals VALUE."""
    run_client(ctx, lambda c: c.protocol.find(Filter(tag, value), sort=sort), fmt_tracks)


@cli.command()
@click.argument("tag")
@click.argument("value")
@click.option("--sort", help="Tag to sort by")
@click.pass_context
def search(ctx, tag, value, sort):
    """Search songs whose TAG contains VALUE (case-insensitive)."""
    filter = Filter(tag, value, CompareMethod.CONTAINS)
    run_client(ctx, lambda c: c.protocol.search(filter, sort=sort), fmt_tracks)


@cli.command("list")
@click.argument("tag")
@click.option("--group", help="Group values by this tag")
@click.pass_context
def list_values(ctx, tag, group):
    """List unique values of TAG."""
    run_client(ctx, lambda c: c.protocol.list(tag, group=group), fmt_values)


@cli.command()
@click.argument("uri")
@click.argument("output", type=click.Path(dir_okay=False, writable=True))
@click.pass_context
def albumart(ctx, uri, output):
    """Save the album art of URI to OUTPUT."""

    async def action(client: MPDClient) -> dict:
        art = await client.protocol.album_art(uri)
        Path(output).write_bytes(art.binary)
        return {"path": output, **art.meta.to_dict()}

    run_client(ctx, action, lambda d: f"Wrote {d['size']} bytes to {d['path']}")


@cli.command()
@click.pass_context
def stats(ctx):
    """Show database statistics."""
    run_client(ctx, lambda c: c.stats(), fmt_stats)


# ── Playlists ──────────────────────────────────────────────────────────────


@cli.command()
@click.pass_context
def playlists(ctx):
    """List stored playlists."""
    run_client(ctx, lambda c: c.protocol.list_playlists(), fmt_playlists)


@cli.command()
@click.argument("name")
@click.pass_context
def load(ctx, name):
    """Append a stored playlist to the queue."""
    run_client(ctx, lambda c: c.protocol.load_playlist(name))


@cli.command()
@click.argument("name")
@click.option(
    "-m", "--mode", type=click.Choice(["create", "append", "replace"]), default=None
)
@click.pass_context
def save(ctx, name, mode):
    """Save the queue as a stored playlist."""
    run_client(ctx, lambda c: c.protocol.save_playlist(name, mode))


# ── State ──────────────────────────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx):
    """Show current playback status."""

    async def action(client: MPDClient) -> dict:
        return {"status": await client.status(), "song": await client.current_song()}

    run_client(ctx, action, fmt_status)


@cli.command()
@click.pass_context
def current(ctx):
    """Show the current song."""
    run_client(ctx, lambda c: c.current_song(), fmt_track)


@cli.command()
@click.pass_context
def outputs(ctx):
    """List audio outputs."""
    run_client(ctx, lambda c: c.protocol.outputs(), fmt_outputs)


@cli.command()
@click.pass_context
def ping(ctx):
    """Ping the daemon."""
    run_client(ctx, lambda c: c.protocol.ping())


@cli.command()
@click.argument("subsystems", nargs=-1)
@click.pass_context
def idle(ctx, subsystems):
    """Wait for one change in SUBSYSTEMS (all when omitted)."""
    run_client(ctx, lambda c: c.protocol.idle(*subsystems), fmt_changed)


@cli.command()
@click.argument("subsystems", nargs=-1)
@click.option("-n", "--count", type=int, default=0, help="Stop after N changes (0: forever)")
@click.pass_context
def watch(ctx, subsystems, count):
    """Print changed subsystems as they happen."""
    json_output = ctx.obj["json"]

    async def action(client: MPDClient) -> None:
        seen = 0
        while not count or seen < count:
            changed = await client.protocol.idle(*subsystems)
            if not changed:
                continue
            seen += 1
            print(json.dumps(changed) if json_output else fmt_changed(changed))
            sys.stdout.flush()

    try:
        run_client(ctx, action, echo=False)
    except KeyboardInterrupt:
        pass


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main():
    cli()
