"""Configuration management for mpdkit."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from .protocol.errors import ConfigurationError

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore


@dataclass
class Address:
    """Resolved daemon address."""

    host: str
    port: int
    password: str | None = None


@dataclass
class ConnectionConfig:
    """Connection settings. Empty values defer to the environment."""

    host: str = ""
    port: int = 0
    password: str = ""
    timeout: float | None = None


@dataclass
class LoggingConfig:
    """Logging settings."""

    log_level: str = "warning"


@dataclass
class Config:
    """Full mpdkit configuration."""

    connection: ConnectionConfig = field(default_factory=ConnectionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Directory holding ``config.toml`` (``$XDG_CONFIG_HOME/mpdkit``)."""
    if xdg_config := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_config) / "mpdkit"
    return Path.home() / ".config" / "mpdkit"


def _section(data: dict, name: str, cls):
    try:
        return cls(**data.get(name, {}))
    except TypeError as e:
        raise ConfigurationError(f"Invalid [{name}] section in config file: {e}") from e


def load_config(path: Path | None = None) -> Config:
    """Load ``config.toml``. A missing file gives the defaults."""
    config_file = path or get_config_dir() / "config.toml"
    if not config_file.exists():
        return Config()

    try:
        with open(config_file, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Cannot parse {config_file}: {e}") from e

    return Config(
        connection=_section(data, "connection", ConnectionConfig),
        logging=_section(data, "logging", LoggingConfig),
    )


def _parse_port(value: int | str, source: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid port from {source}: {value!r}") from e


def resolve_address(host: str | None = None, port: int | str | None = None) -> Address:
    """Resolve the daemon address.

    Explicit arguments win, then ``MPD_HOST`` and ``MPD_PORT``. ``MPD_HOST``
    may carry a password as ``password@host``.
    """
    password = None
    if not host:
        env_host = os.environ.get("MPD_HOST", "")
        if "@" in env_host:
            password, _, env_host = env_host.rpartition("@")
        host = env_host or None

    if port is None or port == "":
        env_port = os.environ.get("MPD_PORT")
        port = _parse_port(env_port, "MPD_PORT") if env_port else None
    else:
        port = _parse_port(port, "argument")

    if not host or port is None:
        raise ConfigurationError("No host or port provided (set MPD_HOST and MPD_PORT)")
    return Address(host=host, port=port, password=password or None)
