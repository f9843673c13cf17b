"""
Configuration management for mpdlink.

Settings come from three layers, later layers winning:

1. Built-in defaults.
2. An optional TOML file with ``[mpd]`` and ``[http]`` tables.
3. Environment variables: MPD_HOST, MPD_PORT, MPD_TIMEOUT, HTTP_HOST, HTTP_PORT.

Command-line flags are applied on top by the entry point.

Example mpdlink.toml:

    [mpd]
    host = "/run/mpd/socket"   # absolute path selects a Unix socket
    connect_timeout = 5.0
    command_timeout = 30.0

    [http]
    host = "0.0.0.0"
    port = 3000
"""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised when a configuration value cannot be used."""


@dataclass(frozen=True)
class Settings:
    """Resolved runtime settings."""

    mpd_host: str = "localhost"
    mpd_port: int = 6600
    connect_timeout: float | None = 10.0
    command_timeout: float | None = None
    http_host: str = "127.0.0.1"
    http_port: int = 3000


def _as_int(name: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None


def _as_timeout(name: str, value: Any) -> float | None:
    """Parse a timeout in seconds; 0, "" and "none" mean no timeout."""
    if value is None or (isinstance(value, str) and value.strip().lower() in ("", "none")):
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number of seconds, got {value!r}") from None
    return seconds if seconds > 0 else None


def _apply_file(settings: Settings, data: Mapping[str, Any]) -> Settings:
    mpd = data.get("mpd", {})
    http = data.get("http", {})
    changes: dict[str, Any] = {}

    if "host" in mpd:
        changes["mpd_host"] = str(mpd["host"])
    if "port" in mpd:
        changes["mpd_port"] = _as_int("mpd.port", mpd["port"])
    if "connect_timeout" in mpd:
        changes["connect_timeout"] = _as_timeout("mpd.connect_timeout", mpd["connect_timeout"])
    if "command_timeout" in mpd:
        changes["command_timeout"] = _as_timeout("mpd.command_timeout", mpd["command_timeout"])
    if "host" in http:
        changes["http_host"] = str(http["host"])
    if "port" in http:
        changes["http_port"] = _as_int("http.port", http["port"])

    return replace(settings, **changes)


def _apply_environ(settings: Settings, environ: Mapping[str, str]) -> Settings:
    changes: dict[str, Any] = {}

    if environ.get("MPD_HOST"):
        changes["mpd_host"] = environ["MPD_HOST"]
    if environ.get("MPD_PORT"):
        changes["mpd_port"] = _as_int("MPD_PORT", environ["MPD_PORT"])
    if "MPD_TIMEOUT" in environ:
        changes["command_timeout"] = _as_timeout("MPD_TIMEOUT", environ["MPD_TIMEOUT"])
    if environ.get("HTTP_HOST"):
        changes["http_host"] = environ["HTTP_HOST"]
    if environ.get("HTTP_PORT"):
        changes["http_port"] = _as_int("HTTP_PORT", environ["HTTP_PORT"])

    return replace(settings, **changes)


def load_settings(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """
    Load settings from defaults, an optional TOML file and the environment.

    Args:
        config_path: Path to a TOML file. Skipped if None.
        environ: Environment mapping. Defaults to os.environ.

    Returns:
        The resolved Settings.

    Raises:
        ConfigError: If a value has the wrong type.
        OSError: If config_path cannot be read.
    """
    settings = Settings()

    if config_path is not None:
        logger.debug("Loading config from %s", config_path)
        with config_path.open("rb") as f:
            try:
                data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e
        settings = _apply_file(settings, data)

    return _apply_environ(settings, os.environ if environ is None else environ)
