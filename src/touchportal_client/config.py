"""Client configuration.

Defaults target a local Touch Portal install. Environment variables
override defaults; explicit arguments override both:

    TOUCHPORTAL_PLUGIN_ID        plugin identity (required somewhere)
    TOUCHPORTAL_HOST             default 127.0.0.1
    TOUCHPORTAL_PORT             default 12136
    TOUCHPORTAL_UPDATE_URL       enables the update check
    TOUCHPORTAL_CONNECT_TIMEOUT  seconds, "none" to wait forever
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from importlib import metadata
from typing import Any

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 12136
DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_UPDATE_TIMEOUT = 10.0
DEFAULT_READ_SIZE = 64 * 1024

ENV_PREFIX = "TOUCHPORTAL_"


@dataclass
class PluginConfig:
    """Configuration for one plugin session."""

    plugin_id: str
    update_url: str | None = None

    # Version used by the update check: explicit, or read from package metadata
    plugin_version: str | None = None
    plugin_distribution: str | None = None

    # Connection
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    connect_timeout: float | None = DEFAULT_CONNECT_TIMEOUT
    read_size: int = DEFAULT_READ_SIZE

    update_timeout: float = DEFAULT_UPDATE_TIMEOUT

    def __post_init__(self) -> None:
        if not self.plugin_id:
            raise ValueError("plugin_id is required")
        if not 0 <= self.port <= 65535:
            raise ValueError(f"port out of range: {self.port}")
        if self.connect_timeout is not None and self.connect_timeout <= 0:
            raise ValueError("connect_timeout must be positive or None")
        if self.read_size <= 0:
            raise ValueError("read_size must be positive")

    @classmethod
    def from_env(cls, **overrides: Any) -> PluginConfig:
        """Build a config from TOUCHPORTAL_* variables plus explicit overrides.

        Overrides set to None are ignored so CLI options can be passed through
        unconditionally.
        """
        values: dict[str, Any] = {}

        env_map = {
            "plugin_id": str,
            "host": str,
            "port": int,
            "update_url": str,
            "connect_timeout": _parse_timeout,
        }
        for name, convert in env_map.items():
            raw = os.getenv(ENV_PREFIX + name.upper())
            if raw:
                try:
                    values[name] = convert(raw)
                except ValueError as e:
                    raise ValueError(f"Invalid {ENV_PREFIX + name.upper()}={raw!r}: {e}") from e

        known = {f.name for f in fields(cls)}
        for name, value in overrides.items():
            if name not in known:
                raise TypeError(f"Unknown config option: {name}")
            if value is not None:
                values[name] = value

        if "plugin_id" not in values:
            raise ValueError(f"plugin_id is required (or set {ENV_PREFIX}PLUGIN_ID)")
        return cls(**values)

    def resolve_version(self) -> str | None:
        """Version of the running plugin, or None if it cannot be determined."""
        if self.plugin_version:
            return self.plugin_version
        if self.plugin_distribution:
            try:
                return metadata.version(self.plugin_distribution)
            except metadata.PackageNotFoundError:
                return None
        return None


def _parse_timeout(raw: str) -> float | None:
    if raw.strip().lower() in ("none", "0", "off"):
        return None
    return float(raw)
