"""Logging helpers.

Every record emitted on behalf of a session carries the plugin id, so
output from several plugins sharing a console stays attributable:

    2026-10-19 12:00:00,000 : com.example.plugin :INFO: Connected to TouchPortal
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any, TextIO

LOG_FORMAT = "%(asctime)s : %(plugin_id)s :%(levelname)s: %(message)s"


class PluginLogAdapter(logging.LoggerAdapter):
    """Logger adapter that stamps ``plugin_id`` on every record."""

    def __init__(self, logger: logging.Logger, plugin_id: str) -> None:
        super().__init__(logger, {"plugin_id": plugin_id})

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**(self.extra or {}), **kwargs.get("extra", {})}
        return msg, kwargs


class _PluginIdDefault(logging.Filter):
    """Fill in ``plugin_id`` for records that did not come through an adapter."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "plugin_id"):
            record.plugin_id = "-"
        return True


def get_logger(name: str, plugin_id: str) -> PluginLogAdapter:
    return PluginLogAdapter(logging.getLogger(name), plugin_id)


def configure_logging(level: int | str = logging.INFO, stream: TextIO | None = None) -> None:
    """Send client logs to stderr in the plugin log format.

    Stdout is left alone so the CLI can print events there.
    """
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(_PluginIdDefault())

    root = logging.getLogger("touchportal_client")
    root.handlers = [handler]
    root.setLevel(level)
