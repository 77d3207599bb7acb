"""Touch Portal client CLI.

Runs a plugin session from the command line and prints every event as a
JSON line on stdout. Logs go to stderr.

Usage:
    touchportal-client run --plugin-id com.example.plugin
    touchportal-client run --plugin-id com.example.plugin --update-url https://.../version.json --plugin-version 1.0.0
    touchportal-client check-update https://.../version.json --plugin-version 1.0.0

The process exit status follows the session result: 0 when the host closes
the plugin or the socket is closed, 1 on a transport or connect error.
"""

from __future__ import annotations

import asyncio
import json
import sys

import click

from .bus import EventBus, describe
from .config import PluginConfig
from .errors import ConnectError
from .log import configure_logging, get_logger
from .protocol.events import Event
from .session import PluginSession
from .update import UpdateChecker


def _echo_event(event: Event) -> None:
    click.echo(json.dumps(describe(event), ensure_ascii=False, default=str))


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="INFO",
    help="Log level for stderr output",
)
def main(log_level: str) -> None:
    """Touch Portal plugin client."""
    configure_logging(log_level.upper())


@main.command()
@click.option("--plugin-id", help="Plugin identifier (default: $TOUCHPORTAL_PLUGIN_ID)")
@click.option("--host", default=None, help="Touch Portal host (default 127.0.0.1)")
@click.option("--port", type=int, default=None, help="Touch Portal port (default 12136)")
@click.option("--update-url", default=None, help="URL of a JSON document with a 'version' field")
@click.option("--plugin-version", default=None, help="Version of the running plugin")
@click.option("--connect-timeout", type=float, default=None, help="Seconds to wait for the socket")
def run(
    plugin_id: str | None,
    host: str | None,
    port: int | None,
    update_url: str | None,
    plugin_version: str | None,
    connect_timeout: float | None,
) -> None:
    """Connect, pair and print host events until the session ends."""
    try:
        config = PluginConfig.from_env(
            plugin_id=plugin_id,
            host=host,
            port=port,
            update_url=update_url,
            plugin_version=plugin_version,
            connect_timeout=connect_timeout,
        )
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    async def execute() -> int:
        session = PluginSession(config)
        session.bus.subscribe_all(_echo_event)
        try:
            result = await session.run()
        except ConnectError as e:
            click.echo(f"Cannot connect to Touch Portal: {e}", err=True)
            return 1
        except asyncio.CancelledError:
            result = await session.shutdown()
        return result.exit_code

    try:
        code = asyncio.run(execute())
    except KeyboardInterrupt:
        click.echo("\nShutting down", err=True)
        code = 0
    sys.exit(code)


@main.command("check-update")
@click.argument("url")
@click.option("--plugin-version", required=True, help="Version of the running plugin")
@click.option("--timeout", type=float, default=10.0, help="Request timeout in seconds")
def check_update(url: str, plugin_version: str, timeout: float) -> None:
    """Check URL for a newer plugin version."""
    bus = EventBus()
    bus.subscribe_all(_echo_event)
    checker = UpdateChecker(
        url, plugin_version, bus, timeout=timeout, log=get_logger(__name__, "check-update")
    )

    latest = asyncio.run(checker.check())
    if latest is None:
        click.echo(f"No newer version than {plugin_version}", err=True)


if __name__ == "__main__":
    main()
