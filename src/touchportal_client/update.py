"""Update Checker - one-shot plugin version check.

Fetches a JSON document like ``{"version": "1.2.0"}`` from a configured
URL and publishes ``Update`` if it names a strictly newer version than the
running plugin. Every failure is logged and swallowed; the check never
affects the socket session.
"""

from __future__ import annotations

import logging

import httpx
from packaging.version import InvalidVersion, Version

from .bus import EventBus
from .log import PluginLogAdapter, get_logger
from .protocol.events import Event


class UpdateChecker:
    """Compare the running plugin version against a remote one."""

    def __init__(
        self,
        url: str,
        current_version: str,
        bus: EventBus,
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
        log: PluginLogAdapter | logging.Logger | None = None,
    ) -> None:
        """Initialize the checker.

        Args:
            url: Endpoint returning a JSON body with a ``version`` field
            current_version: Version of the running plugin
            bus: Where the ``Update`` event is published
            timeout: Request timeout in seconds
            client: Optional preconfigured client (not closed by the checker)
            log: Logger to report failures on
        """
        self.url = url
        self.current_version = current_version
        self._bus = bus
        self._timeout = timeout
        self._client = client
        self._log = log or get_logger(__name__, "-")

    async def check(self) -> str | None:
        """Run the check.

        Returns:
            The remote version if it is newer (and ``Update`` was published),
            otherwise None.
        """
        try:
            data = await self._fetch()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self._log.error(f"check for update errored: {e}")
            return None
        except ValueError as e:
            self._log.error(f"Check for Update error={e}")
            return None

        if data is None:
            return None

        latest = data.get("version") if isinstance(data, dict) else None
        if latest is None:
            self._log.error("Check for Update error=response has no version")
            return None

        try:
            newer = Version(str(latest)) > Version(self.current_version)
        except InvalidVersion as e:
            self._log.error(f"Check for Update error={e}")
            return None

        if not newer:
            self._log.debug(f"Plugin is up to date ({self.current_version})")
            return None

        self._log.info(f"Update available: {self.current_version} -> {latest}")
        await self._bus.publish(Event.update(self.current_version, str(latest)))
        return str(latest)

    async def _fetch(self) -> object | None:
        """GET the update document. Returns None on a non-200 status."""
        if self._client is not None:
            response = await self._client.get(self.url)
        else:
            async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
                response = await client.get(self.url)

        if response.status_code != 200:
            self._log.error(
                f"check for update errored: Request Failed. Status Code: {response.status_code}"
            )
            return None
        return response.json()
