"""Plugin session - the socket connection to Touch Portal.

The session owns the TCP connection for its whole life:

    disconnected -> connecting -> connected -> terminated

On connect it pairs with the host, then a background reader feeds every
chunk through the framer and classifier and publishes the resulting events
on the session's bus, strictly in arrival order.

Termination never exits the process. ``run()`` / ``wait_closed()`` return a
``SessionResult`` and the caller (usually the CLI) decides what to do:

- ``closePlugin`` for this plugin  -> terminated, reason close_requested
- transport error while reading    -> terminated, reason transport_error
- socket write failure             -> terminated, reason transport_error
- ``shutdown()``                   -> terminated, reason shutdown
- peer closed the socket (EOF)     -> stays connected, reason transport_closed
"""

from __future__ import annotations

import asyncio
import codecs
import contextlib
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .bus import EventBus, EventCallback
from .config import PluginConfig
from .errors import ConnectError, ConnectTimeout, MessageDecodeError, NotConnectedError
from .log import get_logger
from .protocol.events import Event, EventType, classify
from .protocol.framing import LineFramer
from .sender import CommandSender
from .update import UpdateChecker


class SessionState(str, Enum):
    """Connection state machine."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    TERMINATED = "terminated"


class TerminationReason(str, Enum):
    """Why a session stopped processing messages."""

    CLOSE_REQUESTED = "close_requested"
    TRANSPORT_ERROR = "transport_error"
    SHUTDOWN = "shutdown"
    TRANSPORT_CLOSED = "transport_closed"


@dataclass(frozen=True)
class SessionResult:
    """Outcome of a session, returned instead of exiting the process."""

    reason: TerminationReason
    error: str | None = None

    @property
    def exit_code(self) -> int:
        return 1 if self.reason is TerminationReason.TRANSPORT_ERROR else 0


class PluginSession:
    """A single plugin's connection to the Touch Portal host.

    Usage:
        session = PluginSession(PluginConfig(plugin_id="com.example.plugin"))
        session.on(EventType.ACTION, on_action)
        result = await session.run()

    Or as a context manager:
        async with PluginSession(config) as session:
            await session.commands.state_update("state.id", "value")
            await session.wait_closed()
    """

    def __init__(self, config: PluginConfig, bus: EventBus | None = None) -> None:
        self.config = config
        self.plugin_id = config.plugin_id
        self.bus = bus or EventBus()

        self._log = get_logger(__name__, config.plugin_id)
        self.commands = CommandSender(
            config.plugin_id, self._log, on_transport_error=self._on_write_error
        )

        self._state = SessionState.DISCONNECTED
        self._framer = LineFramer()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._writer: asyncio.StreamWriter | None = None
        self._reader: asyncio.StreamReader | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._update_task: asyncio.Task[Any] | None = None
        self._result: asyncio.Future[SessionResult] | None = None

    @property
    def state(self) -> SessionState:
        """Current connection state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == SessionState.CONNECTED

    @property
    def result(self) -> SessionResult | None:
        """The session outcome once known, else None."""
        if self._result is not None and self._result.done():
            return self._result.result()
        return None

    def on(self, event_type: EventType | str, callback: EventCallback) -> Callable[[], None]:
        """Subscribe to one event type. Returns an unsubscribe function."""
        return self.bus.subscribe(event_type, callback)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def connect(self) -> None:
        """Connect, pair and start reading.

        Raises:
            ConnectTimeout: If the connection is not established in time
            ConnectError: If the connection fails for any other reason
        """
        if self._state != SessionState.DISCONNECTED:
            raise ConnectError(f"Cannot connect from state {self._state.value}")

        self._state = SessionState.CONNECTING
        self._result = asyncio.get_running_loop().create_future()
        self._start_update_check()

        host, port = self.config.host, self.config.port
        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(host, port),
                timeout=self.config.connect_timeout,
            )
        except TimeoutError as e:
            message = f"Timed out connecting to {host}:{port} after {self.config.connect_timeout}s"
            self._log.error(message)
            await self._terminate(TerminationReason.TRANSPORT_ERROR, message)
            raise ConnectTimeout(message) from e
        except OSError as e:
            message = f"Failed to connect to {host}:{port}: {e}"
            self._log.error(message)
            await self._terminate(TerminationReason.TRANSPORT_ERROR, message)
            raise ConnectError(message) from e

        if self._state == SessionState.TERMINATED:
            # shut down while the connection was being opened
            self._writer.close()
            self._writer = None
            raise ConnectError(f"Session shut down while connecting to {host}:{port}")

        self._state = SessionState.CONNECTED
        self.commands.attach(self._writer)
        self._log.info("Connected to TouchPortal")

        try:
            await self.commands.pair()
        except NotConnectedError as e:
            raise ConnectError(f"Pairing with {host}:{port} failed: {e}") from e
        await self.bus.publish(Event.connected())

        self._reader_task = asyncio.create_task(self._read_loop())

    async def run(self) -> SessionResult:
        """Connect if needed and wait for the session to end."""
        if self._state == SessionState.DISCONNECTED:
            await self.connect()
        return await self.wait_closed()

    async def wait_closed(self) -> SessionResult:
        """Wait until the session ends (or the peer closes the socket)."""
        if self._result is None:
            raise ConnectError("Session was never connected")
        return await asyncio.shield(self._result)

    async def shutdown(self) -> SessionResult:
        """Close the connection and terminate the session."""
        if self._state == SessionState.DISCONNECTED:
            self._state = SessionState.TERMINATED
            return SessionResult(TerminationReason.SHUTDOWN)
        if self._state != SessionState.TERMINATED:
            self._log.info("Shutting down")
            await self._terminate(TerminationReason.SHUTDOWN)
        return await self.wait_closed()

    async def __aenter__(self) -> PluginSession:
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.shutdown()

    # =========================================================================
    # Inbound path
    # =========================================================================

    async def _read_loop(self) -> None:
        """Background task: read chunks until EOF, error or termination."""
        assert self._reader is not None
        try:
            while True:
                data = await self._reader.read(self.config.read_size)
                if not data:
                    break
                if not await self.feed(self._decoder.decode(data)):
                    return
        except asyncio.CancelledError:
            raise
        except (OSError, ConnectionError) as e:
            self._log.error(f"Socket Connection closed: {e}")
            await self._terminate(TerminationReason.TRANSPORT_ERROR, str(e))
            return
        except Exception as e:
            self._log.exception(f"Read loop error: {e}")
            await self._terminate(TerminationReason.TRANSPORT_ERROR, str(e))
            return

        tail = self._decoder.decode(b"", final=True)
        if tail:
            await self.feed(tail)
        if self._framer.pending:
            pending = self._framer.pending[:80]
            self._log.warning(f"Discarding unterminated message at EOF: {pending!r}")

        # EOF without error: logged, but the session is not terminated
        self._log.warning("Connection closed")
        self._resolve(SessionResult(TerminationReason.TRANSPORT_CLOSED))

    async def feed(self, chunk: str) -> bool:
        """Frame, classify and dispatch one chunk of received text.

        Returns:
            False once the session has terminated (remaining lines in the
            chunk are not processed), True otherwise.
        """
        for line, record in self._framer.records(chunk):
            if isinstance(record, MessageDecodeError):
                self._log.error(f"Dropping malformed message: {record} (line: {line[:80]!r})")
                continue

            for event in classify(record, self.plugin_id):
                await self.bus.publish(event)
                if event.type is EventType.CLOSE:
                    self._log.warning("received Close Plugin message")
                    await self._terminate(TerminationReason.CLOSE_REQUESTED)
                    return False

            if self._state == SessionState.TERMINATED:
                return False
        return True

    # =========================================================================
    # Internals
    # =========================================================================

    def _start_update_check(self) -> None:
        if not self.config.update_url:
            return
        version = self.config.resolve_version()
        if version is None:
            self._log.warning("Update URL configured but plugin version is unknown, skipping check")
            return
        checker = UpdateChecker(
            self.config.update_url,
            version,
            self.bus,
            timeout=self.config.update_timeout,
            log=self._log,
        )
        self._update_task = asyncio.create_task(checker.check())

    async def _terminate(self, reason: TerminationReason, error: str | None = None) -> None:
        """Move to TERMINATED, release the connection and resolve the result."""
        if self._state == SessionState.TERMINATED:
            return
        self._state = SessionState.TERMINATED
        self.commands.detach()

        current = asyncio.current_task()
        for task in (self._reader_task, self._update_task):
            if task is not None and task is not current and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

        if self._writer is not None:
            self._writer.close()
            with contextlib.suppress(OSError, ConnectionError):
                await self._writer.wait_closed()
            self._writer = None

        self._resolve(SessionResult(reason, error))

    async def _on_write_error(self, error: OSError) -> None:
        await self._terminate(TerminationReason.TRANSPORT_ERROR, str(error))

    def _resolve(self, result: SessionResult) -> None:
        if self._result is None:
            return
        if self._result.done():
            # only an EOF outcome can be superseded by a later termination
            if self._result.result().reason is not TerminationReason.TRANSPORT_CLOSED:
                return
            self._result = asyncio.get_running_loop().create_future()
        self._result.set_result(result)
