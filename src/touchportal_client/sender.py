"""Command Sender - outbound control messages.

All writes go through ``CommandSender._write`` so each call lands on the
socket as one ``write`` followed by a drain; batched updates are joined
into a single write to keep their lines contiguous.

Preconditions are checked before anything is written. A failure is
logged and raised as ``PreconditionError``; the connection stays usable.
A socket error while writing is a transport error: it is reported to the
owning session, which terminates, and the caller gets ``NotConnectedError``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, NoReturn

from .errors import NotConnectedError, PreconditionError
from .log import PluginLogAdapter, get_logger
from .protocol.commands import (
    ChoiceUpdateMessage,
    CreateStateMessage,
    OutboundMessage,
    PairMessage,
    SettingUpdateMessage,
    StateUpdateMessage,
    to_line,
)

ENCODING = "utf-8"

TransportErrorHook = Callable[[OSError], Awaitable[None]]


@dataclass(frozen=True)
class StateRegistration:
    """A custom state this plugin has asked the host to create."""

    id: str
    desc: str
    default_value: Any = None


class CommandSender:
    """Formats and writes plugin -> host messages.

    The sender never opens or closes the connection; the session attaches
    its stream writer after connecting and detaches it on termination.
    """

    def __init__(
        self,
        plugin_id: str,
        log: PluginLogAdapter | None = None,
        on_transport_error: TransportErrorHook | None = None,
    ) -> None:
        self.plugin_id = plugin_id
        self._on_transport_error = on_transport_error
        self._writer: asyncio.StreamWriter | None = None
        self._log = log or get_logger(__name__, plugin_id)
        self.custom_states: dict[str, StateRegistration] = {}

    @property
    def is_attached(self) -> bool:
        return self._writer is not None

    def attach(self, writer: asyncio.StreamWriter) -> None:
        self._writer = writer

    def detach(self) -> None:
        self._writer = None

    # =========================================================================
    # Raw sends
    # =========================================================================

    async def send(self, message: OutboundMessage | Mapping[str, Any]) -> None:
        """Send a single message."""
        await self._write(self._line(message))

    async def send_many(self, messages: Iterable[OutboundMessage | Mapping[str, Any]]) -> None:
        """Send several messages as one write, one line each, in order."""
        lines = [self._line(m) for m in messages]
        if not lines:
            self._fail("send_many: messages contains no data")
        await self._write("".join(lines))

    async def _write(self, data: str) -> None:
        """Single write entry point for the connection."""
        if self._writer is None:
            raise NotConnectedError("Not connected to TouchPortal")
        try:
            self._writer.write(data.encode(ENCODING))
            await self._writer.drain()
        except OSError as e:
            self._log.error(f"Socket write failed: {e}")
            self.detach()
            if self._on_transport_error is not None:
                await self._on_transport_error(e)
            raise NotConnectedError(f"Connection lost: {e}") from e

    @staticmethod
    def _line(message: OutboundMessage | Mapping[str, Any]) -> str:
        if isinstance(message, OutboundMessage):
            return message.to_line()
        return to_line(dict(message))

    def _fail(self, message: str) -> NoReturn:
        self._log.error(message)
        raise PreconditionError(message)

    # =========================================================================
    # Protocol commands
    # =========================================================================

    async def pair(self) -> None:
        """Send the pairing handshake."""
        await self.send(PairMessage(id=self.plugin_id))

    async def create_state(self, state_id: str, desc: str, default_value: Any = None) -> None:
        """Ask the host to create a custom state.

        Raises:
            PreconditionError: If the id is empty or was already created
        """
        if not state_id:
            self._fail("create_state: state id is empty")
        if state_id in self.custom_states:
            self._fail(f"create_state: Custom state of {state_id} already created")

        await self.send(CreateStateMessage(id=state_id, desc=desc, default_value=default_value))
        self.custom_states[state_id] = StateRegistration(state_id, desc, default_value)

    async def state_update(self, state_id: Any, value: Any) -> None:
        await self.send(StateUpdateMessage.create(state_id, value))

    async def state_update_many(
        self, states: Iterable[Mapping[str, Any] | tuple[Any, Any]]
    ) -> None:
        """Update several states in one write.

        Args:
            states: Mappings with ``id`` and ``value`` keys, or ``(id, value)`` pairs
        """
        messages = []
        for state in states:
            if isinstance(state, Mapping):
                messages.append(StateUpdateMessage.create(state["id"], state["value"]))
            else:
                state_id, value = state
                messages.append(StateUpdateMessage.create(state_id, value))

        if not messages:
            self._fail("state_update_many: states contains no data")
        await self.send_many(messages)

    async def choice_update(self, choice_id: str, values: list[str]) -> None:
        """Replace the choices of a list for every action instance."""
        if not values:
            self._fail("choice_update: value is an empty array")
        await self.send(ChoiceUpdateMessage(id=choice_id, value=list(values)))

    async def choice_update_specific(
        self, choice_id: str, values: list[str], instance_id: str | None
    ) -> None:
        """Replace the choices of a list for one action instance."""
        if not values:
            self._fail("choice_update_specific: value does not contain data in an array format")
        if not instance_id:
            self._fail("choice_update_specific: instanceId is not populated")
        await self.send(
            ChoiceUpdateMessage(id=choice_id, value=list(values), instance_id=instance_id)
        )

    async def setting_update(self, name: str, value: Any) -> None:
        await self.send(SettingUpdateMessage(name=name, value=value))

