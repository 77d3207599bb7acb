"""Consumer-facing events and the inbound message classifier.

Every inbound record is mapped to zero or more ``Event`` objects by its
``type`` field. Unknown types fall through to a generic ``Message`` event
carrying the full record.

Hold semantics:
    ``action`` -> Action, hold=None   (momentary)
    ``up``     -> Action, hold=False  (hold released)
    ``down``   -> Action, hold=True   (hold engaged)
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """All event categories a consumer can subscribe to."""

    # Session lifecycle
    CONNECTED = "connected"
    CLOSE = "Close"

    # Host messages
    INFO = "Info"
    SETTINGS = "Settings"
    LIST_CHANGE = "ListChange"
    ACTION = "Action"
    BROADCAST = "Broadcast"
    MESSAGE = "Message"  # Fallback for unrecognised types

    # Update checker
    UPDATE = "Update"


class Event(BaseModel):
    """An event delivered to subscribers.

    ``data`` is the payload documented for each type: the full record for
    most host messages, the settings value for ``Settings``, and the two
    versions for ``Update``. ``hold`` is only set on ``Action`` events.
    """

    type: EventType
    data: Any = None
    hold: bool | None = None

    @classmethod
    def connected(cls) -> Event:
        return cls(type=EventType.CONNECTED)

    @classmethod
    def update(cls, current_version: str, latest_version: str) -> Event:
        """Create an update-available event."""
        return cls(
            type=EventType.UPDATE,
            data={"current_version": current_version, "latest_version": latest_version},
        )


# Record type -> (event type, hold flag) for the one-to-one mappings.
_SIMPLE_TYPES: dict[str, tuple[EventType, bool | None]] = {
    "listChange": (EventType.LIST_CHANGE, None),
    "action": (EventType.ACTION, None),
    "broadcast": (EventType.BROADCAST, None),
    "up": (EventType.ACTION, False),
    "down": (EventType.ACTION, True),
}


def is_close_for(record: dict[str, Any], plugin_id: str) -> bool:
    """Check if a record is a ``closePlugin`` addressed to ``plugin_id``."""
    return record.get("type") == "closePlugin" and record.get("pluginId") == plugin_id


def classify(record: dict[str, Any], plugin_id: str) -> list[Event]:
    """Map an inbound record to the events it produces, in emission order.

    Args:
        record: Decoded message with a string ``type``
        plugin_id: This session's plugin identity, used to filter ``closePlugin``

    Returns:
        Events to dispatch. Empty for a ``closePlugin`` meant for another plugin.
    """
    msg_type = record.get("type")

    if msg_type == "closePlugin":
        if not is_close_for(record, plugin_id):
            logger.debug(f"Ignoring closePlugin for {record.get('pluginId')!r}")
            return []
        return [Event(type=EventType.CLOSE, data=record)]

    if msg_type == "info":
        logger.debug("Info message received")
        events = [Event(type=EventType.INFO, data=record)]
        settings = record.get("settings")
        if settings is not None:
            events.append(Event(type=EventType.SETTINGS, data=settings))
        return events

    if msg_type == "settings":
        logger.debug("Settings message received")
        return [Event(type=EventType.SETTINGS, data=record.get("values"))]

    if msg_type in _SIMPLE_TYPES:
        event_type, hold = _SIMPLE_TYPES[msg_type]
        logger.debug(f"{msg_type} message received")
        return [Event(type=event_type, data=record, hold=hold)]

    logger.debug(f"Unhandled type received {msg_type}")
    return [Event(type=EventType.MESSAGE, data=record)]
