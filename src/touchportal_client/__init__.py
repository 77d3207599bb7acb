"""Touch Portal plugin client.

Connects a plugin process to Touch Portal over its local socket API:
- PluginSession: connection lifecycle, pairing and inbound dispatch
- EventBus: per-event-type subscriptions with ordered delivery
- CommandSender: state, choice and setting updates sent to the host
- UpdateChecker: optional version check against a remote JSON document
"""

from .bus import EventBus
from .config import DEFAULT_HOST, DEFAULT_PORT, PluginConfig
from .errors import (
    ConnectError,
    ConnectTimeout,
    MessageDecodeError,
    NotConnectedError,
    PreconditionError,
    TouchPortalError,
)
from .protocol import Event, EventType, LineFramer, classify
from .sender import CommandSender, StateRegistration
from .session import PluginSession, SessionResult, SessionState, TerminationReason
from .update import UpdateChecker

__version__ = "1.0.0"

__all__ = [
    # Session
    "PluginSession",
    "SessionResult",
    "SessionState",
    "TerminationReason",
    "PluginConfig",
    "DEFAULT_HOST",
    "DEFAULT_PORT",
    # Events
    "Event",
    "EventBus",
    "EventType",
    "classify",
    "LineFramer",
    # Outbound
    "CommandSender",
    "StateRegistration",
    "UpdateChecker",
    # Errors
    "TouchPortalError",
    "MessageDecodeError",
    "PreconditionError",
    "NotConnectedError",
    "ConnectError",
    "ConnectTimeout",
]
