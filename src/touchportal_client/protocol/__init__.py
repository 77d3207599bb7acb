"""Touch Portal wire protocol.

Defines how the socket stream is framed and what flows over it:
- Framing: newline-delimited JSON, CRLF/CR/LF boundaries, chunk-safe
- Events: inbound host messages classified into consumer events
- Commands: outbound plugin messages serialised as single JSON lines
"""

from .commands import (
    ChoiceUpdateMessage,
    CreateStateMessage,
    OutboundMessage,
    PairMessage,
    SettingUpdateMessage,
    StateUpdateMessage,
)
from .events import Event, EventType, classify, is_close_for
from .framing import LineFramer, parse_record

__all__ = [
    "ChoiceUpdateMessage",
    "CreateStateMessage",
    "OutboundMessage",
    "PairMessage",
    "SettingUpdateMessage",
    "StateUpdateMessage",
    "Event",
    "EventType",
    "classify",
    "is_close_for",
    "LineFramer",
    "parse_record",
]
