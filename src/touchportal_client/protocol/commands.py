"""Outbound message definitions.

Messages are plugin -> host requests. Each serialises to one line of
compact JSON terminated by ``\\n``:

    {"type":"stateUpdate","id":"tp.state.volume","value":"42"}
"""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

NEWLINE = "\n"


def to_line(message: dict[str, Any]) -> str:
    """Serialise a raw message dict as one wire line."""
    return json.dumps(message, separators=(",", ":"), ensure_ascii=False) + NEWLINE


def stringify(value: Any) -> str:
    """Render a state id or value the way the host expects it (always a string)."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class OutboundMessage(BaseModel):
    """Base for plugin -> host messages."""

    model_config = ConfigDict(populate_by_name=True)

    type: str

    def to_wire(self) -> dict[str, Any]:
        """Convert to the JSON object sent on the wire."""
        return self.model_dump(mode="json", by_alias=True)

    def to_line(self) -> str:
        return to_line(self.to_wire())


class PairMessage(OutboundMessage):
    """Pairing handshake, sent once right after connecting."""

    type: Literal["pair"] = "pair"
    id: str


class CreateStateMessage(OutboundMessage):
    type: Literal["createState"] = "createState"
    id: str
    desc: str
    default_value: Any = Field(default=None, alias="defaultValue")


class StateUpdateMessage(OutboundMessage):
    type: Literal["stateUpdate"] = "stateUpdate"
    id: str
    value: str

    @classmethod
    def create(cls, state_id: Any, value: Any) -> StateUpdateMessage:
        """Build a state update, stringifying id and value."""
        return cls(id=stringify(state_id), value=stringify(value))


class ChoiceUpdateMessage(OutboundMessage):
    """Replace a choice list, globally or for one action instance."""

    type: Literal["choiceUpdate"] = "choiceUpdate"
    id: str
    value: list[str]
    instance_id: str | None = Field(default=None, alias="instanceId")

    def to_wire(self) -> dict[str, Any]:
        wire = super().to_wire()
        if self.instance_id is None:
            wire.pop("instanceId")
        return wire


class SettingUpdateMessage(OutboundMessage):
    type: Literal["settingUpdate"] = "settingUpdate"
    name: str
    value: Any = None
