from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class InboundCommand(BaseModel):
    """Client -> server frame: `{"command": "up"}`.

    Only the shape is checked here; the command value is validated by the dispatcher
    so unknown commands get their own error message.
    """

    command: StrictStr


class InitialState(BaseModel):
    type: Literal["initialState"] = "initialState"
    x: int
    y: int


class PositionUpdate(BaseModel):
    type: Literal["positionUpdate"] = "positionUpdate"
    x: int
    y: int


class GameOver(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["gameOver"] = "gameOver"
    game_id: str = Field(..., alias="gameId")
    # Two-decimal string, e.g. "1.41".
    distance: str
    start_time: datetime = Field(..., alias="startTime")
    end_time: datetime = Field(..., alias="endTime")


class ErrorMessage(BaseModel):
    type: Literal["error"] = "error"
    message: str


OutboundMessage = InitialState | PositionUpdate | GameOver | ErrorMessage


class MoveEvent(BaseModel):
    """A persisted fact: this connection issued this command and ended up here."""

    model_config = ConfigDict(populate_by_name=True)

    game_id: str = Field(..., alias="gameId")
    client_id: str = Field(..., alias="clientId")
    command: str
    x: int
    y: int
    timestamp: datetime

    def to_stream_fields(self) -> dict[str, str]:
        # Redis stream fields are flat strings.
        return {k: v if isinstance(v, str) else str(v) for k, v in self.model_dump(by_alias=True, mode="json").items()}


def to_wire(message: OutboundMessage) -> dict[str, object]:
    return message.model_dump(by_alias=True, mode="json")
