from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class GameResultModel(str, Enum):
    win = "win"  # the player beat the computer
    loss = "loss"
    draw = "draw"


class ResultPayloadModel(BaseModel):
    result: GameResultModel
    event_id: Optional[str] = Field(default=None, alias="eventId", min_length=6, max_length=64)

    @field_validator("event_id", mode="before")
    @classmethod
    def event_id_not_null(cls, v):
        # Runs only when eventId is sent; omitting it is fine, null is not.
        if v is None:
            raise ValueError("eventId must be a string when present")
        return v


class ResultResponseModel(BaseModel):
    status: str = "ok"
    code: Optional[str] = None


class ErrorResponseModel(BaseModel):
    status: str = "error"
    message: str
