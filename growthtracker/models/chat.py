# growthtracker/models/chat.py
"""
Wire shapes for the chat room.

Client -> server frames are a discriminated union on ``type``:
    {"type": "auth", "userId": str, "username": str, "token": str?}
    {"type": "message", "content": str}

Server -> client frames:
    {"type": "connected", "message": str}
    {"type": "message", "data": ChatMessageOut}
    {"type": "error", "message": str}      (only when CHAT_ERROR_FRAMES is on)
"""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_serializer,
    model_validator,
)
from pydantic.alias_generators import to_camel

from growthtracker.core.config import CHAT_MAX_CONTENT_LENGTH
from growthtracker.models.schemas import as_utc

FRAME_AUTH = "auth"
FRAME_MESSAGE = "message"
FRAME_CONNECTED = "connected"
FRAME_ERROR = "error"

CONNECTED_TEXT = "Connected to chat"


class FrameError(ValueError):
    """A client frame that is not valid JSON or not one of the known kinds."""


class _Frame(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AuthFrame(_Frame):
    type: Literal["auth"]
    user_id: Optional[str] = Field(None, min_length=1, max_length=64)
    username: Optional[str] = Field(None, min_length=1, max_length=80)
    token: Optional[str] = None

    @model_validator(mode="after")
    def _identity_or_token(self) -> "AuthFrame":
        if self.token:
            return self
        if not (self.user_id and self.username):
            raise ValueError("auth frame needs userId and username, or a token")
        return self


class MessageFrame(_Frame):
    type: Literal["message"]
    content: str = Field(..., min_length=1, max_length=CHAT_MAX_CONTENT_LENGTH)


ClientFrame = Annotated[Union[AuthFrame, MessageFrame], Field(discriminator="type")]
_client_frame = TypeAdapter(ClientFrame)


def parse_frame(raw: Union[str, bytes]) -> Union[AuthFrame, MessageFrame]:
    """Parse one inbound frame; raises FrameError for anything unusable."""
    try:
        return _client_frame.validate_json(raw)
    except ValidationError as e:
        raise FrameError(str(e)) from e


class ChatMessageOut(_Frame):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    user_id: str
    username: str
    content: str
    created_at: datetime

    @field_serializer("created_at", when_used="json")
    def created_at_utc(self, value: datetime) -> str:
        return as_utc(value).isoformat()


def connected_frame() -> Dict[str, Any]:
    return {"type": FRAME_CONNECTED, "message": CONNECTED_TEXT}


def broadcast_frame(message: ChatMessageOut) -> Dict[str, Any]:
    return {"type": FRAME_MESSAGE, "data": message.model_dump(mode="json", by_alias=True)}


def error_frame(text: str) -> Dict[str, Any]:
    return {"type": FRAME_ERROR, "message": text}
