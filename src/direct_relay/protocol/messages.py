from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Annotated, Literal, Optional, TypeAlias, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from .constants import T_DELIVERED, T_ERROR, T_REGISTERED


def utc_timestamp() -> str:
    """ISO-8601 UTC, millisecond precision, `Z` suffix (e.g. 2024-05-01T12:00:00.123Z)."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class InvalidFrame(ValueError):
    """Raised when a frame cannot be decoded into a JSON object."""


# client -> relay


class RegisterRequest(BaseModel):
    model_config = ConfigDict(strict=True, frozen=True)

    # "register" would shadow BaseModel.register; keep it only as the wire name.
    wants_register: Literal[True] = Field(alias="register")
    username: Annotated[str, Field(min_length=1)]

    @field_validator("wants_register", mode="before")
    @classmethod
    def _exactly_true(cls, v: object) -> object:
        # Literal[True] alone lets the integer 1 through.
        if v is not True:
            raise ValueError("register must be the JSON literal true")
        return v


class DeliveryRequest(BaseModel):
    # Sender is implied by the connection the frame arrived on.
    model_config = ConfigDict(strict=True, frozen=True)

    to: Annotated[str, Field(min_length=1)]
    message: Annotated[str, Field(min_length=1)]


# relay -> client


class Registered(BaseModel):
    type: Literal["registered"] = T_REGISTERED
    success: bool = True
    username: str
    online_count: int = Field(serialization_alias="onlineCount")


class ErrorReply(BaseModel):
    type: Literal["error"] = T_ERROR
    message: str


class Delivered(BaseModel):
    """Ack meaning the forward was handed to the recipient's live outbox, not that it was read."""

    type: Literal["delivered"] = T_DELIVERED
    to: str
    timestamp: str = Field(default_factory=utc_timestamp)


class Forwarded(BaseModel):
    sender: str = Field(serialization_alias="from")
    message: str
    timestamp: str = Field(default_factory=utc_timestamp)


InboundMsg: TypeAlias = Annotated[
    Union[RegisterRequest, DeliveryRequest], Field(union_mode="left_to_right")
]
OutboundMsg: TypeAlias = Union[Registered, ErrorReply, Delivered, Forwarded]

_inbound = TypeAdapter(InboundMsg)


def parse_frame(raw: str | bytes) -> Optional[RegisterRequest | DeliveryRequest]:
    """
    Decode one inbound frame.

    Returns the recognized request, or None when the frame is a JSON object
    matching neither shape. Registration is tried first, so a frame that
    carries both shapes counts as a registration.
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidFrame(f"frame is not UTF-8: {e}") from e
    try:
        obj = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidFrame(f"frame is not JSON: {e}") from e
    if not isinstance(obj, dict):
        raise InvalidFrame(f"frame is a JSON {type(obj).__name__}, expected an object")

    try:
        return _inbound.validate_python(obj)
    except ValidationError:
        return None


def dump_frame(msg: OutboundMsg) -> str:
    return json.dumps(msg.model_dump(by_alias=True), separators=(",", ":"), ensure_ascii=False)
