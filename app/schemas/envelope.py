"""Realtime envelope schemas.

An envelope is a JSON object with a ``type`` discriminator. Known kinds are
validated against their model; any other kind only needs a string ``type``
and is passed through untouched.
"""
from typing import Annotated, Any, Literal, Union

from pydantic import ConfigDict, Field, TypeAdapter, ValidationError

from app.schemas.common import ApiModel
from app.schemas.conversation import MessageResponse
from app.schemas.post import PostResponse
from app.schemas.user import UserPublic, UserStatus


class EnvelopeBase(ApiModel):
    model_config = ConfigDict(extra="allow")


class JoinEnvelope(EnvelopeBase):
    type: Literal["join"] = "join"
    user_id: int


class SendMessageEnvelope(EnvelopeBase):
    type: Literal["send_message"] = "send_message"
    conversation_id: int
    user_id: int
    content: str = Field(..., min_length=1)


class TypingEnvelope(EnvelopeBase):
    type: Literal["typing"] = "typing"
    user_id: int
    conversation_id: int
    is_typing: bool = True


class NewMessageEnvelope(EnvelopeBase):
    type: Literal["new_message"] = "new_message"
    message: MessageResponse
    user: UserPublic | None = None


class NewPostEnvelope(EnvelopeBase):
    type: Literal["new_post"] = "new_post"
    post: PostResponse
    user: UserPublic | None = None


class UserStatusEnvelope(EnvelopeBase):
    type: Literal["user_status"] = "user_status"
    user_id: int
    status: UserStatus


class UserTypingEnvelope(EnvelopeBase):
    type: Literal["user_typing"] = "user_typing"
    user_id: int
    conversation_id: int
    is_typing: bool = True


Envelope = Annotated[
    Union[
        JoinEnvelope,
        SendMessageEnvelope,
        TypingEnvelope,
        NewMessageEnvelope,
        NewPostEnvelope,
        UserStatusEnvelope,
        UserTypingEnvelope,
    ],
    Field(discriminator="type"),
]

envelope_adapter: TypeAdapter[Envelope] = TypeAdapter(Envelope)

KNOWN_TYPES = frozenset(
    {"join", "send_message", "typing", "new_message", "new_post", "user_status", "user_typing"}
)


class EnvelopeError(ValueError):
    """Raised for payloads that are not a usable envelope."""


def parse_envelope(data: Any) -> Envelope | None:
    """Validate a decoded JSON value.

    Returns the typed envelope for known kinds and None for unknown kinds.
    Raises EnvelopeError when the value is not an object, has no string
    ``type``, or is a known kind that fails validation.
    """
    if not isinstance(data, dict):
        raise EnvelopeError("envelope must be a JSON object")
    kind = data.get("type")
    if not isinstance(kind, str) or not kind:
        raise EnvelopeError("envelope is missing a string 'type'")
    if kind not in KNOWN_TYPES:
        return None
    try:
        return envelope_adapter.validate_python(data)
    except ValidationError as exc:
        raise EnvelopeError(f"invalid {kind!r} envelope: {exc.error_count()} error(s)") from exc


def dump_envelope(envelope: EnvelopeBase) -> dict:
    return envelope.model_dump(mode="json", by_alias=True)
