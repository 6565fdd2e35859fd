"""Pydantic schemas for conversations, messages and chat requests."""
from datetime import datetime
from typing import Literal

from pydantic import Field

from app.schemas.common import ApiModel
from app.schemas.user import UserPublic

ConversationType = Literal["group", "direct"]
MessageType = Literal["text", "image", "file"]


class ConversationCreate(ApiModel):
    name: str | None = Field(None, max_length=255)
    type: ConversationType = "direct"
    avatar: str | None = None
    description: str | None = None


class ConversationResponse(ApiModel):
    id: int
    name: str
    type: ConversationType
    avatar: str | None = None
    description: str | None = None
    member_count: int = 0
    created_at: datetime


class MessageCreate(ApiModel):
    conversation_id: int
    user_id: int | None = None  # must match the authenticated user when given
    content: str = Field(..., min_length=1)
    type: MessageType = "text"


class MessageResponse(ApiModel):
    id: int
    conversation_id: int
    user_id: int
    content: str
    type: MessageType = "text"
    created_at: datetime
    user: UserPublic | None = None


class ChatRequestCreate(ApiModel):
    receiver_id: int
    content: str = Field(..., min_length=1)


class ChatRequestResponse(ApiModel):
    id: int
    sender_id: int
    receiver_id: int
    content: str
    status: Literal["pending", "accepted", "rejected"]
    created_at: datetime
    sender: UserPublic | None = None


class ChatRequestAccepted(ApiModel):
    conversation_id: int
