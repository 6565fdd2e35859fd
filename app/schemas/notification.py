"""Pydantic schemas for Notification."""
from datetime import datetime

from app.schemas.common import ApiModel
from app.schemas.user import UserPublic


class NotificationResponse(ApiModel):
    id: int
    user_id: int
    actor_id: int
    type: str
    text: str
    target_post_id: int | None = None
    is_read: bool = False
    created_at: datetime
    actor: UserPublic | None = None


class UnreadCount(ApiModel):
    count: int
