"""Pydantic schemas for Post."""
from datetime import datetime
from typing import Literal

from pydantic import Field

from app.schemas.common import ApiModel
from app.schemas.user import UserPublic

PostType = Literal["text", "image", "video", "short"]
Sentiment = Literal["positive", "negative", "neutral"]


class PostBase(ApiModel):
    community_id: int | None = None
    title: str | None = None
    content: str = Field(..., min_length=1)
    image_url: str | None = None
    video_url: str | None = None
    type: PostType = "text"
    tags: list[str] = Field(default_factory=list)
    sentiment: Sentiment | None = None


class PostCreate(PostBase):
    user_id: int | None = None  # must match the authenticated user when given


class RepostCreate(ApiModel):
    content: str = Field(default="", max_length=500)


class PostResponse(PostBase):
    id: int
    user_id: int
    likes: int = 0
    comments: int = 0
    shares: int = 0
    reposts: int = 0
    original_post_id: int | None = None
    is_repost: bool = False
    is_trending: bool = False
    created_at: datetime
    user: UserPublic | None = None
    is_liked: bool = False
