"""Pydantic schemas for User and auth payloads."""
from datetime import datetime
from typing import Literal

from pydantic import EmailStr, Field

from app.schemas.common import ApiModel

UserStatus = Literal["online", "offline", "away"]


class UserBase(ApiModel):
    username: str = Field(..., min_length=1, max_length=50)
    avatar: str | None = None
    bio: str | None = None
    about: str | None = None


class UserCreate(UserBase):
    email: EmailStr
    password: str = Field(..., min_length=8)


class UserSettingsUpdate(ApiModel):
    bio: str | None = None
    about: str | None = None
    avatar: str | None = None
    status: UserStatus | None = None
    show_last_seen: bool | None = None
    show_online_status: bool | None = None


class UserPublic(UserBase):
    id: int
    status: UserStatus = "offline"
    last_seen: datetime | None = None
    show_last_seen: bool = True
    show_online_status: bool = True
    is_verified: bool = False
    followers_count: int = 0
    following_count: int = 0
    created_at: datetime


class UserResponse(UserPublic):
    email: str | None = None  # Only in own profile


class Token(ApiModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserResponse


class TokenRefresh(ApiModel):
    refresh_token: str


class LoginRequest(ApiModel):
    email: EmailStr
    password: str


class FollowStatus(ApiModel):
    follows: bool
    blocked: bool = False
