"""Pydantic schemas for Community."""
from datetime import datetime

from pydantic import Field

from app.schemas.common import ApiModel


class CommunityCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    icon: str = "fas fa-users"
    color: str = "blue"
    member_count: int = Field(0, ge=0)
    online_count: int = Field(0, ge=0)


class CommunityResponse(ApiModel):
    id: int
    name: str
    description: str | None = None
    icon: str = "fas fa-users"
    color: str = "blue"
    member_count: int = 0
    online_count: int = 0
    created_at: datetime
