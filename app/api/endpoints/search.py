from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import String, cast, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.api import deps
from app.models.community import Community
from app.models.post import Post
from app.models.user import User
from app.schemas.common import ApiModel
from app.schemas.community import CommunityResponse
from app.schemas.post import PostResponse
from app.schemas.user import UserPublic
from app.services.auth_service import user_to_public
from app.services.community_service import community_to_response
from app.services.post_service import post_to_response

router = APIRouter()


class SearchResults(ApiModel):
    users: list[UserPublic]
    communities: list[CommunityResponse]
    posts: list[PostResponse]


@router.get("", response_model=SearchResults)
async def search(
    q: str = Query(""),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Case-insensitive substring search over users, communities and posts.
    """
    query = q.strip()
    if not query:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Query parameter required")
    pattern = f"%{query}%"

    users_result = await db.execute(
        select(User)
        .where(or_(User.username.ilike(pattern), User.bio.ilike(pattern)))
        .order_by(User.id)
        .limit(limit)
    )
    communities_result = await db.execute(
        select(Community)
        .where(or_(Community.name.ilike(pattern), Community.description.ilike(pattern)))
        .order_by(Community.id)
        .limit(limit)
    )
    # tags are stored as JSON; matching its text form finds substrings of any tag
    posts_result = await db.execute(
        select(Post)
        .where(
            or_(
                Post.title.ilike(pattern),
                Post.content.ilike(pattern),
                cast(Post.tags, String).ilike(pattern),
            )
        )
        .order_by(Post.created_at.desc(), Post.id.desc())
        .limit(limit)
        .options(selectinload(Post.user))
    )

    return SearchResults(
        users=[user_to_public(u) for u in users_result.scalars().all()],
        communities=[community_to_response(c) for c in communities_result.scalars().all()],
        posts=[post_to_response(p) for p in posts_result.scalars().all()],
    )
