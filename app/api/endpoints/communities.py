"""Communities and their posts."""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_current_user, get_current_user_optional
from app.models.user import User
from app.schemas.community import CommunityCreate, CommunityResponse
from app.schemas.post import PostResponse
from app.services.community_service import (
    community_to_response,
    create_community,
    get_community,
    list_communities,
)
from app.services.post_service import get_user_liked_post_ids, list_posts, post_to_response

router = APIRouter(prefix="/communities", tags=["communities"])


@router.get("", response_model=list[CommunityResponse])
async def list_communities_endpoint(db: AsyncSession = Depends(get_db)):
    return [community_to_response(c) for c in await list_communities(db)]


@router.post("", response_model=CommunityResponse, status_code=status.HTTP_201_CREATED)
async def create_community_endpoint(
    data: CommunityCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    community = await create_community(db, data)
    await db.commit()
    return community_to_response(community)


@router.get("/{community_id}", response_model=CommunityResponse)
async def get_community_endpoint(
    community_id: int,
    db: AsyncSession = Depends(get_db),
):
    community = await get_community(db, community_id)
    if not community:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Community not found")
    return community_to_response(community)


@router.get("/{community_id}/posts", response_model=list[PostResponse])
async def list_community_posts(
    community_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    posts = await list_posts(db, community_id=community_id, skip=skip, limit=limit)
    liked_ids: set[int] = set()
    if current_user:
        liked_ids = await get_user_liked_post_ids(db, current_user.id, [p.id for p in posts])
    return [post_to_response(p, is_liked=p.id in liked_ids) for p in posts]
