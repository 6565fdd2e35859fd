"""Posts: feed, trending, likes and reposts."""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_current_user, get_current_user_optional, get_relay
from app.models.post import Post
from app.models.user import User
from app.realtime.relay import Relay
from app.schemas.envelope import NewPostEnvelope
from app.schemas.post import PostCreate, PostResponse, RepostCreate
from app.services.community_service import get_community
from app.services.notification_service import create_notification
from app.services.post_service import (
    create_post,
    create_repost,
    get_post,
    get_user_liked_post_ids,
    like_post,
    list_posts,
    list_trending_posts,
    post_to_response,
    unlike_post,
)

router = APIRouter(prefix="/posts", tags=["posts"])


async def _responses(db: AsyncSession, posts: list[Post], viewer: User | None) -> list[PostResponse]:
    liked_ids: set[int] = set()
    if viewer:
        liked_ids = await get_user_liked_post_ids(db, viewer.id, [p.id for p in posts])
    return [post_to_response(p, is_liked=p.id in liked_ids) for p in posts]


async def _get_post_or_404(db: AsyncSession, post_id: int) -> Post:
    post = await get_post(db, post_id)
    if not post:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


@router.get("", response_model=list[PostResponse])
async def list_posts_endpoint(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    posts = await list_posts(db, skip=skip, limit=limit)
    return await _responses(db, posts, current_user)


@router.get("/trending", response_model=list[PostResponse])
async def list_trending(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    posts = await list_trending_posts(db, skip=skip, limit=limit)
    return await _responses(db, posts, current_user)


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post_endpoint(
    data: PostCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    relay: Relay = Depends(get_relay),
):
    if data.user_id is not None and data.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot post as another user")
    if data.community_id is not None and not await get_community(db, data.community_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Community not found")
    post = await create_post(db, current_user.id, data)
    await db.commit()
    response = post_to_response(post, is_liked=False)
    await relay.publish(NewPostEnvelope(post=response, user=response.user))
    return response


async def _like(post_id: int, current_user: User, db: AsyncSession) -> PostResponse:
    post = await _get_post_or_404(db, post_id)
    if await like_post(db, post, current_user.id):
        await create_notification(
            db,
            user_id=post.user_id,
            actor_id=current_user.id,
            notification_type="like",
            text=f"{current_user.username} liked your post",
            target_post_id=post.id,
        )
        await db.commit()
    return post_to_response(post, is_liked=True)


@router.post("/{post_id}/like", response_model=PostResponse)
async def like_post_endpoint(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await _like(post_id, current_user, db)


@router.patch("/{post_id}/like", response_model=PostResponse)
async def like_post_patch(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await _like(post_id, current_user, db)


@router.delete("/{post_id}/like", response_model=PostResponse)
async def unlike_post_endpoint(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    post = await _get_post_or_404(db, post_id)
    if await unlike_post(db, post, current_user.id):
        await db.commit()
    return post_to_response(post, is_liked=False)


@router.post("/{post_id}/repost", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def repost_post(
    post_id: int,
    data: RepostCreate | None = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    original = await _get_post_or_404(db, post_id)
    repost = await create_repost(db, current_user.id, original, data.content if data else "")
    await create_notification(
        db,
        user_id=original.user_id,
        actor_id=current_user.id,
        notification_type="repost",
        text=f"{current_user.username} reposted your post",
        target_post_id=original.id,
    )
    await db.commit()
    return post_to_response(repost, is_liked=False)
