"""Users: directory, profile, settings, follow and block."""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_current_user, get_current_user_optional
from app.models.user import User
from app.schemas.post import PostResponse
from app.schemas.user import FollowStatus, UserPublic, UserResponse, UserSettingsUpdate
from app.services import user_service
from app.services.auth_service import get_user_by_id, user_to_public, user_to_response
from app.services.notification_service import create_notification
from app.services.post_service import get_user_liked_post_ids, list_posts, post_to_response

router = APIRouter(prefix="/users", tags=["users"])


async def _get_user_or_404(db: AsyncSession, user_id: int) -> User:
    user = await get_user_by_id(db, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("", response_model=list[UserPublic])
async def list_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
):
    users = await user_service.list_users(db, skip=skip, limit=limit)
    return [user_to_public(u) for u in users]


@router.patch("/settings", response_model=UserResponse)
async def update_settings(
    data: UserSettingsUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.update_settings(db, current_user, data)
    await db.commit()
    return user_to_response(user, include_email=True)


@router.get("/{user_id}", response_model=UserPublic)
async def get_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
):
    user = await _get_user_or_404(db, user_id)
    return user_to_public(user)


@router.get("/{user_id}/posts", response_model=list[PostResponse])
async def get_user_posts(
    user_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    posts = await list_posts(db, user_id=user_id, skip=skip, limit=limit)
    liked_ids: set[int] = set()
    if current_user:
        liked_ids = await get_user_liked_post_ids(db, current_user.id, [p.id for p in posts])
    return [post_to_response(p, is_liked=p.id in liked_ids) for p in posts]


@router.post("/{user_id}/follow", response_model=FollowStatus)
async def follow_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if user_id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot follow yourself")
    target = await _get_user_or_404(db, user_id)
    if await user_service.is_blocked_between(db, current_user.id, user_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot follow this user")
    if await user_service.is_following(db, current_user.id, user_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Already following this user")
    await user_service.follow(db, current_user, target)
    await create_notification(
        db,
        user_id=user_id,
        actor_id=current_user.id,
        notification_type="follow",
        text=f"{current_user.username} started following you",
    )
    await db.commit()
    return FollowStatus(follows=True)


@router.delete("/{user_id}/follow", response_model=FollowStatus)
async def unfollow_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    target = await _get_user_or_404(db, user_id)
    if await user_service.unfollow(db, current_user, target):
        await db.commit()
    return FollowStatus(follows=False)


@router.post("/{user_id}/block", response_model=FollowStatus)
async def block_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if user_id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot block yourself")
    target = await _get_user_or_404(db, user_id)
    if await user_service.block(db, current_user, target):
        await db.commit()
    return FollowStatus(follows=False, blocked=True)


@router.delete("/{user_id}/block", response_model=FollowStatus)
async def unblock_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    target = await _get_user_or_404(db, user_id)
    if await user_service.unblock(db, current_user, target):
        await db.commit()
    return FollowStatus(follows=False, blocked=False)


@router.get("/{user_id}/followers", response_model=list[UserPublic])
async def get_followers(
    user_id: int,
    db: AsyncSession = Depends(get_db),
):
    await _get_user_or_404(db, user_id)
    return [user_to_public(u) for u in await user_service.list_followers(db, user_id)]


@router.get("/{user_id}/following", response_model=list[UserPublic])
async def get_following(
    user_id: int,
    db: AsyncSession = Depends(get_db),
):
    await _get_user_or_404(db, user_id)
    return [user_to_public(u) for u in await user_service.list_following(db, user_id)]


@router.get("/{user_id}/follow-status", response_model=FollowStatus)
async def get_follow_status(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Whether the current user follows ``user_id`` and whether they blocked them."""
    return FollowStatus(
        follows=await user_service.is_following(db, current_user.id, user_id),
        blocked=await user_service.has_blocked(db, current_user.id, user_id),
    )


@router.get("/{user_id}/blocked", response_model=list[UserPublic])
async def get_blocked_users(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return [user_to_public(u) for u in await user_service.list_blocked(db, user_id)]
