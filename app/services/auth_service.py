"""Authentication business logic."""
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import verify_password, get_password_hash, create_access_token, create_refresh_token
from app.models.user import User
from app.schemas.user import UserCreate, UserPublic, UserResponse


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def create_user(db: AsyncSession, data: UserCreate) -> User:
    user = User(
        username=data.username,
        email=data.email,
        password_hash=get_password_hash(data.password),
        avatar=data.avatar,
        bio=data.bio,
        about=data.about,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User | None:
    user = await get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        return None
    return user


def set_presence(user: User, status: str) -> None:
    """Record a login/logout: presence status plus last-seen time."""
    user.status = status
    user.last_seen = datetime.utcnow()


def user_to_public(user: User) -> UserPublic:
    """Profile as other users see it; honours the visibility flags."""
    show_status = user.show_online_status if user.show_online_status is not None else True
    show_seen = user.show_last_seen if user.show_last_seen is not None else True
    return UserPublic(
        id=user.id,
        username=user.username,
        avatar=user.avatar,
        bio=user.bio,
        about=user.about,
        status=(user.status or "offline") if show_status else "offline",
        last_seen=user.last_seen if show_seen else None,
        show_last_seen=show_seen,
        show_online_status=show_status,
        is_verified=bool(user.is_verified),
        followers_count=user.followers_count or 0,
        following_count=user.following_count or 0,
        created_at=user.created_at,
    )


def user_to_response(user: User, include_email: bool = False) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email if include_email else None,
        avatar=user.avatar,
        bio=user.bio,
        about=user.about,
        status=user.status or "offline",
        last_seen=user.last_seen,
        show_last_seen=user.show_last_seen if user.show_last_seen is not None else True,
        show_online_status=user.show_online_status if user.show_online_status is not None else True,
        is_verified=bool(user.is_verified),
        followers_count=user.followers_count or 0,
        following_count=user.following_count or 0,
        created_at=user.created_at,
    )


def create_tokens_for_user(user: User) -> tuple[str, str]:
    return create_access_token(user.id), create_refresh_token(user.id)
