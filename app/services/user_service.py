"""User directory, settings, follow and block logic."""
from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.engagement import Block, Follow
from app.models.user import User
from app.schemas.user import UserSettingsUpdate


async def list_users(db: AsyncSession, *, skip: int = 0, limit: int = 100) -> list[User]:
    result = await db.execute(select(User).order_by(User.id).offset(skip).limit(limit))
    return list(result.scalars().all())


async def update_settings(db: AsyncSession, user: User, data: UserSettingsUpdate) -> User:
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None and field in ("show_last_seen", "show_online_status", "status"):
            continue
        setattr(user, field, value)
    await db.flush()
    return user


async def is_following(db: AsyncSession, follower_id: int, following_id: int) -> bool:
    result = await db.execute(
        select(Follow).where(Follow.follower_id == follower_id, Follow.following_id == following_id)
    )
    return result.scalar_one_or_none() is not None


async def is_blocked_between(db: AsyncSession, a_id: int, b_id: int) -> bool:
    """True when either user has blocked the other."""
    result = await db.execute(
        select(Block.blocker_id).where(
            or_(
                (Block.blocker_id == a_id) & (Block.blocked_id == b_id),
                (Block.blocker_id == b_id) & (Block.blocked_id == a_id),
            )
        )
    )
    return result.first() is not None


async def has_blocked(db: AsyncSession, blocker_id: int, blocked_id: int) -> bool:
    result = await db.execute(
        select(Block).where(Block.blocker_id == blocker_id, Block.blocked_id == blocked_id)
    )
    return result.scalar_one_or_none() is not None


async def follow(db: AsyncSession, follower: User, target: User) -> None:
    db.add(Follow(follower_id=follower.id, following_id=target.id))
    target.followers_count = (target.followers_count or 0) + 1
    follower.following_count = (follower.following_count or 0) + 1
    await db.flush()


async def unfollow(db: AsyncSession, follower: User, target: User) -> bool:
    result = await db.execute(
        delete(Follow).where(Follow.follower_id == follower.id, Follow.following_id == target.id)
    )
    if not result.rowcount:
        return False
    target.followers_count = max(0, (target.followers_count or 0) - 1)
    follower.following_count = max(0, (follower.following_count or 0) - 1)
    await db.flush()
    return True


async def block(db: AsyncSession, blocker: User, target: User) -> bool:
    """Block ``target``; any follow in either direction is removed. Idempotent."""
    if await has_blocked(db, blocker.id, target.id):
        return False
    await unfollow(db, blocker, target)
    await unfollow(db, target, blocker)
    db.add(Block(blocker_id=blocker.id, blocked_id=target.id))
    await db.flush()
    return True


async def unblock(db: AsyncSession, blocker: User, target: User) -> bool:
    result = await db.execute(
        delete(Block).where(Block.blocker_id == blocker.id, Block.blocked_id == target.id)
    )
    return bool(result.rowcount)


async def list_followers(db: AsyncSession, user_id: int) -> list[User]:
    result = await db.execute(
        select(User)
        .join(Follow, Follow.follower_id == User.id)
        .where(Follow.following_id == user_id)
        .order_by(Follow.created_at)
    )
    return list(result.scalars().all())


async def list_following(db: AsyncSession, user_id: int) -> list[User]:
    result = await db.execute(
        select(User)
        .join(Follow, Follow.following_id == User.id)
        .where(Follow.follower_id == user_id)
        .order_by(Follow.created_at)
    )
    return list(result.scalars().all())


async def list_blocked(db: AsyncSession, user_id: int) -> list[User]:
    result = await db.execute(
        select(User)
        .join(Block, Block.blocked_id == User.id)
        .where(Block.blocker_id == user_id)
        .order_by(Block.created_at)
    )
    return list(result.scalars().all())
