"""Post, like and repost business logic."""
from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.engagement import PostLike
from app.models.post import Post
from app.schemas.post import PostCreate, PostResponse
from app.services.auth_service import user_to_public


async def get_post(db: AsyncSession, post_id: int, *, reload: bool = False) -> Post | None:
    stmt = select(Post).where(Post.id == post_id).options(selectinload(Post.user))
    if reload:
        stmt = stmt.execution_options(populate_existing=True)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def create_post(db: AsyncSession, user_id: int, data: PostCreate) -> Post:
    post = Post(
        user_id=user_id,
        community_id=data.community_id,
        title=data.title,
        content=data.content,
        image_url=data.image_url,
        video_url=data.video_url,
        type=data.type,
        tags=list(data.tags),
        sentiment=data.sentiment,
    )
    db.add(post)
    await db.flush()
    return await get_post(db, post.id, reload=True)


async def list_posts(
    db: AsyncSession,
    *,
    user_id: int | None = None,
    community_id: int | None = None,
    skip: int = 0,
    limit: int = 50,
) -> list[Post]:
    """Newest first, optionally narrowed to one author or one community."""
    q = select(Post).options(selectinload(Post.user))
    if user_id is not None:
        q = q.where(Post.user_id == user_id)
    if community_id is not None:
        q = q.where(Post.community_id == community_id)
    q = q.order_by(desc(Post.created_at), desc(Post.id)).offset(skip).limit(limit)
    result = await db.execute(q)
    return list(result.scalars().all())


async def list_trending_posts(db: AsyncSession, *, skip: int = 0, limit: int = 50) -> list[Post]:
    result = await db.execute(
        select(Post)
        .where(Post.is_trending.is_(True))
        .order_by(desc(Post.likes), desc(Post.created_at), desc(Post.id))
        .offset(skip)
        .limit(limit)
        .options(selectinload(Post.user))
    )
    return list(result.scalars().all())


async def get_user_liked_post_ids(
    db: AsyncSession,
    user_id: int,
    post_ids: list[int],
) -> set[int]:
    """Return set of post IDs that the user has liked."""
    if not post_ids:
        return set()
    result = await db.execute(
        select(PostLike.post_id).where(
            PostLike.user_id == user_id,
            PostLike.post_id.in_(post_ids),
        )
    )
    return set(row[0] for row in result.all() if row[0])


async def like_post(db: AsyncSession, post: Post, user_id: int) -> bool:
    """Add the user's like. Returns False when it was already there."""
    existing = await db.execute(
        select(PostLike.id).where(PostLike.post_id == post.id, PostLike.user_id == user_id)
    )
    if existing.scalar_one_or_none():
        return False
    db.add(PostLike(user_id=user_id, post_id=post.id))
    post.likes = (post.likes or 0) + 1
    await db.flush()
    return True


async def unlike_post(db: AsyncSession, post: Post, user_id: int) -> bool:
    result = await db.execute(
        select(PostLike).where(PostLike.post_id == post.id, PostLike.user_id == user_id)
    )
    like = result.scalar_one_or_none()
    if not like:
        return False
    await db.delete(like)
    post.likes = max(0, (post.likes or 0) - 1)
    await db.flush()
    return True


async def create_repost(db: AsyncSession, user_id: int, original: Post, content: str = "") -> Post:
    """Create a repost pointing at ``original`` and bump its repost counter."""
    repost = Post(
        user_id=user_id,
        community_id=original.community_id,
        title=original.title,
        content=(content or "").strip() or original.content,
        image_url=original.image_url,
        video_url=original.video_url,
        type=original.type,
        tags=list(original.tags or []),
        original_post_id=original.id,
        is_repost=True,
    )
    db.add(repost)
    original.reposts = (original.reposts or 0) + 1
    await db.flush()
    return await get_post(db, repost.id, reload=True)


def post_to_response(post: Post, is_liked: bool = False) -> PostResponse:
    return PostResponse(
        id=post.id,
        user_id=post.user_id,
        community_id=post.community_id,
        title=post.title,
        content=post.content,
        image_url=post.image_url,
        video_url=post.video_url,
        type=post.type or "text",
        tags=post.tags or [],
        sentiment=post.sentiment,
        likes=post.likes or 0,
        comments=post.comments or 0,
        shares=post.shares or 0,
        reposts=post.reposts or 0,
        original_post_id=post.original_post_id,
        is_repost=bool(post.is_repost),
        is_trending=bool(post.is_trending),
        created_at=post.created_at,
        user=user_to_public(post.user) if post.user else None,
        is_liked=is_liked,
    )
