"""Notification creation and queries."""
from sqlalchemy import desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import Notification
from app.models.user import User
from app.schemas.notification import NotificationResponse
from app.services.auth_service import user_to_public


async def create_notification(
    db: AsyncSession,
    *,
    user_id: int,
    actor_id: int,
    notification_type: str,
    text: str,
    target_post_id: int | None = None,
) -> Notification | None:
    """Create a notification. Skips if actor is the same as user (no self-notify)."""
    if user_id == actor_id:
        return None
    notification = Notification(
        user_id=user_id,
        actor_id=actor_id,
        type=notification_type,
        text=text,
        target_post_id=target_post_id,
    )
    db.add(notification)
    from app.workers.notifications import send_push_notification

    send_push_notification.delay(str(user_id), "verser", text)
    return notification


async def get_notifications(
    db: AsyncSession,
    user_id: int,
    *,
    skip: int = 0,
    limit: int = 50,
) -> list[tuple[Notification, User]]:
    """Get notifications for user, most recent first."""
    result = await db.execute(
        select(Notification, User)
        .join(User, Notification.actor_id == User.id)
        .where(Notification.user_id == user_id)
        .order_by(desc(Notification.created_at), desc(Notification.id))
        .offset(skip)
        .limit(limit)
    )
    return list(result.all())


async def get_unread_count(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.is_read.is_(False),
        )
    )
    return result.scalar() or 0


async def mark_all_read(db: AsyncSession, user_id: int) -> int:
    """Mark all notifications as read. Returns count updated."""
    stmt = (
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    result = await db.execute(stmt)
    return result.rowcount or 0


async def mark_one_read(db: AsyncSession, user_id: int, notification_id: int) -> bool:
    stmt = (
        update(Notification)
        .where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
        .values(is_read=True)
    )
    result = await db.execute(stmt)
    return (result.rowcount or 0) > 0


def notification_to_response(notification: Notification, actor: User | None) -> NotificationResponse:
    return NotificationResponse(
        id=notification.id,
        user_id=notification.user_id,
        actor_id=notification.actor_id,
        type=notification.type,
        text=notification.text,
        target_post_id=notification.target_post_id,
        is_read=bool(notification.is_read),
        created_at=notification.created_at,
        actor=user_to_public(actor) if actor else None,
    )
