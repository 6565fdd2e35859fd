"""Celery tasks for push notifications."""
import logging

from app.core.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task
def send_push_notification(user_id: str, title: str, body: str) -> None:
    """Hook for push delivery. Currently a no-op that only logs; nothing is
    sent to any device. Clients pick notifications up by polling
    /api/notifications.
    """
    logger.debug("push notification for user %s: %s - %s", user_id, title, body)
