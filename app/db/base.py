"""SQLAlchemy declarative base and model imports for Alembic."""
from app.db.session import Base  # noqa: F401
from app.models.user import User  # noqa: F401
from app.models.conversation import ChatRequest, Conversation, Message  # noqa: F401
from app.models.community import Community  # noqa: F401
from app.models.post import Post  # noqa: F401
from app.models.engagement import Block, Follow, PostLike  # noqa: F401
from app.models.notification import Notification  # noqa: F401

__all__ = [
    "Base",
    "User",
    "Conversation",
    "Message",
    "ChatRequest",
    "Community",
    "Post",
    "Follow",
    "Block",
    "PostLike",
    "Notification",
]
