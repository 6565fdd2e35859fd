from app.models.user import User
from app.models.conversation import ChatRequest, Conversation, Message
from app.models.community import Community
from app.models.post import Post
from app.models.engagement import Block, Follow, PostLike
from app.models.notification import Notification

__all__ = [
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
