"""Post model (text, image, video and short posts; reposts point at the original)."""
from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.db.session import Base


class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    community_id = Column(Integer, ForeignKey("communities.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(Text, nullable=True)
    content = Column(Text, nullable=False)
    image_url = Column(Text, nullable=True)
    video_url = Column(Text, nullable=True)
    type = Column(String(20), nullable=False, default="text")  # text | image | video | short
    tags = Column(JSON, nullable=True)  # ordered list of strings
    likes = Column(Integer, nullable=False, default=0)
    comments = Column(Integer, nullable=False, default=0)
    shares = Column(Integer, nullable=False, default=0)
    reposts = Column(Integer, nullable=False, default=0)
    original_post_id = Column(Integer, ForeignKey("posts.id", ondelete="SET NULL"), nullable=True)
    is_repost = Column(Boolean, nullable=False, default=False)
    is_trending = Column(Boolean, nullable=False, default=False)
    sentiment = Column(String(20), nullable=True)  # positive | negative | neutral
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    user = relationship("User", back_populates="posts", foreign_keys=[user_id])
    community = relationship("Community", back_populates="posts")
    original_post = relationship("Post", remote_side="Post.id")
    post_likes = relationship("PostLike", back_populates="post", cascade="all, delete-orphan")
