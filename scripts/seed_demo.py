"""Create tables and load a few demo users, communities, posts and a conversation.

Usage: python scripts/seed_demo.py
Safe to re-run: existing demo users are left alone.
"""
import asyncio
import sys
import os

# Add project root to sys.path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select
from app.core.security import get_password_hash
from app.db.session import async_session_maker, create_all_tables
from app.models.community import Community
from app.models.conversation import Conversation, Message
from app.models.post import Post
from app.models.user import User

DEMO_PASSWORD = "password123"

USERS = [
    ("maya", "maya@verser.dev", "Designer. Coffee first."),
    ("leo", "leo@verser.dev", "Backend tinkerer"),
    ("ivy", "ivy@verser.dev", "Travel + food"),
]

COMMUNITIES = [
    ("Tech Talk", "Gadgets, code and everything between", "fas fa-microchip", "purple"),
    ("Foodies", "Recipes and restaurant finds", "fas fa-utensils", "orange"),
]


async def seed():
    await create_all_tables()
    async with async_session_maker() as session:
        existing = await session.execute(select(User).where(User.username == USERS[0][0]))
        if existing.scalar_one_or_none():
            print("Demo data already present.")
            return

        users = [
            User(username=u, email=e, bio=bio, password_hash=get_password_hash(DEMO_PASSWORD))
            for u, e, bio in USERS
        ]
        communities = [Community(name=n, description=d, icon=i, color=c) for n, d, i, c in COMMUNITIES]
        session.add_all(users + communities)
        await session.flush()

        session.add_all([
            Post(user_id=users[0].id, community_id=communities[0].id, content="Shipped the new dark mode!", tags=["design"], is_trending=True, likes=12),
            Post(user_id=users[2].id, community_id=communities[1].id, content="Best ramen in town?", tags=["food", "ramen"]),
            Post(user_id=users[1].id, content="Realtime chat is live.", tags=["release"]),
        ])
        general = Conversation(name="General", type="group", description="Say hi", member_count=len(users))
        session.add(general)
        await session.flush()
        session.add(Message(conversation_id=general.id, user_id=users[1].id, content="Welcome to Verser!"))
        await session.commit()

    print(f"Seeded {len(USERS)} users (password: {DEMO_PASSWORD}), {len(COMMUNITIES)} communities.")


if __name__ == "__main__":
    asyncio.run(seed())
