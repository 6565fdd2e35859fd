"""API router aggregation."""
from fastapi import APIRouter

from app.api.endpoints import auth, users, conversations, messages, communities, posts, search, notifications

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(conversations.router)
api_router.include_router(messages.router)
api_router.include_router(communities.router)
api_router.include_router(posts.router)
api_router.include_router(search.router, prefix="/search", tags=["search"])
api_router.include_router(notifications.router)
