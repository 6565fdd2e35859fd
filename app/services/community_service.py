"""Community business logic."""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.community import Community
from app.schemas.community import CommunityCreate, CommunityResponse


async def list_communities(db: AsyncSession) -> list[Community]:
    result = await db.execute(select(Community).order_by(Community.id))
    return list(result.scalars().all())


async def get_community(db: AsyncSession, community_id: int) -> Community | None:
    result = await db.execute(select(Community).where(Community.id == community_id))
    return result.scalar_one_or_none()


async def create_community(db: AsyncSession, data: CommunityCreate) -> Community:
    community = Community(
        name=data.name,
        description=data.description,
        icon=data.icon,
        color=data.color,
        member_count=data.member_count,
        online_count=data.online_count,
    )
    db.add(community)
    await db.flush()
    return community


def community_to_response(community: Community) -> CommunityResponse:
    return CommunityResponse(
        id=community.id,
        name=community.name,
        description=community.description,
        icon=community.icon or "fas fa-users",
        color=community.color or "blue",
        member_count=community.member_count or 0,
        online_count=community.online_count or 0,
        created_at=community.created_at,
    )
