"""Message creation: persist, then publish through the relay."""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_current_user, get_relay
from app.models.user import User
from app.realtime.relay import Relay
from app.schemas.conversation import MessageCreate, MessageResponse
from app.schemas.envelope import NewMessageEnvelope
from app.services.conversation_service import create_message, get_conversation, message_to_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["messages"])


async def send_message(
    data: MessageCreate,
    current_user: User,
    db: AsyncSession,
    relay: Relay,
) -> MessageResponse:
    if data.user_id is not None and data.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot post as another user")
    if not await get_conversation(db, data.conversation_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")
    message = await create_message(
        db,
        conversation_id=data.conversation_id,
        user_id=current_user.id,
        content=data.content,
        message_type=data.type,
    )
    await db.commit()
    response = message_to_response(message)
    delivered = await relay.publish(NewMessageEnvelope(message=response, user=response.user))
    logger.debug("message %s published to %d connection(s)", message.id, delivered)
    return response


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def create_message_endpoint(
    data: MessageCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    relay: Relay = Depends(get_relay),
):
    return await send_message(data, current_user, db, relay)
