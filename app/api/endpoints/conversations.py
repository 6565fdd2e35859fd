"""Conversations, their messages, and chat requests."""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_current_user, get_relay
from app.api.endpoints.messages import send_message
from app.models.user import User
from app.realtime.relay import Relay
from app.schemas.conversation import (
    ChatRequestAccepted,
    ChatRequestCreate,
    ChatRequestResponse,
    ConversationCreate,
    ConversationResponse,
    MessageCreate,
    MessageResponse,
)
from app.schemas.envelope import NewMessageEnvelope
from app.services.auth_service import get_user_by_id
from app.services import conversation_service
from app.services.notification_service import create_notification

router = APIRouter(prefix="/conversations", tags=["conversations"])


@router.get("", response_model=list[ConversationResponse])
async def list_conversations(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    conversations = await conversation_service.list_conversations(db, skip=skip, limit=limit)
    return [conversation_service.conversation_to_response(c) for c in conversations]


@router.post("", response_model=ConversationResponse, status_code=status.HTTP_201_CREATED)
async def create_conversation(
    data: ConversationCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    conversation = await conversation_service.create_conversation(db, data, current_user)
    await db.commit()
    return conversation_service.conversation_to_response(conversation)


@router.get("/chat-requests", response_model=list[ChatRequestResponse])
async def list_chat_requests(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    requests = await conversation_service.list_pending_chat_requests(db, current_user.id)
    return [conversation_service.chat_request_to_response(r) for r in requests]


@router.post("/chat-requests", response_model=ChatRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_chat_request(
    data: ChatRequestCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if data.receiver_id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot send a chat request to yourself")
    if not await get_user_by_id(db, data.receiver_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    chat_request = await conversation_service.create_chat_request(db, current_user, data.receiver_id, data.content)
    await create_notification(
        db,
        user_id=data.receiver_id,
        actor_id=current_user.id,
        notification_type="chat_request",
        text=f"{current_user.username} wants to chat with you",
    )
    await db.commit()
    return conversation_service.chat_request_to_response(chat_request)


async def _pending_request_for(db: AsyncSession, request_id: int, receiver: User):
    chat_request = await conversation_service.get_chat_request(db, request_id)
    if not chat_request or chat_request.receiver_id != receiver.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat request not found")
    if chat_request.status != "pending":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Chat request already handled")
    return chat_request


@router.post("/chat-requests/{request_id}/accept", response_model=ChatRequestAccepted)
async def accept_chat_request(
    request_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    relay: Relay = Depends(get_relay),
):
    chat_request = await _pending_request_for(db, request_id, current_user)
    conversation, message = await conversation_service.accept_chat_request(db, chat_request)
    await db.commit()
    response = conversation_service.message_to_response(message)
    await relay.publish(NewMessageEnvelope(message=response, user=response.user))
    return ChatRequestAccepted(conversation_id=conversation.id)


@router.post("/chat-requests/{request_id}/reject", response_model=ChatRequestResponse)
async def reject_chat_request(
    request_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    chat_request = await _pending_request_for(db, request_id, current_user)
    chat_request.status = "rejected"
    await db.commit()
    return conversation_service.chat_request_to_response(chat_request)


@router.get("/{conversation_id}/messages", response_model=list[MessageResponse])
async def list_messages(
    conversation_id: int,
    db: AsyncSession = Depends(get_db),
):
    if not await conversation_service.get_conversation(db, conversation_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")
    messages = await conversation_service.list_messages(db, conversation_id)
    return [conversation_service.message_to_response(m) for m in messages]


@router.post("/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def create_message(
    data: MessageCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    relay: Relay = Depends(get_relay),
):
    return await send_message(data, current_user, db, relay)
