"""Conversation, message and chat-request business logic."""
from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.conversation import ChatRequest, Conversation, Message
from app.models.user import User
from app.schemas.conversation import (
    ChatRequestResponse,
    ConversationCreate,
    ConversationResponse,
    MessageResponse,
)
from app.services.auth_service import user_to_public


async def list_conversations(db: AsyncSession, *, skip: int = 0, limit: int = 50) -> list[Conversation]:
    result = await db.execute(
        select(Conversation).order_by(desc(Conversation.created_at), desc(Conversation.id)).offset(skip).limit(limit)
    )
    return list(result.scalars().all())


async def get_conversation(db: AsyncSession, conversation_id: int) -> Conversation | None:
    result = await db.execute(select(Conversation).where(Conversation.id == conversation_id))
    return result.scalar_one_or_none()


async def create_conversation(db: AsyncSession, data: ConversationCreate, creator: User) -> Conversation:
    conversation = Conversation(
        name=data.name or f"{creator.username}'s chat",
        type=data.type,
        avatar=data.avatar,
        description=data.description,
        member_count=1,
    )
    db.add(conversation)
    await db.flush()
    return conversation


async def list_messages(db: AsyncSession, conversation_id: int) -> list[Message]:
    """Messages of one conversation, oldest first, each with its author."""
    result = await db.execute(
        select(Message)
        .where(Message.conversation_id == conversation_id)
        .order_by(Message.created_at, Message.id)
        .options(selectinload(Message.user))
    )
    return list(result.scalars().all())


async def create_message(
    db: AsyncSession,
    *,
    conversation_id: int,
    user_id: int,
    content: str,
    message_type: str = "text",
) -> Message:
    message = Message(
        conversation_id=conversation_id,
        user_id=user_id,
        content=content,
        type=message_type,
    )
    db.add(message)
    await db.flush()
    result = await db.execute(
        select(Message)
        .where(Message.id == message.id)
        .options(selectinload(Message.user))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def list_pending_chat_requests(db: AsyncSession, receiver_id: int) -> list[ChatRequest]:
    result = await db.execute(
        select(ChatRequest)
        .where(ChatRequest.receiver_id == receiver_id, ChatRequest.status == "pending")
        .order_by(desc(ChatRequest.created_at), desc(ChatRequest.id))
        .options(selectinload(ChatRequest.sender))
    )
    return list(result.scalars().all())


async def get_chat_request(db: AsyncSession, request_id: int, *, reload: bool = False) -> ChatRequest | None:
    stmt = (
        select(ChatRequest)
        .where(ChatRequest.id == request_id)
        .options(selectinload(ChatRequest.sender), selectinload(ChatRequest.receiver))
    )
    if reload:
        stmt = stmt.execution_options(populate_existing=True)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def create_chat_request(db: AsyncSession, sender: User, receiver_id: int, content: str) -> ChatRequest:
    chat_request = ChatRequest(sender_id=sender.id, receiver_id=receiver_id, content=content)
    db.add(chat_request)
    await db.flush()
    return await get_chat_request(db, chat_request.id, reload=True)


async def accept_chat_request(db: AsyncSession, chat_request: ChatRequest) -> tuple[Conversation, Message]:
    """Open a direct conversation seeded with the request's text as first message."""
    chat_request.status = "accepted"
    conversation = Conversation(
        name=f"{chat_request.sender.username} & {chat_request.receiver.username}",
        type="direct",
        member_count=2,
    )
    db.add(conversation)
    await db.flush()
    message = await create_message(
        db,
        conversation_id=conversation.id,
        user_id=chat_request.sender_id,
        content=chat_request.content,
    )
    return conversation, message


def conversation_to_response(conversation: Conversation) -> ConversationResponse:
    return ConversationResponse(
        id=conversation.id,
        name=conversation.name,
        type=conversation.type or "group",
        avatar=conversation.avatar,
        description=conversation.description,
        member_count=conversation.member_count or 0,
        created_at=conversation.created_at,
    )


def message_to_response(message: Message) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        conversation_id=message.conversation_id,
        user_id=message.user_id,
        content=message.content,
        type=message.type or "text",
        created_at=message.created_at,
        user=user_to_public(message.user) if message.user else None,
    )


def chat_request_to_response(chat_request: ChatRequest) -> ChatRequestResponse:
    return ChatRequestResponse(
        id=chat_request.id,
        sender_id=chat_request.sender_id,
        receiver_id=chat_request.receiver_id,
        content=chat_request.content,
        status=chat_request.status,
        created_at=chat_request.created_at,
        sender=user_to_public(chat_request.sender) if chat_request.sender else None,
    )
