from app.schemas.user import (
    UserCreate,
    UserSettingsUpdate,
    UserResponse,
    UserPublic,
    Token,
    LoginRequest,
)
from app.schemas.conversation import ConversationCreate, ConversationResponse, MessageCreate, MessageResponse
from app.schemas.community import CommunityCreate, CommunityResponse
from app.schemas.post import PostCreate, PostResponse
from app.schemas.envelope import Envelope, parse_envelope
