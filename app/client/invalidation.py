"""Which cache keys each realtime envelope makes stale.

``keys_for`` is the pure mapping; ``InvalidationBinder`` applies it to a
``QueryCache`` and drops repeat deliveries of the same record.
"""
import logging
from collections import OrderedDict
from collections.abc import Callable
from typing import Any

from app.client.cache import Key, QueryCache

logger = logging.getLogger(__name__)

CONVERSATIONS: Key = ("/api/conversations",)
POSTS: Key = ("/api/posts",)
USERS: Key = ("/api/users",)
COMMUNITIES = "/api/communities"


def _get(obj: Any, camel: str, snake: str) -> Any:
    if not isinstance(obj, dict):
        return None
    return obj.get(camel, obj.get(snake))


def messages_key(conversation_id: Any) -> Key:
    return (CONVERSATIONS[0], conversation_id, "messages")


def _new_message(env: dict) -> list[Key]:
    cid = _get(env.get("message"), "conversationId", "conversation_id")
    if cid is None:
        return [CONVERSATIONS]
    return [messages_key(cid), CONVERSATIONS]


def _send_message(env: dict) -> list[Key]:
    cid = _get(env, "conversationId", "conversation_id")
    return [messages_key(cid)] if cid is not None else []


def _new_post(env: dict) -> list[Key]:
    post = env.get("post")
    keys = [POSTS]
    community_id = _get(post, "communityId", "community_id")
    if community_id is not None:
        keys.append((COMMUNITIES, community_id, "posts"))
    user_id = _get(post, "userId", "user_id")
    if user_id is not None:
        keys.append((USERS[0], user_id, "posts"))
    return keys


def _users(env: dict) -> list[Key]:
    return [USERS]


def _nothing(env: dict) -> list[Key]:
    return []


RULES: dict[str, Callable[[dict], list[Key]]] = {
    "new_message": _new_message,
    "send_message": _send_message,
    "new_post": _new_post,
    "user_status": _users,
    "join": _users,
    "typing": _nothing,
    "user_typing": _nothing,
}

# kinds carrying a server-assigned record id: (type, record field)
RECORD_FIELDS = {"new_message": "message", "new_post": "post"}


def keys_for(envelope: dict) -> list[Key]:
    """Cache keys an envelope invalidates; unknown kinds map to none."""
    rule = RULES.get(envelope.get("type"))
    return rule(envelope) if rule else []


def record_id(envelope: dict) -> tuple[str, Any] | None:
    field = RECORD_FIELDS.get(envelope.get("type"))
    if field is None:
        return None
    record = envelope.get(field)
    rid = record.get("id") if isinstance(record, dict) else None
    return (envelope["type"], rid) if rid is not None else None


class InvalidationBinder:
    """Realtime listener that invalidates the cache, once per record id."""

    def __init__(self, cache: QueryCache, max_seen: int = 1000):
        self.cache = cache
        self.max_seen = max_seen
        # oldest ids fall out first
        self._seen: OrderedDict[tuple[str, Any], None] = OrderedDict()

    def __call__(self, envelope: dict) -> list[Key]:
        rid = record_id(envelope)
        if rid is not None:
            if rid in self._seen:
                logger.debug("invalidation: duplicate %s %s ignored", *rid)
                return []
            self._seen[rid] = None
            if len(self._seen) > self.max_seen:
                self._seen.popitem(last=False)
        keys = keys_for(envelope)
        if keys:
            self.cache.invalidate(*keys)
        return keys
