"""One signed-in client: token, REST client, cache, realtime socket, poller."""
import logging
from collections.abc import Callable
from typing import Any

from app.client.api import AuthError, PersistenceClient
from app.client.cache import Key, NotificationPoller, QueryCache
from app.client.invalidation import InvalidationBinder, messages_key
from app.client.realtime import RealtimeClient
from app.client.tokens import TokenStore
from app.core.config import settings

logger = logging.getLogger(__name__)

LANDING = "landing"
HOME = "home"


def relay_url(base_url: str, path: str | None = None) -> str:
    """``http://host:8000`` -> ``ws://host:8000/ws``."""
    if base_url.startswith("https://"):
        base = "wss://" + base_url[len("https://"):]
    elif base_url.startswith("http://"):
        base = "ws://" + base_url[len("http://"):]
    else:
        base = base_url
    return base.rstrip("/") + (path or settings.RELAY_PATH)


class ClientSession:
    def __init__(
        self,
        api: PersistenceClient | None = None,
        *,
        token_store: TokenStore | None = None,
        cache: QueryCache | None = None,
        realtime_factory: Callable[[str], RealtimeClient] | None = None,
        poll_interval: float | None = None,
    ):
        self.api = api or PersistenceClient(token_store=token_store)
        self.cache = cache or QueryCache()
        self.binder = InvalidationBinder(self.cache)
        self.poller = NotificationPoller(self.cache, poll_interval)
        self._realtime_factory = realtime_factory or RealtimeClient
        self.realtime: RealtimeClient | None = None
        self.user: dict | None = None
        self.view = LANDING

    async def bootstrap(self) -> dict | None:
        """Resolve the stored token to a user. Falls back to the landing view."""
        if not self.api.tokens.load():
            self._signed_out()
            return None
        try:
            user = await self.api.me()
        except AuthError:
            logger.info("session: stored token rejected")
            self._signed_out()
            return None
        self._signed_in(user)
        return user

    async def login(self, email: str, password: str) -> dict:
        data = await self.api.login(email, password)
        self._signed_in(data["user"])
        return data["user"]

    async def logout(self) -> None:
        await self.close()
        await self.api.logout()
        self._signed_out()

    def _signed_in(self, user: dict) -> None:
        self.user = user
        self.view = HOME

    def _signed_out(self) -> None:
        self.user = None
        self.view = LANDING

    async def connect_realtime(self) -> bool:
        self.realtime = self._realtime_factory(relay_url(self.api.base_url))
        self.realtime.add_listener(self.binder)
        if not await self.realtime.connect():
            return False
        if self.user is not None:
            await self.realtime.join(self.user["id"])
        return True

    def start_polling(self) -> None:
        self.poller.start()

    async def query(self, key: Key) -> Any:
        return await self.cache.query(key, lambda: self.api.fetch(key))

    async def messages(self, conversation_id: int) -> list[dict]:
        return await self.query(messages_key(conversation_id))

    async def send_chat_message(self, conversation_id: int, content: str) -> dict:
        """Persist first; the committed record then drives invalidation."""
        user_id = self.user["id"] if self.user else None
        message = await self.api.send_message(conversation_id, content, user_id=user_id)
        self.binder({"type": "new_message", "message": message})
        return message

    async def close(self) -> None:
        await self.poller.stop()
        if self.realtime is not None:
            await self.realtime.close()
            self.realtime = None

    async def aclose(self) -> None:
        await self.close()
        await self.api.aclose()
