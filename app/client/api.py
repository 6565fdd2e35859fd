"""Async client for the Verser REST API.

Every call sends ``Authorization: Bearer <token>`` when the token store
holds one. A 401 evicts the stored token and raises ``AuthError``; any other
non-2xx response raises ``ApiError``. Nothing is retried.
"""
import logging
from typing import Any

import httpx

from app.client.tokens import MemoryTokenStore, TokenStore
from app.core.config import settings

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, status_code: int, detail: Any = None):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}")


class AuthError(ApiError):
    """The server rejected the credentials; the stored token has been evicted."""


def key_path(key: tuple) -> str:
    """``("/api/conversations", 1, "messages")`` -> ``/api/conversations/1/messages``."""
    head, *rest = key
    return "/".join([str(head).rstrip("/"), *(str(part) for part in rest)])


class PersistenceClient:
    def __init__(
        self,
        base_url: str | None = None,
        *,
        token_store: TokenStore | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.CLIENT_BASE_URL).rstrip("/")
        self.tokens = token_store if token_store is not None else MemoryTokenStore()
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.CLIENT_REQUEST_TIMEOUT,
            transport=transport,
        )

    async def __aenter__(self) -> "PersistenceClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # --- helpers ---
    def _headers(self) -> dict[str, str]:
        token = self.tokens.load()
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def request(self, method: str, path: str, *, json: Any = None, params: dict | None = None) -> Any:
        resp = await self._http.request(method, path, json=json, params=params, headers=self._headers())
        if resp.status_code == 401:
            logger.info("api: %s %s -> 401, evicting stored token", method, path)
            self.tokens.clear()
            raise AuthError(401, _detail(resp))
        if resp.is_error:
            raise ApiError(resp.status_code, _detail(resp))
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    async def get(self, path: str, params: dict | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def patch(self, path: str, json: Any = None) -> Any:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def fetch(self, key: tuple) -> Any:
        """GET the resource a cache key names."""
        return await self.get(key_path(key))

    # --- auth ---
    async def register(self, username: str, email: str, password: str) -> dict:
        data = await self.post("/api/auth/register", {"username": username, "email": email, "password": password})
        self.tokens.save(data["accessToken"])
        return data

    async def login(self, email: str, password: str) -> dict:
        data = await self.post("/api/auth/login", {"email": email, "password": password})
        self.tokens.save(data["accessToken"])
        return data

    async def logout(self) -> None:
        try:
            await self.post("/api/auth/logout")
        finally:
            self.tokens.clear()

    async def me(self) -> dict:
        return await self.get("/api/auth/me")

    # --- resources ---
    async def send_message(self, conversation_id: int, content: str, user_id: int | None = None) -> dict:
        payload: dict[str, Any] = {"conversationId": conversation_id, "content": content}
        if user_id is not None:
            payload["userId"] = user_id
        return await self.post("/api/messages", payload)

    async def get_messages(self, conversation_id: int) -> list[dict]:
        return await self.get(f"/api/conversations/{conversation_id}/messages")

    async def create_post(self, content: str, **fields: Any) -> dict:
        return await self.post("/api/posts", {"content": content, **fields})

    async def like_post(self, post_id: int) -> dict:
        return await self.post(f"/api/posts/{post_id}/like")

    async def search(self, q: str) -> dict:
        return await self.get("/api/search", params={"q": q})

    async def unread_notifications(self) -> int:
        data = await self.get("/api/notifications/unread-count")
        return data["count"]


def _detail(resp: httpx.Response) -> Any:
    try:
        body = resp.json()
    except ValueError:
        return resp.text
    return body.get("detail", body) if isinstance(body, dict) else body
