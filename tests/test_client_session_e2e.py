import json
from datetime import timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport

from app.client.api import ApiError, AuthError, PersistenceClient
from app.client.invalidation import messages_key
from app.client.realtime import RealtimeClient
from app.client.session import HOME, LANDING, ClientSession, relay_url
from app.client.tokens import MemoryTokenStore
from app.core.security import create_access_token
from app.main import app


def _api(token: str | None = None) -> PersistenceClient:
    return PersistenceClient(
        "http://testserver",
        token_store=MemoryTokenStore(token),
        transport=ASGITransport(app=app),
    )


@pytest_asyncio.fixture
async def session_factory(database):
    sessions: list[ClientSession] = []

    def _make(token: str | None = None) -> ClientSession:
        session = ClientSession(_api(token))
        sessions.append(session)
        return session

    yield _make
    for session in sessions:
        await session.aclose()


async def test_message_from_one_client_refreshes_the_other(session_factory, make_conversation, relay_socket):
    a, b = session_factory(), session_factory()
    await a.api.register("alice", "alice@example.com", "password123")
    await b.api.register("bob", "bob@example.com", "password123")
    assert (await a.bootstrap())["username"] == "alice"
    assert (await b.bootstrap())["username"] == "bob"
    assert a.view == b.view == HOME
    cid = await make_conversation()

    assert await b.messages(cid) == []

    b_socket = RealtimeClient(relay_url(b.api.base_url))
    b_socket.add_listener(b.binder)

    sent = await a.send_chat_message(cid, "hi")
    assert sent["content"] == "hi"
    assert sent["userId"] == a.user["id"]

    [frame] = relay_socket.sent
    assert json.loads(frame)["type"] == "new_message"
    b_socket.handle_frame(frame)
    b_socket.handle_frame(frame)
    await b.cache.settle()

    entry = b.cache.entry(messages_key(cid))
    assert [m["content"] for m in entry.data] == ["hi"]
    assert entry.invalidations == 1
    assert entry.fetches == 2


async def test_expired_token_falls_back_to_landing(session_factory, alice):
    expired = create_access_token(alice["id"], expires_delta=timedelta(minutes=-1))
    session = session_factory(expired)

    assert await session.bootstrap() is None
    assert session.view == LANDING
    assert session.user is None
    assert session.api.tokens.load() is None


async def test_bootstrap_without_token_skips_the_request(session_factory):
    session = session_factory()
    assert await session.bootstrap() is None
    assert session.view == LANDING


async def test_login_and_logout(session_factory, alice):
    session = session_factory()
    user = await session.login("alice@example.com", "password123")
    assert user["id"] == alice["id"]
    assert session.view == HOME
    assert session.api.tokens.load()

    await session.logout()
    assert session.view == LANDING
    assert session.api.tokens.load() is None


async def test_api_errors(session_factory, alice):
    session = session_factory(alice["token"])

    with pytest.raises(ApiError) as exc_info:
        await session.api.get("/api/users/999")
    assert exc_info.value.status_code == 404
    assert exc_info.value.detail == "User not found"

    with pytest.raises(AuthError):
        await session.api.login("alice@example.com", "wrong-password")
    assert session.api.tokens.load() is None


def test_relay_url():
    assert relay_url("http://localhost:8000") == "ws://localhost:8000/ws"
    assert relay_url("https://verser.example/") == "wss://verser.example/ws"
