import asyncio
import json
import os
import tempfile
from pathlib import Path

# Settings are read at import time, so the test environment goes in first.
_DB_FILE = Path(tempfile.gettempdir()) / f"verser-test-{os.getpid()}.db"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_FILE}"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["DEBUG"] = "false"
os.environ["RELAY_EXCLUDE_SENDER"] = "true"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from starlette.websockets import WebSocketDisconnect

from app.db.session import async_session_maker, create_all_tables, drop_all_tables
from app.main import app
from app.models.community import Community
from app.models.conversation import Conversation
from app.realtime.relay import Relay


def _run(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@pytest.fixture
def database():
    """Fresh schema for each test that touches the database."""
    _run(drop_all_tables())
    _run(create_all_tables())
    yield
    _run(drop_all_tables())


def pytest_sessionfinish(session, exitstatus):
    if _DB_FILE.exists():
        _DB_FILE.unlink()


@pytest.fixture(autouse=True)
def relay():
    original = app.state.relay
    app.state.relay = Relay(exclude_sender=True, max_envelope_bytes=64 * 1024)
    try:
        yield app.state.relay
    finally:
        app.state.relay = original


@pytest_asyncio.fixture
async def api_client(database):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


async def _register(client: AsyncClient, username: str, password: str = "password123") -> dict:
    resp = await client.post(
        "/api/auth/register",
        json={"username": username, "email": f"{username}@example.com", "password": password},
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    return {
        "id": body["user"]["id"],
        "token": body["accessToken"],
        "headers": {"Authorization": f"Bearer {body['accessToken']}"},
        "user": body["user"],
    }


@pytest_asyncio.fixture
async def alice(api_client):
    return await _register(api_client, "alice")


@pytest_asyncio.fixture
async def bob(api_client):
    return await _register(api_client, "bob")


async def _seed_conversation(name: str = "general", type_: str = "group") -> int:
    async with async_session_maker() as session:
        conversation = Conversation(name=name, type=type_)
        session.add(conversation)
        await session.commit()
        return conversation.id


async def _seed_community(name: str = "Gamers", description: str | None = None) -> int:
    async with async_session_maker() as session:
        community = Community(name=name, description=description)
        session.add(community)
        await session.commit()
        return community.id


@pytest.fixture
def make_user(api_client):
    async def _make(username: str, password: str = "password123") -> dict:
        return await _register(api_client, username, password)

    return _make


@pytest.fixture
def make_conversation(database):
    return _seed_conversation


@pytest.fixture
def make_community(database):
    return _seed_community


class FakeSocket:
    """Stands in for a WebSocket; records every frame the relay sends."""

    def __init__(self, fail: bool = False):
        self.sent: list[str] = []
        self.fail = fail

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise WebSocketDisconnect(code=1006)
        self.sent.append(data)

    @property
    def received(self) -> list[dict]:
        return [json.loads(s) for s in self.sent]


@pytest.fixture
def fake_socket():
    return FakeSocket


@pytest.fixture
def relay_socket(relay):
    socket = FakeSocket()
    relay.connect(socket)
    return socket
