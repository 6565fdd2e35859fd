import asyncio
import json

import pytest

from app.client.realtime import ConnectionState, RealtimeClient


class FakeConnection:
    """Minimal stand-in for a websockets client connection."""

    def __init__(self):
        self.sent: list[str] = []
        self.incoming: asyncio.Queue = asyncio.Queue()
        self.closed = False

    async def send(self, data: str) -> None:
        self.sent.append(data)

    def feed(self, item) -> None:
        self.incoming.put_nowait(item)

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self.incoming.get()
        if item is None:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True
        self.feed(None)


def _client(conn: FakeConnection) -> RealtimeClient:
    async def connect(url):
        return conn

    return RealtimeClient("ws://testserver/ws", connect=connect)


async def _drain():
    for _ in range(5):
        await asyncio.sleep(0)


async def test_send_before_connect_is_a_noop():
    client = _client(FakeConnection())
    assert client.state is ConnectionState.CONNECTING
    assert await client.send({"type": "join", "userId": 1}) is False


async def test_connect_then_send():
    conn = FakeConnection()
    client = _client(conn)
    states = []
    client.on_state_change(states.append)

    assert await client.connect() is True
    assert client.connected
    assert await client.join(7) is True
    assert json.loads(conn.sent[0]) == {"type": "join", "userId": 7}

    await client.close()
    assert states == [ConnectionState.CONNECTED, ConnectionState.DISCONNECTED]
    assert await client.send({"type": "join", "userId": 7}) is False


async def test_failed_connect_ends_in_error():
    async def refuse(url):
        raise ConnectionRefusedError("nope")

    client = RealtimeClient("ws://testserver/ws", connect=refuse)
    assert await client.connect() is False
    assert client.state is ConnectionState.ERROR
    assert await client.send({"type": "join", "userId": 1}) is False
    with pytest.raises(RuntimeError):
        await client.connect()


async def test_inbound_frames_reach_listeners_and_lossy_slot():
    conn = FakeConnection()
    client = _client(conn)
    seen = []
    client.add_listener(seen.append)
    await client.connect()

    conn.feed("{not json")
    conn.feed(json.dumps({"type": "user_status", "userId": 1, "status": "online"}))
    conn.feed(json.dumps({"type": "confetti"}))
    await _drain()

    assert [e["type"] for e in seen] == ["user_status", "confetti"]
    assert client.last_message == {"type": "confetti"}
    assert client.next_message() == {"type": "confetti"}
    assert client.next_message() is None
    assert client.connected

    await client.close()


async def test_lost_connection_moves_to_error():
    conn = FakeConnection()
    client = _client(conn)
    await client.connect()

    conn.feed(ConnectionResetError("reset by peer"))
    await _drain()

    assert client.state is ConnectionState.ERROR
    assert await client.send({"type": "join", "userId": 1}) is False


async def test_server_close_moves_to_disconnected():
    conn = FakeConnection()
    client = _client(conn)
    await client.connect()

    conn.feed(None)
    await _drain()

    assert client.state is ConnectionState.DISCONNECTED
    assert await client.send({"type": "join", "userId": 1}) is False
    assert await client.typing(1, 2) is False
    assert conn.sent == []


async def test_send_after_close_is_a_noop():
    conn = FakeConnection()
    client = _client(conn)
    await client.connect()
    await client.close()

    assert client.state is ConnectionState.DISCONNECTED
    assert await client.send({"type": "join", "userId": 1}) is False
    assert conn.sent == []


async def test_deeply_nested_frame_is_skipped_and_reader_keeps_going():
    conn = FakeConnection()
    client = _client(conn)
    await client.connect()

    conn.feed("[" * 20000)
    conn.feed(json.dumps({"type": "user_typing", "userId": 2, "conversationId": 3, "isTyping": True}))
    await _drain()

    assert client.connected
    assert client.last_message["type"] == "user_typing"

    await client.close()


async def test_failing_listener_does_not_stop_other_listeners_or_reader():
    conn = FakeConnection()
    client = _client(conn)
    seen = []

    def explode(envelope):
        raise KeyError("boom")

    client.add_listener(explode)
    client.add_listener(seen.append)
    await client.connect()

    conn.feed(json.dumps({"type": "confetti", "n": 1}))
    conn.feed(json.dumps({"type": "confetti", "n": 2}))
    await _drain()

    assert [e["n"] for e in seen] == [1, 2]
    assert client.connected

    await client.close()


async def test_unexpected_reader_failure_moves_to_error():
    conn = FakeConnection()
    client = _client(conn)
    await client.connect()

    conn.feed(RuntimeError("decoder blew up"))
    await _drain()

    assert client.state is ConnectionState.ERROR
    assert await client.send({"type": "join", "userId": 1}) is False
