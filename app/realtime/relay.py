"""In-process WebSocket relay.

The relay keeps an explicit registry of open connections and rebroadcasts
every valid envelope it receives to the other connections. It does not
authenticate, route per conversation, or touch the database; durable writes
go through the REST API, which then calls ``Relay.publish`` with the
committed record.
"""
import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Protocol

from starlette.websockets import WebSocket, WebSocketDisconnect

from app.schemas.envelope import (
    EnvelopeBase,
    EnvelopeError,
    JoinEnvelope,
    UserStatusEnvelope,
    dump_envelope,
    parse_envelope,
)

logger = logging.getLogger(__name__)


class Socket(Protocol):
    async def send_text(self, data: str) -> None:
        ...


@dataclass(eq=False)
class RelayConnection:
    socket: Socket
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    user_id: int | None = None  # asserted by a join envelope, never verified
    closed: bool = False


class Relay:
    """Broadcast hub owned by one application instance."""

    def __init__(self, *, exclude_sender: bool = True, max_envelope_bytes: int = 64 * 1024):
        self.exclude_sender = exclude_sender
        self.max_envelope_bytes = max_envelope_bytes
        self._connections: dict[str, RelayConnection] = {}

    def __len__(self) -> int:
        return len(self._connections)

    @property
    def connections(self) -> list[RelayConnection]:
        return list(self._connections.values())

    def connect(self, socket: Socket) -> RelayConnection:
        conn = RelayConnection(socket=socket)
        self._connections[conn.id] = conn
        logger.info("relay: connection %s opened (%d open)", conn.id, len(self._connections))
        return conn

    async def disconnect(self, conn: RelayConnection) -> None:
        if conn.closed:
            return
        conn.closed = True
        self._connections.pop(conn.id, None)
        logger.info("relay: connection %s closed (%d open)", conn.id, len(self._connections))
        if conn.user_id is not None:
            await self.publish(UserStatusEnvelope(user_id=conn.user_id, status="offline"))

    async def receive(self, conn: RelayConnection, raw: str | bytes) -> bool:
        """Handle one inbound frame. Returns True when it was rebroadcast."""
        size = len(raw) if isinstance(raw, bytes) else len(raw.encode("utf-8"))
        if size > self.max_envelope_bytes:
            logger.warning("relay: dropping %d byte frame from %s (limit %d)", size, conn.id, self.max_envelope_bytes)
            return False
        try:
            data = json.loads(raw)
        except (ValueError, RecursionError):
            logger.warning("relay: dropping malformed JSON from %s", conn.id)
            return False
        try:
            envelope = parse_envelope(data)
        except EnvelopeError as exc:
            logger.warning("relay: dropping envelope from %s: %s", conn.id, exc)
            return False

        if envelope is None:
            logger.debug("relay: passing through unknown envelope type %r", data["type"])

        await self.broadcast(data, exclude=conn if self.exclude_sender else None)

        if isinstance(envelope, JoinEnvelope):
            conn.user_id = envelope.user_id
            await self.broadcast(
                dump_envelope(UserStatusEnvelope(user_id=envelope.user_id, status="online")),
                exclude=conn,
            )
        return True

    async def publish(self, envelope: EnvelopeBase | dict[str, Any]) -> int:
        """Broadcast a server-originated envelope to every open connection."""
        payload = dump_envelope(envelope) if isinstance(envelope, EnvelopeBase) else envelope
        return await self.broadcast(payload)

    async def broadcast(self, payload: dict[str, Any], exclude: RelayConnection | None = None) -> int:
        text = json.dumps(payload)
        delivered = 0
        for conn in self.connections:
            if conn is exclude:
                continue
            try:
                await conn.socket.send_text(text)
            except (WebSocketDisconnect, RuntimeError, OSError) as exc:
                logger.warning("relay: send to %s failed, dropping connection: %r", conn.id, exc)
                self._connections.pop(conn.id, None)
                continue
            delivered += 1
        return delivered

    async def serve(self, websocket: WebSocket) -> None:
        """Accept a socket and pump its frames until it closes."""
        await websocket.accept()
        conn = self.connect(websocket)
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                raw = message.get("text")
                if raw is None:
                    raw = message.get("bytes") or b""
                await self.receive(conn, raw)
        except WebSocketDisconnect:
            pass
        finally:
            await self.disconnect(conn)
