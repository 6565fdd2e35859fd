"""Realtime client for the relay socket.

State runs ``connecting -> connected -> disconnected`` or ends in ``error``.
There is no reconnect; build a new client to try again.
"""
import asyncio
import json
import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

import websockets
from websockets.exceptions import ConnectionClosed, ConnectionClosedError, WebSocketException

from app.schemas.envelope import (
    EnvelopeBase,
    JoinEnvelope,
    TypingEnvelope,
    dump_envelope,
    parse_envelope,
)

logger = logging.getLogger(__name__)

Listener = Callable[[dict], Any]


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"


class RealtimeClient:
    def __init__(self, url: str, *, connect: Callable[[str], Any] | None = None):
        self.url = url
        self._connect = connect or websockets.connect
        self._ws = None
        self._reader: asyncio.Task | None = None
        self._listeners: list[Listener] = []
        self._state_listeners: list[Callable[[ConnectionState], Any]] = []
        self.state = ConnectionState.CONNECTING
        self.last_message: dict | None = None
        self._unread: dict | None = None

    @property
    def connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with every inbound envelope. Returns an unsubscribe."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def on_state_change(self, listener: Callable[[ConnectionState], Any]) -> None:
        self._state_listeners.append(listener)

    def _set_state(self, state: ConnectionState) -> None:
        if state is self.state:
            return
        logger.info("realtime: %s -> %s", self.state.value, state.value)
        self.state = state
        for listener in list(self._state_listeners):
            listener(state)

    async def connect(self) -> bool:
        if self.state is not ConnectionState.CONNECTING:
            raise RuntimeError(f"cannot connect from state {self.state.value!r}")
        try:
            self._ws = await self._connect(self.url)
        except (OSError, asyncio.TimeoutError, WebSocketException) as exc:
            logger.warning("realtime: connect to %s failed: %r", self.url, exc)
            self._set_state(ConnectionState.ERROR)
            return False
        self._set_state(ConnectionState.CONNECTED)
        self._reader = asyncio.get_running_loop().create_task(self._read_loop())
        return True

    async def _read_loop(self) -> None:
        try:
            async for frame in self._ws:
                self.handle_frame(frame)
        except (ConnectionClosedError, OSError) as exc:
            logger.warning("realtime: connection lost: %r", exc)
            self._set_state(ConnectionState.ERROR)
            return
        except Exception:
            logger.exception("realtime: reader stopped")
            self._set_state(ConnectionState.ERROR)
            return
        if self.state is ConnectionState.CONNECTED:
            self._set_state(ConnectionState.DISCONNECTED)

    def handle_frame(self, frame: str | bytes) -> dict | None:
        """Decode one inbound frame and fan it out. Bad frames are logged and skipped."""
        try:
            data = json.loads(frame)
            parse_envelope(data)
        except (ValueError, RecursionError) as exc:
            logger.warning("realtime: skipping bad frame: %s", exc)
            return None
        self.last_message = data
        self._unread = data
        for listener in list(self._listeners):
            try:
                listener(data)
            except Exception:
                logger.exception("realtime: listener failed on %s envelope", data.get("type"))
        return data

    def next_message(self) -> dict | None:
        """The most recent envelope since the previous call; older ones are lost."""
        data, self._unread = self._unread, None
        return data

    async def send(self, envelope: EnvelopeBase | dict) -> bool:
        """Send when connected. Otherwise a no-op returning False."""
        if not self.connected or self._ws is None:
            return False
        payload = dump_envelope(envelope) if isinstance(envelope, EnvelopeBase) else envelope
        try:
            await self._ws.send(json.dumps(payload))
        except (ConnectionClosed, OSError) as exc:
            logger.warning("realtime: send failed: %r", exc)
            self._set_state(ConnectionState.ERROR)
            return False
        return True

    async def join(self, user_id: int) -> bool:
        return await self.send(JoinEnvelope(user_id=user_id))

    async def typing(self, user_id: int, conversation_id: int, is_typing: bool = True) -> bool:
        return await self.send(TypingEnvelope(user_id=user_id, conversation_id=conversation_id, is_typing=is_typing))

    async def close(self) -> None:
        if self.state is ConnectionState.CONNECTED:
            self._set_state(ConnectionState.DISCONNECTED)
        if self._ws is not None:
            await self._ws.close()
        if self._reader is not None:
            await asyncio.gather(self._reader, return_exceptions=True)
            self._reader = None
