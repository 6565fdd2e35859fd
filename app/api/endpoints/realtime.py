"""Realtime relay socket."""
from fastapi import APIRouter, WebSocket

from app.core.config import settings

router = APIRouter(tags=["realtime"])


@router.websocket(settings.RELAY_PATH)
async def relay_socket(websocket: WebSocket):
    await websocket.app.state.relay.serve(websocket)
