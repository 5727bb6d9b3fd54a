# server/api/v1/websocket.py
"""
WebSocket API for real-time dashboard updates

Observers keep a socket open and receive
{"event": "resource_update", "data": {"resource": ..., "timestamp": ...}}
whenever a resource list changes, then re-fetch that list themselves.
Delivery is best-effort and at-most-once: there is no replay, a client that
was disconnected re-fetches everything after reconnecting.
"""

import asyncio
import json
import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from core.domain_events import EventTypes, resource_update_payload
from core.errors import PanelError
from core.events import Event, EventBus
from core.security import decode_access_token
from database.models import ResourceKind

logger = logging.getLogger(__name__)

router = APIRouter(tags=["WebSocket"])

# Close code sent when the token query parameter does not verify
AUTH_FAILED_CLOSE_CODE = 4001

# A client slower than this on one message is dropped
SEND_TIMEOUT_SECONDS = 2.0


@dataclass
class ConnectedObserver:
    websocket: WebSocket
    username: str
    connected_at: datetime = field(default_factory=datetime.utcnow)
    last_ping: datetime = field(default_factory=datetime.utcnow)


class WebSocketManager:
    """
    Tracks dashboard connections and fans events out to all of them
    """

    def __init__(self, send_timeout: float = SEND_TIMEOUT_SECONDS):
        self._connections: Dict[int, ConnectedObserver] = {}
        self._lock = asyncio.Lock()
        self.send_timeout = send_timeout

    @property
    def connected_count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket, username: str) -> int:
        await websocket.accept()
        key = id(websocket)
        async with self._lock:
            self._connections[key] = ConnectedObserver(websocket=websocket, username=username)
        logger.info(f"Observer connected: {username} (total: {self.connected_count})")
        return key

    async def disconnect(self, key: int) -> None:
        async with self._lock:
            observer = self._connections.pop(key, None)
        if observer:
            logger.info(f"Observer disconnected: {observer.username} (total: {self.connected_count})")

    def touch(self, key: int) -> None:
        if key in self._connections:
            self._connections[key].last_ping = datetime.utcnow()

    async def broadcast(self, message: dict) -> int:
        """Send to every observer; returns how many received it"""
        async with self._lock:
            targets = list(self._connections.items())

        sent_count = 0
        for key, observer in targets:
            try:
                await asyncio.wait_for(observer.websocket.send_json(message), timeout=self.send_timeout)
                sent_count += 1
            except Exception as e:
                logger.warning(f"Broadcast failed for {observer.username}: {e}")
                await self.disconnect(key)
        return sent_count

    async def on_resource_update(self, event: Event) -> None:
        """EventBus handler: push resource_update to every observer"""
        sent = await self.broadcast({"event": EventTypes.RESOURCE_UPDATE, "data": event.payload})
        logger.debug(f"Pushed resource_update({event.payload.get('resource')}) to {sent} observers")


async def demo_heartbeat(event_bus: EventBus, interval: float) -> None:
    """Emit a simulated resource_update for a random kind every `interval` seconds"""
    kinds = list(ResourceKind)
    while True:
        await asyncio.sleep(interval)
        kind = random.choice(kinds)
        await event_bus.emit(EventTypes.RESOURCE_UPDATE, resource_update_payload(kind.value), source="heartbeat")


@router.websocket("/ws")
async def observer_websocket(
    websocket: WebSocket,
    token: Optional[str] = Query(None, description="Bearer token from /api/login"),
):
    """
    Messages from server:
    - {"event": "resource_update", "data": {...}}
    - {"type": "pong"}

    Messages from client:
    - {"type": "ping"}
    """
    settings = websocket.app.state.settings
    manager: WebSocketManager = websocket.app.state.ws_manager

    try:
        principal = decode_access_token(token or "", settings.SECRET_KEY)
    except PanelError:
        await websocket.close(code=AUTH_FAILED_CLOSE_CODE, reason="Authentication failed")
        return

    key = await manager.connect(websocket, principal.username)
    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                logger.warning(f"Invalid JSON from {principal.username}: {data[:100]}")
                continue

            if isinstance(message, dict) and message.get("type") == "ping":
                manager.touch(key)
                await websocket.send_json({"type": "pong"})

    except WebSocketDisconnect:
        pass
    finally:
        await manager.disconnect(key)
