"""
WebSocket endpoint.
On connect the peer receives the full task list ("sync:tasks"); afterwards
it receives every broadcast mutation and may push its own mutations.
Heartbeat pings keep idle connections alive.
"""
from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from kanban_sync.core.dependencies import Hub, Service
from kanban_sync.schemas import message as events
from kanban_sync.services.websocket_service import BroadcastHub, Peer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["WebSocket"])


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, hub: Hub, service: Service) -> None:
    """
    Message envelope, both directions: {"type": ..., "data": ...}.

    The server sends:
        - "sync:tasks" with the task list on connect and on "sync:request".
        - "task:create" / "task:update" / "task:delete" / "task:move" after
          every successful mutation, from any client or the HTTP API.
        - "ping" every WS_HEARTBEAT_INTERVAL seconds.

    The client may send "task:create", "task:update", "task:delete",
    "task:move", "sync:request" and "pong".
    """
    peer = await hub.connect(websocket)
    service.sync(peer)

    interval = websocket.app.state.settings.WS_HEARTBEAT_INTERVAL
    heartbeat_task = asyncio.create_task(_heartbeat(hub, peer, interval))
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            # Text and binary frames carry the same JSON envelope.
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            await service.handle_message(peer, raw)
    except WebSocketDisconnect:
        logger.info("WebSocket client disconnected: peer=%s", peer.id)
    except Exception as exc:
        logger.error("WebSocket error for peer=%s: %s", peer.id, exc)
    finally:
        heartbeat_task.cancel()
        try:
            await heartbeat_task
        except asyncio.CancelledError:
            pass
        hub.disconnect(peer)


async def _heartbeat(hub: BroadcastHub, peer: Peer, interval: float) -> None:
    """Queue periodic pings while the peer stays connected."""
    while hub.is_connected(peer):
        await asyncio.sleep(interval)
        hub.send(peer, events.PING)
