"""
WebSocket broadcast hub.
Keeps the set of connected peers and fans events out to them. Each peer has
its own bounded outbound queue and writer task, so one slow socket never holds
up the caller or the other peers.
"""
from __future__ import annotations

import asyncio
import json
import logging
import uuid
from collections.abc import Callable
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class PeerSocket(Protocol):
    async def accept(self) -> None: ...

    async def send_text(self, data: str) -> None: ...


class Peer:
    """One connected client and its outbound queue."""

    def __init__(self, websocket: PeerSocket, queue_size: int) -> None:
        self.id = uuid.uuid4().hex[:12]
        self.websocket = websocket
        self.queue: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_size)
        self._writer: asyncio.Task[None] | None = None

    def start(self, on_failure: Callable[[Peer], None]) -> None:
        self._writer = asyncio.create_task(self._write_loop(on_failure))

    def offer(self, message: str) -> bool:
        try:
            self.queue.put_nowait(message)
        except asyncio.QueueFull:
            return False
        return True

    async def _write_loop(self, on_failure: Callable[[Peer], None]) -> None:
        while True:
            message = await self.queue.get()
            try:
                await self.websocket.send_text(message)
            except Exception as exc:
                logger.info("Send to peer %s failed: %s", self.id, exc)
                on_failure(self)
                return
            finally:
                self.queue.task_done()

    def close(self) -> asyncio.Task[None] | None:
        writer = self._writer
        if writer is not None and writer is not asyncio.current_task():
            writer.cancel()
        # Nothing is owed to a disconnected peer.
        while True:
            try:
                self.queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            self.queue.task_done()
        return writer

    def __repr__(self) -> str:
        return f"<Peer id={self.id}>"


class BroadcastHub:
    """
    Subscriber registry with a publish-to-all primitive.

    Delivery is best effort and at most once per peer: messages are never
    persisted or replayed, and a peer whose queue is full misses the message.
    """

    def __init__(self, queue_size: int = 100) -> None:
        self._queue_size = queue_size
        self._peers: dict[str, Peer] = {}

    async def connect(self, websocket: PeerSocket) -> Peer:
        await websocket.accept()
        peer = Peer(websocket, self._queue_size)
        peer.start(self.disconnect)
        self._peers[peer.id] = peer
        logger.info("Peer connected: %s (%d connected)", peer.id, len(self._peers))
        return peer

    def disconnect(self, peer: Peer) -> None:
        if self._peers.pop(peer.id, None) is None:
            return
        peer.close()
        logger.info("Peer disconnected: %s (%d connected)", peer.id, len(self._peers))

    def is_connected(self, peer: Peer) -> bool:
        return peer.id in self._peers

    def send(self, peer: Peer, event: str, data: Any = None) -> None:
        """Deliver an event to a single peer."""
        if not self.is_connected(peer):
            return
        self._offer(peer, _encode(event, data))

    def broadcast(self, event: str, data: Any = None) -> None:
        """Deliver an event to every connected peer, the originator included."""
        message = _encode(event, data)
        for peer in list(self._peers.values()):
            self._offer(peer, message)

    async def join(self) -> None:
        """
        Wait until every queued message has been handed to its socket.
        A delivery barrier for callers that must observe sends, such as tests;
        the request paths never wait on it.
        """
        await asyncio.gather(*(p.queue.join() for p in list(self._peers.values())))

    async def close(self) -> None:
        """Disconnect every peer and wait for their writers to stop."""
        writers = []
        for peer in list(self._peers.values()):
            self._peers.pop(peer.id, None)
            writer = peer.close()
            if writer is not None:
                writers.append(writer)
        await asyncio.gather(*writers, return_exceptions=True)
        logger.info("Broadcast hub closed")

    def _offer(self, peer: Peer, message: str) -> None:
        if not peer.offer(message):
            logger.warning("Outbound queue full for peer %s, message dropped", peer.id)

    @property
    def connected_peer_count(self) -> int:
        return len(self._peers)


def _encode(event: str, data: Any) -> str:
    return json.dumps({"type": event, "data": data})
