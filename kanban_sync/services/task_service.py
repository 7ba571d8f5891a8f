"""
Task mutation service.
The single place where task mutations are validated, applied and broadcast.
HTTP routes and WebSocket messages both go through these methods, so the two
transports accept and reject exactly the same things.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import UploadFile
from pydantic import ValidationError

from kanban_sync.core.exceptions import BadRequestException, KanbanException, NotFoundException
from kanban_sync.crud.task import TaskRepository
from kanban_sync.models.attachment import Attachment
from kanban_sync.models.task import TASK_STATUSES, Task
from kanban_sync.schemas import message as events
from kanban_sync.schemas.message import PushMessage
from kanban_sync.schemas.task import (
    TaskCreate,
    TaskMoveMessage,
    TaskRef,
    TaskUpdate,
    TaskUpdateMessage,
)
from kanban_sync.services.attachment_service import AttachmentManager
from kanban_sync.services.websocket_service import BroadcastHub, Peer

logger = logging.getLogger(__name__)


class TaskService:

    def __init__(
        self,
        repository: TaskRepository,
        hub: BroadcastHub,
        attachments: AttachmentManager,
    ) -> None:
        self.repository = repository
        self.hub = hub
        self.attachments = attachments
        self._handlers: dict[str, Callable[[Peer, Any], Awaitable[None]]] = {
            events.TASK_CREATE: self._on_create,
            events.TASK_UPDATE: self._on_update,
            events.TASK_DELETE: self._on_delete,
            events.TASK_MOVE: self._on_move,
            events.SYNC_REQUEST: self._on_sync_request,
            events.PONG: self._on_pong,
        }

    # ── Reads ─────────────────────────────────────────────────────────────────

    def list_tasks(self) -> list[Task]:
        return self.repository.list()

    def get_task(self, task_id: str) -> Task:
        task = self.repository.get(task_id)
        if task is None:
            raise NotFoundException("Task", task_id)
        return task

    def sync(self, peer: Peer) -> None:
        """Send the full task list to one peer."""
        self.hub.send(peer, events.SYNC_TASKS, [t.to_wire() for t in self.repository.list()])

    # ── Mutations ─────────────────────────────────────────────────────────────

    async def create_task(self, task_in: TaskCreate) -> Task:
        task = await self.repository.create(task_in.model_dump())
        logger.info("Task created: %s %r", task.id, task.title)
        self.hub.broadcast(events.TASK_CREATE, task.to_wire())
        return task

    async def update_task(self, task_id: str, task_in: TaskUpdate) -> Task:
        task = await self.repository.update(task_id, task_in.changes())
        if task is None:
            raise NotFoundException("Task", task_id)
        self.hub.broadcast(events.TASK_UPDATE, task.to_wire())
        return task

    async def delete_task(self, task_id: str) -> None:
        if not await self.repository.delete(task_id):
            raise NotFoundException("Task", task_id)
        logger.info("Task deleted: %s", task_id)
        self.hub.broadcast(events.TASK_DELETE, {"id": task_id})

    async def move_task(self, task_id: str, status: Any) -> Task:
        """Move a task to another lane. Unknown lanes are a 400 on every transport."""
        if status not in TASK_STATUSES:
            raise BadRequestException("Invalid status value")
        task = await self.repository.update(task_id, {"status": status})
        if task is None:
            raise NotFoundException("Task", task_id)
        self.hub.broadcast(events.TASK_MOVE, task.to_wire())
        return task

    async def add_attachment(
        self, task_id: str, upload: UploadFile
    ) -> tuple[Attachment, Task]:
        attachment = await self.attachments.store(upload)
        task = await self.repository.add_attachment(task_id, attachment)
        if task is None:
            self.attachments.remove(attachment.filename)
            raise NotFoundException("Task", task_id)
        self.hub.broadcast(events.TASK_UPDATE, task.to_wire())
        return attachment, task

    async def remove_attachment(self, task_id: str, attachment_id: str) -> Task:
        task = await self.repository.remove_attachment(task_id, attachment_id)
        if task is None:
            raise NotFoundException("Task or attachment")
        self.hub.broadcast(events.TASK_UPDATE, task.to_wire())
        return task

    # ── Push messages ─────────────────────────────────────────────────────────

    async def handle_message(self, peer: Peer, raw: str | bytes) -> None:
        """
        Apply one client frame. Never raises: bad frames and failed
        mutations are logged and dropped, and the sender only observes
        success through the resulting broadcast.
        """
        try:
            msg = PushMessage.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as exc:
            logger.warning("Dropping malformed message from peer %s: %s", peer.id, exc)
            return

        handler = self._handlers.get(msg.type)
        if handler is None:
            logger.warning("Dropping unknown message type %r from peer %s", msg.type, peer.id)
            return

        try:
            await handler(peer, msg.data)
        except ValidationError as exc:
            logger.warning(
                "Dropping invalid %s from peer %s: %d validation error(s)",
                msg.type,
                peer.id,
                exc.error_count(),
            )
        except KanbanException as exc:
            logger.warning("Dropping %s from peer %s: %s", msg.type, peer.id, exc.detail)
        except Exception:
            logger.exception("Error handling %s from peer %s", msg.type, peer.id)

    async def _on_create(self, peer: Peer, data: Any) -> None:
        await self.create_task(TaskCreate.model_validate(data))

    async def _on_update(self, peer: Peer, data: Any) -> None:
        body = TaskUpdateMessage.model_validate(data)
        await self.update_task(body.id, body)

    async def _on_delete(self, peer: Peer, data: Any) -> None:
        await self.delete_task(TaskRef.model_validate(data).id)

    async def _on_move(self, peer: Peer, data: Any) -> None:
        body = TaskMoveMessage.model_validate(data)
        await self.move_task(body.id, body.status)

    async def _on_sync_request(self, peer: Peer, data: Any) -> None:
        self.sync(peer)

    async def _on_pong(self, peer: Peer, data: Any) -> None:
        logger.debug("Received pong from peer %s", peer.id)
