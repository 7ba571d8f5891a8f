"""
FastAPI dependency injection functions.
The components are built by the application lifespan and kept on app.state;
these accessors hand them to HTTP and WebSocket routes alike.
"""
from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from fastapi.requests import HTTPConnection

from kanban_sync.services.attachment_service import AttachmentManager
from kanban_sync.services.task_service import TaskService
from kanban_sync.services.websocket_service import BroadcastHub

__all__ = [
    "get_hub",
    "get_task_service",
    "get_attachment_manager",
    "Hub",
    "Service",
    "Attachments",
]


def get_hub(conn: HTTPConnection) -> BroadcastHub:
    return conn.app.state.hub


def get_task_service(conn: HTTPConnection) -> TaskService:
    return conn.app.state.task_service


def get_attachment_manager(conn: HTTPConnection) -> AttachmentManager:
    return conn.app.state.attachments


# Convenience type aliases for route signatures
Hub = Annotated[BroadcastHub, Depends(get_hub)]
Service = Annotated[TaskService, Depends(get_task_service)]
Attachments = Annotated[AttachmentManager, Depends(get_attachment_manager)]
