"""
WebSocket envelope.
Every frame in either direction is {"type": <event>, "data": <payload>}.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

# ── Event names ───────────────────────────────────────────────────────────────
TASK_CREATE = "task:create"
TASK_UPDATE = "task:update"
TASK_DELETE = "task:delete"
TASK_MOVE = "task:move"
SYNC_REQUEST = "sync:request"
SYNC_TASKS = "sync:tasks"
PING = "ping"
PONG = "pong"


class PushMessage(BaseModel):
    type: str = Field(min_length=1)
    data: Any = None
