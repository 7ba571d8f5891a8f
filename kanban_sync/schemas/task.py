"""
Task Pydantic schemas.
Request bodies shared by the HTTP routes and the WebSocket message handlers,
so both transports accept exactly the same payloads.
"""
from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from kanban_sync.models.task import Task

TaskStatus = Literal["to-do", "in-progress", "done"]
TaskPriority = Literal["low", "medium", "high"]
TaskCategory = Literal["bug", "feature", "enhancement"]


# ── Create ────────────────────────────────────────────────────────────────────

class TaskCreate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str = Field(min_length=1, max_length=500)
    description: str = Field(default="", max_length=10000)
    status: TaskStatus = "to-do"
    priority: TaskPriority = "medium"
    category: TaskCategory = "feature"


# ── Update ────────────────────────────────────────────────────────────────────

class TaskUpdate(BaseModel):
    """Partial update. Unknown keys (including `id`) are ignored."""

    model_config = ConfigDict(extra="ignore")

    title: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = Field(default=None, max_length=10000)
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    category: TaskCategory | None = None

    def changes(self) -> dict[str, str]:
        data = self.model_dump(exclude_unset=True, exclude_none=True)
        return {k: v for k, v in data.items() if k in TaskUpdate.model_fields}


# ── Move ──────────────────────────────────────────────────────────────────────

class TaskMove(BaseModel):
    # Any value is accepted here; TaskService checks it against the lane set
    # so that a missing or unknown lane is a 400 on both transports.
    status: Any = None


# ── Responses ─────────────────────────────────────────────────────────────────

class MessageResponse(BaseModel):
    message: str


class TaskMessageResponse(MessageResponse):
    task: Task


# ── WebSocket payloads ────────────────────────────────────────────────────────

class TaskRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)


class TaskUpdateMessage(TaskUpdate):
    id: str = Field(min_length=1)


class TaskMoveMessage(TaskMove):
    id: str = Field(min_length=1)
