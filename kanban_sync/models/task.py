"""
Task domain model.
Central entity of the board. Held in memory by the TaskRepository and
serialised with camelCase keys for the snapshot file and the wire.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from kanban_sync.models.attachment import Attachment

TASK_STATUSES: tuple[str, ...] = ("to-do", "in-progress", "done")
TASK_PRIORITIES: tuple[str, ...] = ("low", "medium", "high")
TASK_CATEGORIES: tuple[str, ...] = ("bug", "feature", "enhancement")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Task(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str = Field(min_length=1)
    description: str = ""
    status: str = "to-do"
    priority: str = "medium"
    category: str = "feature"
    attachments: list[Attachment] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def touch(self) -> None:
        """Advance updated_at, strictly, even when the clock has not moved."""
        now = utcnow()
        if now <= self.updated_at:
            now = self.updated_at + timedelta(microseconds=1)
        self.updated_at = now

    def find_attachment(self, attachment_id: str) -> Attachment | None:
        for attachment in self.attachments:
            if attachment.id == attachment_id:
                return attachment
        return None

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)

    def __repr__(self) -> str:
        return f"<Task id={self.id} title={self.title!r} status={self.status}>"
