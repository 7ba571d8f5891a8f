"""
Attachment Pydantic schemas.
"""
from __future__ import annotations

from pydantic import BaseModel

from kanban_sync.models.attachment import Attachment
from kanban_sync.models.task import Task


class AttachmentUploadResponse(BaseModel):
    attachment: Attachment
    task: Task
