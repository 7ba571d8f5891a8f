"""
Attachment domain model.
Metadata for a file stored by the AttachmentManager. Owned by exactly one task.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Attachment(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    filename: str
    original_name: str
    mime_type: str
    size: int = Field(ge=0)
    path: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def __repr__(self) -> str:
        return f"<Attachment id={self.id} filename={self.filename!r}>"
