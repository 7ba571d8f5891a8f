"""
Domain model package. Import all models here so callers can use
`from kanban_sync.models import Task`.
"""
from kanban_sync.models.attachment import Attachment  # noqa: F401
from kanban_sync.models.task import (  # noqa: F401
    TASK_CATEGORIES,
    TASK_PRIORITIES,
    TASK_STATUSES,
    Task,
)
