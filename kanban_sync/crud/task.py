"""
Task repository.
Sole owner of the in-memory task collection. Every mutation runs under one
asyncio.Lock, covering the read-modify-persist sequence, and ends with a
snapshot write.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any

from kanban_sync.db.snapshot import SnapshotError, SnapshotStore
from kanban_sync.models.attachment import Attachment
from kanban_sync.models.task import Task, utcnow

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"title", "description", "status", "priority", "category"})

EXAMPLE_TASKS: tuple[dict[str, str], ...] = (
    {
        "title": "Implement Login Feature",
        "description": "Create login form with email and password",
        "status": "to-do",
        "priority": "high",
        "category": "feature",
    },
    {
        "title": "Fix Navigation Menu",
        "description": "Menu disappears on mobile view",
        "status": "in-progress",
        "priority": "medium",
        "category": "bug",
    },
    {
        "title": "Add Dark Mode",
        "description": "Implement dark mode toggle",
        "status": "done",
        "priority": "low",
        "category": "enhancement",
    },
)


def _noop_remove(filename: str) -> None:
    pass


class TaskRepository:
    """
    In-memory task store with best-effort JSON persistence.

    Reads return deep copies; the only way to change a task is through the
    async mutation methods.
    """

    def __init__(
        self,
        store: SnapshotStore,
        *,
        remove_file: Callable[[str], None] | None = None,
        seed_examples: bool = True,
    ) -> None:
        self._store = store
        self._remove_file = remove_file or _noop_remove
        self._seed_examples = seed_examples
        self._tasks: dict[str, Task] = {}
        self._lock = asyncio.Lock()

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def load(self) -> None:
        """Load the snapshot, or seed example tasks when there is none or it is corrupt."""
        try:
            tasks = self._store.load()
        except SnapshotError as exc:
            logger.warning("Snapshot unusable, recovered to default: %s", exc)
            tasks = None

        if tasks is not None:
            self._tasks = {t.id: t for t in tasks}
            logger.info("Loaded %d tasks from %s", len(self._tasks), self._store.path)
            return

        self._tasks = {}
        if self._seed_examples:
            for fields in EXAMPLE_TASKS:
                task = Task(**fields)
                self._tasks[task.id] = task
            logger.info("Seeded %d example tasks", len(self._tasks))
        self._write(self._store.dump(list(self._tasks.values())))

    # ── Reads ─────────────────────────────────────────────────────────────────

    def list(self) -> list[Task]:
        return [t.model_copy(deep=True) for t in self._tasks.values()]

    def get(self, task_id: str) -> Task | None:
        task = self._tasks.get(task_id)
        return task.model_copy(deep=True) if task is not None else None

    def __len__(self) -> int:
        return len(self._tasks)

    # ── Mutations ─────────────────────────────────────────────────────────────

    async def create(self, fields: Mapping[str, Any]) -> Task:
        data = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
        async with self._lock:
            task = Task(**data)
            while task.id in self._tasks:
                task = Task(**data)
            now = utcnow()
            task.created_at = now
            task.updated_at = now
            self._tasks[task.id] = task
            await self._persist()
            return task.model_copy(deep=True)

    async def update(self, task_id: str, changes: Mapping[str, Any]) -> Task | None:
        """Merge only the supplied fields. `id` and timestamps cannot be overwritten."""
        data = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
        async with self._lock:
            current = self._tasks.get(task_id)
            if current is None:
                return None
            merged = Task.model_validate({**current.model_dump(), **data, "id": task_id})
            merged.touch()
            self._tasks[task_id] = merged
            await self._persist()
            return merged.model_copy(deep=True)

    async def delete(self, task_id: str) -> bool:
        async with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                return False
            for attachment in task.attachments:
                self._delete_file(attachment)
            del self._tasks[task_id]
            await self._persist()
            return True

    async def add_attachment(self, task_id: str, attachment: Attachment) -> Task | None:
        async with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                return None
            task.attachments.append(attachment)
            task.touch()
            await self._persist()
            return task.model_copy(deep=True)

    async def remove_attachment(self, task_id: str, attachment_id: str) -> Task | None:
        """Returns None when either the task or the attachment is unknown."""
        async with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                return None
            attachment = task.find_attachment(attachment_id)
            if attachment is None:
                return None
            self._delete_file(attachment)
            task.attachments.remove(attachment)
            task.touch()
            await self._persist()
            return task.model_copy(deep=True)

    # ── Internals ─────────────────────────────────────────────────────────────

    def _delete_file(self, attachment: Attachment) -> None:
        try:
            self._remove_file(attachment.filename)
        except OSError:
            logger.exception("Failed to delete attachment file %s", attachment.filename)

    async def _persist(self) -> None:
        # Serialise under the lock, write off the event loop.
        payload = self._store.dump(list(self._tasks.values()))
        await asyncio.to_thread(self._write, payload)

    def _write(self, payload: bytes) -> None:
        try:
            self._store.save(payload)
        except OSError:
            logger.exception("Failed to write snapshot %s", self._store.path)
