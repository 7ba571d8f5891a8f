"""
JSON snapshot storage.
The whole task collection is one JSON array on disk, replaced on every write.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from kanban_sync.models.task import Task

logger = logging.getLogger(__name__)

_tasks_adapter = TypeAdapter(list[Task])


class SnapshotError(Exception):
    """The snapshot exists but cannot be read or does not have the task shape."""


class SnapshotStore:
    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> list[Task] | None:
        """
        Read the snapshot. Returns None when there is no snapshot yet.
        Raises SnapshotError when the file is unreadable or malformed.
        """
        if not self.exists():
            return None
        try:
            raw = self.path.read_bytes()
        except OSError as exc:
            raise SnapshotError(f"cannot read {self.path}: {exc}") from exc
        try:
            tasks = _tasks_adapter.validate_json(raw)
        except ValidationError as exc:
            raise SnapshotError(f"invalid snapshot {self.path}: {exc}") from exc

        ids = [t.id for t in tasks]
        if len(ids) != len(set(ids)):
            raise SnapshotError(f"invalid snapshot {self.path}: duplicate task ids")
        return tasks

    def save(self, payload: bytes) -> None:
        """Atomically replace the snapshot with already serialised bytes."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        with open(tmp, "wb") as f:
            f.write(payload)
        os.replace(tmp, self.path)

    @staticmethod
    def dump(tasks: list[Task]) -> bytes:
        return _tasks_adapter.dump_json(tasks, by_alias=True, indent=2)
