"""
TaskRepository tests.
Covers: defaults, id stability, partial updates, concurrent writers,
attachment file cascade, snapshot persistence and recovery.
"""
from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from kanban_sync.crud.task import TaskRepository
from kanban_sync.db.snapshot import SnapshotStore
from kanban_sync.models.attachment import Attachment
from kanban_sync.services.attachment_service import AttachmentManager

pytestmark = pytest.mark.asyncio


def _repository(path: Path, **kwargs) -> TaskRepository:
    kwargs.setdefault("seed_examples", False)
    repo = TaskRepository(SnapshotStore(path), **kwargs)
    repo.load()
    return repo


def _attachment(upload_dir: Path, name: str) -> Attachment:
    upload_dir.mkdir(parents=True, exist_ok=True)
    (upload_dir / name).write_bytes(b"data")
    return Attachment(
        filename=name,
        original_name=name,
        mime_type="image/png",
        size=4,
        path=f"/uploads/{name}",
    )


class TestLoad:
    async def test_missing_snapshot_seeds_examples(self, tmp_path: Path) -> None:
        path = tmp_path / "tasks.json"
        repo = _repository(path, seed_examples=True)
        tasks = repo.list()
        assert [t.status for t in tasks] == ["to-do", "in-progress", "done"]
        assert path.exists()
        assert len(json.loads(path.read_text())) == 3

    async def test_snapshot_is_loaded_verbatim(self, tmp_path: Path) -> None:
        path = tmp_path / "tasks.json"
        first = _repository(path)
        created = await first.create({"title": "Persist me", "priority": "high"})

        second = _repository(path)
        loaded = second.get(created.id)
        assert loaded is not None
        assert loaded.title == "Persist me"
        assert loaded.created_at == created.created_at
        assert loaded.updated_at == created.updated_at

    async def test_corrupt_snapshot_recovers_to_examples(self, tmp_path: Path) -> None:
        path = tmp_path / "tasks.json"
        path.write_text("{ not json")
        repo = _repository(path, seed_examples=True)
        assert len(repo) == 3
        assert len(json.loads(path.read_text())) == 3

    async def test_wrong_shape_snapshot_recovers(self, tmp_path: Path) -> None:
        path = tmp_path / "tasks.json"
        path.write_text(json.dumps([{"description": "no title"}]))
        repo = _repository(path)
        assert repo.list() == []


class TestCreate:
    async def test_defaults_applied(self, tmp_path: Path) -> None:
        repo = _repository(tmp_path / "tasks.json")
        task = await repo.create({"title": "A"})
        assert task.description == ""
        assert task.status == "to-do"
        assert task.priority == "medium"
        assert task.category == "feature"
        assert task.attachments == []
        assert task.created_at == task.updated_at

    async def test_ids_unique_and_stable(self, tmp_path: Path) -> None:
        repo = _repository(tmp_path / "tasks.json")
        created = [await repo.create({"title": f"T{i}"}) for i in range(10)]
        ids = [t.id for t in created]
        assert len(set(ids)) == 10
        assert [t.id for t in repo.list()] == ids
        for task in created:
            assert repo.get(task.id).title == task.title

    async def test_supplied_id_is_ignored(self, tmp_path: Path) -> None:
        repo = _repository(tmp_path / "tasks.json")
        task = await repo.create({"title": "A", "id": "chosen"})
        assert task.id != "chosen"

    async def test_returned_copies_do_not_leak(self, tmp_path: Path) -> None:
        repo = _repository(tmp_path / "tasks.json")
        task = await repo.create({"title": "A"})
        task.title = "mutated outside"
        assert repo.get(task.id).title == "A"


class TestUpdate:
    async def test_merges_only_supplied_fields(self, tmp_path: Path) -> None:
        repo = _repository(tmp_path / "tasks.json")
        task = await repo.create({"title": "A", "description": "keep", "priority": "low"})
        updated = await repo.update(task.id, {"priority": "high", "id": "other"})
        assert updated.id == task.id
        assert updated.priority == "high"
        assert updated.description == "keep"
        assert updated.title == "A"
        assert updated.created_at == task.created_at
        assert updated.updated_at > task.updated_at

    async def test_unknown_task(self, tmp_path: Path) -> None:
        repo = _repository(tmp_path / "tasks.json")
        assert await repo.update("missing", {"title": "X"}) is None

    async def test_concurrent_updates_both_apply(self, tmp_path: Path) -> None:
        repo = _repository(tmp_path / "tasks.json")
        task = await repo.create({"title": "A"})
        await asyncio.gather(
            repo.update(task.id, {"title": "X"}),
            repo.update(task.id, {"priority": "high"}),
        )
        final = repo.get(task.id)
        assert final.title == "X"
        assert final.priority == "high"

    async def test_snapshot_write_failure_keeps_state(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        repo = TaskRepository(SnapshotStore(blocker / "tasks.json"), seed_examples=False)
        repo.load()
        task = await repo.create({"title": "Still here"})
        assert repo.get(task.id) is not None


class TestDelete:
    async def test_delete_removes_attachment_files(self, tmp_path: Path) -> None:
        upload_dir = tmp_path / "uploads"
        manager = AttachmentManager(upload_dir)
        repo = _repository(tmp_path / "tasks.json", remove_file=manager.remove)
        task = await repo.create({"title": "With files"})
        for name in ("a.png", "b.png", "c.pdf"):
            await repo.add_attachment(task.id, _attachment(upload_dir, name))

        assert await repo.delete(task.id) is True
        assert list(upload_dir.iterdir()) == []
        assert repo.get(task.id) is None

    async def test_file_deletion_failure_does_not_abort(self, tmp_path: Path) -> None:
        def failing_remove(filename: str) -> None:
            raise PermissionError(filename)

        path = tmp_path / "tasks.json"
        repo = _repository(path, remove_file=failing_remove)
        task = await repo.create({"title": "Doomed"})
        await repo.add_attachment(task.id, _attachment(tmp_path / "uploads", "a.png"))

        assert await repo.delete(task.id) is True
        assert repo.get(task.id) is None
        assert json.loads(path.read_text()) == []

    async def test_unknown_task(self, tmp_path: Path) -> None:
        repo = _repository(tmp_path / "tasks.json")
        assert await repo.delete("missing") is False


class TestAttachments:
    async def test_add_then_remove(self, tmp_path: Path) -> None:
        upload_dir = tmp_path / "uploads"
        removed: list[str] = []
        repo = _repository(tmp_path / "tasks.json", remove_file=removed.append)
        task = await repo.create({"title": "A"})
        attachment = _attachment(upload_dir, "a.png")

        with_file = await repo.add_attachment(task.id, attachment)
        assert [a.id for a in with_file.attachments] == [attachment.id]
        assert with_file.updated_at > task.updated_at

        without = await repo.remove_attachment(task.id, attachment.id)
        assert without.attachments == []
        assert without.updated_at > with_file.updated_at
        assert removed == ["a.png"]

    async def test_attachment_order_preserved(self, tmp_path: Path) -> None:
        upload_dir = tmp_path / "uploads"
        repo = _repository(tmp_path / "tasks.json")
        task = await repo.create({"title": "A"})
        names = ["1.png", "2.png", "3.png"]
        for name in names:
            await repo.add_attachment(task.id, _attachment(upload_dir, name))
        assert [a.filename for a in repo.get(task.id).attachments] == names

    async def test_remove_unknown_attachment(self, tmp_path: Path) -> None:
        removed: list[str] = []
        repo = _repository(tmp_path / "tasks.json", remove_file=removed.append)
        task = await repo.create({"title": "A"})
        assert await repo.remove_attachment(task.id, "missing") is None
        assert await repo.remove_attachment("missing", "missing") is None
        assert removed == []

    async def test_add_to_unknown_task(self, tmp_path: Path) -> None:
        repo = _repository(tmp_path / "tasks.json")
        attachment = _attachment(tmp_path / "uploads", "a.png")
        assert await repo.add_attachment("missing", attachment) is None
