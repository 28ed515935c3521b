"""Tests for notes.storage: in-memory and JSON file repositories."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from notes.config import Settings
from notes.errors import StorageError
from notes.models import Note
from notes.repository import NoteRepository
from notes.search import SearchQuery
from notes.storage import FileNoteRepository, InMemoryNoteRepository, create_repository

BASE_TIME = datetime(2025, 1, 1, tzinfo=UTC)


def _note(
    title: str,
    body: str = "body",
    tags: list[str] | None = None,
    minutes: int = 0,
    note_id: str | None = None,
) -> Note:
    return Note.create(
        title=title,
        body=body,
        tags=tags,
        now=BASE_TIME + timedelta(minutes=minutes),
        id_factory=(lambda: note_id) if note_id else None,
    )


@pytest.fixture(params=["memory", "file"])
def repo(request, tmp_path: Path) -> NoteRepository:
    """Each contract test runs against both implementations."""
    if request.param == "memory":
        return InMemoryNoteRepository()
    return FileNoteRepository(storage_path=tmp_path / "notes.json")


# ===================================================================
# Shared repository contract
# ===================================================================


class TestRepositoryContract:
    @pytest.mark.asyncio
    async def test_save_then_find_by_id_roundtrip(self, repo: NoteRepository) -> None:
        note = _note("Design", "outline", ["arch", "draft"])
        await repo.save(note)
        assert await repo.find_by_id(note.id) == note

    @pytest.mark.asyncio
    async def test_find_by_id_missing_returns_none(self, repo: NoteRepository) -> None:
        await repo.save(_note("A"))
        assert await repo.find_by_id("missing") is None

    @pytest.mark.asyncio
    async def test_find_all_empty(self, repo: NoteRepository) -> None:
        assert await repo.find_all() == []

    @pytest.mark.asyncio
    async def test_find_all_oldest_first(self, repo: NoteRepository) -> None:
        third = _note("C", minutes=20)
        first = _note("A", minutes=0)
        second = _note("B", minutes=10)
        for note in (third, first, second):
            await repo.save(note)
        assert [n.title for n in await repo.find_all()] == ["A", "B", "C"]

    @pytest.mark.asyncio
    async def test_save_replaces_same_id(self, repo: NoteRepository) -> None:
        await repo.save(_note("Old", note_id="n1"))
        await repo.save(_note("Other", note_id="n2", minutes=5))
        await repo.save(_note("New", note_id="n1"))

        notes = await repo.find_all()
        assert len(notes) == 2
        assert (await repo.find_by_id("n1")).title == "New"

    @pytest.mark.asyncio
    async def test_search_blank_query_returns_empty(self, repo: NoteRepository) -> None:
        await repo.save(_note("Design"))
        assert await repo.search(SearchQuery()) == []
        assert await repo.search(SearchQuery(text="  ", tag="")) == []

    @pytest.mark.asyncio
    async def test_search_text_title_or_body(self, repo: NoteRepository) -> None:
        await repo.save(_note("Meeting notes", "Discuss roadmap", minutes=0))
        await repo.save(_note("Shopping list", "Buy milk", minutes=1))
        assert [n.title for n in await repo.search(SearchQuery(text="meeting"))] == [
            "Meeting notes"
        ]
        assert [n.title for n in await repo.search(SearchQuery(text="MILK"))] == [
            "Shopping list"
        ]
        assert await repo.search(SearchQuery(text="xyz")) == []

    @pytest.mark.asyncio
    async def test_search_tag_substring(self, repo: NoteRepository) -> None:
        await repo.save(_note("A", tags=["python"], minutes=0))
        await repo.save(_note("B", tags=["rust"], minutes=1))
        await repo.save(_note("C", tags=["Python", "web"], minutes=2))
        assert [n.title for n in await repo.search(SearchQuery(tag="python"))] == ["A", "C"]
        assert [n.title for n in await repo.search(SearchQuery(tag="yth"))] == ["A", "C"]
        assert await repo.search(SearchQuery(tag="go")) == []

    @pytest.mark.asyncio
    async def test_search_text_and_tag(self, repo: NoteRepository) -> None:
        await repo.save(_note("Python tips", "comprehensions", ["python"], minutes=0))
        await repo.save(_note("Python jobs", "hiring", ["career"], minutes=1))
        results = await repo.search(SearchQuery(text="python", tag="python"))
        assert [n.title for n in results] == ["Python tips"]

    @pytest.mark.asyncio
    async def test_naive_and_aware_timestamps_sort_together(self, repo: NoteRepository) -> None:
        await repo.save(Note.create(title="Later", body="b"))
        await repo.save(Note.create(title="Earlier", body="b", now=datetime(2025, 1, 1)))

        assert [n.title for n in await repo.find_all()] == ["Earlier", "Later"]
        assert [n.title for n in await repo.search(SearchQuery(text="er"))] == [
            "Earlier",
            "Later",
        ]


# ===================================================================
# File-backed specifics
# ===================================================================


class TestFileNoteRepository:
    @pytest.mark.asyncio
    async def test_missing_file_created_on_first_read(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "dir" / "notes.json"
        repo = FileNoteRepository(storage_path=path)
        assert not path.exists()

        assert await repo.find_all() == []

        assert path.exists()
        assert json.loads(path.read_text(encoding="utf-8")) == []

    @pytest.mark.asyncio
    async def test_blank_search_does_not_touch_disk(self, tmp_path: Path) -> None:
        path = tmp_path / "notes.json"
        repo = FileNoteRepository(storage_path=path)
        assert await repo.search(SearchQuery()) == []
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_persisted_layout(self, tmp_path: Path) -> None:
        path = tmp_path / "notes.json"
        repo = FileNoteRepository(storage_path=path)
        await repo.save(_note("Design", "outline", ["arch"], note_id="n1"))

        data = json.loads(path.read_text(encoding="utf-8"))
        assert isinstance(data, list)
        assert len(data) == 1
        doc = data[0]
        assert doc["id"] == "n1"
        assert doc["title"] == "Design"
        assert doc["body"] == "outline"
        assert doc["tags"] == ["arch"]
        assert datetime.fromisoformat(doc["createdAt"]) == BASE_TIME
        assert datetime.fromisoformat(doc["updatedAt"]) == BASE_TIME

    @pytest.mark.asyncio
    async def test_persistence_across_instances(self, tmp_path: Path) -> None:
        path = tmp_path / "persist.json"
        note = _note("Persist", "This should survive reload", ["test"])
        await FileNoteRepository(storage_path=path).save(note)

        reloaded = FileNoteRepository(storage_path=path)
        assert await reloaded.find_all() == [note]

    @pytest.mark.asyncio
    async def test_reads_documents_written_elsewhere(self, tmp_path: Path) -> None:
        path = tmp_path / "notes.json"
        path.write_text(
            json.dumps(
                [
                    {
                        "id": "b",
                        "title": "Second",
                        "body": "x",
                        "tags": [],
                        "createdAt": "2025-01-02T00:00:00.000Z",
                        "updatedAt": "2025-01-02T00:00:00.000Z",
                    },
                    {
                        "id": "a",
                        "title": "First",
                        "body": "y",
                        "tags": ["t"],
                        "createdAt": "2025-01-01T00:00:00.000Z",
                        "updatedAt": "2025-01-01T00:00:00.000Z",
                    },
                ]
            ),
            encoding="utf-8",
        )
        repo = FileNoteRepository(storage_path=path)
        assert [n.id for n in await repo.find_all()] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_offsetless_document_sorts_with_new_notes(self, tmp_path: Path) -> None:
        path = tmp_path / "notes.json"
        path.write_text(
            json.dumps(
                [
                    {
                        "id": "old",
                        "title": "Imported",
                        "body": "x",
                        "tags": [],
                        "createdAt": "2025-01-01T00:00:00",
                        "updatedAt": "2025-01-01T00:00:00",
                    }
                ]
            ),
            encoding="utf-8",
        )
        repo = FileNoteRepository(storage_path=path)
        fresh = Note.create(title="Fresh", body="y")
        await repo.save(fresh)

        assert [n.id for n in await repo.find_all()] == ["old", fresh.id]

    @pytest.mark.asyncio
    async def test_corrupt_json_raises_storage_error(self, tmp_path: Path) -> None:
        path = tmp_path / "notes.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError):
            await FileNoteRepository(storage_path=path).find_all()

    @pytest.mark.asyncio
    async def test_non_array_raises_storage_error(self, tmp_path: Path) -> None:
        path = tmp_path / "notes.json"
        path.write_text('{"notes": []}', encoding="utf-8")
        with pytest.raises(StorageError):
            await FileNoteRepository(storage_path=path).find_all()

    @pytest.mark.asyncio
    async def test_missing_fields_raise_storage_error(self, tmp_path: Path) -> None:
        path = tmp_path / "notes.json"
        path.write_text('[{"id": "n1"}]', encoding="utf-8")
        with pytest.raises(StorageError):
            await FileNoteRepository(storage_path=path).find_all()

    @pytest.mark.asyncio
    async def test_unreadable_path_raises_storage_error(self, tmp_path: Path) -> None:
        path = tmp_path / "is_a_directory"
        path.mkdir()
        repo = FileNoteRepository(storage_path=path)
        with pytest.raises(StorageError) as exc_info:
            await repo.find_all()
        assert isinstance(exc_info.value.__cause__, OSError)

    @pytest.mark.asyncio
    async def test_failed_save_leaves_file_untouched(self, tmp_path: Path) -> None:
        path = tmp_path / "notes.json"
        path.write_text("garbage", encoding="utf-8")
        with pytest.raises(StorageError):
            await FileNoteRepository(storage_path=path).save(_note("A"))
        assert path.read_text(encoding="utf-8") == "garbage"


# ===================================================================
# create_repository
# ===================================================================


class TestCreateRepository:
    def test_memory_backend(self) -> None:
        repo = create_repository(Settings(storage_backend="memory"))
        assert isinstance(repo, InMemoryNoteRepository)

    def test_file_backend(self, tmp_path: Path) -> None:
        path = tmp_path / "notes.json"
        repo = create_repository(Settings(storage_backend="file", data_file=path))
        assert isinstance(repo, FileNoteRepository)
        assert repo.path == path
