"""Note repositories: process memory and a local JSON file."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import anyio

from notes.config import Settings
from notes.errors import StorageError
from notes.models import Note
from notes.repository import NoteRepository
from notes.search import SearchQuery, is_blank, matches

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_PATH = Path("data") / "notes.json"


def _oldest_first(notes: list[Note]) -> list[Note]:
    return sorted(notes, key=lambda note: note.created_at)


def _replace_or_append(notes: list[Note], note: Note) -> None:
    for index, stored in enumerate(notes):
        if stored.id == note.id:
            notes[index] = note
            return
    notes.append(note)


class InMemoryNoteRepository(NoteRepository):
    """Keeps notes in process memory. Everything is lost on restart."""

    def __init__(self) -> None:
        self._notes: list[Note] = []

    async def save(self, note: Note) -> None:
        _replace_or_append(self._notes, note)

    async def find_all(self) -> list[Note]:
        return _oldest_first(self._notes)

    async def find_by_id(self, note_id: str) -> Note | None:
        return next((n for n in self._notes if n.id == note_id), None)

    async def search(self, query: SearchQuery) -> list[Note]:
        if is_blank(query):
            return []
        return [n for n in await self.find_all() if matches(n, query)]


class FileNoteRepository(NoteRepository):
    """Persists notes as one JSON array in a local file.

    The file is created (with its parent directory) the first time it is
    read. Every save rewrites the whole document without locking, so a file
    must only be written by a single process.
    """

    def __init__(self, storage_path: Path = DEFAULT_STORAGE_PATH) -> None:
        self._path = anyio.Path(storage_path)

    @property
    def path(self) -> Path:
        return Path(self._path)

    async def _initialise(self) -> None:
        """Create an empty note file."""
        try:
            await self._path.parent.mkdir(parents=True, exist_ok=True)
            await self._path.write_text("[]", encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Cannot create note file {self._path}: {exc}") from exc
        logger.info("No storage file found at %s, created an empty one", self._path)

    async def _load(self) -> list[Note]:
        """Read every note from disk."""
        try:
            raw = await self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            await self._initialise()
            return []
        except OSError as exc:
            raise StorageError(f"Cannot read note file {self._path}: {exc}") from exc

        try:
            documents = json.loads(raw)
            if not isinstance(documents, list):
                raise TypeError(f"expected a JSON array, got {type(documents).__name__}")
            return [Note.from_document(document) for document in documents]
        except (ValueError, KeyError, TypeError) as exc:
            logger.error("Failed to load notes from %s: %s", self._path, exc)
            raise StorageError(f"Note file {self._path} is corrupt: {exc}") from exc

    async def _persist(self, notes: list[Note]) -> None:
        """Write the full note set to disk."""
        content = json.dumps(
            [note.to_document() for note in notes], indent=2, ensure_ascii=False
        )
        try:
            await self._path.parent.mkdir(parents=True, exist_ok=True)
            await self._path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Cannot write note file {self._path}: {exc}") from exc

    async def save(self, note: Note) -> None:
        notes = await self._load()
        _replace_or_append(notes, note)
        await self._persist(notes)
        logger.info("Saved note %s to %s (%d total)", note.id, self._path, len(notes))

    async def find_all(self) -> list[Note]:
        return _oldest_first(await self._load())

    async def find_by_id(self, note_id: str) -> Note | None:
        return next((n for n in await self._load() if n.id == note_id), None)

    async def search(self, query: SearchQuery) -> list[Note]:
        if is_blank(query):
            return []
        return [n for n in await self.find_all() if matches(n, query)]


def create_repository(settings: Settings) -> NoteRepository:
    """Build the repository selected by ``settings.storage_backend``."""
    if settings.storage_backend == "memory":
        logger.info("Using in-memory note storage")
        return InMemoryNoteRepository()
    logger.info("Using file note storage at %s", settings.data_file)
    return FileNoteRepository(settings.data_file)
