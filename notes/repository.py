"""Storage-agnostic interface for persisting notes."""

from __future__ import annotations

from abc import ABC, abstractmethod

from notes.models import Note
from notes.search import SearchQuery


class NoteRepository(ABC):
    """Interface for note storage and retrieval."""

    @abstractmethod
    async def save(self, note: Note) -> None:
        """Insert the note, or replace the stored note with the same id."""

    @abstractmethod
    async def find_all(self) -> list[Note]:
        """Return every note, oldest ``created_at`` first."""

    @abstractmethod
    async def find_by_id(self, note_id: str) -> Note | None:
        """Return the note with this id, or ``None``."""

    @abstractmethod
    async def search(self, query: SearchQuery) -> list[Note]:
        """Return matching notes in ``find_all`` order; ``[]`` for a blank query."""
