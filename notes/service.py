"""Use cases for creating, listing and searching notes."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime

from notes.metrics import NOTE_OPERATIONS, SEARCH_REQUESTS
from notes.models import Note
from notes.repository import NoteRepository
from notes.search import SearchQuery, is_valid, normalize

logger = logging.getLogger(__name__)


class NoteService:
    """Thin orchestration layer over a :class:`NoteRepository`."""

    def __init__(self, repository: NoteRepository) -> None:
        self._repository = repository

    @property
    def repository(self) -> NoteRepository:
        return self._repository

    async def create(
        self,
        title: str,
        body: str,
        tags: Iterable[str] | None = None,
        now: datetime | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> Note:
        """Validate, persist and return a new note.

        Raises:
            ValidationError: if the input breaks the note rules.
            StorageError: if the repository cannot persist the note.
        """
        note = Note.create(title=title, body=body, tags=tags, now=now, id_factory=id_factory)
        await self._repository.save(note)
        NOTE_OPERATIONS.labels(operation="create").inc()
        logger.info("Created note %s with %d tag(s)", note.id, len(note.tags))
        return note

    async def list(self) -> list[Note]:
        NOTE_OPERATIONS.labels(operation="list").inc()
        return await self._repository.find_all()

    async def get(self, note_id: str) -> Note | None:
        NOTE_OPERATIONS.labels(operation="get").inc()
        return await self._repository.find_by_id(note_id)

    async def search(self, query: SearchQuery) -> list[Note]:
        """Run a search, or return ``[]`` without touching storage if the query is invalid."""
        NOTE_OPERATIONS.labels(operation="search").inc()
        if not is_valid(query):
            SEARCH_REQUESTS.labels(outcome="rejected").inc()
            logger.debug("Rejected search query text=%r tag=%r", query.text, query.tag)
            return []

        SEARCH_REQUESTS.labels(outcome="executed").inc()
        results = await self._repository.search(normalize(query))
        logger.info(
            "Search text=%r tag=%r, found=%d", query.text, query.tag, len(results)
        )
        return results
