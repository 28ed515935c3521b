"""
Note Manager MCP Server

Exposes tools for saving, retrieving, and searching notes via the
Model Context Protocol. Runs on port 8001 with SSE transport by default.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from mcp.server.fastmcp import FastMCP

from notes.config import Settings
from notes.errors import ValidationError
from notes.search import SearchQuery
from notes.service import NoteService
from notes.storage import create_repository

logger = logging.getLogger("note_manager")

SERVER_NAME = "note-manager"


class NoteTools:
    """MCP tool implementations backed by a :class:`NoteService`."""

    def __init__(self, service: NoteService) -> None:
        self._service = service

    async def save_note(
        self, title: str, body: str, tags: list[str] | None = None
    ) -> dict[str, Any]:
        """Save a new note with a title, body, and optional tags.

        Use this tool when the user wants to create, store, or remember a piece
        of information for later retrieval.

        Args:
            title: Short descriptive title (at most 100 characters).
            body: The full text of the note (at most 2000 characters).
            tags: Optional list of tags for categorisation.

        Returns:
            Dictionary with the generated note_id and a confirmation message,
            or an error message if the note was rejected.
        """
        try:
            note = await self._service.create(title=title, body=body, tags=tags or [])
        except ValidationError as exc:
            logger.info("Tool save_note rejected input: %s", exc)
            return {"error": str(exc)}
        logger.info("Tool save_note invoked, id=%s", note.id)
        return {
            "note_id": note.id,
            "message": f"Note '{note.title}' saved successfully.",
        }

    async def get_notes(self) -> dict[str, Any]:
        """Retrieve every stored note, oldest first.

        Use this tool when the user wants to list or browse their saved notes.

        Returns:
            Dictionary with the notes and their count.
        """
        notes = await self._service.list()
        logger.info("Tool get_notes invoked, found=%d", len(notes))
        return {
            "count": len(notes),
            "notes": [n.to_document() for n in notes],
        }

    async def get_note(self, note_id: str) -> dict[str, Any]:
        """Fetch a single note by its id.

        Args:
            note_id: The id returned by save_note.

        Returns:
            Dictionary with the note, or an error if no note has that id.
        """
        note = await self._service.get(note_id)
        if note is None:
            return {"error": "Note not found"}
        return {"note": note.to_document()}

    async def search_notes(
        self, text: str | None = None, tag: str | None = None
    ) -> dict[str, Any]:
        """Search notes by keyword and/or tag (case-insensitive substring match).

        The text term is matched against titles and bodies and needs at least
        two characters. The tag term is matched against each note's tags.

        Args:
            text: Keyword to look for in note titles and bodies.
            tag: Tag (or part of one) to filter by.

        Returns:
            Dictionary with matching notes and their count.
        """
        results = await self._service.search(SearchQuery(text=text, tag=tag))
        logger.info(
            "Tool search_notes invoked, text=%r tag=%r found=%d", text, tag, len(results)
        )
        return {
            "count": len(results),
            "notes": [n.to_document() for n in results],
        }

    async def health_check(self) -> dict[str, Any]:
        """Check whether the Note Manager server is healthy.

        Returns:
            Dictionary with server status, note count, and timestamp.
        """
        logger.info("Tool health_check invoked")
        notes = await self._service.repository.find_all()
        return {
            "status": "healthy",
            "server": SERVER_NAME,
            "total_notes": len(notes),
            "timestamp": datetime.now(UTC).isoformat(),
        }


def create_server(
    service: NoteService, host: str = "0.0.0.0", port: int = 8001
) -> FastMCP:
    """Build a FastMCP server whose tools operate on ``service``."""
    mcp = FastMCP(SERVER_NAME, host=host, port=port)
    tools = NoteTools(service)
    for tool in (
        tools.save_note,
        tools.get_notes,
        tools.get_note,
        tools.search_notes,
        tools.health_check,
    ):
        mcp.add_tool(tool)
    return mcp


def main() -> None:
    settings = Settings()
    logging.basicConfig(level=settings.log_level, format=settings.log_format)
    service = NoteService(create_repository(settings))
    mcp = create_server(service, host=settings.mcp_host, port=settings.mcp_port)
    logger.info("Starting Note Manager MCP server on port %d ...", settings.mcp_port)
    mcp.run(transport="sse")


if __name__ == "__main__":
    main()
