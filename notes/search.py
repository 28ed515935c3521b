"""Search query model and the predicates shared by every repository."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from notes.models import Note

MIN_TEXT_LENGTH = 2


class SearchQuery(BaseModel):
    """Free-form text and tag filters. Either may be omitted."""

    model_config = ConfigDict(frozen=True)

    text: str | None = None
    tag: str | None = None


def _clean(value: str | None) -> str:
    return value.strip() if value else ""


def is_blank(query: SearchQuery) -> bool:
    """True when neither text nor tag carries anything after trimming."""
    return not _clean(query.text) and not _clean(query.tag)


def is_valid(query: SearchQuery) -> bool:
    """Whether the query is worth running.

    A query is invalid when both fields are blank, or when the text term is
    a single character (too broad). A tag-only query has no minimum length.
    """
    if is_blank(query):
        return False
    text = _clean(query.text)
    return not (text and len(text) < MIN_TEXT_LENGTH)


def normalize(query: SearchQuery) -> SearchQuery:
    """Trim both fields, turning blanks into ``None``."""
    return SearchQuery(text=_clean(query.text) or None, tag=_clean(query.tag) or None)


def matches(note: Note, query: SearchQuery) -> bool:
    """Case-insensitive substring match on title/body and on tags."""
    text = _clean(query.text).lower()
    tag = _clean(query.tag).lower()

    if text and text not in note.title.lower() and text not in note.body.lower():
        return False
    if tag and not any(tag in t.lower() for t in note.tags):
        return False
    return True
