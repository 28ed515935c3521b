"""Pydantic model for a single note.

Notes are immutable. They are built either through :meth:`Note.create`,
which trims and validates user input, or through :meth:`Note.rehydrate`,
which trusts data that was already validated before it was persisted.
"""

from __future__ import annotations

import secrets
import string
import time
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator
from pydantic import ValidationError as PydanticValidationError

from notes.errors import ValidationError

TITLE_MAX_LENGTH = 100
BODY_MAX_LENGTH = 2000
TAG_MAX_LENGTH = 50

_BASE36 = string.digits + string.ascii_lowercase

Tag = Annotated[str, StringConstraints(strip_whitespace=True, max_length=TAG_MAX_LENGTH)]

_ERROR_MESSAGES = {
    "missing": "{field} is required",
    "string_too_short": "{field} must not be empty",
    "string_too_long": "{field} must be at most {max_length} characters",
    "string_type": "{field} must be a string",
}


def _to_base36(value: int) -> str:
    digits = []
    while True:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
        if value == 0:
            return "".join(reversed(digits))


def generate_note_id() -> str:
    """Return a time-prefixed id that is unique with overwhelming probability.

    Collisions are not checked for.
    """
    millis = _to_base36(time.time_ns() // 1_000_000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(8))
    return f"note_{millis}_{suffix}"


def _as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so every stored timestamp is comparable."""
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


def _parse_timestamp(value: datetime | str) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    return _as_utc(value)


def _describe(exc: PydanticValidationError) -> str:
    """Turn pydantic errors into one readable message."""
    messages = []
    for error in exc.errors():
        loc = error["loc"]
        if not loc:
            field = "note"
        elif loc[0] == "tags" and len(loc) > 1:
            field = "tag"
        else:
            field = str(loc[0])
        template = _ERROR_MESSAGES.get(error["type"])
        if template is None:
            messages.append(f"{field}: {error['msg']}")
        else:
            messages.append(template.format(field=field, **error.get("ctx", {})))
    return "; ".join(messages)


class Note(BaseModel):
    """A single note with metadata."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str
    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH, description="Note title")
    body: str = Field(..., min_length=1, max_length=BODY_MAX_LENGTH, description="Note body")
    tags: tuple[Tag, ...] = Field(default=(), description="Ordered, de-duplicated tags")
    created_at: datetime
    updated_at: datetime

    @field_validator("tags")
    @classmethod
    def drop_empty_tags(cls, tags: tuple[str, ...]) -> tuple[str, ...]:
        """Drop blank tags and repeats, keeping first-seen order."""
        return tuple(dict.fromkeys(tag for tag in tags if tag))

    @classmethod
    def create(
        cls,
        title: str,
        body: str,
        tags: Iterable[str] | None = None,
        now: datetime | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> Note:
        """Validate raw input and build a new note.

        Title and body are trimmed and must be non-empty (at most 100 and
        2000 characters). Tags are trimmed, blanks are dropped and each
        remaining tag must be at most 50 characters.

        Raises:
            ValidationError: if any field breaks the rules above.
        """
        timestamp = _as_utc(now) if now is not None else datetime.now(UTC)
        note_id = (id_factory or generate_note_id)()
        try:
            return cls(
                id=note_id,
                title=title,
                body=body,
                tags=tags if tags is not None else (),
                created_at=timestamp,
                updated_at=timestamp,
            )
        except PydanticValidationError as exc:
            raise ValidationError(_describe(exc)) from exc

    @classmethod
    def rehydrate(
        cls,
        id: str,
        title: str,
        body: str,
        tags: Iterable[str],
        created_at: datetime | str,
        updated_at: datetime | str,
    ) -> Note:
        """Rebuild a persisted note without re-running validation."""
        return cls.model_construct(
            id=id,
            title=title,
            body=body,
            tags=tuple(tags),
            created_at=_parse_timestamp(created_at),
            updated_at=_parse_timestamp(updated_at),
        )

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> Note:
        """Rebuild a note from its stored ``{id, title, ..., createdAt}`` form."""
        return cls.rehydrate(
            id=document["id"],
            title=document["title"],
            body=document["body"],
            tags=document.get("tags", ()),
            created_at=document["createdAt"],
            updated_at=document["updatedAt"],
        )

    def to_document(self) -> dict[str, Any]:
        """Return the JSON-ready form used on disk and over the wire."""
        data = self.model_dump(mode="json")
        return {
            "id": data["id"],
            "title": data["title"],
            "body": data["body"],
            "tags": data["tags"],
            "createdAt": data["created_at"],
            "updatedAt": data["updated_at"],
        }
