"""FastAPI application for the notes service.

Endpoints:
  GET    /notes            - List notes, or search with ?text=&tag=&target=
  POST   /notes            - Create a note
  GET    /notes/{note_id}  - Fetch a single note
  GET    /health           - Service and storage status
  GET    /metrics          - Prometheus metrics

The repository and service are built once at start-up and handed to the
handlers through FastAPI dependencies.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from starlette.middleware.base import BaseHTTPMiddleware

from notes.config import Settings
from notes.errors import StorageError, ValidationError
from notes.metrics import HTTP_DURATION, HTTP_REQUESTS
from notes.models import Note
from notes.search import SearchQuery, is_blank
from notes.service import NoteService
from notes.storage import create_repository

logger = logging.getLogger(__name__)

SEARCH_TARGETS = {"all", "title", "body"}

# Endpoints excluded from HTTP metrics
_METRICS_EXCLUDE = {"/metrics", "/openapi.json", "/docs", "/redoc"}


class MetricsMiddleware(BaseHTTPMiddleware):
    """Record HTTP request count and duration for Prometheus."""

    async def dispatch(self, request: Request, call_next):
        """Wrap each request with timing and counting."""
        path = request.url.path
        if path in _METRICS_EXCLUDE:
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start

        # Label by route template so /notes/{note_id} stays one series
        route = request.scope.get("route")
        endpoint = getattr(route, "path", path)
        HTTP_REQUESTS.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).inc()
        HTTP_DURATION.labels(endpoint=endpoint).observe(elapsed)
        return response


# --- Request / Response models ---


class NoteCreateRequest(BaseModel):
    """Create endpoint request body."""

    title: str
    body: str
    tags: list[str] | None = None


class NoteResponse(BaseModel):
    """A note as returned by the API, with camelCase timestamps."""

    model_config = ConfigDict(alias_generator=to_camel)

    id: str
    title: str
    body: str
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


# --- Dependencies ---


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_service(request: Request) -> NoteService:
    """Return the service bound to this application at start-up."""
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise RuntimeError("Note service is not initialised; was the lifespan run?")
    return service


def _filter_by_target(notes: list[Note], text: str | None, target: str) -> list[Note]:
    """Narrow text matches to the title or the body only."""
    term = (text or "").strip().lower()
    if not term or target == "all":
        return notes
    if target == "title":
        return [n for n in notes if term in n.title.lower()]
    return [n for n in notes if term in n.body.lower()]


# --- Endpoints ---

router = APIRouter()


@router.get("/notes", response_model=list[NoteResponse])
async def list_notes(
    text: str | None = None,
    q: str | None = None,
    tag: str | None = None,
    target: str = "all",
    service: NoteService = Depends(get_service),
) -> list[dict[str, Any]]:
    """List every note, or search when a text or tag filter is given.

    ``q`` is accepted as an alias of ``text``. ``target`` (all, title, body)
    restricts which field the text must appear in; unknown values mean all.
    """
    query = SearchQuery(text=text if text and text.strip() else q, tag=tag)
    if is_blank(query):
        notes = await service.list()
    else:
        notes = await service.search(query)
        if target not in SEARCH_TARGETS:
            target = "all"
        notes = _filter_by_target(notes, query.text, target)
    return [note.to_document() for note in notes]


@router.post(
    "/notes",
    response_model=NoteResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_note(
    payload: NoteCreateRequest,
    service: NoteService = Depends(get_service),
) -> dict[str, Any]:
    """Create a note."""
    note = await service.create(
        title=payload.title, body=payload.body, tags=payload.tags or []
    )
    return note.to_document()


@router.get("/notes/{note_id}", response_model=NoteResponse)
async def get_note(
    note_id: str,
    service: NoteService = Depends(get_service),
) -> dict[str, Any]:
    """Fetch a note by id."""
    note = await service.get(note_id)
    if note is None:
        raise HTTPException(status_code=404, detail="Note not found")
    return note.to_document()


@router.get("/health")
async def health(
    settings: Settings = Depends(get_settings),
    service: NoteService = Depends(get_service),
) -> dict[str, Any]:
    """Report service status and how many notes are stored."""
    notes = await service.repository.find_all()
    return {
        "status": "healthy",
        "storage": settings.storage_backend,
        "total_notes": len(notes),
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


# --- Error handlers ---


async def _handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc)},
    )


async def _handle_storage_error(request: Request, exc: StorageError) -> JSONResponse:
    logger.error(
        "Storage failure on %s %s", request.method, request.url.path, exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Storage unavailable"},
    )


# --- Application factory ---


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: build the repository and service unless one was injected."""
    settings: Settings = app.state.settings
    if app.state.service is None:
        app.state.service = NoteService(create_repository(settings))
    logger.info("Notes API ready (storage=%s)", settings.storage_backend)
    yield
    logger.info("Notes API shut down.")


def create_app(
    settings: Settings | None = None,
    service: NoteService | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Configuration; read from the environment when omitted.
        service: Pre-built service to serve. When omitted, one is built
            from ``settings`` during the lifespan start-up.
    """
    settings = settings or Settings()

    app = FastAPI(title="Notes API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.service = service

    app.add_middleware(MetricsMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ValidationError, _handle_validation_error)
    app.add_exception_handler(StorageError, _handle_storage_error)
    app.include_router(router)
    return app


def main() -> None:
    import uvicorn

    settings = Settings()
    logging.basicConfig(level=settings.log_level, format=settings.log_format)
    uvicorn.run(create_app(settings), host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
