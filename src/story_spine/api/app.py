"""FastAPI application for spine-guided story co-authoring."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal

from fastapi import FastAPI, HTTPException, Query, Response, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from story_spine.adapters.gemini_text_generator import GeminiSettings, GeminiTextGenerator
from story_spine.adapters.sqlite_story_store import SQLiteStoryStore, resolve_db_path
from story_spine.api.contracts import (
    ContinuationResponse,
    OpeningRequest,
    OpeningResponse,
    PassageCommitRequest,
    StoryCreateRequest,
    StoryResponse,
    StoryStatusFilter,
    StorySummaryResponse,
    step_response,
    story_response,
    summary_response,
)
from story_spine.application.library import list_library
from story_spine.application.orchestrator import GenerationOrchestrator
from story_spine.application.session import StorySession
from story_spine.domain.errors import (
    EmptyResponseError,
    GenerationConfigError,
    GenerationError,
    GenerationQuotaError,
    InvalidRankError,
    PersistenceWriteError,
    StoryCompleteError,
)
from story_spine.domain.ports import ImageInput, TextGenerator
from story_spine.domain.records import StoryRecord

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Simple health payload used by probes."""

    status: Literal["ok"] = "ok"
    service: str = "story_spine"


class ApiRootResponse(BaseModel):
    """Describes currently available API capabilities and runtime mode."""

    name: str = "story_spine"
    persistence: Literal["sqlite"] = "sqlite"
    generator: str = "gemini"
    endpoints: list[str] = Field(
        default_factory=lambda: [
            "/healthz",
            "/api/v1",
            "/api/v1/openings",
            "/api/v1/stories",
            "/api/v1/stories/{story_id}",
            "/api/v1/stories/{story_id}/continuations",
            "/api/v1/stories/{story_id}/passages",
        ]
    )


def _cors_origins() -> list[str]:
    raw = os.environ.get("STORY_SPINE_CORS_ORIGINS", "").strip()
    if raw:
        return [origin.strip() for origin in raw.split(",") if origin.strip()]
    return [
        "http://127.0.0.1:5173",
        "http://localhost:5173",
    ]


def _generation_http_error(exc: GenerationError) -> HTTPException:
    if isinstance(exc, GenerationQuotaError):
        return HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(exc))
    if isinstance(exc, EmptyResponseError):
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail="Generator returned no text"
        )
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))


def _persistence_http_error(exc: PersistenceWriteError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


def create_app(db_path: Path | None = None, generator: TextGenerator | None = None) -> FastAPI:
    """Create the API application."""
    effective_db_path = resolve_db_path(db_path)
    store = SQLiteStoryStore(db_path=effective_db_path)
    generators: dict[str, TextGenerator] = {}
    if generator is not None:
        generators["default"] = generator

    app = FastAPI(
        title="story_spine API",
        version="0.1.0",
        description=(
            "Co-author short stories step by step along the Story Spine, "
            "with a generative model proposing each next passage."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        openapi_tags=[
            {"name": "system", "description": "Service health and runtime metadata."},
            {"name": "api", "description": "API discovery and root-level capability listing."},
            {"name": "generation", "description": "Model-proposed openings and continuations."},
            {"name": "stories", "description": "Story library and step-by-step commits."},
        ],
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    logger.info(
        "api.start db_path=%s generator=%s",
        effective_db_path,
        "injected" if generator is not None else "gemini-from-env",
    )

    def resolve_generator() -> TextGenerator:
        cached = generators.get("default")
        if cached is not None:
            return cached
        try:
            settings = GeminiSettings.from_env()
        except GenerationConfigError as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
            ) from exc
        created = GeminiTextGenerator(settings)
        generators["default"] = created
        return created

    def story_or_404(story_id: str) -> StoryRecord:
        record = store.get(story_id)
        if record is None:
            raise HTTPException(status_code=404, detail="Story not found")
        return record

    def session_for(record: StoryRecord) -> StorySession:
        return StorySession.resume(record, store, GenerationOrchestrator(resolve_generator()))

    @app.get("/healthz", response_model=HealthResponse, tags=["system"])
    def healthz() -> HealthResponse:
        return HealthResponse()

    @app.get("/api/v1", response_model=ApiRootResponse, tags=["api"])
    def api_v1_root() -> ApiRootResponse:
        return ApiRootResponse()

    @app.post("/api/v1/openings", response_model=OpeningResponse, tags=["generation"])
    def generate_opening(payload: OpeningRequest) -> OpeningResponse:
        orchestrator = GenerationOrchestrator(resolve_generator())
        image = ImageInput(data=payload.image_bytes(), mime_type=payload.mime_type)
        try:
            result = orchestrator.generate_opening(image)
        except GenerationError as exc:
            raise _generation_http_error(exc) from exc
        return OpeningResponse(title=result.title, passage=result.passage)

    @app.get("/api/v1/stories", response_model=list[StorySummaryResponse], tags=["stories"])
    def list_stories(
        status_filter: StoryStatusFilter = Query(default="all", alias="status"),
    ) -> list[StorySummaryResponse]:
        library = list_library(store)
        if status_filter == "in_progress":
            entries = library.in_progress
        elif status_filter == "completed":
            entries = library.completed
        else:
            entries = library.entries
        return [summary_response(entry) for entry in entries]

    @app.post("/api/v1/stories", response_model=StoryResponse, tags=["stories"], status_code=201)
    def create_story(payload: StoryCreateRequest) -> StoryResponse:
        session = StorySession.fresh(store)
        session.edit_opening(title=payload.title, passage=payload.passage)
        try:
            session.commit_passage(payload.passage)
        except PersistenceWriteError as exc:
            raise _persistence_http_error(exc) from exc
        record = session.record
        if record is None:
            raise HTTPException(status_code=500, detail="Created story could not be loaded")
        return story_response(record)

    @app.get("/api/v1/stories/{story_id}", response_model=StoryResponse, tags=["stories"])
    def get_story(story_id: str) -> StoryResponse:
        return story_response(story_or_404(story_id))

    @app.delete(
        "/api/v1/stories/{story_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        response_class=Response,
        tags=["stories"],
    )
    def delete_story(story_id: str) -> Response:
        record = story_or_404(story_id)
        try:
            store.delete(record)
        except PersistenceWriteError as exc:
            raise _persistence_http_error(exc) from exc
        logger.info("api.story.deleted story_id=%s", story_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.post(
        "/api/v1/stories/{story_id}/continuations",
        response_model=ContinuationResponse,
        tags=["stories", "generation"],
    )
    def generate_continuations(story_id: str) -> ContinuationResponse:
        session = session_for(story_or_404(story_id))
        try:
            pair = session.generate_continuations()
        except StoryCompleteError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except InvalidRankError as exc:
            raise HTTPException(
                status_code=409, detail="Story has no committed opening yet"
            ) from exc
        except GenerationError as exc:
            raise _generation_http_error(exc) from exc
        return ContinuationResponse(
            story_id=story_id,
            step=step_response(session.current_step),
            option_a=pair.option_a,
            option_b=pair.option_b,
        )

    @app.post(
        "/api/v1/stories/{story_id}/passages",
        response_model=StoryResponse,
        tags=["stories"],
    )
    def commit_passage(story_id: str, payload: PassageCommitRequest) -> StoryResponse:
        record = story_or_404(story_id)
        session = StorySession.resume(record, store)
        try:
            committed = session.commit_passage(payload.text)
        except StoryCompleteError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except PersistenceWriteError as exc:
            raise _persistence_http_error(exc) from exc
        if not committed:
            raise HTTPException(status_code=422, detail="Passage text must not be blank")
        return story_response(record)

    return app

