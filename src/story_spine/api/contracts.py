"""Typed contracts shared by API handlers and CLI exports."""

from __future__ import annotations

import base64
import binascii
import re
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from story_spine.application.library import LibraryEntry, display_title
from story_spine.application.reconciler import record_to_draft
from story_spine.domain.records import StoryRecord
from story_spine.domain.spine import SpineStep, all_steps

MIME_PATTERN = re.compile(r"^image/[a-z0-9.+-]+$")


class ContractModel(BaseModel):
    """Base model config used by all API contracts."""

    model_config = ConfigDict(extra="forbid")


class RequestModel(ContractModel):
    """Inbound payloads; surrounding whitespace is trimmed before validation."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class SpineStepResponse(ContractModel):
    """One Story Spine step."""

    rank: int = Field(ge=1, le=7)
    title: str
    description: str


class PassageResponse(ContractModel):
    """Committed text for one spine step."""

    step_rank: int = Field(ge=1, le=7)
    step_title: str
    text: str


class StoryResponse(ContractModel):
    """Story payload returned by the API."""

    story_id: str
    title: str
    complete: bool
    progress: str
    current_step: SpineStepResponse
    passages: list[PassageResponse]
    full_text: str
    created_at_utc: str
    updated_at_utc: str


class StorySummaryResponse(ContractModel):
    """Library listing row."""

    story_id: str
    title: str
    complete: bool
    progress: str
    created_at_utc: str
    updated_at_utc: str


class OpeningRequest(RequestModel):
    """Base64 image used to generate a title and opening passage."""

    image_base64: str = Field(min_length=1)
    mime_type: str = Field(default="image/jpeg", max_length=120)

    @field_validator("mime_type")
    @classmethod
    def _validate_mime_type(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not MIME_PATTERN.match(normalized):
            raise ValueError("mime_type must be an image/* media type.")
        return normalized

    @field_validator("image_base64")
    @classmethod
    def _validate_base64(cls, value: str) -> str:
        try:
            base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("image_base64 must be valid base64.") from exc
        return value

    def image_bytes(self) -> bytes:
        return base64.b64decode(self.image_base64)


class OpeningResponse(ContractModel):
    """Generated, not yet committed, opening."""

    title: str
    passage: str


class StoryCreateRequest(RequestModel):
    """Start a story by committing its opening passage."""

    title: str = Field(default="", max_length=300)
    passage: str = Field(min_length=1, max_length=20_000)


class PassageCommitRequest(RequestModel):
    """Passage text to commit for the story's current step."""

    text: str = Field(min_length=1, max_length=20_000)


class ContinuationResponse(ContractModel):
    """Two generated candidates for the story's current step."""

    story_id: str
    step: SpineStepResponse
    option_a: str
    option_b: str


def step_response(step: SpineStep) -> SpineStepResponse:
    return SpineStepResponse(rank=step.rank, title=step.title, description=step.description)


def story_response(record: StoryRecord) -> StoryResponse:
    draft = record_to_draft(record)
    passages = draft.passages
    return StoryResponse(
        story_id=record.story_id,
        title=display_title(record.title),
        complete=draft.complete,
        progress=draft.progress_label(),
        current_step=step_response(draft.current_step),
        passages=[
            PassageResponse(step_rank=step.rank, step_title=step.title, text=passages[step.rank])
            for step in all_steps()
            if step.rank in passages
        ],
        full_text=draft.full_story_text(),
        created_at_utc=record.created_at_utc,
        updated_at_utc=record.updated_at_utc,
    )


def summary_response(entry: LibraryEntry) -> StorySummaryResponse:
    return StorySummaryResponse(
        story_id=entry.story_id,
        title=entry.title,
        complete=entry.complete,
        progress=entry.progress,
        created_at_utc=entry.created_at_utc,
        updated_at_utc=entry.updated_at_utc,
    )


StoryStatusFilter = Literal["all", "in_progress", "completed"]


def save_story_json(path: Path, story: StoryResponse) -> None:
    """Write one story as readable JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(story.model_dump_json(indent=2) + "\n", encoding="utf-8")


def load_story_json(path: Path) -> StoryResponse:
    """Load and validate story JSON from disk."""
    return StoryResponse.model_validate_json(path.read_text(encoding="utf-8"))
