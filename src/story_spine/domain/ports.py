"""Ports for text generation and story persistence."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from story_spine.domain.records import StoryRecord


@dataclass(frozen=True)
class ImageInput:
    """Raw image bytes handed to the generator alongside a prompt."""

    data: bytes
    mime_type: str = "image/jpeg"


class TextGenerator(Protocol):
    """Produces free text for a prompt, optionally grounded on an image."""

    def generate(self, prompt: str, image: ImageInput | None = None) -> str:
        ...


class StoryRecordStore(Protocol):
    """Persists story records and their passages."""

    def create(self, record: StoryRecord) -> None:
        ...

    def save(self, record: StoryRecord) -> None:
        ...

    def delete(self, record: StoryRecord) -> None:
        ...

    def get(self, story_id: str) -> StoryRecord | None:
        ...

    def query_all(self) -> list[StoryRecord]:
        ...
