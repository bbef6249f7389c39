"""Durable story and passage records owned by the persistence layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from story_spine.domain.spine import FIRST_RANK


def utc_now_iso() -> str:
    """Return current UTC timestamp in ISO-8601 form."""
    return datetime.now(UTC).isoformat()


def new_id() -> str:
    return uuid4().hex


@dataclass
class PassageRecord:
    """Stored text for one spine step of one story."""

    step_rank: int
    text: str
    passage_id: str = field(default_factory=new_id)


@dataclass
class StoryRecord:
    """Stored story with its child passages, at most one per step rank."""

    story_id: str = field(default_factory=new_id)
    title: str = ""
    created_at_utc: str = field(default_factory=utc_now_iso)
    updated_at_utc: str = field(default_factory=utc_now_iso)
    complete: bool = False
    current_step_rank: int = FIRST_RANK
    passages: list[PassageRecord] = field(default_factory=list)

    def passage_for(self, step_rank: int) -> PassageRecord | None:
        for passage in self.passages:
            if passage.step_rank == step_rank:
                return passage
        return None

    def passages_by_rank(self) -> dict[int, str]:
        return {passage.step_rank: passage.text for passage in self.passages}
