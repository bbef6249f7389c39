"""In-memory working draft of one story and its commit state machine."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from story_spine.domain.errors import InvalidRankError, StoryCompleteError
from story_spine.domain.spine import (
    FIRST_RANK,
    LAST_RANK,
    TOTAL_STEPS,
    SpineStep,
    all_steps,
    step_for,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationResult:
    """Title and opening passage produced for the first spine step."""

    title: str
    passage: str


@dataclass(frozen=True)
class ContinuationPair:
    """Two candidate passages offered for the current spine step."""

    option_a: str
    option_b: str


class StoryDraft:
    """Working copy of a story as it moves through the seven spine steps.

    Passages live in a fixed seven-slot array where ``None`` marks a step that
    has not been written yet. The only way to advance is ``commit_passage``:
    it writes the current step's slot, then either moves to the next step or,
    at the last step, marks the draft complete. Before the first commit the
    opening slot and the title may be edited freely with ``set_opening``.
    """

    def __init__(self) -> None:
        self._title = ""
        self._slots: list[str | None] = [None] * TOTAL_STEPS
        self._current_step = step_for(FIRST_RANK)
        self._complete = False

    @classmethod
    def rebuild(
        cls,
        *,
        title: str,
        complete: bool,
        current_rank: int,
        passages: Mapping[int, str],
    ) -> StoryDraft:
        """Construct a draft from fully specified persisted parts.

        Completion is derived from the slots: a draft is complete exactly
        when all seven steps are written. A stored flag that disagrees is
        logged and overridden.
        """
        draft = cls()
        draft._title = title
        draft._current_step = step_for(current_rank)
        for rank, text in passages.items():
            step_for(rank)
            if text and text.strip():
                draft._slots[rank - 1] = text
        draft._complete = all(slot is not None for slot in draft._slots)
        if draft._complete:
            draft._current_step = step_for(LAST_RANK)
        if bool(complete) != draft._complete:
            logger.warning(
                "draft.rebuild complete flag corrected stored=%s derived=%s missing_ranks=%s",
                bool(complete),
                draft._complete,
                [rank for rank, slot in enumerate(draft._slots, start=1) if slot is None],
            )
        return draft

    @property
    def title(self) -> str:
        return self._title

    @property
    def current_step(self) -> SpineStep:
        return self._current_step

    @property
    def complete(self) -> bool:
        return self._complete

    @property
    def passages(self) -> Mapping[int, str]:
        """Read-only rank -> text view of the written steps."""
        return MappingProxyType(
            {rank: text for rank, text in enumerate(self._slots, start=1) if text is not None}
        )

    def passage_for(self, rank: int) -> str | None:
        step_for(rank)
        return self._slots[rank - 1]

    def has_passages(self) -> bool:
        return any(slot is not None for slot in self._slots)

    def set_opening(self, *, title: str | None = None, passage: str | None = None) -> None:
        """Edit the title and opening passage while the first step is still open."""
        if self._current_step.rank != FIRST_RANK or self._complete:
            raise InvalidRankError(self._current_step.rank)
        if title is not None:
            self._title = title
        if passage is not None:
            self._slots[0] = passage if passage.strip() else None

    def commit_passage(self, text: str) -> bool:
        """Write ``text`` for the current step and advance.

        Empty or whitespace-only text leaves the draft untouched and returns
        ``False``. A complete draft accepts no further commits.
        """
        if self._complete:
            raise StoryCompleteError("Story is already complete.")
        if not text or not text.strip():
            logger.debug("draft.commit skipped empty text rank=%s", self._current_step.rank)
            return False

        rank = self._current_step.rank
        self._slots[rank - 1] = text
        if rank < LAST_RANK:
            self._current_step = step_for(rank + 1)
        else:
            self._complete = True
        logger.debug("draft.commit rank=%s complete=%s", rank, self._complete)
        return True

    def full_story_text(self) -> str:
        """Render title plus each written step under its spine heading."""
        blocks: list[str] = []
        if self._title:
            blocks.append(f"{self._title}\n\n")
        for step in all_steps():
            passage = self._slots[step.rank - 1]
            if passage:
                blocks.append(f"{step.title}\n{passage}\n\n")
        return "".join(blocks).strip()

    def all_passages_text(self) -> str:
        """Passage bodies only, in rank order, separated by blank lines."""
        return "\n\n".join(slot for slot in self._slots if slot)

    def progress_label(self) -> str:
        if self._complete:
            return f"Completed • step {LAST_RANK} of {TOTAL_STEPS}"
        return f"In progress • step {self._current_step.rank} of {TOTAL_STEPS}"

    def reset(self) -> None:
        """Discard everything and return to the initial state."""
        self._title = ""
        self._slots = [None] * TOTAL_STEPS
        self._current_step = step_for(FIRST_RANK)
        self._complete = False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StoryDraft):
            return NotImplemented
        return (
            self._title == other._title
            and self._slots == other._slots
            and self._current_step == other._current_step
            and self._complete == other._complete
        )

    def __repr__(self) -> str:
        return (
            f"StoryDraft(title={self._title!r}, current_rank={self._current_step.rank}, "
            f"complete={self._complete}, ranks={sorted(self.passages)})"
        )
