"""Workflow session tying one draft to generation and persistence."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from story_spine.application.orchestrator import GenerationOrchestrator
from story_spine.application.reconciler import apply_draft_to_record, new_record, record_to_draft
from story_spine.domain.draft import ContinuationPair, GenerationResult, StoryDraft
from story_spine.domain.errors import (
    GenerationConfigError,
    NoContinuationError,
    StoryCompleteError,
)
from story_spine.domain.ports import ImageInput, StoryRecordStore
from story_spine.domain.records import StoryRecord
from story_spine.domain.spine import SpineStep

logger = logging.getLogger(__name__)


class StorySession:
    """Active editing session for one story.

    Exposes the observable fields a presentation layer renders and the calls
    it may make. Each committed passage is persisted right away: the first
    save creates the record, later saves update it. When the store fails the
    draft keeps its new state and ``save`` can be retried.

    A session built without an orchestrator can commit and save but not
    generate.
    """

    def __init__(
        self,
        store: StoryRecordStore,
        orchestrator: GenerationOrchestrator | None = None,
        *,
        draft: StoryDraft | None = None,
        record: StoryRecord | None = None,
    ) -> None:
        self._store = store
        self._orchestrator = orchestrator
        self._draft = draft if draft is not None else StoryDraft()
        self._record = record
        self._persisted = record is not None

    @classmethod
    def fresh(
        cls,
        store: StoryRecordStore,
        orchestrator: GenerationOrchestrator | None = None,
    ) -> StorySession:
        return cls(store, orchestrator)

    @classmethod
    def resume(
        cls,
        record: StoryRecord,
        store: StoryRecordStore,
        orchestrator: GenerationOrchestrator | None = None,
    ) -> StorySession:
        return cls(store, orchestrator, draft=record_to_draft(record), record=record)

    @property
    def draft(self) -> StoryDraft:
        return self._draft

    @property
    def record(self) -> StoryRecord | None:
        return self._record

    @property
    def story_id(self) -> str | None:
        return self._record.story_id if self._record is not None else None

    @property
    def current_step(self) -> SpineStep:
        return self._draft.current_step

    @property
    def passages(self) -> Mapping[int, str]:
        return self._draft.passages

    @property
    def title(self) -> str:
        return self._draft.title

    @property
    def complete(self) -> bool:
        return self._draft.complete

    @property
    def generating(self) -> bool:
        return self._orchestrator is not None and self._orchestrator.generating

    @property
    def option_a(self) -> str:
        return self._orchestrator.option_a if self._orchestrator is not None else ""

    @property
    def option_b(self) -> str:
        return self._orchestrator.option_b if self._orchestrator is not None else ""

    def _require_orchestrator(self) -> GenerationOrchestrator:
        if self._orchestrator is None:
            raise GenerationConfigError("This session has no text generator.")
        return self._orchestrator

    def generate_opening(self, image: ImageInput) -> GenerationResult:
        """Draft a title and opening from ``image`` without committing it."""
        result = self._require_orchestrator().generate_opening(image)
        self._draft.set_opening(title=result.title, passage=result.passage)
        return result

    def edit_opening(self, *, title: str | None = None, passage: str | None = None) -> None:
        self._draft.set_opening(title=title, passage=passage)

    def generate_continuations(self) -> ContinuationPair:
        """Ask for two candidates for the current step."""
        orchestrator = self._require_orchestrator()
        if self._draft.complete:
            raise StoryCompleteError("Story is already complete.")
        return orchestrator.generate_continuations(
            self._draft.all_passages_text(), self._draft.current_step
        )

    def commit_passage(self, text: str) -> bool:
        """Commit ``text`` for the current step and persist the draft."""
        if not self._draft.commit_passage(text):
            return False
        if self._orchestrator is not None:
            self._orchestrator.clear_options()
        self.save()
        return True

    def choose_option(self, option: int) -> bool:
        """Commit generated candidate 1 or 2."""
        orchestrator = self._require_orchestrator()
        if not orchestrator.has_options:
            raise NoContinuationError("No continuation candidates have been generated.")
        if option == 1:
            text = orchestrator.option_a
        elif option == 2:
            text = orchestrator.option_b
        else:
            raise ValueError(f"option must be 1 or 2, got {option!r}")
        return self.commit_passage(text)

    def save(self) -> StoryRecord:
        """Write the draft to the store, creating the record on first save."""
        if self._record is None:
            self._record = new_record(self._draft)
        else:
            apply_draft_to_record(self._draft, self._record)

        if self._persisted:
            self._store.save(self._record)
        else:
            self._store.create(self._record)
            self._persisted = True
        logger.info(
            "session.saved story_id=%s rank=%s complete=%s passages=%s",
            self._record.story_id,
            self._record.current_step_rank,
            self._record.complete,
            len(self._record.passages),
        )
        return self._record

    def reset(self) -> None:
        """Discard the draft and detach from the stored record."""
        self._draft.reset()
        if self._orchestrator is not None:
            self._orchestrator.clear_options()
        self._record = None
        self._persisted = False
