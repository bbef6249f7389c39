from __future__ import annotations

import pytest

from story_spine.application.orchestrator import GenerationOrchestrator
from story_spine.application.session import StorySession
from story_spine.domain.errors import (
    GenerationConfigError,
    NoContinuationError,
    PersistenceWriteError,
    StoryCompleteError,
)
from story_spine.domain.ports import ImageInput
from story_spine.domain.records import StoryRecord


class _MemoryStore:
    def __init__(self) -> None:
        self.records: dict[str, StoryRecord] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail_next_write = False

    def _check(self) -> None:
        if self.fail_next_write:
            self.fail_next_write = False
            raise PersistenceWriteError("disk full")

    def create(self, record: StoryRecord) -> None:
        self._check()
        self.calls.append(("create", record.story_id))
        self.records[record.story_id] = record

    def save(self, record: StoryRecord) -> None:
        self._check()
        self.calls.append(("save", record.story_id))
        self.records[record.story_id] = record

    def delete(self, record: StoryRecord) -> None:
        self.records.pop(record.story_id, None)

    def get(self, story_id: str) -> StoryRecord | None:
        return self.records.get(story_id)

    def query_all(self) -> list[StoryRecord]:
        return sorted(self.records.values(), key=lambda r: r.created_at_utc, reverse=True)


class _EchoGenerator:
    def __init__(self) -> None:
        self.prompts: list[str] = []

    def generate(self, prompt: str, image: ImageInput | None = None) -> str:
        self.prompts.append(prompt)
        if image is not None:
            return "Title: Gulls\nPassage:\nThe gulls argued over bread."
        return f"Option 1: A{len(self.prompts)}.\nOption 2: B{len(self.prompts)}."


def _session(store: _MemoryStore) -> StorySession:
    return StorySession.fresh(store, GenerationOrchestrator(_EchoGenerator()))


def test_first_commit_creates_then_later_commits_save() -> None:
    store = _MemoryStore()
    session = _session(store)

    assert session.story_id is None
    assert session.commit_passage("Opening.")
    story_id = session.story_id
    assert story_id is not None
    assert session.commit_passage("Routine.")

    assert store.calls == [("create", story_id), ("save", story_id)]
    assert store.records[story_id].passages_by_rank() == {1: "Opening.", 2: "Routine."}


def test_blank_commit_does_not_touch_the_store() -> None:
    store = _MemoryStore()
    session = _session(store)
    assert session.commit_passage("  ") is False
    assert store.calls == []


def test_generate_opening_drafts_without_committing() -> None:
    store = _MemoryStore()
    session = _session(store)
    result = session.generate_opening(ImageInput(data=b"img"))

    assert result.title == "Gulls"
    assert session.title == "Gulls"
    assert session.passages[1] == "The gulls argued over bread."
    assert session.current_step.rank == 1
    assert store.calls == []

    session.edit_opening(title="Loud Gulls")
    assert session.commit_passage(session.passages[1])
    assert store.records[session.story_id or ""].title == "Loud Gulls"


def test_choose_option_commits_candidate_and_clears_options() -> None:
    store = _MemoryStore()
    session = _session(store)
    session.commit_passage("Opening.")

    pair = session.generate_continuations()
    assert session.option_a == pair.option_a == "A1."
    assert session.choose_option(2)

    assert session.passages[2] == "B1."
    assert session.current_step.rank == 3
    assert session.option_a == ""
    assert session.option_b == ""


def test_choose_option_without_candidates_raises() -> None:
    session = _session(_MemoryStore())
    session.commit_passage("Opening.")
    with pytest.raises(NoContinuationError):
        session.choose_option(1)


def test_choose_option_rejects_other_numbers() -> None:
    session = _session(_MemoryStore())
    session.commit_passage("Opening.")
    session.generate_continuations()
    with pytest.raises(ValueError):
        session.choose_option(3)


def test_full_walk_completes_and_blocks_further_generation() -> None:
    store = _MemoryStore()
    session = _session(store)
    session.commit_passage("Opening.")
    while not session.complete:
        session.generate_continuations()
        session.choose_option(1)

    record = store.records[session.story_id or ""]
    assert record.complete
    assert len(record.passages) == 7
    with pytest.raises(StoryCompleteError):
        session.generate_continuations()
    with pytest.raises(StoryCompleteError):
        session.commit_passage("Epilogue.")


def test_session_without_generator_can_commit_but_not_generate() -> None:
    store = _MemoryStore()
    session = StorySession.fresh(store)
    assert session.commit_passage("Opening.")
    assert not session.generating
    with pytest.raises(GenerationConfigError):
        session.generate_continuations()


def test_failed_save_keeps_draft_and_retries_create() -> None:
    store = _MemoryStore()
    session = _session(store)
    store.fail_next_write = True

    with pytest.raises(PersistenceWriteError):
        session.commit_passage("Opening.")
    assert session.current_step.rank == 2
    assert store.calls == []

    session.save()
    assert [call for call, _ in store.calls] == ["create"]


def test_resume_continues_from_stored_record() -> None:
    store = _MemoryStore()
    first = _session(store)
    first.commit_passage("Opening.")
    first.commit_passage("Routine.")
    record = store.records[first.story_id or ""]

    resumed = StorySession.resume(record, store, GenerationOrchestrator(_EchoGenerator()))
    assert resumed.current_step.rank == 3
    resumed.generate_continuations()
    resumed.choose_option(1)

    assert store.calls[-1] == ("save", record.story_id)
    assert record.passages_by_rank()[3] == "A1."


def test_reset_detaches_from_record() -> None:
    store = _MemoryStore()
    session = _session(store)
    session.commit_passage("Opening.")
    session.reset()

    assert session.story_id is None
    assert session.current_step.rank == 1
    session.commit_passage("Another opening.")
    assert [call for call, _ in store.calls] == ["create", "create"]
    assert len(store.records) == 2
