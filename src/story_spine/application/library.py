"""Read model for the saved-story library."""

from __future__ import annotations

from dataclasses import dataclass

from story_spine.application.reconciler import record_to_draft
from story_spine.domain.ports import StoryRecordStore
from story_spine.domain.records import StoryRecord


@dataclass(frozen=True)
class LibraryEntry:
    """One saved story as listed in the library."""

    story_id: str
    title: str
    progress: str
    complete: bool
    created_at_utc: str
    updated_at_utc: str


@dataclass(frozen=True)
class LibraryView:
    """Saved stories split into unfinished and finished, newest first."""

    entries: list[LibraryEntry]

    @property
    def in_progress(self) -> list[LibraryEntry]:
        return [entry for entry in self.entries if not entry.complete]

    @property
    def completed(self) -> list[LibraryEntry]:
        return [entry for entry in self.entries if entry.complete]

    @property
    def is_empty(self) -> bool:
        return not self.entries


def display_title(title: str) -> str:
    return title if title.strip() else "Untitled story"


def library_entry(record: StoryRecord) -> LibraryEntry:
    draft = record_to_draft(record)
    return LibraryEntry(
        story_id=record.story_id,
        title=display_title(record.title),
        progress=draft.progress_label(),
        complete=draft.complete,
        created_at_utc=record.created_at_utc,
        updated_at_utc=record.updated_at_utc,
    )


def list_library(store: StoryRecordStore) -> LibraryView:
    return LibraryView(entries=[library_entry(record) for record in store.query_all()])
