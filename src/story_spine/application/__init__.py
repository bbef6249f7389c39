"""Workflow services built on the domain and core layers."""

from story_spine.application.library import LibraryEntry, LibraryView, list_library
from story_spine.application.orchestrator import GenerationOrchestrator
from story_spine.application.reconciler import (
    apply_draft_to_record,
    new_record,
    record_to_draft,
)
from story_spine.application.session import StorySession

__all__ = [
    "GenerationOrchestrator",
    "LibraryEntry",
    "LibraryView",
    "StorySession",
    "apply_draft_to_record",
    "list_library",
    "new_record",
    "record_to_draft",
]
