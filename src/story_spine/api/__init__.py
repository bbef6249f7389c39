"""Public API surface: HTTP contracts and the FastAPI app factory (``story_spine.api.app``)."""

from story_spine.api.contracts import (
    StoryResponse,
    StorySummaryResponse,
    load_story_json,
    save_story_json,
    story_response,
)

__all__ = [
    "StoryResponse",
    "StorySummaryResponse",
    "load_story_json",
    "save_story_json",
    "story_response",
]
