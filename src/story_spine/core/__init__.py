"""Pure prompt building and response parsing."""

from story_spine.core.prompt_builder import build_continuation_prompt, build_opening_prompt
from story_spine.core.response_parser import (
    FAILED_CONTINUATION,
    UNTITLED_STORY,
    parse_continuations,
    parse_opening,
)

__all__ = [
    "FAILED_CONTINUATION",
    "UNTITLED_STORY",
    "build_continuation_prompt",
    "build_opening_prompt",
    "parse_continuations",
    "parse_opening",
]
