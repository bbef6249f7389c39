"""Domain models, errors, and ports for spine-guided story writing."""

from story_spine.domain.draft import ContinuationPair, GenerationResult, StoryDraft
from story_spine.domain.ports import ImageInput, StoryRecordStore, TextGenerator
from story_spine.domain.records import PassageRecord, StoryRecord
from story_spine.domain.spine import SpineStep, all_steps, guidance_for, step_for

__all__ = [
    "ContinuationPair",
    "GenerationResult",
    "ImageInput",
    "PassageRecord",
    "SpineStep",
    "StoryDraft",
    "StoryRecord",
    "StoryRecordStore",
    "TextGenerator",
    "all_steps",
    "guidance_for",
    "step_for",
]
