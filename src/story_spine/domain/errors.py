"""Error types shared across the story workflow layers."""

from __future__ import annotations


class StorySpineError(Exception):
    """Base class for all story_spine failures."""


class InvalidRankError(StorySpineError, ValueError):
    """Raised when a step rank falls outside the seven spine steps."""

    def __init__(self, rank: object) -> None:
        super().__init__(f"Spine step rank must be an integer in 1..7, got {rank!r}.")
        self.rank = rank


class StoryCompleteError(StorySpineError):
    """Raised when a workflow call needs an unfinished story."""


class NoContinuationError(StorySpineError):
    """Raised when a candidate is chosen before any were generated."""


class GenerationError(StorySpineError, RuntimeError):
    """Raised when the text-generation capability cannot produce text."""


class EmptyResponseError(GenerationError):
    """Raised when the generator returned no usable text."""


class GenerationNetworkError(GenerationError):
    """Raised on transport failures talking to the generator."""


class GenerationAuthError(GenerationError):
    """Raised when the generator rejects our credentials."""


class GenerationQuotaError(GenerationError):
    """Raised when the generator reports rate limiting or exhausted quota."""


class GenerationConfigError(StorySpineError):
    """Raised when no usable generator configuration is available."""


class PersistenceWriteError(StorySpineError, RuntimeError):
    """Raised when the durable store fails to commit a write."""
