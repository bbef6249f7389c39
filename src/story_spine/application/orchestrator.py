"""Coordinates prompt building, generator calls, and response parsing."""

from __future__ import annotations

import logging

from story_spine.core.prompt_builder import build_continuation_prompt, build_opening_prompt
from story_spine.core.response_parser import parse_continuations, parse_opening
from story_spine.domain.draft import ContinuationPair, GenerationResult
from story_spine.domain.errors import EmptyResponseError, GenerationError
from story_spine.domain.ports import ImageInput, TextGenerator
from story_spine.domain.spine import SpineStep

logger = logging.getLogger(__name__)


class GenerationOrchestrator:
    """Publishes the two current continuation candidates for one draft.

    ``generating`` is an advisory single-flight flag: callers must not start a
    second request for the same draft while it is set.
    """

    def __init__(self, generator: TextGenerator) -> None:
        self._generator = generator
        self.option_a = ""
        self.option_b = ""
        self.generating = False

    @property
    def has_options(self) -> bool:
        return bool(self.option_a and self.option_b)

    def clear_options(self) -> None:
        self.option_a = ""
        self.option_b = ""

    def generate_continuations(self, story_so_far: str, step: SpineStep) -> ContinuationPair:
        """Generate, parse, and publish two continuations for ``step``."""
        self.generating = True
        self.clear_options()
        try:
            prompt = build_continuation_prompt(step, story_so_far)
            logger.info(
                "generation.continuations.request step=%s story_chars=%s",
                step.rank,
                len(story_so_far),
            )
            text = self._call(prompt)
            pair = parse_continuations(text)
            self.option_a = pair.option_a
            self.option_b = pair.option_b
            logger.info(
                "generation.continuations.result step=%s option_a_chars=%s option_b_chars=%s",
                step.rank,
                len(pair.option_a),
                len(pair.option_b),
            )
            return pair
        except GenerationError as exc:
            logger.warning(
                "generation.continuations.failed step=%s error=%s", step.rank, type(exc).__name__
            )
            raise
        finally:
            self.generating = False

    def generate_opening(self, image: ImageInput) -> GenerationResult:
        """Generate the title and opening passage from an image."""
        self.generating = True
        try:
            logger.info(
                "generation.opening.request mime_type=%s image_bytes=%s",
                image.mime_type,
                len(image.data),
            )
            text = self._call(build_opening_prompt(), image)
            result = parse_opening(text)
            logger.info("generation.opening.result title=%r", result.title)
            return result
        except GenerationError as exc:
            logger.warning("generation.opening.failed error=%s", type(exc).__name__)
            raise
        finally:
            self.generating = False

    def _call(self, prompt: str, image: ImageInput | None = None) -> str:
        text = self._generator.generate(prompt, image)
        if not text or not text.strip():
            raise EmptyResponseError("Generator returned an empty response.")
        return text
