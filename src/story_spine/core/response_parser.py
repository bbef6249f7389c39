"""Turn free-form model text into structured opening and continuation results.

Both parsers are total: whatever the model sends back, they return something
usable. Each is a single left-to-right pass over the non-blank lines of the
response, driven by a small line-classification state machine.
"""

from __future__ import annotations

from enum import Enum
from typing import Final

from story_spine.domain.draft import ContinuationPair, GenerationResult

UNTITLED_STORY: Final[str] = "Untitled Story"
FAILED_CONTINUATION: Final[str] = "Failed to generate continuation."

_TITLE_LABEL: Final[str] = "title:"
_PASSAGE_LABEL: Final[str] = "passage:"
_OPTION_A_LABELS: Final[tuple[str, ...]] = ("option 1:", "continuation 1:")
_OPTION_B_LABELS: Final[tuple[str, ...]] = ("option 2:", "continuation 2:")
_PARAGRAPH_JOIN: Final[str] = "\n\n"


class _OpeningState(Enum):
    SEEKING_LABEL = "seeking_label"
    IN_TITLE = "in_title"
    IN_PASSAGE = "in_passage"


class _ContinuationState(Enum):
    SEEKING_LABEL = "seeking_label"
    IN_OPTION_A = "in_option_a"
    IN_OPTION_B = "in_option_b"


def content_lines(raw_text: str) -> list[str]:
    """Split on any line break, strip each line, drop blank ones."""
    return [line.strip() for line in raw_text.splitlines() if line.strip()]


def _strip_label(line: str, labels: tuple[str, ...]) -> str | None:
    """Return the text after a matching label, or None if no label matches."""
    lowered = line.lower()
    for label in labels:
        if lowered.startswith(label):
            return line[len(label) :].strip()
    return None


def parse_opening(raw_text: str) -> GenerationResult:
    """Extract a title and opening passage from a ``Title:``/``Passage:`` response.

    A response without a ``Title:`` label uses its first line as the title.
    Without any passage lines the whole raw response becomes the passage.
    """
    state = _OpeningState.SEEKING_LABEL
    title = ""
    passage_lines: list[str] = []

    for line in content_lines(raw_text):
        title_text = _strip_label(line, (_TITLE_LABEL,))
        if title_text is not None:
            title = title_text
            if state is _OpeningState.SEEKING_LABEL:
                state = _OpeningState.IN_TITLE
            continue

        if _strip_label(line, (_PASSAGE_LABEL,)) is not None:
            # passage text starts on the line after the label
            state = _OpeningState.IN_PASSAGE
            continue

        if state is _OpeningState.IN_PASSAGE:
            passage_lines.append(line)
        elif state is _OpeningState.SEEKING_LABEL and not title:
            # unlabeled first line doubles as the title
            title = line
            state = _OpeningState.IN_TITLE

    passage = _PARAGRAPH_JOIN.join(passage_lines) if passage_lines else raw_text
    return GenerationResult(title=title or UNTITLED_STORY, passage=passage)


def parse_continuations(raw_text: str) -> ContinuationPair:
    """Extract two candidate passages from an ``Option 1:``/``Option 2:`` response.

    Unlabeled leading text counts as option A. A missing option degrades to
    the ``FAILED_CONTINUATION`` marker instead of raising.
    """
    state = _ContinuationState.SEEKING_LABEL
    buffers: dict[_ContinuationState, list[str]] = {
        _ContinuationState.IN_OPTION_A: [],
        _ContinuationState.IN_OPTION_B: [],
    }

    for line in content_lines(raw_text):
        option_a_text = _strip_label(line, _OPTION_A_LABELS)
        if option_a_text is not None:
            state = _ContinuationState.IN_OPTION_A
            if option_a_text:
                buffers[state].append(option_a_text)
            continue

        option_b_text = _strip_label(line, _OPTION_B_LABELS)
        if option_b_text is not None:
            state = _ContinuationState.IN_OPTION_B
            if option_b_text:
                buffers[state].append(option_b_text)
            continue

        if state is _ContinuationState.SEEKING_LABEL:
            state = _ContinuationState.IN_OPTION_A
        buffers[state].append(line)

    return ContinuationPair(
        option_a=_joined_or_failed(buffers[_ContinuationState.IN_OPTION_A]),
        option_b=_joined_or_failed(buffers[_ContinuationState.IN_OPTION_B]),
    )


def _joined_or_failed(lines: list[str]) -> str:
    if not lines:
        return FAILED_CONTINUATION
    return _PARAGRAPH_JOIN.join(lines)
