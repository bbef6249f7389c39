"""The seven Story Spine steps and their generation guidance."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from story_spine.domain.errors import InvalidRankError


@dataclass(frozen=True, order=True)
class SpineStep:
    """One beat of the Story Spine, ordered by rank."""

    rank: int
    title: str
    description: str
    guidance: str


TOTAL_STEPS: Final[int] = 7
FIRST_RANK: Final[int] = 1
LAST_RANK: Final[int] = TOTAL_STEPS

_STEPS: Final[tuple[SpineStep, ...]] = (
    SpineStep(
        rank=1,
        title="Once upon a time...",
        description="Set up the world, characters, and initial situation",
        guidance="This step sets up the world, characters, and initial situation.",
    ),
    SpineStep(
        rank=2,
        title="Every day...",
        description="Establish the normal routine or status quo",
        guidance=(
            "This step establishes the normal routine or status quo. "
            "Show what life was like before things changed.\n"
            "- Establish patterns, routines, or normalcy\n"
            "- Build connection with characters' daily life\n"
            "- Set up contrast for what's to come"
        ),
    ),
    SpineStep(
        rank=3,
        title="But one day...",
        description="Introduce the inciting incident or problem",
        guidance=(
            "This is the inciting incident - the moment everything changes.\n"
            "- Introduce a problem, opportunity, or change\n"
            "- Break the normal routine\n"
            "- Create the first significant disruption"
        ),
    ),
    SpineStep(
        rank=4,
        title="Because of that...",
        description="Show the consequences and rising action",
        guidance=(
            "Show the immediate consequences and rising action.\n"
            "- Develop the conflict or situation further\n"
            "- Show reactions and initial responses\n"
            "- Build momentum toward complications"
        ),
    ),
    SpineStep(
        rank=5,
        title="And because of that...",
        description="Continue building tension and complications",
        guidance=(
            "Continue building tension and adding complications.\n"
            "- Escalate the situation\n"
            "- Add new obstacles or challenges\n"
            "- Push characters further"
        ),
    ),
    SpineStep(
        rank=6,
        title="Until finally...",
        description="Reach the climax and turning point",
        guidance=(
            "Reach the climax - the turning point or major resolution moment.\n"
            "- Bring the conflict to its peak\n"
            "- Show the decisive moment or confrontation\n"
            "- Create the dramatic high point"
        ),
    ),
    SpineStep(
        rank=7,
        title="And, ever since then...",
        description="Show the resolution and new normal",
        guidance=(
            "Show the resolution and new normal.\n"
            "- Reveal how things have changed\n"
            "- Show the aftermath or consequences\n"
            "- Establish the new equilibrium"
        ),
    ),
)


def all_steps() -> tuple[SpineStep, ...]:
    """Return every spine step in rank order."""
    return _STEPS


def step_for(rank: int) -> SpineStep:
    """Look up one step by its 1-based rank."""
    # bool is an int subclass; True must not resolve to rank 1
    if isinstance(rank, bool) or not isinstance(rank, int):
        raise InvalidRankError(rank)
    if rank < FIRST_RANK or rank > LAST_RANK:
        raise InvalidRankError(rank)
    return _STEPS[rank - 1]


def guidance_for(step: SpineStep) -> str:
    return step_for(step.rank).guidance
