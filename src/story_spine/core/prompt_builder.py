"""Prompt templates for the opening step and for spine continuations."""

from __future__ import annotations

from typing import Final

from story_spine.domain.errors import InvalidRankError
from story_spine.domain.spine import FIRST_RANK, SpineStep, guidance_for

_OPENING_PROMPT: Final[str] = """\
You're a storyteller creating the opening of a story based on the Story Spine framework.
Look closely at the uploaded image - notice the characters, setting, lighting, mood, and any hints of conflict or emotion.
Write the "Once upon a time..." part of the story (but don't actually use that phrase).
Your opening should:

Introduce the world and characters
Set the scene and atmosphere
Hook the reader right away
Be about 2-3 sentences long
Tell a story inspired by the image, not just describe what you see
Use clear, engaging language - keep it simple but captivating

Format:
Title: [An interesting title]
Passage:
[Your opening paragraph]"""

_CONTINUATION_PROMPT: Final[str] = """\
You're continuing a story using the Story Spine framework.

Current story so far:
{story_so_far}

You need to write the next passage for Step {rank}: {title}

{guidance}

What to do:

- Keep the same tone, style, and characters from the existing story
- Write about 2-3 sentences
- Make it flow naturally - no explanations, just story
- Create two different options that both make sense
- Each option should take the story in a different direction
- Stay true to the world and characters you've established
- Add the right amount of tension or emotion for this part of the story

Output format (plain text only):
Option 1:
[Your first continuation - 2-3 sentences]

Option 2:
[Your second continuation - 2-3 sentences]

Don't literally use phrases like "Every day..." or "But one day..." - just write the story naturally in that style."""


def build_opening_prompt() -> str:
    """Prompt for the image-grounded opening with a Title/Passage reply shape."""
    return _OPENING_PROMPT


def build_continuation_prompt(step: SpineStep, story_so_far: str) -> str:
    """Prompt asking for two diverging continuations of ``story_so_far`` at ``step``."""
    if step.rank == FIRST_RANK:
        # the opening has its own image-grounded prompt
        raise InvalidRankError(step.rank)
    return _CONTINUATION_PROMPT.format(
        story_so_far=story_so_far,
        rank=step.rank,
        title=step.title,
        guidance=guidance_for(step),
    )
