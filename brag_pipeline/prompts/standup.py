"""
Prompt for standup notes: a short summary of what the user achieved since
the last standup.
"""

from typing import Optional, Sequence

from brag_pipeline.common.types import Achievement
from brag_pipeline.prompts import elements
from brag_pipeline.prompts.generate_document import sort_achievements
from brag_pipeline.prompts.renderer import Renderer, render_prompt


STANDUP_PURPOSE = """You are a helpful assistant that creates concise standup summaries from
achievement data. Summarize what the user accomplished in a clear,
professional manner suitable for a team standup meeting."""

STANDUP_INSTRUCTIONS = [
    "Write 2-4 short paragraphs",
    "Highlight the most important accomplishments first",
    "Mention any significant impact or results",
    "Use a professional but friendly tone",
    "Do not add fluff, exaggeration or boast",
]


def build_standup_prompt(
    achievements: Sequence[Achievement],
    instructions: Optional[str] = None,
    renderer: Renderer = render_prompt,
) -> str:
    """Build the standup prompt; achievements are rendered oldest first."""
    layout = [
        elements.purpose(STANDUP_PURPOSE),
        elements.user_instructions(instructions) if instructions else None,
        elements.instructions(STANDUP_INSTRUCTIONS),
        elements.achievements(sort_achievements(achievements)),
    ]
    return renderer(layout)
