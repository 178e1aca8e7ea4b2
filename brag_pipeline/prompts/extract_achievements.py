"""
Prompt for extracting achievements from a chat message.

The user's latest message is the only extraction source; recent chat
history is included (bounded by a turn and character budget) so the model
can resolve references like "that migration I mentioned".
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional, Sequence, Tuple

from brag_pipeline.common.config import Config
from brag_pipeline.common.logger import get_logger
from brag_pipeline.common.types import ChatTurn, Company, Project, User
from brag_pipeline.prompts import elements
from brag_pipeline.prompts.renderer import Renderer, render_prompt
from brag_pipeline.prompts.shared import EXAMPLE_ACHIEVEMENTS, EXTRACTION_RULES, format_examples

logger = get_logger(__name__, layer="prompts")


EXTRACTION_PURPOSE = """You are a careful and attentive assistant who extracts work achievements
from conversations between users and AI assistants. Extract all of the
achievements in the user message contained within the <user-input> tag.
Follow all of the instructions provided below."""

CHAT_RULES = [
    "Consider the chat history and context to understand the full scope of each achievement.",
    "If the user mentions multiple achievements in a single message, extract them all.",
    """Consider only the single message inside <user-input> when creating achievements.
If the user mentions achievements in the <chat-history>, do not extract them because they
have already been extracted. If those previous messages are relevant to the current
message, use them to inform your extraction.""",
]

EXTRACTION_INSTRUCTIONS = [CHAT_RULES[0], *EXTRACTION_RULES, *CHAT_RULES[1:]]

EXTRACTION_INPUTS = {
    "user-input": "The message that the user just sent you to extract achievements from",
    "chat-history": "Recent chat history between the user and AI assistant",
    "companies": "All of the companies that the user works at (or has worked at)",
    "projects": "All of the projects that the user works on (or has worked on)",
    "user-instructions": "Any specific instructions from the user to guide the extraction process",
    "today": "Today's date",
}


# Depth of each <message> in the layout: variables > chat-history > message
CHAT_MESSAGE_DEPTH = 2


@dataclass(frozen=True)
class ChatWindow:
    """The retained suffix of a chat history plus how many turns were dropped."""

    turns: Tuple[ChatTurn, ...]
    dropped: int
    char_count: int = 0


def select_chat_window(
    turns: Sequence[ChatTurn],
    max_turns: Optional[int] = None,
    max_chars: Optional[int] = None,
    depth: int = CHAT_MESSAGE_DEPTH,
) -> ChatWindow:
    """
    Keep the most recent turns that fit both budgets.

    Turns are taken newest-first until either budget would be exceeded, so
    the retained window is always a contiguous, chronological suffix of the
    history. A turn's cost is its whole rendered <message> block at `depth`
    (tags and indentation included), so the message lines that land in the
    prompt never exceed max_chars.

    Args:
        turns: Full chat history, oldest first
        max_turns: Maximum turns to keep (default Config.CHAT_HISTORY_MAX_TURNS)
        max_chars: Maximum rendered characters to keep (default Config.CHAT_HISTORY_MAX_CHARS)
        depth: Nesting depth of the <message> tags in the assembled prompt

    Returns:
        ChatWindow with the retained turns, the dropped count and the chars used
    """
    max_turns = Config.CHAT_HISTORY_MAX_TURNS if max_turns is None else max_turns
    max_chars = Config.CHAT_HISTORY_MAX_CHARS if max_chars is None else max_chars

    kept = []
    used = 0
    for turn in reversed(turns):
        if len(kept) >= max_turns:
            break
        cost = elements.chat_turn_cost(turn, depth)
        if used + cost > max_chars:
            break
        kept.append(turn)
        used += cost

    kept.reverse()
    return ChatWindow(turns=tuple(kept), dropped=len(turns) - len(kept), char_count=used)


def build_extraction_prompt(
    user: User,
    message: str,
    chat_history: Sequence[ChatTurn],
    projects: Sequence[Project],
    companies: Sequence[Company],
    examples: Optional[Sequence[Dict[str, Any]]] = None,
    today: Optional[date] = None,
    max_turns: Optional[int] = None,
    max_chars: Optional[int] = None,
    renderer: Renderer = render_prompt,
) -> str:
    """
    Build the prompt for extracting achievements from one chat message.

    Args:
        user: The requesting user (document instructions are passed along)
        message: The message to extract achievements from
        chat_history: Prior turns, oldest first (truncated from the oldest end)
        projects: The user's projects
        companies: The user's companies
        examples: Example extractions (defaults to the built-in examples)
        today: Date to report as today (defaults to date.today())
        max_turns: Chat history turn budget override
        max_chars: Chat history character budget override
        renderer: Fragment renderer

    Returns:
        The rendered prompt
    """
    window = select_chat_window(chat_history, max_turns=max_turns, max_chars=max_chars)
    if window.dropped:
        logger.info(
            f"Dropped {window.dropped} oldest chat turns "
            f"(kept {len(window.turns)} turns, {window.char_count} chars)"
        )

    example_items = EXAMPLE_ACHIEVEMENTS if examples is None else examples

    layout = [
        elements.purpose(EXTRACTION_PURPOSE),
        elements.instructions(EXTRACTION_INSTRUCTIONS),
        elements.input_format(EXTRACTION_INPUTS),
        elements.variables(
            elements.today(today or date.today()),
            elements.user_instructions(user.preferences.document_instructions),
            elements.chat_history(window.turns),
            elements.companies(companies),
            elements.projects(projects),
            elements.user_input(text=message),
        ),
        elements.examples(format_examples(example_items)),
    ]
    return renderer(layout)
