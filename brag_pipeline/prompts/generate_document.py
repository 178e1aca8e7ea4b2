"""
Prompt for generating a document (weekly update, performance review, ...)
from a set of achievements.

Achievements are presented in chronological order so the model can write a
coherent timeline. User instructions, when present, are rendered ahead of
the default instructions and the model is told to let them win.
"""

from datetime import date
from typing import List, Optional, Sequence

from brag_pipeline.common.types import Achievement, ChatTurn, Company, Project, User
from brag_pipeline.prompts import elements
from brag_pipeline.prompts.renderer import Leaf, Renderer, render_prompt


DOCUMENT_PURPOSE = """You are a document writer in the service of a user of the bragdoc.ai
application."""

DOCUMENT_BACKGROUND = """bragdoc.ai helps people track their professional achievements and
generate documents such as weekly updates to their managers, monthly
updates to their skip-level managers, and performance review documents.
The user of bragdoc.ai can ask you to generate these documents for them."""

USER_INSTRUCTIONS_PRIORITY = (
    "The user has given instructions in <user-instructions>. Follow them exactly. "
    "Where they conflict with any instruction below, the user's instructions take priority."
)

DOCUMENT_INSTRUCTIONS = [
    "Use the configured language for this document",
    "Do not make reference to the company unless asked to",
    "Do not add fluff, exaggeration or boast",
    "Markdown is supported",
    "Use headings whenever appropriate",
    "Group related achievements together",
    "Give more precedence to achievements with a higher impact rating",
    "Pay attention to the chat history, if present, and respond to what the user is asking for",
]

DOCUMENT_INPUTS = {
    "document-title": "The title of the document being generated, if the user provided one",
    "language": "The language to use for this document",
    "days": "The number of days for which the document is being generated",
    "user-instructions": "Instructions from the user for how to write the document",
    "project": "If present, the project for which the document is being generated",
    "company": "If present, the company for which the document is being generated",
    "achievements": "The achievements that the user has logged for this project and period, oldest first",
    "chat-history": "The chat history between the user and the chatbot",
    "today": "Today's date",
}


def sort_achievements(achievements: Sequence[Achievement]) -> List[Achievement]:
    """Order by event_start ascending; undated achievements go last. Stable."""
    return sorted(
        achievements,
        key=lambda a: (a.event_start is None, a.event_start or date.min),
    )


def build_document_prompt(
    user: User,
    doc_title: str,
    days: int,
    achievements: Sequence[Achievement],
    project: Optional[Project] = None,
    company: Optional[Company] = None,
    user_instructions: Optional[str] = None,
    chat_history: Optional[Sequence[ChatTurn]] = None,
    today: Optional[date] = None,
    renderer: Renderer = render_prompt,
) -> str:
    """
    Build the prompt for generating a document.

    Args:
        user: The requesting user (language and standing document instructions)
        doc_title: Title of the document
        days: Number of days the document covers
        achievements: Achievements to write about, in any order
        project: Project the document is scoped to, if any
        company: Company the document is scoped to, if any
        user_instructions: Instructions for this document; falls back to the
            user's standing document instructions when empty
        chat_history: Conversation that led to the request, if any
        today: Date to report as today (defaults to date.today())
        renderer: Fragment renderer

    Returns:
        The rendered prompt
    """
    instructions_text = (user_instructions or user.preferences.document_instructions or "").strip()

    if instructions_text:
        preamble = elements.instructions(
            [USER_INSTRUCTIONS_PRIORITY, *DOCUMENT_INSTRUCTIONS]
        )
    else:
        preamble = elements.instructions(DOCUMENT_INSTRUCTIONS)

    layout = [
        elements.purpose(DOCUMENT_PURPOSE),
        elements.background(DOCUMENT_BACKGROUND),
        elements.user_instructions(instructions_text) if instructions_text else None,
        preamble,
        elements.input_format(DOCUMENT_INPUTS),
        elements.variables(
            Leaf("document-title", doc_title),
            Leaf("language", user.preferences.language),
            Leaf("days", str(days)),
            elements.project(project),
            elements.company(company),
            elements.achievements(sort_achievements(achievements)),
            elements.chat_history(chat_history or ()),
            elements.today(today or date.today()),
        ),
    ]
    return renderer(layout)
