"""
Fragment builders for domain records and prompt sections.

Each builder returns a single fragment (or None for an optional record
that is absent) ready to be placed into an assembler's layout.
"""

from datetime import date
from typing import Iterable, Mapping, Optional, Sequence

from brag_pipeline.common.types import (
    Achievement,
    ChatRole,
    ChatTurn,
    CommitRecord,
    Company,
    Project,
    Repository,
)
from brag_pipeline.prompts.renderer import Fragment, Leaf, Node, render_prompt

PRESENT = "Present"
DEFAULT_INPUT_FORMAT_TITLE = "You are provided with the following inputs:"
DEFAULT_OUTPUT_FORMAT_TITLE = "Your response should be formatted as:"


def _date_text(value: Optional[date], open_ended: bool = False) -> str:
    if value is None:
        return PRESENT if open_ended else ""
    return value.isoformat()


# ===== Domain records =====

def company(record: Optional[Company]) -> Optional[Node]:
    if record is None:
        return None
    return Node("company", (
        Leaf("id", record.id),
        Leaf("name", record.name),
        Leaf("role", record.role),
        Leaf("domain", record.domain),
        Leaf("start-date", _date_text(record.start_date)),
        Leaf("end-date", _date_text(record.end_date, open_ended=True)),
    ))


def companies(records: Iterable[Company]) -> Node:
    return Node("companies", tuple(company(r) for r in records))


def project(record: Optional[Project]) -> Optional[Node]:
    if record is None:
        return None
    return Node("project", (
        Leaf("id", record.id),
        Leaf("name", record.name),
        Leaf("description", record.description),
        Leaf("status", record.status),
        Leaf("company-id", record.company_id),
        Leaf("start-date", _date_text(record.start_date)),
        Leaf("end-date", _date_text(record.end_date, open_ended=True)),
        Leaf("remote-url", record.repo_remote_url),
    ))


def projects(records: Iterable[Project]) -> Node:
    return Node("projects", tuple(project(r) for r in records))


def achievement(record: Achievement) -> Node:
    return Node("achievement", (
        Leaf("id", record.id),
        Leaf("title", record.title),
        Leaf("summary", record.summary),
        Leaf("details", record.details),
        Leaf("impact", str(record.impact)),
        Leaf("source", record.source),
        Leaf("event-start", _date_text(record.event_start)),
        Leaf("event-end", _date_text(record.event_end, open_ended=True)),
        Leaf("event-duration", record.event_duration),
    ))


def achievements(records: Iterable[Achievement]) -> Node:
    """Render achievements in the order given; callers sort beforehand."""
    return Node("achievements", tuple(achievement(r) for r in records))


def commit(record: CommitRecord) -> Node:
    """
    Render one commit with its changed files and, when present, its pull request.
    """
    pull_request = None
    if record.pull_request is not None:
        pull_request = Node("pull-request", (
            Leaf("number", str(record.pull_request.number)),
            Leaf("title", record.pull_request.title),
            Leaf("description", record.pull_request.description),
        ))

    files = None
    if record.files_changed:
        files = Node("files-changed", tuple(Leaf("file", f) for f in record.files_changed))

    return Node("commit", (
        Leaf("message", record.message),
        Leaf("hash", record.hash),
        Leaf("author", record.author),
        Leaf("date", record.date),
        Leaf("branch", record.branch) if record.branch else None,
        files,
        pull_request,
    ))


def commits(records: Sequence[CommitRecord]) -> Node:
    return Node("commits", tuple(commit(r) for r in records))


def repository(record: Optional[Repository]) -> Optional[Node]:
    if record is None:
        return None
    return Node("repository", (
        Leaf("name", record.name),
        Leaf("path", record.path),
        Leaf("remote-url", record.remote_url),
    ))


def chat_message(turn: ChatTurn) -> Leaf:
    return Leaf("message", format_chat_turn(turn))


def format_chat_turn(turn: ChatTurn) -> str:
    """Text rendered inside a <message> tag."""
    return f"{ChatRole(turn.role).value}: {turn.text}"


def chat_turn_cost(turn: ChatTurn, depth: int) -> int:
    """
    Characters a turn adds to the prompt when its <message> sits at `depth`.

    Counts the tags, the indentation of every line (multi-line messages are
    re-indented) and the newline joining it to the previous message.
    """
    return len(render_prompt(chat_message(turn), depth=depth)) + 1


def chat_history(turns: Iterable[ChatTurn]) -> Node:
    return Node("chat-history", tuple(chat_message(t) for t in turns))


# ===== Prompt sections =====

def purpose(text: str) -> Leaf:
    return Leaf("purpose", text)


def background(text: str) -> Leaf:
    return Leaf("background", text)


def instructions(items: Iterable[str], *extra: Optional[Fragment]) -> Node:
    return Node("instructions", tuple(Leaf("instruction", i) for i in items) + extra)


def user_instructions(text: Optional[str]) -> Leaf:
    return Leaf("user-instructions", text or "")


def examples(items: Iterable[str]) -> Node:
    return Node("examples", tuple(Leaf("example", e) for e in items))


def input_format(descriptions: Mapping[str, str], title: str = DEFAULT_INPUT_FORMAT_TITLE) -> Node:
    """Describe each input tag; keys are tag names, values their meaning."""
    return Node(
        "input-format",
        tuple(Leaf(tag, text) for tag, text in descriptions.items()),
        {"title": title},
    )


def output_format(text: str, title: str = DEFAULT_OUTPUT_FORMAT_TITLE) -> Node:
    return Node("output-format", (Leaf("description", text),), {"title": title})


def today(value: date) -> Leaf:
    return Leaf("today", value.isoformat())


def variables(*children: Optional[Fragment]) -> Node:
    return Node("variables", children)


def user_input(*children: Optional[Fragment], text: Optional[str] = None) -> Fragment:
    """User input is either raw text (a chat message) or nested records (commits)."""
    if text is not None:
        return Leaf("user-input", text)
    return Node("user-input", children)
