"""
Domain records consumed by the pipeline.

These are immutable snapshots handed in by the surrounding application
(already authorized and scoped to the requesting user):
- User / UserPreferences: profile and document preferences
- Company, Project, Repository: context entities rendered into prompts
- CommitRecord / PullRequestDetails: git history for commit extraction
- ChatTurn: one message of the extraction conversation
- Achievement: a persisted achievement used for document generation

The pipeline never mutates or persists them.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Literal, Optional, Tuple, get_args


EventDuration = Literal["day", "week", "month", "quarter", "half year", "year"]
EVENT_DURATIONS: Tuple[str, ...] = get_args(EventDuration)


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class UserPreferences:
    language: str = "en"
    document_instructions: str = ""  # Standing instructions applied to every document


@dataclass(frozen=True)
class User:
    id: str
    name: str
    email: str = ""
    preferences: UserPreferences = field(default_factory=UserPreferences)


@dataclass(frozen=True)
class Company:
    id: str
    name: str
    role: str
    start_date: date
    end_date: Optional[date] = None    # None while the user still works there
    domain: Optional[str] = None


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    description: str
    status: str                        # "active", "completed", "archived"
    start_date: date
    end_date: Optional[date] = None
    company_id: Optional[str] = None
    repo_remote_url: Optional[str] = None


@dataclass(frozen=True)
class Repository:
    name: str
    path: str
    remote_url: Optional[str] = None


@dataclass(frozen=True)
class PullRequestDetails:
    number: int
    title: str
    description: str = ""


@dataclass(frozen=True)
class CommitRecord:
    """
    A single git commit as collected from the user's repository.

    `author` is free text, usually "Name <email>" or "Name - email".
    """

    hash: str
    message: str
    author: str
    date: str                          # ISO-8601 timestamp as reported by git
    files_changed: Tuple[str, ...] = ()
    branch: Optional[str] = None
    pull_request: Optional[PullRequestDetails] = None


@dataclass(frozen=True)
class ChatTurn:
    id: str
    role: ChatRole
    text: str


@dataclass(frozen=True)
class Achievement:
    """
    A stored achievement supplied by the caller for document generation.
    """

    id: str
    title: str
    summary: str = ""
    details: str = ""
    impact: int = 2
    event_start: Optional[date] = None
    event_end: Optional[date] = None   # None renders as "Present"
    event_duration: EventDuration = "day"
    source: str = "llm"                # "llm" or "manual"
    company_id: Optional[str] = None
    project_id: Optional[str] = None
