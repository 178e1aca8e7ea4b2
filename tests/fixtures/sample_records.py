"""
Sample domain records for prompt and engine tests.
"""

from datetime import date
from typing import List, Optional

from brag_pipeline.common.types import (
    Achievement,
    ChatRole,
    ChatTurn,
    CommitRecord,
    Company,
    Project,
    PullRequestDetails,
    Repository,
    User,
    UserPreferences,
)

TODAY = date(2025, 3, 14)

SAMPLE_COMPANY = Company(
    id="c-1",
    name="Acme Corp",
    role="Senior Engineer",
    start_date=date(2022, 4, 1),
    domain="acme.example.com",
)

FORMER_COMPANY = Company(
    id="c-0",
    name="Initech",
    role="Engineer",
    start_date=date(2019, 1, 7),
    end_date=date(2022, 3, 31),
)

SAMPLE_PROJECT = Project(
    id="p-1",
    name="Checkout Revamp",
    description="Rebuild of the checkout flow",
    status="active",
    start_date=date(2024, 9, 1),
    company_id="c-1",
    repo_remote_url="https://github.com/acme/checkout",
)

SAMPLE_REPOSITORY = Repository(
    name="checkout",
    path="/home/dev/code/checkout",
    remote_url="https://github.com/acme/checkout",
)


def make_user(instructions: str = "", language: str = "en") -> User:
    return User(
        id="u-1",
        name="Sam Rivera",
        email="sam@example.com",
        preferences=UserPreferences(language=language, document_instructions=instructions),
    )


def make_turn(index: int, text: Optional[str] = None, role: ChatRole = ChatRole.USER) -> ChatTurn:
    return ChatTurn(id=f"t-{index}", role=role, text=text or f"turn {index}")


def make_history(count: int) -> List[ChatTurn]:
    """Alternating user/assistant turns, oldest first."""
    return [
        make_turn(i, role=ChatRole.USER if i % 2 == 0 else ChatRole.ASSISTANT)
        for i in range(count)
    ]


def make_commit(index: int, message: Optional[str] = None, **kwargs) -> CommitRecord:
    return CommitRecord(
        hash=f"{index:040x}",
        message=message or f"commit message {index}",
        author="Sam Rivera <sam@example.com>",
        date=f"2025-03-{(index % 28) + 1:02d}T10:00:00Z",
        **kwargs,
    )


def make_commits(count: int) -> List[CommitRecord]:
    return [make_commit(i) for i in range(count)]


def make_pull_request_commit() -> CommitRecord:
    return make_commit(
        1,
        message="Add saved carts",
        branch="feature/saved-carts",
        files_changed=("src/cart.py", "tests/test_cart.py"),
        pull_request=PullRequestDetails(
            number=42,
            title="Saved carts",
            description="Lets shoppers keep a cart between sessions",
        ),
    )


def make_achievement(
    index: int,
    event_start: Optional[date] = None,
    title: Optional[str] = None,
    **kwargs,
) -> Achievement:
    return Achievement(
        id=f"a-{index}",
        title=title or f"Achievement {index}",
        summary=f"Summary {index}",
        event_start=event_start,
        **kwargs,
    )
