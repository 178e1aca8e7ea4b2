"""
Fixed eval datasets.

Each suite is a tuple of EvalCase fixtures. Inputs use a pinned `today` so
the rendered prompts are identical between runs.
"""

from datetime import date
from typing import Dict, Tuple

from brag_pipeline.common.types import (
    Achievement,
    ChatRole,
    ChatTurn,
    CommitRecord,
    Company,
    Project,
    Repository,
    User,
    UserPreferences,
)
from brag_pipeline.evals.cases import DocumentExpectations, EvalCase, ExpectedAchievement

EVAL_TODAY = date(2025, 1, 22)

EVAL_USER = User(
    id="1234",
    name="Ed Spencer",
    email="ed@example.com",
    preferences=UserPreferences(language="en"),
)

EVAL_COMPANIES = (
    Company(
        id="c-acme",
        name="Acme Corp",
        role="Principal Engineer",
        start_date=date(2023, 1, 1),
        domain="acme.example.com",
    ),
)

EVAL_PROJECTS = (
    Project(
        id="p-bragdoc",
        name="BragDoc",
        description="Achievement tracker that turns work updates into brag documents",
        status="active",
        start_date=date(2024, 10, 1),
        company_id="c-acme",
        repo_remote_url="https://github.com/edspencer/bragdoc-ai",
    ),
)


# ===== Chat follow-up extraction =====

# Two paragraphs, two achievements each
FOLLOWUP_MESSAGE = """I added the Documents CRUD pages for logged in users today - so a user can see all of the documents that they've created,
and edit them without having to go back through the chat. Also I removed the Github Repo management UI files as it was vestigial
at this point and wasn't even being included anywhere.

I implemented the new homepage design and tested out the Stripe integration in production. I also updated the README in
the BragDoc repo to make it easier for new developers to get up and running."""

FOLLOWUP_HISTORY = (
    ChatTurn(id="1", role=ChatRole.USER, text="I fixed several UX bugs in the checkout flow on Bragdoc today"),
    ChatTurn(
        id="2",
        role=ChatRole.ASSISTANT,
        text=(
            "Ok, I've recorded your process achievement. Would you like to add any "
            "additional context about the impact or process?"
        ),
    ),
    ChatTurn(id="3", role=ChatRole.USER, text=FOLLOWUP_MESSAGE),
)

CHAT_FOLLOWUP_CASE = EvalCase(
    case_id="chat-followup",
    task_input={
        "user": EVAL_USER,
        "message": FOLLOWUP_MESSAGE,
        "chat_history": FOLLOWUP_HISTORY,
        "projects": EVAL_PROJECTS,
        "companies": EVAL_COMPANIES,
        "today": EVAL_TODAY,
    },
    expected_achievements=(
        ExpectedAchievement(
            title="Added the Documents CRUD pages for logged in users",
            summary="Added the Documents CRUD pages for logged in users",
            event_duration="day",
            impact=1,
        ),
        ExpectedAchievement(
            title="Removed the Github Repo management UI",
            summary="Removed the Github Repo management UI",
            event_duration="day",
            impact=3,
        ),
        ExpectedAchievement(
            title="Implemented the new homepage design",
            summary="Implemented the new homepage design",
            event_duration="day",
            impact=2,
        ),
        ExpectedAchievement(
            title="Updated the README in the BragDoc repo",
            summary="Updated the README in the BragDoc repo",
            event_duration="day",
            impact=2,
        ),
    ),
    metadata={"kind": "extraction", "notes": "Earlier checkout-flow turn is context only"},
)


# ===== Weekly document =====

WEEKLY_USER = User(
    id="1234",
    name="Ed Spencer",
    email="ed@example.com",
    preferences=UserPreferences(
        language="en",
        document_instructions='Always use the title "Weekly Summary"',
    ),
)

WEEKLY_COMPANY = Company(
    id="1234",
    name="Acme Corp",
    role="Engineer",
    start_date=date(2023, 1, 1),
    end_date=date(2023, 1, 1),
    domain="www.boo.com",
)

WEEKLY_PROJECT = Project(
    id="1234",
    name="Project X",
    description="Description of Project X",
    status="active",
    start_date=date(2023, 1, 1),
    end_date=date(2023, 6, 30),
    company_id="1234",
)

WEEKLY_ACHIEVEMENTS = (
    Achievement(id="1", title="Implemented feature", summary="Implemented feature X on project X",
                impact=1, event_start=date(2023, 2, 1)),
    Achievement(id="2", title="Debugged bug", summary="Found and fixed a login-related bug on project X",
                impact=2, event_start=date(2023, 2, 2)),
    Achievement(id="3", title="Tested feature", summary="Tested feature X on project X",
                impact=1, event_start=date(2023, 2, 3)),
    Achievement(id="4", title="Refactored code", summary="Refactored a section of the codebase for project X",
                impact=1, event_start=date(2023, 2, 4)),
    Achievement(id="5", title="Documented code", summary="Wrote unit tests for feature X on project X",
                impact=1, event_start=date(2023, 2, 5)),
    Achievement(id="6", title="Researched", summary="Spent a few hours researching options for feature Y on project X",
                impact=1, event_start=date(2023, 2, 6)),
)

WEEKLY_DOCUMENT_CASE = EvalCase(
    case_id="weekly-document",
    task_input={
        "user": WEEKLY_USER,
        "doc_title": "Specific Doc name requested by user",
        "days": 7,
        "achievements": WEEKLY_ACHIEVEMENTS,
        "project": WEEKLY_PROJECT,
        "company": WEEKLY_COMPANY,
        "user_instructions": 'For weekly documents, always use the title "Weekly Summary"',
        "today": date(2023, 2, 7),
    },
    expected_document=DocumentExpectations(
        title="Weekly Summary",
        achievement_titles=(
            "Implemented feature X",
            "Fixed a login-related bug",
            "Refactored a section of the codebase",
            "Wrote unit tests for feature X",
            "Researching options for feature Y",
        ),
        min_headings=1,
        max_words=600,
    ),
    metadata={
        "kind": "document",
        "doc_format": "weekly",
        "notes": "User instructions override the requested title",
    },
)


# ===== Noisy commits =====

EVAL_REPOSITORY = Repository(name="bragdoc-ai", path="/Users/ed/Code/brag-ai")

_AUTHOR = "Ed Spencer <ed@edspencer.net>"

# Only about three achievements here; the rest is noise
NOISY_COMMITS = tuple(
    CommitRecord(hash=h, message=m, author=_AUTHOR, date=d, branch="jsx-prompts")
    for h, m, d in (
        ("1a1c4a5f9c2d1bf7bb6bcee9dd9e294accdc7f7a", "extract commit achievements prompt progress",
         "2025-01-16 18:40:13 -0500"),
        ("89171ea16837baed2ea37279def1d043af988054", "WIP on a bunch of fronts",
         "2025-01-17 18:17:28 -0500"),
        ("921510de4b9e027d94b200976901bb64af16c33d", "CLI rendering working again",
         "2025-01-20 15:43:02 -0500"),
        ("202e9f33b6327cec82e06c041228957451eef419", "more faffing with React rendering",
         "2025-01-20 16:12:36 -0500"),
        ("0f8ff31c7d0706a1179acb73a4195425504c812a", "Getting there with the extracting into an npm package...",
         "2025-01-21 12:48:56 -0500"),
        ("351d12c923eafc00bed0c84c7265567497a5ee04", "build works again",
         "2025-01-21 14:51:17 -0500"),
        ("bc0b808fcd7566d16dd45dc6a2bca50be62e8b6b", "cleanup",
         "2025-01-21 15:21:26 -0500"),
        ("4bfb09f20d16aaa58a98d61d201e5abe704e1a1d", "better achievement extraction evals",
         "2025-01-21 17:10:33 -0500"),
    )
)

NOISY_COMMITS_CASE = EvalCase(
    case_id="noisy-commits",
    task_input={
        "user": EVAL_USER,
        "companies": EVAL_COMPANIES,
        "projects": EVAL_PROJECTS,
        "repository": EVAL_REPOSITORY,
        "commits": NOISY_COMMITS,
        "today": EVAL_TODAY,
    },
    expected_achievements=(
        ExpectedAchievement(
            title="Restored functionality for CLI rendering",
            summary="Restored functionality for CLI rendering.",
            event_duration="day",
            impact=1,
        ),
        ExpectedAchievement(
            title="Fixed issues in the build process",
            summary="Fixed issues in the build process",
            event_duration="day",
            impact=2,
        ),
        ExpectedAchievement(
            title="Improved the evaluation process for extracting achievements",
            summary="Improved the evaluation process for extracting achievements",
            event_duration="day",
            impact=1,
        ),
    ),
    metadata={"kind": "extraction"},
)


SUITES: Dict[str, Tuple[EvalCase, ...]] = {
    "chat-extraction": (CHAT_FOLLOWUP_CASE,),
    "commit-extraction": (NOISY_COMMITS_CASE,),
    "weekly-document": (WEEKLY_DOCUMENT_CASE,),
}


def get_suite(name: str) -> Tuple[EvalCase, ...]:
    """Return the cases of a named suite. Raises ValueError for unknown names."""
    try:
        return SUITES[name]
    except KeyError:
        raise ValueError(f"Unknown eval suite '{name}'. Available: {', '.join(sorted(SUITES))}") from None


def suite_kind(name: str) -> str:
    """Return the suite's kind ("extraction" or "document") from its first case."""
    return get_suite(name)[0].metadata["kind"]
