"""
Prompt for extracting achievements from git commits.

Commits are rendered in caller order (normally newest first). A single
prompt never carries more than the batch limit; larger inputs are split
into consecutive batches or rejected, never silently truncated.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

from brag_pipeline.common.config import Config
from brag_pipeline.common.error_handling import CommitBatchLimitError
from brag_pipeline.common.logger import get_logger
from brag_pipeline.common.types import CommitRecord, Company, Project, Repository, User
from brag_pipeline.prompts import elements
from brag_pipeline.prompts.renderer import Renderer, render_prompt
from brag_pipeline.prompts.shared import EXAMPLE_ACHIEVEMENTS, EXTRACTION_RULES, format_examples

logger = get_logger(__name__, layer="prompts")


COMMIT_PURPOSE = """You are a careful and attentive assistant who extracts work achievements
from source control commit messages. Extract all of the achievements in the
commit messages contained within the <user-input> tag. Follow all of the
instructions provided below."""

COMMIT_RULES = [
    "Use the commit messages, changed files and pull request details to understand the full scope of each achievement.",
    "Several commits may describe one achievement; combine them into a single achievement.",
    "Ignore trivial commits (typo fixes, formatting, merge commits, dependency bumps) unless they are part of a larger achievement.",
    "Do not extract the same achievement twice, even if several commits have identical messages.",
]

COMMIT_INSTRUCTIONS = [*COMMIT_RULES, *EXTRACTION_RULES]

COMMIT_INPUTS = {
    "companies": "All of the companies that the user works at (or has worked at)",
    "projects": "All of the projects that the user works on (or has worked on)",
    "user-instructions": "Any specific instructions from the user to guide the extraction process",
    "user-input": "The git commits to extract achievements from",
    "repository": "Information about the repository the commits are from",
    "today": "Today's date",
}


@dataclass(frozen=True)
class CommitPromptBatch:
    """One rendered prompt and the commits it covers."""

    prompt: str
    commits: Tuple[CommitRecord, ...]


def build_commit_extraction_prompt(
    user: User,
    companies: Sequence[Company],
    projects: Sequence[Project],
    repository: Repository,
    commits: Sequence[CommitRecord],
    max_commits: Optional[int] = None,
    examples: Optional[Sequence[Dict[str, Any]]] = None,
    today: Optional[date] = None,
    renderer: Renderer = render_prompt,
) -> str:
    """
    Build the prompt for extracting achievements from a batch of commits.

    Raises:
        CommitBatchLimitError: If more than max_commits commits are supplied
            (default Config.COMMIT_BATCH_SIZE)
    """
    limit = Config.COMMIT_BATCH_SIZE if max_commits is None else max_commits
    if len(commits) > limit:
        raise CommitBatchLimitError(len(commits), limit)

    example_items = EXAMPLE_ACHIEVEMENTS if examples is None else examples

    layout = [
        elements.purpose(COMMIT_PURPOSE),
        elements.instructions(COMMIT_INSTRUCTIONS),
        elements.input_format(COMMIT_INPUTS),
        elements.variables(
            elements.companies(companies),
            elements.projects(projects),
            elements.today(today or date.today()),
            elements.user_instructions(user.preferences.document_instructions),
            elements.user_input(elements.commits(commits)),
            elements.repository(repository),
        ),
        elements.examples(format_examples(example_items)),
    ]
    return renderer(layout)


def build_commit_extraction_prompts(
    user: User,
    companies: Sequence[Company],
    projects: Sequence[Project],
    repository: Repository,
    commits: Sequence[CommitRecord],
    batch_size: Optional[int] = None,
    max_commits: Optional[int] = None,
    today: Optional[date] = None,
    renderer: Renderer = render_prompt,
) -> List[CommitPromptBatch]:
    """
    Split commits into consecutive batches and build one prompt per batch.

    Order is preserved across and within batches.

    Args:
        batch_size: Commits per prompt (default Config.COMMIT_BATCH_SIZE)
        max_commits: Total commits accepted (default Config.MAX_COMMITS_PER_REQUEST)

    Raises:
        CommitBatchLimitError: If more than max_commits commits are supplied
    """
    size = Config.COMMIT_BATCH_SIZE if batch_size is None else batch_size
    limit = Config.MAX_COMMITS_PER_REQUEST if max_commits is None else max_commits
    if size < 1:
        raise ValueError(f"batch_size must be at least 1, got {size}")
    if len(commits) > limit:
        raise CommitBatchLimitError(len(commits), limit)

    batches = []
    for start in range(0, len(commits), size):
        chunk = tuple(commits[start:start + size])
        prompt = build_commit_extraction_prompt(
            user,
            companies,
            projects,
            repository,
            chunk,
            max_commits=size,
            today=today,
            renderer=renderer,
        )
        batches.append(CommitPromptBatch(prompt=prompt, commits=chunk))

    logger.info(
        f"Built {len(batches)} commit prompt(s) for {len(commits)} commits "
        f"from {repository.name}"
    )
    return batches
