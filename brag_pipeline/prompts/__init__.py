"""
Prompt rendering and context assembly.

- renderer: fragment tree -> indented markup
- elements: fragment builders for companies, projects, achievements, commits, chat
- extract_achievements / extract_commit_achievements / generate_document / standup:
  assemblers that lay out the fragments for each prompt
"""

from brag_pipeline.prompts.renderer import (
    ALLOWED_TAGS,
    Fragment,
    Leaf,
    Node,
    Renderer,
    iter_fragments,
    render_prompt,
)
from brag_pipeline.prompts.extract_achievements import (
    ChatWindow,
    build_extraction_prompt,
    select_chat_window,
)
from brag_pipeline.prompts.extract_commit_achievements import (
    CommitPromptBatch,
    build_commit_extraction_prompt,
    build_commit_extraction_prompts,
)
from brag_pipeline.prompts.generate_document import build_document_prompt, sort_achievements
from brag_pipeline.prompts.standup import build_standup_prompt

__all__ = [
    "ALLOWED_TAGS",
    "Fragment",
    "Leaf",
    "Node",
    "Renderer",
    "iter_fragments",
    "render_prompt",
    "ChatWindow",
    "build_extraction_prompt",
    "select_chat_window",
    "CommitPromptBatch",
    "build_commit_extraction_prompt",
    "build_commit_extraction_prompts",
    "build_document_prompt",
    "sort_achievements",
    "build_standup_prompt",
]
