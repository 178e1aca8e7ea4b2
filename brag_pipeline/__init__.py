"""
Achievement extraction and document generation pipeline.

Turns a user's work updates (chat messages or git commits) into structured
achievements, and stored achievements into prose documents:

1. Prompts - render structured prompts from fragment trees and assemble the
   extraction, commit extraction and document prompts
2. Extraction - call the model with a JSON output contract and validate the
   result (one corrective retry on schema violations)
3. Generation - stream document text as ordered delta events with exactly one
   terminal event
4. Evals - score prompts and models against fixed datasets
"""

from brag_pipeline.version import __version__
from brag_pipeline.prompts.renderer import Leaf, Node, render_prompt
from brag_pipeline.prompts.extract_achievements import build_extraction_prompt
from brag_pipeline.prompts.extract_commit_achievements import (
    build_commit_extraction_prompt,
    build_commit_extraction_prompts,
)
from brag_pipeline.prompts.generate_document import build_document_prompt
from brag_pipeline.extraction.extractor import AchievementExtractor, extract_achievements
from brag_pipeline.generation.document_generator import (
    DocumentFormat,
    DocumentGenerator,
    generate_document,
    generate_standup,
)
from brag_pipeline.evals.harness import run_eval

__all__ = [
    "__version__",
    "Leaf",
    "Node",
    "render_prompt",
    "build_extraction_prompt",
    "build_commit_extraction_prompt",
    "build_commit_extraction_prompts",
    "build_document_prompt",
    "AchievementExtractor",
    "extract_achievements",
    "DocumentFormat",
    "DocumentGenerator",
    "generate_document",
    "generate_standup",
    "run_eval",
]
