"""
Eval case fixtures.

An EvalCase is a fixed, versioned input plus what a good output looks like:
either the achievements an extraction should find or properties a generated
document should have. Cases are immutable once defined.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class ExpectedAchievement:
    title: str
    summary: str = ""
    event_duration: Optional[str] = None
    impact: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "summary": self.summary,
            "event_duration": self.event_duration,
            "impact": self.impact,
        }


@dataclass(frozen=True)
class DocumentExpectations:
    """Properties a generated document should satisfy."""

    title: Optional[str] = None                 # Must appear as the first heading
    required_phrases: Tuple[str, ...] = ()      # Must appear somewhere (case-insensitive)
    achievement_titles: Tuple[str, ...] = ()    # Achievements the document should cover
    min_headings: int = 1
    max_words: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "required_phrases": list(self.required_phrases),
            "achievement_titles": list(self.achievement_titles),
            "min_headings": self.min_headings,
            "max_words": self.max_words,
        }


@dataclass(frozen=True)
class EvalCase:
    """
    One eval fixture.

    `task_input` holds the keyword arguments for the prompt assembler the
    task uses (build_extraction_prompt, build_commit_extraction_prompt or
    build_document_prompt). It is frozen into a read-only mapping.
    """

    case_id: str
    task_input: Mapping[str, Any]
    expected_achievements: Tuple[ExpectedAchievement, ...] = ()
    expected_document: Optional[DocumentExpectations] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "task_input", MappingProxyType(dict(self.task_input)))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))
        object.__setattr__(self, "expected_achievements", tuple(self.expected_achievements))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "case_id": self.case_id,
            "expected_achievements": [a.to_dict() for a in self.expected_achievements],
            "expected_document": self.expected_document.to_dict() if self.expected_document else None,
            "metadata": dict(self.metadata),
        }
