"""
Result types for the extraction engine.

An extraction run ends in exactly one of:
- ExtractionSucceeded: one or more achievement candidates
- EmptyExtraction: success with no candidates ("no work described")
- ExtractionFailed: schema violation, transport error or timeout

EmptyExtraction subclasses ExtractionSucceeded so `isinstance(result,
ExtractionSucceeded)` answers "did extraction work", while callers can still
tell "nothing found" apart from both success-with-data and failure.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from brag_pipeline.common.error_handling import PipelineFailure


class ExtractionState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    PARSING = "parsing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class ExtractedAchievement:
    """
    An achievement candidate produced by the model.

    Not yet persisted: the storage layer assigns identity and ownership.
    """

    title: str
    summary: str = ""
    details: str = ""
    impact: int = 5
    impact_source: str = "llm"         # "llm" if the model judged it, "default" if the fallback applied
    event_start: Optional[date] = None
    event_end: Optional[date] = None
    event_duration: Optional[str] = None
    source_type: str = "llm"           # "llm" or "manual"
    company_id: Optional[str] = None
    project_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "title": self.title,
            "summary": self.summary,
            "details": self.details,
            "impact": self.impact,
            "impact_source": self.impact_source,
            "event_start": self.event_start.isoformat() if self.event_start else None,
            "event_end": self.event_end.isoformat() if self.event_end else None,
            "event_duration": self.event_duration,
            "source_type": self.source_type,
            "company_id": self.company_id,
            "project_id": self.project_id,
        }


@dataclass(frozen=True)
class ExtractionSucceeded:
    achievements: Tuple[ExtractedAchievement, ...]
    attempts: int = 1

    @property
    def is_empty(self) -> bool:
        return not self.achievements


@dataclass(frozen=True)
class EmptyExtraction(ExtractionSucceeded):
    achievements: Tuple[ExtractedAchievement, ...] = ()


@dataclass(frozen=True)
class ExtractionFailed:
    failure: PipelineFailure
    attempts: int = 1
    raw_output: Optional[str] = None


ExtractionResult = Union[ExtractionSucceeded, EmptyExtraction, ExtractionFailed]
