"""
Events emitted by a document generation stream.

A stream yields TextDelta events in document order, then exactly one
terminal event: StreamDone when the model finished, StreamFailed when the
connection broke or the deadline passed. A failed stream still reports the
text produced so far so callers can keep it as a partial document.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from brag_pipeline.common.error_handling import FailureReason, PipelineFailure


@dataclass(frozen=True)
class TextDelta:
    index: int                         # 0-based, increments by one per delta
    text: str


@dataclass(frozen=True)
class StreamDone:
    text: str                          # Concatenation of every delta
    delta_count: int


@dataclass(frozen=True)
class StreamFailed:
    failure: PipelineFailure
    partial_text: str
    delta_count: int

    @property
    def reason(self) -> FailureReason:
        return self.failure.reason

    @property
    def message(self) -> str:
        return self.failure.message


StreamEvent = Union[TextDelta, StreamDone, StreamFailed]


@dataclass(frozen=True)
class GenerationResult:
    """A fully consumed stream."""

    text: str
    complete: bool
    failure: Optional[PipelineFailure] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "complete": self.complete,
            "failure": self.failure.to_dict() if self.failure else None,
        }
