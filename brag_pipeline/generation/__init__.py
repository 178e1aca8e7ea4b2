"""Document Generation Engine: streamed document text as ordered events."""

from brag_pipeline.generation.events import (
    GenerationResult,
    StreamDone,
    StreamEvent,
    StreamFailed,
    TextDelta,
)
from brag_pipeline.generation.document_generator import (
    DocumentFormat,
    DocumentGenerator,
    generate_document,
    generate_standup,
)

__all__ = [
    "GenerationResult",
    "StreamDone",
    "StreamEvent",
    "StreamFailed",
    "TextDelta",
    "DocumentFormat",
    "DocumentGenerator",
    "generate_document",
    "generate_standup",
]
