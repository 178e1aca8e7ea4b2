"""
Centralized error handling for the achievement pipeline.

Defines the failure taxonomy shared by the extraction engine, the document
generator and the evaluation harness, plus the exceptions raised for
programming errors (malformed prompt trees, oversized commit batches).
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

import openai


class FailureReason(str, Enum):
    """Why an LLM-backed operation did not produce a usable result."""

    SCHEMA_VIOLATION = "schema_violation"
    TRANSPORT = "transport"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class PipelineFailure:
    """
    Structured failure information recorded by results, stream events and eval trials.
    """

    reason: FailureReason
    message: str
    stage: str  # e.g., "extraction", "generation", "eval"
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    exception_type: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "reason": self.reason.value,
            "message": self.message,
            "stage": self.stage,
            "timestamp": self.timestamp,
            "exception_type": self.exception_type,
        }

    @classmethod
    def from_exception(cls, exc: BaseException, stage: str) -> "PipelineFailure":
        """Build a failure record from an exception, classifying its reason."""
        return cls(
            reason=classify_exception(exc),
            message=str(exc) or type(exc).__name__,
            stage=stage,
            exception_type=type(exc).__name__,
        )


class PipelineException(Exception):
    """Base class for pipeline exceptions."""

    reason: Optional[FailureReason] = None


class SchemaViolationError(PipelineException):
    """Model output could not be parsed into the expected schema."""

    reason = FailureReason.SCHEMA_VIOLATION

    def __init__(self, message: str, raw_output: str = "", errors: Optional[List[str]] = None):
        self.raw_output = raw_output
        self.errors = errors or []
        if self.errors:
            message = f"{message}: {'; '.join(self.errors)}"
        super().__init__(message)


class TransportError(PipelineException):
    """The model provider failed (network, rate limit, server error)."""

    reason = FailureReason.TRANSPORT


class InvocationTimeoutError(PipelineException):
    """A model invocation exceeded its deadline."""

    reason = FailureReason.TIMEOUT


class CommitBatchLimitError(PipelineException, ValueError):
    """More commits were supplied than a prompt or request accepts."""

    def __init__(self, count: int, limit: int):
        super().__init__(f"Received {count} commits, limit is {limit}")
        self.count = count
        self.limit = limit


class MalformedFragmentError(PipelineException, ValueError):
    """A prompt fragment tree violates its shape rules."""


class ExtractionError(PipelineException):
    """Raised by streaming extraction when the run ends in failure."""

    def __init__(self, result: Any):
        failure = result.failure
        super().__init__(f"Extraction failed ({failure.reason.value}): {failure.message}")
        self.result = result
        self.reason = failure.reason


class GenerationError(PipelineException):
    """Raised when a caller needs a complete document and the stream failed."""

    def __init__(self, result: Any):
        failure = result.failure
        if failure is not None:
            message = f"Document generation failed ({failure.reason.value}): {failure.message}"
            self.reason = failure.reason
        else:
            message = "Document generation did not complete"
        super().__init__(message)
        self.result = result


def classify_exception(exc: BaseException) -> FailureReason:
    """
    Map an exception raised during a model call to a FailureReason.

    Pipeline exceptions carry their own reason. Timeouts from asyncio or
    the OpenAI client map to TIMEOUT, cancellation to CANCELLED, and
    everything else a provider raises is treated as TRANSPORT.
    """
    if isinstance(exc, PipelineException) and exc.reason is not None:
        return exc.reason
    if isinstance(exc, asyncio.CancelledError):
        return FailureReason.CANCELLED
    if isinstance(exc, (TimeoutError, asyncio.TimeoutError, openai.APITimeoutError)):
        return FailureReason.TIMEOUT
    return FailureReason.TRANSPORT


def log_on_exception(
    logger: logging.Logger,
    operation: str,
    level: int = logging.WARNING,
    include_traceback: bool = False,
):
    """
    Context manager for logging exceptions without swallowing them.

    Usage:
        with log_on_exception(logger, "Eval report write", level=logging.ERROR):
            path.write_text(...)
    """

    class ExceptionLogger:
        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc_val, exc_tb):
            if exc_val is not None:
                logger.log(level, f"[{operation}] Failed: {exc_val}", exc_info=include_traceback)
            # Return False to not suppress the exception
            return False

    return ExceptionLogger()
