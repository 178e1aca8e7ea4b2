"""
Document Generation Engine.

Streams document prose from the chat model as ordered TextDelta events
followed by exactly one terminal event (StreamDone or StreamFailed).

Usage:
    generator = DocumentGenerator()
    async with contextlib.aclosing(generator.stream(prompt, DocumentFormat.WEEKLY)) as events:
        async for event in events:
            ...

Closing the stream early (aclosing, break + aclose, or task cancellation)
closes the underlying model stream so an abandoned response is not buffered.
"""

import asyncio
import contextlib
import uuid
from enum import Enum
from typing import AsyncIterator, Dict, List, Optional, Sequence

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from brag_pipeline.common.error_handling import PipelineFailure
from brag_pipeline.common.llm_config import get_step_config
from brag_pipeline.common.llm_factory import create_llm, message_text
from brag_pipeline.common.logger import get_logger
from brag_pipeline.common.types import Achievement
from brag_pipeline.generation.events import (
    GenerationResult,
    StreamDone,
    StreamEvent,
    StreamFailed,
    TextDelta,
)
from brag_pipeline.prompts.standup import build_standup_prompt

NO_STANDUP_ACHIEVEMENTS = "No new achievements to report since the last standup."


class DocumentFormat(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    PERFORMANCE_REVIEW = "performance-review"
    STANDUP = "standup"
    CUSTOM = "custom"


FORMAT_GUIDANCE: Dict[DocumentFormat, str] = {
    DocumentFormat.WEEKLY: (
        "Write a weekly update for the user's manager. Keep it short: a one-line "
        "overview followed by grouped bullet points of what was achieved this week."
    ),
    DocumentFormat.MONTHLY: (
        "Write a monthly update suitable for a skip-level manager. Summarize themes "
        "and outcomes rather than listing every task, with a short section per theme."
    ),
    DocumentFormat.PERFORMANCE_REVIEW: (
        "Write a performance review self-assessment. Organize achievements by impact, "
        "lead with the most significant outcomes and describe their business value."
    ),
    DocumentFormat.STANDUP: (
        "Write concise standup notes in 2-4 short paragraphs suitable for a team "
        "standup meeting."
    ),
    DocumentFormat.CUSTOM: (
        "Write the document the user asked for, following their title and instructions."
    ),
}


class DocumentGenerator:
    """
    Generates documents from assembled prompts.

    The generator holds only configuration; each stream() call owns its own
    model stream and buffers, so concurrent streams are independent.
    """

    def __init__(self, llm: Optional[BaseChatModel] = None, step_name: str = "generate_document"):
        self.step_name = step_name
        self.step_config = get_step_config(step_name)
        self.llm = llm if llm is not None else create_llm(step_name)
        self._logger = get_logger(__name__, layer="generation")

    def _build_messages(self, prompt: str, doc_format: DocumentFormat) -> List[BaseMessage]:
        return [
            SystemMessage(content=FORMAT_GUIDANCE[DocumentFormat(doc_format)]),
            HumanMessage(content=prompt),
        ]

    async def stream(
        self,
        prompt: str,
        doc_format: DocumentFormat = DocumentFormat.CUSTOM,
        timeout: Optional[float] = None,
    ) -> AsyncIterator[StreamEvent]:
        """
        Stream a document.

        Args:
            prompt: Rendered document prompt
            doc_format: Target format; adds format guidance as a system message
            timeout: Deadline for the whole stream in seconds
                (defaults to the step's configured timeout)

        Yields:
            TextDelta events, then StreamDone or StreamFailed
        """
        logger = self._logger.bind(run_id=uuid.uuid4().hex)
        seconds = timeout if timeout is not None else self.step_config.timeout_seconds
        loop = asyncio.get_running_loop()
        deadline = loop.time() + seconds

        source = self.llm.astream(self._build_messages(prompt, doc_format))
        parts: List[str] = []
        error: Optional[BaseException] = None

        logger.info(f"Streaming {DocumentFormat(doc_format).value} document (timeout {seconds}s)")

        try:
            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    raise asyncio.TimeoutError(f"Stream exceeded {seconds}s deadline")
                try:
                    chunk = await asyncio.wait_for(source.__anext__(), timeout=remaining)
                except StopAsyncIteration:
                    break

                text = message_text(chunk)
                if not text:
                    continue
                parts.append(text)
                yield TextDelta(index=len(parts) - 1, text=text)
        except asyncio.CancelledError:
            logger.info(f"Stream cancelled after {len(parts)} delta(s)")
            raise
        except Exception as e:
            error = e
        finally:
            await _close_source(source)

        if error is None:
            logger.info(f"Stream complete: {len(parts)} delta(s)")
            yield StreamDone(text="".join(parts), delta_count=len(parts))
            return

        if isinstance(error, asyncio.TimeoutError) and not str(error):
            error = asyncio.TimeoutError(f"Stream exceeded {seconds}s deadline")
        failure = PipelineFailure.from_exception(error, stage="generation")
        logger.warning(
            f"Stream failed after {len(parts)} delta(s): {failure.reason.value}: {failure.message}"
        )
        yield StreamFailed(failure=failure, partial_text="".join(parts), delta_count=len(parts))

    async def generate(
        self,
        prompt: str,
        doc_format: DocumentFormat = DocumentFormat.CUSTOM,
        timeout: Optional[float] = None,
    ) -> GenerationResult:
        """Consume a whole stream and return the document text."""
        async with contextlib.aclosing(self.stream(prompt, doc_format, timeout)) as events:
            async for event in events:
                if isinstance(event, StreamDone):
                    return GenerationResult(text=event.text, complete=True)
                if isinstance(event, StreamFailed):
                    return GenerationResult(
                        text=event.partial_text, complete=False, failure=event.failure
                    )
        raise RuntimeError("Document stream ended without a terminal event")

    async def generate_standup(
        self,
        achievements: Sequence[Achievement],
        instructions: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> GenerationResult:
        """
        Generate standup notes from the achievements since the last standup.

        With no achievements the fixed "nothing to report" text is returned
        without calling the model.
        """
        if not achievements:
            return GenerationResult(text=NO_STANDUP_ACHIEVEMENTS, complete=True)

        prompt = build_standup_prompt(achievements, instructions=instructions)
        result = await self.generate(prompt, DocumentFormat.STANDUP, timeout=timeout)
        return GenerationResult(text=result.text.strip(), complete=result.complete, failure=result.failure)


async def _close_source(source) -> None:
    aclose = getattr(source, "aclose", None)
    if aclose is not None:
        await aclose()


def generate_document(
    prompt: str,
    doc_format: DocumentFormat = DocumentFormat.CUSTOM,
    llm: Optional[BaseChatModel] = None,
    timeout: Optional[float] = None,
) -> AsyncIterator[StreamEvent]:
    """
    Convenience function returning a document stream.

    The caller owns the returned stream and should close it (e.g. with
    contextlib.aclosing) if it stops consuming early.
    """
    return DocumentGenerator(llm=llm).stream(prompt, doc_format=doc_format, timeout=timeout)


async def generate_standup(
    achievements: Sequence[Achievement],
    instructions: Optional[str] = None,
    llm: Optional[BaseChatModel] = None,
    timeout: Optional[float] = None,
) -> GenerationResult:
    """Generate standup notes with the "standup_summary" step's model and timeout."""
    generator = DocumentGenerator(llm=llm, step_name="standup_summary")
    return await generator.generate_standup(achievements, instructions=instructions, timeout=timeout)
