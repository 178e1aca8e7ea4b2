"""
Achievement Extraction Engine.

Sends an assembled prompt to the chat model with a JSON output contract,
validates the response and returns a tagged result:

    extractor = AchievementExtractor()
    result = await extractor.extract(prompt)
    if isinstance(result, ExtractionFailed):
        ...  # result.failure.reason: schema_violation | transport | timeout
    elif isinstance(result, EmptyExtraction):
        ...  # nothing to extract
    else:
        save(result.achievements)

A schema violation gets exactly one corrective retry (previous output plus
the validation errors are sent back). Transport errors and timeouts are not
retried here; that policy belongs to the caller.
"""

import asyncio
import uuid
from typing import AsyncIterator, List, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from pydantic import ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from brag_pipeline.common.config import Config
from brag_pipeline.common.error_handling import (
    ExtractionError,
    FailureReason,
    InvocationTimeoutError,
    PipelineFailure,
    SchemaViolationError,
    TransportError,
    classify_exception,
)
from brag_pipeline.common.json_utils import parse_llm_json
from brag_pipeline.common.llm_config import get_step_config
from brag_pipeline.common.llm_factory import create_llm, message_text
from brag_pipeline.common.logger import PipelineLogger, get_logger
from brag_pipeline.extraction.results import (
    EmptyExtraction,
    ExtractedAchievement,
    ExtractionFailed,
    ExtractionResult,
    ExtractionState,
    ExtractionSucceeded,
)
from brag_pipeline.extraction.schemas import ExtractionResponseModel
from brag_pipeline.prompts.output_contract import build_correction_prompt, build_output_contract


class _ExtractionRun:
    """State of one extract() call. Never shared between calls."""

    def __init__(self, logger: PipelineLogger):
        self.logger = logger
        self.state = ExtractionState.IDLE
        self.attempts = 0
        self.raw_output: Optional[str] = None

    def transition(self, state: ExtractionState) -> None:
        self.logger.debug(f"{self.state.value} -> {state.value}")
        self.state = state

    def fail(self, exc: Exception) -> ExtractionFailed:
        self.transition(ExtractionState.FAILED)
        failure = PipelineFailure.from_exception(exc, stage="extraction")
        self.logger.warning(
            f"Extraction failed after {self.attempts} attempt(s): "
            f"{failure.reason.value}: {failure.message}"
        )
        return ExtractionFailed(failure=failure, attempts=self.attempts, raw_output=self.raw_output)


class AchievementExtractor:
    """
    Extracts achievement candidates from an assembled prompt.

    The engine holds only configuration; every call creates its own run
    state, so concurrent calls on one instance are independent.
    """

    def __init__(
        self,
        llm: Optional[BaseChatModel] = None,
        step_name: str = "extract_achievements",
        default_impact: Optional[int] = None,
    ):
        """
        Args:
            llm: Chat model (defaults to create_llm(step_name))
            step_name: Step used for model, timeout and retry configuration
            default_impact: Impact applied when the model gives none
                (defaults to Config.DEFAULT_IMPACT)
        """
        self.step_name = step_name
        self.step_config = get_step_config(step_name)
        self.llm = llm if llm is not None else create_llm(step_name)
        self.default_impact = default_impact if default_impact is not None else Config.DEFAULT_IMPACT
        self._logger = get_logger(__name__, layer="extraction")
        self._system_prompt = build_output_contract(ExtractionResponseModel.model_json_schema())

    def _build_messages(self, prompt: str) -> List[BaseMessage]:
        return [
            SystemMessage(content=self._system_prompt),
            HumanMessage(content=prompt),
        ]

    async def _request(self, run: _ExtractionRun, messages: List[BaseMessage], timeout: float) -> str:
        """Invoke the model once. Timeouts and provider errors become pipeline exceptions."""
        run.transition(ExtractionState.REQUESTING)
        try:
            response = await asyncio.wait_for(self.llm.ainvoke(messages), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise InvocationTimeoutError(f"Model did not respond within {timeout}s") from e
        except asyncio.CancelledError:
            run.logger.info("Extraction cancelled by caller")
            raise
        except Exception as e:
            if classify_exception(e) is FailureReason.TIMEOUT:
                raise InvocationTimeoutError(f"{type(e).__name__}: {e}") from e
            raise TransportError(f"{type(e).__name__}: {e}") from e

        return message_text(response)

    def _parse(self, run: _ExtractionRun, raw: str) -> List[ExtractedAchievement]:
        """
        Parse and validate a raw response.

        Raises:
            SchemaViolationError: If the response is not JSON or fails validation
        """
        run.transition(ExtractionState.PARSING)
        run.raw_output = raw

        try:
            data = parse_llm_json(raw)
        except ValueError as e:
            raise SchemaViolationError(
                "Response is not valid JSON", raw_output=raw, errors=[str(e).splitlines()[0]]
            ) from e

        # A bare list of achievements is accepted as the achievements array
        if isinstance(data, list):
            data = {"achievements": data}

        try:
            validated = ExtractionResponseModel.model_validate(data)
        except ValidationError as e:
            error_msgs = [
                f"{' -> '.join(str(x) for x in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
            raise SchemaViolationError(
                "Schema validation failed", raw_output=raw, errors=error_msgs
            ) from e

        return validated.to_extracted(self.default_impact)

    async def extract(self, prompt: str, timeout: Optional[float] = None) -> ExtractionResult:
        """
        Extract achievements from an assembled prompt.

        Args:
            prompt: Rendered extraction prompt
            timeout: Deadline per model invocation in seconds
                (defaults to the step's configured timeout)

        Returns:
            ExtractionSucceeded, EmptyExtraction or ExtractionFailed

        Raises:
            asyncio.CancelledError: If the caller cancels; the in-flight
                model request is cancelled with it
        """
        run = _ExtractionRun(self._logger.bind(run_id=uuid.uuid4().hex))
        deadline = timeout if timeout is not None else self.step_config.timeout_seconds
        messages = self._build_messages(prompt)
        achievements: List[ExtractedAchievement] = []

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(1 + self.step_config.max_schema_retries),
                retry=retry_if_exception_type(SchemaViolationError),
                reraise=True,
            ):
                with attempt:
                    run.attempts += 1
                    raw = await self._request(run, messages, deadline)
                    try:
                        achievements = self._parse(run, raw)
                    except SchemaViolationError as e:
                        run.logger.warning(
                            f"Attempt {run.attempts}: schema violation ({len(e.errors)} error(s))"
                        )
                        messages = messages + [
                            AIMessage(content=raw),
                            HumanMessage(content=build_correction_prompt(e.errors)),
                        ]
                        raise
        except (SchemaViolationError, TransportError, InvocationTimeoutError) as e:
            return run.fail(e)

        run.transition(ExtractionState.SUCCEEDED)
        run.logger.info(f"Extracted {len(achievements)} achievement(s) in {run.attempts} attempt(s)")

        if not achievements:
            return EmptyExtraction(attempts=run.attempts)
        return ExtractionSucceeded(achievements=tuple(achievements), attempts=run.attempts)

    async def stream(
        self, prompt: str, timeout: Optional[float] = None
    ) -> AsyncIterator[ExtractedAchievement]:
        """
        Yield the extracted achievements one by one.

        The sequence is finite and not restartable. An empty extraction
        yields nothing.

        Raises:
            ExtractionError: If extraction fails (carries the ExtractionFailed result)
        """
        result = await self.extract(prompt, timeout=timeout)
        if isinstance(result, ExtractionFailed):
            raise ExtractionError(result)
        for achievement in result.achievements:
            yield achievement


async def extract_achievements(
    prompt: str,
    llm: Optional[BaseChatModel] = None,
    timeout: Optional[float] = None,
    step_name: str = "extract_achievements",
) -> ExtractionResult:
    """
    Convenience function for one-off extraction.

    Args:
        prompt: Rendered extraction prompt (chat or commit)
        llm: Chat model (defaults to the step's configured model)
        timeout: Deadline per model invocation in seconds
        step_name: "extract_achievements" or "extract_commit_achievements"

    Returns:
        ExtractionSucceeded, EmptyExtraction or ExtractionFailed
    """
    extractor = AchievementExtractor(llm=llm, step_name=step_name)
    return await extractor.extract(prompt, timeout=timeout)
