"""
Evaluation Harness.

Runs every (model, case, trial) combination, scores each output with the
given scorers and aggregates the results per model:

    scores = await run_eval(
        cases=get_suite("weekly-document"),
        models=[ModelConfig("gpt-4o", make_document_task(create_llm("generate_document", model="gpt-4o")))],
        scorers=[DocumentStructureScorer()],
        trial_count=3,
    )
    EvalReportWriter().save(scores, suite="weekly-document")

Trials run concurrently with a per-model bound. A failing task or scorer is
recorded as a failed trial and the batch continues. Aggregation depends only
on the recorded results, never on completion order.
"""

import asyncio
import inspect
import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from langchain_core.language_models import BaseChatModel

from brag_pipeline.common.config import Config
from brag_pipeline.common.error_handling import GenerationError, PipelineFailure, log_on_exception
from brag_pipeline.common.logger import get_logger
from brag_pipeline.evals.cases import EvalCase
from brag_pipeline.extraction.extractor import AchievementExtractor
from brag_pipeline.generation.document_generator import DocumentFormat, DocumentGenerator
from brag_pipeline.prompts.extract_achievements import build_extraction_prompt
from brag_pipeline.prompts.extract_commit_achievements import build_commit_extraction_prompt
from brag_pipeline.prompts.generate_document import build_document_prompt

logger = get_logger(__name__, layer="evals")

EvalTask = Callable[[EvalCase], Awaitable[Any]]

SCORE_PRECISION = 4


@dataclass(frozen=True)
class ModelConfig:
    """A model under evaluation: a name for reporting and the task that runs it."""

    name: str
    task: EvalTask
    max_concurrency: Optional[int] = None


@dataclass(frozen=True)
class TrialResult:
    model: str
    case_id: str
    case_index: int
    trial: int
    scores: Dict[str, float] = field(default_factory=dict)
    feedback: Dict[str, str] = field(default_factory=dict)
    error: Optional[PipelineFailure] = None
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "case_id": self.case_id,
            "trial": self.trial,
            "scores": dict(self.scores),
            "feedback": dict(self.feedback),
            "error": self.error.to_dict() if self.error else None,
            "duration_seconds": round(self.duration_seconds, 3),
        }


@dataclass(frozen=True)
class ModelScores:
    """Aggregated results for one model."""

    model: str
    trials: Tuple[TrialResult, ...]
    mean_scores: Dict[str, float]
    case_scores: Dict[str, Dict[str, float]]
    failed_trials: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "mean_scores": dict(self.mean_scores),
            "case_scores": {k: dict(v) for k, v in self.case_scores.items()},
            "failed_trials": self.failed_trials,
            "trials": [t.to_dict() for t in self.trials],
        }


@dataclass(frozen=True)
class AggregatedScores:
    """Results of an eval run keyed by model name (in the order models were given)."""

    models: Dict[str, ModelScores]
    case_ids: Tuple[str, ...]
    scorer_names: Tuple[str, ...]
    trial_count: int

    def score_tuples(self) -> Iterator[Tuple[str, str, int, str, float]]:
        """Yield (model, case_id, trial, scorer, score) for every recorded score."""
        for model_name, model_scores in self.models.items():
            for trial in model_scores.trials:
                for scorer_name in self.scorer_names:
                    if scorer_name in trial.scores:
                        yield (model_name, trial.case_id, trial.trial, scorer_name, trial.scores[scorer_name])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "case_ids": list(self.case_ids),
            "scorers": list(self.scorer_names),
            "trial_count": self.trial_count,
            "models": {name: scores.to_dict() for name, scores in self.models.items()},
        }


def _scorer_name(scorer: Any) -> str:
    return getattr(scorer, "name", type(scorer).__name__)


async def _run_trial(
    model: ModelConfig,
    case: EvalCase,
    case_index: int,
    trial: int,
    scorers: Sequence[Any],
    semaphore: asyncio.Semaphore,
) -> TrialResult:
    """Run and score one trial. Exceptions become a failed TrialResult."""
    scores: Dict[str, float] = {}
    feedback: Dict[str, str] = {}

    async with semaphore:
        started = time.monotonic()
        try:
            output = await model.task(case)
            for scorer in scorers:
                result = scorer.score(case, output)
                if inspect.isawaitable(result):
                    result = await result
                scores[_scorer_name(scorer)] = float(result.score)
                feedback[_scorer_name(scorer)] = result.feedback
        except Exception as e:
            logger.warning(f"Trial failed: model={model.name} case={case.case_id} trial={trial}: {e}")
            return TrialResult(
                model=model.name,
                case_id=case.case_id,
                case_index=case_index,
                trial=trial,
                scores=scores,
                feedback=feedback,
                error=PipelineFailure.from_exception(e, stage="eval"),
                duration_seconds=time.monotonic() - started,
            )

    return TrialResult(
        model=model.name,
        case_id=case.case_id,
        case_index=case_index,
        trial=trial,
        scores=scores,
        feedback=feedback,
        duration_seconds=time.monotonic() - started,
    )


def _mean(values: Sequence[float]) -> float:
    return round(sum(values) / len(values), SCORE_PRECISION) if values else 0.0


def _aggregate_model(model: str, trials: List[TrialResult], scorer_names: Sequence[str]) -> ModelScores:
    """
    Aggregate one model's trials.

    A failed trial counts as 0.0 for every scorer it did not complete.
    """
    ordered = tuple(sorted(trials, key=lambda t: (t.case_index, t.trial)))

    def score_of(trial: TrialResult, scorer: str) -> float:
        if trial.succeeded:
            return trial.scores[scorer]
        return 0.0

    mean_scores = {s: _mean([score_of(t, s) for t in ordered]) for s in scorer_names}

    case_scores: Dict[str, Dict[str, float]] = {}
    for trial in ordered:
        case_scores.setdefault(trial.case_id, {})
    for case_id in case_scores:
        case_trials = [t for t in ordered if t.case_id == case_id]
        case_scores[case_id] = {s: _mean([score_of(t, s) for t in case_trials]) for s in scorer_names}

    return ModelScores(
        model=model,
        trials=ordered,
        mean_scores=mean_scores,
        case_scores=case_scores,
        failed_trials=sum(1 for t in ordered if not t.succeeded),
    )


async def run_eval(
    cases: Sequence[EvalCase],
    models: Sequence[ModelConfig],
    scorers: Sequence[Any],
    trial_count: Optional[int] = None,
    max_concurrency: Optional[int] = None,
) -> AggregatedScores:
    """
    Run a batch of eval cases against one or more models.

    Args:
        cases: Eval fixtures (case_ids must be unique)
        models: Models under evaluation
        scorers: Objects with `name` and `score(case, output)` (sync or async)
        trial_count: Trials per (model, case) (default Config.EVAL_TRIAL_COUNT)
        max_concurrency: Concurrent trials per model, unless the model sets
            its own (default Config.EVAL_MAX_CONCURRENCY)

    Returns:
        AggregatedScores keyed by model name
    """
    trial_count = Config.EVAL_TRIAL_COUNT if trial_count is None else trial_count
    default_concurrency = Config.EVAL_MAX_CONCURRENCY if max_concurrency is None else max_concurrency

    if trial_count < 1:
        raise ValueError(f"trial_count must be at least 1, got {trial_count}")
    case_ids = [c.case_id for c in cases]
    if len(set(case_ids)) != len(case_ids):
        raise ValueError("Eval case ids must be unique")
    model_names = [m.name for m in models]
    if len(set(model_names)) != len(model_names):
        raise ValueError("Model names must be unique")

    scorer_names = tuple(_scorer_name(s) for s in scorers)

    coros = []
    for model in models:
        limit = model.max_concurrency or default_concurrency
        semaphore = asyncio.Semaphore(max(1, limit))
        for case_index, case in enumerate(cases):
            for trial in range(trial_count):
                coros.append(_run_trial(model, case, case_index, trial, scorers, semaphore))

    logger.info(
        f"Running {len(coros)} trial(s): {len(models)} model(s) x {len(cases)} case(s) x {trial_count} trial(s)"
    )
    results: List[TrialResult] = await asyncio.gather(*coros)

    by_model: Dict[str, ModelScores] = {}
    for model in models:
        trials = [r for r in results if r.model == model.name]
        by_model[model.name] = _aggregate_model(model.name, trials, scorer_names)
        logger.info(
            f"{model.name}: {by_model[model.name].mean_scores} "
            f"({by_model[model.name].failed_trials} failed trial(s))"
        )

    return AggregatedScores(
        models=by_model,
        case_ids=tuple(case_ids),
        scorer_names=scorer_names,
        trial_count=trial_count,
    )


# ===== Task adapters =====

def make_extraction_task(llm: Optional[BaseChatModel] = None, timeout: Optional[float] = None) -> EvalTask:
    """
    Task that builds an extraction prompt from the case input and extracts.

    Cases with "commits" in their input use the commit prompt, others the
    chat prompt. A failed extraction raises ExtractionError (from
    AchievementExtractor.stream) so the trial is recorded as failed.
    """
    async def task(case: EvalCase) -> List[Any]:
        task_input = dict(case.task_input)
        if "commits" in task_input:
            prompt = build_commit_extraction_prompt(**task_input)
            step = "extract_commit_achievements"
        else:
            prompt = build_extraction_prompt(**task_input)
            step = "extract_achievements"

        extractor = AchievementExtractor(llm=llm, step_name=step)
        return [a async for a in extractor.stream(prompt, timeout=timeout)]

    return task


def make_document_task(
    llm: Optional[BaseChatModel] = None,
    doc_format: DocumentFormat = DocumentFormat.CUSTOM,
    timeout: Optional[float] = None,
) -> EvalTask:
    """Task that builds a document prompt from the case input and generates the text."""
    async def task(case: EvalCase) -> str:
        prompt = build_document_prompt(**dict(case.task_input))
        result = await DocumentGenerator(llm=llm).generate(prompt, doc_format, timeout=timeout)
        if not result.complete:
            raise GenerationError(result)
        return result.text

    return task


# ===== Reporting =====

class EvalReportWriter:
    """Saves eval results as JSON files under the reports directory."""

    def __init__(self, reports_dir: Optional[str] = None):
        self.reports_dir = Path(reports_dir or Config.EVAL_REPORTS_DIR)

    def save(self, scores: AggregatedScores, suite: str) -> Path:
        """
        Save results to `<reports_dir>/<suite>-<UTC timestamp>.json`.

        Returns:
            Path to saved file
        """
        self.reports_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        filepath = self.reports_dir / f"{suite}-{timestamp}.json"

        payload = {"suite": suite, "created_at": timestamp, **scores.to_dict()}
        with log_on_exception(logger.logger, f"Eval report write {filepath}", level=logging.ERROR):
            with open(filepath, "w") as f:
                json.dump(payload, f, indent=2)

        logger.info(f"Saved eval report to {filepath}")
        return filepath
