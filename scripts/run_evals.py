#!/usr/bin/env python3
"""
Offline eval runner.

Runs a fixed eval suite against one or more models and saves a JSON report
under EVAL_REPORTS_DIR (default reports/evals).

Usage:
    python scripts/run_evals.py --suite chat-extraction --models gpt-4o gpt-4o-mini
    python scripts/run_evals.py --suite weekly-document --trials 5 --judge
    python scripts/run_evals.py --suite commit-extraction --log-format json
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment before other imports
load_dotenv()

from brag_pipeline.common.config import Config
from brag_pipeline.common.llm_factory import create_llm
from brag_pipeline.common.logger import get_logger, set_global_debug_mode, setup_logging
from brag_pipeline.evals.datasets import SUITES, get_suite, suite_kind
from brag_pipeline.evals.harness import (
    AggregatedScores,
    EvalReportWriter,
    ModelConfig,
    make_document_task,
    make_extraction_task,
    run_eval,
)
from brag_pipeline.evals.scorers import (
    AchievementSetScorer,
    DocumentStructureScorer,
    document_judge,
    extraction_judge,
)
from brag_pipeline.generation.document_generator import DocumentFormat

logger = get_logger("run_evals", layer="evals")


def build_models(suite: str, model_names: List[str]) -> List[ModelConfig]:
    """One ModelConfig per model name, wired to the suite's task."""
    kind = suite_kind(suite)
    models = []
    for name in model_names:
        if kind == "document":
            doc_format = DocumentFormat(get_suite(suite)[0].metadata.get("doc_format", "custom"))
            task = make_document_task(create_llm("generate_document", model=name), doc_format=doc_format)
        else:
            commits = "commits" in get_suite(suite)[0].task_input
            step = "extract_commit_achievements" if commits else "extract_achievements"
            task = make_extraction_task(create_llm(step, model=name))
        models.append(ModelConfig(name=name, task=task))
    return models


def build_scorers(suite: str, judge: bool) -> list:
    if suite_kind(suite) == "document":
        scorers = [DocumentStructureScorer()]
        if judge:
            scorers.append(document_judge())
    else:
        scorers = [AchievementSetScorer()]
        if judge:
            scorers.append(extraction_judge())
    return scorers


def print_summary(scores: AggregatedScores) -> None:
    print("\n" + "=" * 60)
    print(f"Cases: {', '.join(scores.case_ids)}  Trials: {scores.trial_count}")
    print("=" * 60)
    for name, model_scores in scores.models.items():
        means = "  ".join(f"{scorer}={value:.3f}" for scorer, value in model_scores.mean_scores.items())
        print(f"{name:<24} {means}  failed={model_scores.failed_trials}")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Run achievement pipeline evals")
    parser.add_argument(
        "--suite",
        choices=sorted(SUITES),
        required=True,
        help="Eval suite to run",
    )
    parser.add_argument(
        "--models",
        nargs="+",
        default=None,
        help="Model names to evaluate (default: the step's configured model)",
    )
    parser.add_argument(
        "--trials",
        type=int,
        default=Config.EVAL_TRIAL_COUNT,
        help=f"Trials per model and case (default: {Config.EVAL_TRIAL_COUNT})",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=Config.EVAL_MAX_CONCURRENCY,
        help=f"Concurrent trials per model (default: {Config.EVAL_MAX_CONCURRENCY})",
    )
    parser.add_argument(
        "--judge",
        action="store_true",
        help="Add the LLM judge scorer",
    )
    parser.add_argument(
        "--reports-dir",
        default=None,
        help=f"Directory for JSON reports (default: {Config.EVAL_REPORTS_DIR})",
    )
    parser.add_argument(
        "--no-report",
        action="store_true",
        help="Don't save a JSON report",
    )
    parser.add_argument(
        "--log-format",
        choices=["simple", "json"],
        default="simple",
        help="Log format (json for CI)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )

    args = parser.parse_args()

    setup_logging(level="DEBUG" if args.verbose else "INFO", format=args.log_format)
    if args.verbose:
        set_global_debug_mode(True)

    try:
        Config.validate()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(2)

    default_model = Config.DOCUMENT_MODEL if suite_kind(args.suite) == "document" else Config.EXTRACTION_MODEL
    model_names = args.models or [default_model]

    logger.info(f"Running suite '{args.suite}' against {', '.join(model_names)}")

    scores = asyncio.run(run_eval(
        cases=get_suite(args.suite),
        models=build_models(args.suite, model_names),
        scorers=build_scorers(args.suite, args.judge),
        trial_count=args.trials,
        max_concurrency=args.concurrency,
    ))

    print_summary(scores)

    if not args.no_report:
        EvalReportWriter(args.reports_dir).save(scores, suite=args.suite)

    # Exit with error code if any trial failed
    if any(m.failed_trials for m in scores.models.values()):
        sys.exit(1)


if __name__ == "__main__":
    main()
