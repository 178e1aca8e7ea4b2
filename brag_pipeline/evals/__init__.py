"""
Evaluation Harness.

Runs eval cases against one or more models, scores every trial and
aggregates the results. Reports are written as local JSON files.
"""

from brag_pipeline.evals.cases import DocumentExpectations, EvalCase, ExpectedAchievement
from brag_pipeline.evals.harness import (
    AggregatedScores,
    EvalReportWriter,
    ModelConfig,
    ModelScores,
    TrialResult,
    make_document_task,
    make_extraction_task,
    run_eval,
)
from brag_pipeline.evals.scorers import (
    AchievementSetScorer,
    DocumentStructureScorer,
    LLMClassifierScorer,
    ScoreResult,
    document_judge,
    extraction_judge,
)

__all__ = [
    "DocumentExpectations",
    "EvalCase",
    "ExpectedAchievement",
    "AggregatedScores",
    "EvalReportWriter",
    "ModelConfig",
    "ModelScores",
    "TrialResult",
    "make_document_task",
    "make_extraction_task",
    "run_eval",
    "AchievementSetScorer",
    "DocumentStructureScorer",
    "LLMClassifierScorer",
    "ScoreResult",
    "document_judge",
    "extraction_judge",
]
