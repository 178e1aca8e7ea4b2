"""
Achievement Extraction Engine.

AchievementExtractor sends an assembled prompt to the chat model and returns
ExtractionSucceeded, EmptyExtraction or ExtractionFailed.
"""

from brag_pipeline.extraction.results import (
    EmptyExtraction,
    ExtractedAchievement,
    ExtractionFailed,
    ExtractionResult,
    ExtractionState,
    ExtractionSucceeded,
)
from brag_pipeline.extraction.schemas import AchievementResponseModel, ExtractionResponseModel
from brag_pipeline.extraction.extractor import AchievementExtractor, extract_achievements

__all__ = [
    "EmptyExtraction",
    "ExtractedAchievement",
    "ExtractionFailed",
    "ExtractionResult",
    "ExtractionState",
    "ExtractionSucceeded",
    "AchievementResponseModel",
    "ExtractionResponseModel",
    "AchievementExtractor",
    "extract_achievements",
]
