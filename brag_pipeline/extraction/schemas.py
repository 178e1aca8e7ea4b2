"""
Output schema for achievement extraction.

The model is asked for `{"achievements": [...]}`; each entry is validated
field by field before it becomes an ExtractedAchievement.
"""

from datetime import date
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from brag_pipeline.common.types import EventDuration
from brag_pipeline.extraction.results import ExtractedAchievement


class AchievementResponseModel(BaseModel):
    """Pydantic model for validating one extracted achievement."""

    title: str = Field(..., min_length=1, max_length=256, description="Action-oriented achievement title")
    summary: Optional[str] = Field(default=None, description="Concise summary with key metrics and impact")
    details: Optional[str] = Field(default=None, description="Context and significance")
    event_start: Optional[date] = Field(
        default=None,
        validation_alias=AliasChoices("event_start", "eventStart"),
        description="Start date (YYYY-MM-DD)",
    )
    event_end: Optional[date] = Field(
        default=None,
        validation_alias=AliasChoices("event_end", "eventEnd"),
        description="End date (YYYY-MM-DD), only if stated",
    )
    event_duration: Optional[EventDuration] = Field(
        default=None,
        validation_alias=AliasChoices("event_duration", "eventDuration"),
        description="Duration bucket of the event",
    )
    company_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("company_id", "companyId"),
        description="ID of the company, or null",
    )
    project_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("project_id", "projectId"),
        description="ID of the project, or null",
    )
    impact: Optional[int] = Field(default=None, ge=1, le=10, description="Impact rating 1-10")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Strip whitespace and leading bullet characters."""
        v = v.strip()
        if v.startswith("•") or v.startswith("-"):
            v = v[1:].strip()
        if not v:
            raise ValueError("title must not be blank")
        return v

    @field_validator("event_start", "event_end", mode="before")
    @classmethod
    def validate_date(cls, v: Any) -> Any:
        """Accept full ISO timestamps by keeping the date part; blank means unknown."""
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return None
            return v[:10]
        return v

    @field_validator("company_id", "project_id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> Any:
        if isinstance(v, str) and v.strip().lower() in ("", "null", "none"):
            return None
        return v

    def to_extracted(self, default_impact: int) -> ExtractedAchievement:
        """Convert to an ExtractedAchievement, applying the impact fallback."""
        return ExtractedAchievement(
            title=self.title,
            summary=self.summary or "",
            details=self.details or "",
            impact=self.impact if self.impact is not None else default_impact,
            impact_source="llm" if self.impact is not None else "default",
            event_start=self.event_start,
            event_end=self.event_end,
            event_duration=self.event_duration,
            source_type="llm",
            company_id=self.company_id,
            project_id=self.project_id,
        )


class ExtractionResponseModel(BaseModel):
    """Pydantic model for validating the full LLM response."""

    achievements: List[Optional[AchievementResponseModel]] = Field(
        ..., description="Extracted achievements; null entries are ignored"
    )

    def to_extracted(self, default_impact: int) -> List[ExtractedAchievement]:
        return [a.to_extracted(default_impact) for a in self.achievements if a is not None]
