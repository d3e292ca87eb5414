"""
Analytics Schemas
=================
Read-only view models produced by ``app.services.analytics`` and returned
by the report endpoints. Nothing here is ever accepted from the client.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field, model_validator

from app.models.base import CamelModel

TrendDirection = Literal["rising", "declining", "stable"]
WaveLevel = Literal["active", "moderate", "stable"]
DeclineType = Literal["sharp_drop", "gradual_drop", "high_volatility", "stagnation"]
RecoveryGrade = Literal["S", "A", "B", "C", "D"]


class EmotionStats(CamelModel):
    """Headline numbers for the report page."""

    average_emotion: float = Field(..., description="Mean emotion level over all entries (1 dp).")
    total_entries: int
    weekly_average: float = Field(..., description="Mean emotion level over the last 7 days (1 dp).")
    monthly_streak: int = Field(
        ...,
        description="Distinct calendar days with at least one entry in the last 30 days.",
    )


class ChartSeries(CamelModel):
    """A chart series; ``data[i]`` is plotted at ``labels[i]``."""

    data: list[float]
    labels: list[str]

    @model_validator(mode="after")
    def _positional_match(self) -> "ChartSeries":
        if len(self.data) != len(self.labels):
            raise ValueError("data and labels must have the same length")
        return self


class SelfAcceptanceData(CamelModel):
    weekly_data: list[float]
    labels: list[str]
    average_score: float
    trend: TrendDirection


class WaveAnalysis(CamelModel):
    """Shape of a weekly series: where it peaks, where it's heading, how much it moves."""

    best_day: str
    trend: TrendDirection
    wave: WaveLevel
    variance: float


class WaveAnalysisResponse(CamelModel):
    emotion: WaveAnalysis
    sensory: WaveAnalysis


class EmotionPattern(CamelModel):
    kind: Literal["morning", "session", "emotion"]
    text: str


class DeclineResponse(CamelModel):
    cause: str
    primary_response: str
    secondary_response: str


class RecoveryHistory(CamelModel):
    current_week_avg: Optional[float] = None
    previous_week_avg: Optional[float] = None
    two_weeks_avg: Optional[float] = None
    recent_3_days_scores: list[float] = Field(default_factory=list)
    recent_14_days_change: Optional[float] = None
    volatility: float = 0.0


class RecoveryTendency(CamelModel):
    """Recovery grade and decline detection over the sensory expansion score."""

    grade: RecoveryGrade
    grade_text: str
    sensory_score: float = Field(..., description="Current-week sensory score on a 0-100 scale.")
    interpretation: str
    suggestions: list[str]
    is_recovery_detected: bool
    detection_date: str
    summary: str
    decline_detected: bool
    decline_type: Optional[DeclineType] = None
    decline_response: Optional[DeclineResponse] = None
    has_data: bool
    historical_data: RecoveryHistory
