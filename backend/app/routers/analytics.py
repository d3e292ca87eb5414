"""
Analytics Router
================
Report-page endpoints. Each one loads the caller's journal entries and
hands them to the pure functions in ``app.services.analytics`` together
with the current time and the report time zone:

  GET /api/emotion-stats            headline numbers
  GET /api/weekly-emotion-data      Mon..Sun mean emotion level
  GET /api/sensory-expansion-data   Mon..Sun mean sensory expansion score
  GET /api/self-acceptance-data     Mon..Sun self-acceptance + trend
  GET /api/wave-analysis            best day / trend / wave for both series
  GET /api/body-mapping-insights    how often each body area was marked
  GET /api/emotion-patterns         three plain-language pattern sentences
  GET /api/recovery-tendency        recovery grade + decline detection

Every series endpoint returns exactly seven points. Days with no entries
get the neutral score 3, so a new user sees a flat chart, not an error.
``?tz=Europe/Seoul`` overrides the configured report zone for day
bucketing; an unknown zone is a 400.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.config import get_settings
from app.models.analytics import (
    ChartSeries,
    EmotionPattern,
    EmotionStats,
    RecoveryTendency,
    SelfAcceptanceData,
    WaveAnalysisResponse,
)
from app.models.journal import JournalEntry
from app.routers.journal import fetch_journal_entries
from app.security import get_current_user
from app.services import analytics

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["analytics"])


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def report_timezone(
    tz: Optional[str] = Query(default=None, description="IANA time zone for day bucketing."),
) -> tzinfo:
    return analytics.resolve_timezone(tz or get_settings().report_timezone)


def user_entries(user: dict = Depends(get_current_user)) -> list[JournalEntry]:
    return fetch_journal_entries(user["id"])


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/emotion-stats", response_model=EmotionStats, summary="Headline emotion statistics")
async def get_emotion_stats(
    entries: list[JournalEntry] = Depends(user_entries),
    tz: tzinfo = Depends(report_timezone),
) -> EmotionStats:
    return analytics.emotion_stats(entries, _now(), tz)


@router.get("/weekly-emotion-data", response_model=ChartSeries, summary="Weekly emotion wave")
async def get_weekly_emotion_data(
    entries: list[JournalEntry] = Depends(user_entries),
    tz: tzinfo = Depends(report_timezone),
) -> ChartSeries:
    return analytics.weekly_emotion_series(entries, _now(), tz)


@router.get("/sensory-expansion-data", response_model=ChartSeries, summary="Weekly sensory expansion wave")
async def get_sensory_expansion_data(
    entries: list[JournalEntry] = Depends(user_entries),
    tz: tzinfo = Depends(report_timezone),
) -> ChartSeries:
    return analytics.sensory_expansion_series(entries, _now(), tz)


@router.get("/self-acceptance-data", response_model=SelfAcceptanceData, summary="Weekly self-acceptance")
async def get_self_acceptance_data(
    entries: list[JournalEntry] = Depends(user_entries),
    tz: tzinfo = Depends(report_timezone),
) -> SelfAcceptanceData:
    return analytics.self_acceptance_data(entries, _now(), tz)


@router.get("/wave-analysis", response_model=WaveAnalysisResponse, summary="Shape of the weekly waves")
async def get_wave_analysis(
    entries: list[JournalEntry] = Depends(user_entries),
    tz: tzinfo = Depends(report_timezone),
) -> WaveAnalysisResponse:
    now = _now()
    return WaveAnalysisResponse(
        emotion=analytics.wave_analysis(analytics.weekly_emotion_series(entries, now, tz)),
        sensory=analytics.wave_analysis(analytics.sensory_expansion_series(entries, now, tz)),
    )


@router.get("/body-mapping-insights", response_model=dict[str, int], summary="Body area frequencies")
async def get_body_mapping_insights(
    entries: list[JournalEntry] = Depends(user_entries),
) -> dict[str, int]:
    return analytics.body_mapping_insights(entries)


@router.get("/emotion-patterns", response_model=list[EmotionPattern], summary="Emotion pattern insights")
async def get_emotion_patterns(
    entries: list[JournalEntry] = Depends(user_entries),
    tz: tzinfo = Depends(report_timezone),
) -> list[EmotionPattern]:
    return analytics.emotion_patterns(entries, tz)


@router.get("/recovery-tendency", response_model=RecoveryTendency, summary="Recovery grade and decline detection")
async def get_recovery_tendency(
    entries: list[JournalEntry] = Depends(user_entries),
    tz: tzinfo = Depends(report_timezone),
) -> RecoveryTendency:
    thresholds = analytics.RecoveryThresholds.from_settings(get_settings())
    result = analytics.recovery_tendency(entries, _now(), tz, thresholds)
    logger.debug("Recovery grade %s (score %.1f)", result.grade, result.sensory_score)
    return result
