"""
Analytics Service
=================
Turns a user's journal entries into the report-page view models: headline
stats, weekday chart series, wave analysis, body-mapping counts, pattern
sentences and the recovery tendency grade.

Every function is pure. It takes the entries, an explicit ``now`` and the
caller's time zone, and recomputes from scratch. Nothing is cached, so
concurrent requests can't interfere and tests can pin the clock.

Empty or sparse input is a defined default path, not an error:
weekday series are padded with the neutral score (3) so charts always get
one point per label, stats fall back to zero, and averages never divide
by zero.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Callable, Optional, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import numpy as np
import pandas as pd

from app.config import Settings
from app.errors import InvalidInput
from app.models.analytics import (
    ChartSeries,
    DeclineResponse,
    EmotionPattern,
    EmotionStats,
    RecoveryHistory,
    RecoveryTendency,
    SelfAcceptanceData,
    WaveAnalysis,
)
from app.models.journal import MATCHING_SCORE_KEY, JournalEntry
from app.services.scoring import (
    MAX_SCORE,
    MIN_SCORE,
    NEUTRAL_SCORE,
    self_acceptance_score,
    sensory_expansion_score,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

WEEK_WINDOW = timedelta(days=7)
MONTH_WINDOW = timedelta(days=30)

TREND_SPAN = 3  # buckets averaged at each end of a series
WAVE_ACTIVE_VARIANCE = 0.5
WAVE_MODERATE_VARIANCE = 0.2

MORNING_HOURS = range(6, 12)
SESSION_CHARS_PER_MINUTE = 100
SESSION_MIN_MINUTES = 2
SESSION_MAX_MINUTES = 8

# Recovery tendency works on a 0-100 scale: score 1 -> 0, score 5 -> 100.
POINTS_PER_SCORE = 100 / (MAX_SCORE - MIN_SCORE)
RECOVERY_LOOKBACK_DAYS = 21
RECENT_CHANGE_DAYS = 14
RECENT_VOLATILITY_POINTS = 3


# ---------------------------------------------------------------------------
# Time helpers
# ---------------------------------------------------------------------------

def resolve_timezone(name: str) -> tzinfo:
    """Look up an IANA zone name, raising InvalidInput for unknown names."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidInput(f"Unknown time zone: {name}") from exc


def _as_utc(ts: datetime) -> datetime:
    # Naive timestamps from the DB are UTC.
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def _local(ts: datetime, tz: tzinfo) -> datetime:
    return _as_utc(ts).astimezone(tz)


def _since(entries: Sequence[JournalEntry], now: datetime, window: timedelta) -> list[JournalEntry]:
    cutoff = _as_utc(now) - window
    return [e for e in entries if _as_utc(e.created_at) >= cutoff]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _round1_half_up(value: float) -> float:
    # One decimal place with halves rounded up.
    return math.floor(value * 10 + 0.5) / 10


# ---------------------------------------------------------------------------
# Weekday series
# ---------------------------------------------------------------------------

def _weekday_series(
    entries: Sequence[JournalEntry],
    now: datetime,
    tz: tzinfo,
    value: Callable[[JournalEntry], float],
) -> ChartSeries:
    """Average ``value`` per local weekday over the trailing week, Mon..Sun."""
    recent = _since(entries, now, WEEK_WINDOW)
    if not recent:
        return ChartSeries(data=[NEUTRAL_SCORE] * len(DAY_LABELS), labels=list(DAY_LABELS))

    frame = pd.DataFrame({
        "weekday": [_local(e.created_at, tz).weekday() for e in recent],
        "value": [value(e) for e in recent],
    })
    means = (
        frame.groupby("weekday")["value"]
        .mean()
        .reindex(range(len(DAY_LABELS)), fill_value=NEUTRAL_SCORE)
    )
    return ChartSeries(data=[float(v) for v in means], labels=list(DAY_LABELS))


def weekly_emotion_series(entries: Sequence[JournalEntry], now: datetime, tz: tzinfo) -> ChartSeries:
    return _weekday_series(entries, now, tz, lambda e: float(e.emotion_level))


def sensory_expansion_series(entries: Sequence[JournalEntry], now: datetime, tz: tzinfo) -> ChartSeries:
    return _weekday_series(entries, now, tz, sensory_expansion_score)


def self_acceptance_data(entries: Sequence[JournalEntry], now: datetime, tz: tzinfo) -> SelfAcceptanceData:
    series = _weekday_series(entries, now, tz, self_acceptance_score)
    recent = _since(entries, now, WEEK_WINDOW)
    if recent:
        average = _round1_half_up(float(np.mean([self_acceptance_score(e) for e in recent])))
    else:
        average = NEUTRAL_SCORE
    return SelfAcceptanceData(
        weekly_data=series.data,
        labels=series.labels,
        average_score=average,
        trend=trend_direction(series.data),
    )


# ---------------------------------------------------------------------------
# Series shape
# ---------------------------------------------------------------------------

def best_day(series: ChartSeries) -> str:
    """Label of the highest point. Ties go to the earliest label."""
    if not series.data:
        return ""
    # np.argmax returns the first occurrence of the maximum
    return series.labels[int(np.argmax(series.data))]


def trend_direction(values: Sequence[float]) -> str:
    if len(values) < 2:
        return "stable"
    first_avg = float(np.mean(values[:TREND_SPAN]))
    second_avg = float(np.mean(values[-TREND_SPAN:]))
    # Same values summed in a different order can differ in the last bit.
    if math.isclose(first_avg, second_avg, rel_tol=0.0, abs_tol=1e-9):
        return "stable"
    return "rising" if second_avg > first_avg else "declining"


def wave_classification(values: Sequence[float]) -> str:
    variance = float(np.var(values)) if len(values) else 0.0
    if variance > WAVE_ACTIVE_VARIANCE:
        return "active"
    if variance > WAVE_MODERATE_VARIANCE:
        return "moderate"
    return "stable"


def wave_analysis(series: ChartSeries) -> WaveAnalysis:
    variance = float(np.var(series.data)) if series.data else 0.0
    return WaveAnalysis(
        best_day=best_day(series),
        trend=trend_direction(series.data),
        wave=wave_classification(series.data),
        variance=round(variance, 3),
    )


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------

def monthly_streak(entries: Sequence[JournalEntry], now: datetime, tz: tzinfo) -> int:
    """Distinct local calendar days with an entry in the trailing 30 days."""
    return len({_local(e.created_at, tz).date() for e in _since(entries, now, MONTH_WINDOW)})


def emotion_stats(entries: Sequence[JournalEntry], now: datetime, tz: tzinfo) -> EmotionStats:
    if not entries:
        return EmotionStats(average_emotion=0, total_entries=0, weekly_average=0, monthly_streak=0)

    average = float(np.mean([e.emotion_level for e in entries]))
    weekly = [e.emotion_level for e in _since(entries, now, WEEK_WINDOW)]
    weekly_average = float(np.mean(weekly)) if weekly else 0.0

    return EmotionStats(
        average_emotion=_round1_half_up(average),
        total_entries=len(entries),
        weekly_average=_round1_half_up(weekly_average),
        monthly_streak=monthly_streak(entries, now, tz),
    )


def body_mapping_insights(entries: Sequence[JournalEntry]) -> dict[str, int]:
    """How often each body area was marked, across all entries."""
    counts: Counter[str] = Counter()
    for entry in entries:
        counts.update(area for area in entry.body_mapping if area != MATCHING_SCORE_KEY)
    return dict(counts)


def emotion_patterns(entries: Sequence[JournalEntry], tz: tzinfo) -> list[EmotionPattern]:
    if not entries:
        return []

    overall_avg = float(np.mean([e.emotion_level for e in entries]))
    morning_levels = [
        e.emotion_level for e in entries if _local(e.created_at, tz).hour in MORNING_HOURS
    ]
    morning_avg = float(np.mean(morning_levels)) if morning_levels else 0.0

    if morning_avg > overall_avg:
        boost = _round_half_up((morning_avg - overall_avg) * 100 / overall_avg)
        morning_text = f"Mornings show {boost}% higher emotional balance"
    else:
        morning_text = "Evening reflections tend to be more balanced"

    # Rough estimate: 100 characters ~ one minute of writing.
    session_minutes = np.clip(
        [len(e.content) / SESSION_CHARS_PER_MINUTE for e in entries],
        SESSION_MIN_MINUTES,
        SESSION_MAX_MINUTES,
    )
    session_text = f"Average journaling session: {_round_half_up(float(session_minutes.mean()))} minutes"

    emotions = Counter(e.emotion_type for e in entries if e.emotion_type)
    if emotions:
        emotion, count = emotions.most_common(1)[0]
        share = _round_half_up(count / len(entries) * 100)
        emotion_text = f"Most frequent emotion: {emotion} ({share}%)"
    else:
        emotion_text = "Building emotional awareness through journaling"

    return [
        EmotionPattern(kind="morning", text=morning_text),
        EmotionPattern(kind="session", text=session_text),
        EmotionPattern(kind="emotion", text=emotion_text),
    ]


# ---------------------------------------------------------------------------
# Recovery tendency
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RecoveryThresholds:
    """Cut-offs on the 0-100 sensory scale. Operator-configurable."""

    sharp_drop: float = 20
    gradual_drop: float = 10
    volatility: float = 25
    stagnation: float = 5
    grade_s: float = 80
    grade_a: float = 65
    grade_b: float = 50
    grade_c: float = 35

    @classmethod
    def from_settings(cls, settings: Settings) -> "RecoveryThresholds":
        return cls(
            sharp_drop=settings.recovery_sharp_drop_points,
            gradual_drop=settings.recovery_gradual_drop_points,
            volatility=settings.recovery_volatility_points,
            stagnation=settings.recovery_stagnation_points,
            grade_s=settings.recovery_grade_s,
            grade_a=settings.recovery_grade_a,
            grade_b=settings.recovery_grade_b,
            grade_c=settings.recovery_grade_c,
        )


@dataclass(frozen=True)
class _Grade:
    grade: str
    text: str
    interpretation: str
    suggestions: tuple[str, ...]


_GRADES = {
    "S": _Grade(
        "S",
        "Stable and expanding",
        "Your current routine fits you well and your self-regulation is getting stronger.",
        ("Keep the routine going", "Add a deeper ritual", "Deep breathing meditation", "Creative activity"),
    ),
    "A": _Grade(
        "A",
        "Recovering",
        "You're on a recovery track. The next step is smoothing out the swings.",
        ("Keep routines regular", "Two preventive mini-routines a day", "Same time slot for routines"),
    ),
    "B": _Grade(
        "B",
        "Fluctuating",
        "Stay on the recovery path, but look at the unsteady stretches.",
        ("A quick routine for each trigger emotion", "Journal every day", "Look closer at patterns"),
    ),
    "C": _Grade(
        "C",
        "Slow recovery",
        "Attempts to break the loop are too few or not working yet.",
        ("Rebuild the routine", "A personal recovery plan", "Try a new approach"),
    ),
    "D": _Grade(
        "D",
        "Declining",
        "It's time to reach for support right away.",
        ("Start the red-button routine now", "Three regular routines a day", "Connect with outside help"),
    ),
}

_DECLINE_RESPONSES = {
    "sharp_drop": DeclineResponse(
        cause="Sudden stress, a change of environment, or a relationship trigger",
        primary_response="Run the red-button routine now (4-7-8 breathing, butterfly hug, walking)",
        secondary_response="One deep reframing journal a day and the sensory restoration routine twice",
    ),
    "gradual_drop": DeclineResponse(
        cause="Built-up fatigue, irregular routines, not enough self-care",
        primary_response="Bring back the morning and evening mini-routines",
        secondary_response="Trace causes with an emotion-loop map",
    ),
    "high_volatility": DeclineResponse(
        cause="The same emotional trigger keeps repeating",
        primary_response="Run the mini-routine set for each trigger",
        secondary_response="Journal every day and review again next week",
    ),
    "stagnation": DeclineResponse(
        cause="Routines have lost their effect and self-awareness has dipped",
        primary_response="Introduce a new routine or a change of environment",
        secondary_response="Adjust the routine one-to-one or join a group session",
    ),
}


def _grade_for(score: float, thresholds: RecoveryThresholds) -> _Grade:
    if score >= thresholds.grade_s:
        return _GRADES["S"]
    if score >= thresholds.grade_a:
        return _GRADES["A"]
    if score >= thresholds.grade_b:
        return _GRADES["B"]
    if score >= thresholds.grade_c:
        return _GRADES["C"]
    return _GRADES["D"]


def _daily_points(entries: Sequence[JournalEntry], today: date, tz: tzinfo) -> pd.Series:
    """Mean sensory score per local day over the lookback, as 0-100 points, oldest first."""
    start = today - timedelta(days=RECOVERY_LOOKBACK_DAYS - 1)
    rows = []
    for entry in entries:
        day = _local(entry.created_at, tz).date()
        if start <= day <= today:
            rows.append((day, sensory_expansion_score(entry)))

    if not rows:
        return pd.Series(dtype=float)

    frame = pd.DataFrame(rows, columns=["day", "score"])
    daily = frame.groupby("day")["score"].mean().sort_index()
    return (daily - MIN_SCORE) * POINTS_PER_SCORE


def _days_back(daily: pd.Series, today: date, nearest: int, farthest: int) -> pd.Series:
    lo = today - timedelta(days=farthest)
    hi = today - timedelta(days=nearest)
    mask = np.array([lo <= day <= hi for day in daily.index], dtype=bool)
    return daily[mask]


def _mean_or_none(values: pd.Series) -> Optional[float]:
    return float(values.mean()) if len(values) else None


def _round_or_none(value: Optional[float]) -> Optional[float]:
    return round(value, 1) if value is not None else None


def _detect_decline(
    current: Optional[float],
    previous: Optional[float],
    two_weeks: Optional[float],
    volatility: float,
    recent_change: Optional[float],
    thresholds: RecoveryThresholds,
) -> Optional[str]:
    """First matching decline pattern, checked from most to least urgent."""
    if current is not None and previous is not None:
        if previous - current >= thresholds.sharp_drop:
            return "sharp_drop"
    if current is not None and two_weeks is not None:
        if thresholds.gradual_drop <= two_weeks - current < thresholds.sharp_drop:
            return "gradual_drop"
    if volatility >= thresholds.volatility:
        return "high_volatility"
    if recent_change is not None and abs(recent_change) <= thresholds.stagnation:
        return "stagnation"
    return None


def recovery_tendency(
    entries: Sequence[JournalEntry],
    now: datetime,
    tz: tzinfo,
    thresholds: Optional[RecoveryThresholds] = None,
) -> RecoveryTendency:
    thresholds = thresholds or RecoveryThresholds()
    today = _local(now, tz).date()
    daily = _daily_points(entries, today, tz)

    current = _mean_or_none(_days_back(daily, today, 0, 6))
    previous = _mean_or_none(_days_back(daily, today, 7, 13))
    two_weeks = _mean_or_none(_days_back(daily, today, 14, 20))

    last_fortnight = _days_back(daily, today, 0, RECENT_CHANGE_DAYS - 1)
    recent_points = [float(v) for v in last_fortnight.tail(RECENT_VOLATILITY_POINTS)]
    volatility = max(recent_points) - min(recent_points) if len(recent_points) >= 2 else 0.0
    recent_change = (
        float(last_fortnight.iloc[-1] - last_fortnight.iloc[0]) if len(last_fortnight) >= 2 else None
    )

    sensory_score = current if current is not None else (NEUTRAL_SCORE - MIN_SCORE) * POINTS_PER_SCORE
    sensory_score = round(sensory_score, 1)
    grade = _grade_for(sensory_score, thresholds)

    decline_type = _detect_decline(current, previous, two_weeks, volatility, recent_change, thresholds)
    if decline_type:
        logger.debug("Decline pattern %s detected (current=%s previous=%s)", decline_type, current, previous)

    return RecoveryTendency(
        grade=grade.grade,
        grade_text=grade.text,
        sensory_score=sensory_score,
        interpretation=grade.interpretation,
        suggestions=list(grade.suggestions),
        is_recovery_detected=sensory_score >= thresholds.grade_a,
        detection_date=today.isoformat(),
        summary=(
            f"Your sensory expansion score over the last 7 days is {sensory_score:.0f}, "
            f"which puts you at the '{grade.text}' stage. {grade.interpretation}"
        ),
        decline_detected=decline_type is not None,
        decline_type=decline_type,
        decline_response=_DECLINE_RESPONSES.get(decline_type),
        has_data=not daily.empty,
        historical_data=RecoveryHistory(
            current_week_avg=_round_or_none(current),
            previous_week_avg=_round_or_none(previous),
            two_weeks_avg=_round_or_none(two_weeks),
            recent_3_days_scores=[round(p, 1) for p in recent_points],
            recent_14_days_change=_round_or_none(recent_change),
            volatility=round(volatility, 1),
        ),
    )
