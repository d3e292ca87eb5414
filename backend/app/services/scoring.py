"""
Scoring Service
===============
Per-entry wellness scores derived from a single journal entry.

Three components, each on the same 1-5 scale as ``emotionLevel``:

    relaxation        emotion level, minus 0.5 per tense body area marked
    self-acceptance   3 by default, 4 for identity entries (or the entry's
                      matchingScore when present), nudged +/-0.5 by the
                      emotion level
    reframing         the emotion level for reframing entries (plus 0.5 for
                      a long write-up), 3 otherwise; +0.3 when more than
                      two body-mapping keys were recorded

and one composite:

    sensory expansion = 0.4 * relaxation + 0.3 * self-acceptance
                        + 0.3 * reframing

Every function is pure. Scores are always clamped to [1, 5] and the input
entry is never modified.
"""

from __future__ import annotations

from numbers import Real
from typing import Any, Mapping, Optional

from app.models.journal import MATCHING_SCORE_KEY, JournalEntry

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MIN_SCORE = 1.0
MAX_SCORE = 5.0
NEUTRAL_SCORE = 3.0

TENSION_AREAS = ("head", "shoulders", "chest", "stomach")
TENSION_PENALTY = 0.5

IDENTITY_BASE_SCORE = 4.0
EMOTION_ADJUSTMENT = 0.5

LONG_CONTENT_CHARS = 100
LONG_CONTENT_BONUS = 0.5
RICH_MAPPING_KEYS = 2
RICH_MAPPING_BONUS = 0.3


def clamp_score(value: float) -> float:
    return min(MAX_SCORE, max(MIN_SCORE, float(value)))


def count_tense_areas(body_mapping: Mapping[str, Any]) -> int:
    """Number of mapped areas whose name contains a tension keyword (case-insensitive)."""
    return sum(
        1
        for area in body_mapping
        if any(indicator in str(area).lower() for indicator in TENSION_AREAS)
    )


def _matching_score(body_mapping: Mapping[str, Any]) -> Optional[float]:
    value = body_mapping.get(MATCHING_SCORE_KEY)
    # bool is a Real subclass; a checkbox value is not a score
    if isinstance(value, Real) and not isinstance(value, bool):
        return float(value)
    return None


def relaxation_score(entry: JournalEntry) -> float:
    base = float(entry.emotion_level)
    base -= TENSION_PENALTY * count_tense_areas(entry.body_mapping)
    return clamp_score(base)


def self_acceptance_score(entry: JournalEntry) -> float:
    base = NEUTRAL_SCORE

    if entry.journal_type == "identity":
        base = IDENTITY_BASE_SCORE
        matching = _matching_score(entry.body_mapping)
        if matching is not None:
            base = matching  # replaces the identity default, not added to it

    # Emotion adjustment runs after the type/matching resolution above.
    if entry.emotion_level >= 4:
        base += EMOTION_ADJUSTMENT
    elif entry.emotion_level <= 2:
        base -= EMOTION_ADJUSTMENT

    return clamp_score(base)


def reframing_success_rate(entry: JournalEntry) -> float:
    base = NEUTRAL_SCORE

    if entry.journal_type == "reframing":
        base = float(entry.emotion_level)
        if len(entry.content) > LONG_CONTENT_CHARS:
            base = min(MAX_SCORE, base + LONG_CONTENT_BONUS)

    if len(entry.body_mapping) > RICH_MAPPING_KEYS:
        base = min(MAX_SCORE, base + RICH_MAPPING_BONUS)

    return clamp_score(base)


def sensory_expansion_score(entry: JournalEntry) -> float:
    relaxation = relaxation_score(entry)
    acceptance = self_acceptance_score(entry)
    reframing = reframing_success_rate(entry)
    # 0.4 / 0.3 / 0.3 expressed in tenths: each term is exact, so the
    # weighted mean can't drift outside [1, 5].
    return (4 * relaxation + 3 * acceptance + 3 * reframing) / 10
