"""
Journal Entry Schemas
=====================
Pydantic models for journal entries. These are the contract between
the web app and the backend, and ``JournalEntry`` is also the input
record for the score engine in ``app.services.scoring``.

Key design decisions:
- ``journalType`` is a closed set on write. On read, any stored value
  outside the set is treated as ``body`` so old rows never break the
  analytics endpoints.
- ``bodyMapping`` is an open object. Only two shapes matter for scoring:
  keys naming tense body areas, and an optional numeric ``matchingScore``
  written by the identity journal flow.
- ``emotionLevel`` is validated to [1, 5] at this boundary, so the
  score engine can assume it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional, get_args

from pydantic import ConfigDict, Field, field_validator

from app.models.base import CamelModel

# ---------------------------------------------------------------------------
# Allowed values
# ---------------------------------------------------------------------------

JournalType = Literal["body", "identity", "reframing", "emotion", "gratitude", "reflection"]

VALID_JOURNAL_TYPES = frozenset(get_args(JournalType))

# Key the identity flow writes into bodyMapping; not a body area.
MATCHING_SCORE_KEY = "matchingScore"


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------

class JournalEntryCreate(CamelModel):
    """Payload the web app sends when a journaling flow completes."""

    journal_type: JournalType = Field(
        default="emotion",
        description="Which guided flow produced the entry.",
    )
    emotion_level: int = Field(
        ...,
        ge=1,
        le=5,
        description="Self-reported emotion level. 1 = very low, 5 = very good.",
    )
    emotion_type: str = Field(
        default="neutral",
        min_length=1,
        max_length=40,
        description="Named emotion picked in the flow, e.g. 'anxious', 'hopeful'.",
    )
    content: str = Field(
        default="",
        max_length=10000,
        description="Free-text journal body.",
    )
    body_mapping: dict[str, Any] = Field(
        default_factory=dict,
        description=(
            "Body areas marked during body mapping, plus an optional "
            "numeric matchingScore from the identity flow."
        ),
    )


# ---------------------------------------------------------------------------
# Read model / response
# ---------------------------------------------------------------------------

class JournalEntry(CamelModel):
    """A stored journal entry. Immutable input to the score engine."""

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: Optional[str] = None
    journal_type: JournalType = "body"
    emotion_level: int = Field(..., ge=1, le=5)
    emotion_type: Optional[str] = None
    content: str = ""
    body_mapping: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    @field_validator("journal_type", mode="before")
    @classmethod
    def _unknown_type_reads_as_body(cls, value: Any) -> Any:
        if value not in VALID_JOURNAL_TYPES:
            return "body"
        return value

    @field_validator("body_mapping", mode="before")
    @classmethod
    def _null_mapping_reads_as_empty(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}

    @field_validator("content", mode="before")
    @classmethod
    def _null_content_reads_as_empty(cls, value: Any) -> Any:
        return value or ""
