"""
Daily Reflection & Crisis Event Schemas
=======================================
Daily reflections are the question-of-the-day answers; crisis events are
logged each time the user opens crisis support (box breathing, butterfly
hug) so the app can follow up once the moment has passed.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from app.models.base import CamelModel


class DailyReflectionCreate(CamelModel):
    question: str = Field(..., min_length=1, max_length=500)
    answer: Optional[str] = Field(default=None, max_length=5000)


class DailyReflection(CamelModel):
    id: str
    user_id: Optional[str] = None
    question: str
    answer: Optional[str] = None
    date: datetime


class CrisisEvent(CamelModel):
    id: str
    user_id: Optional[str] = None
    timestamp: datetime
    resolved: bool = False
