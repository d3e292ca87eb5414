"""
Daily Reflections Router
========================
POST /api/daily-reflections        — Answer the question of the day.
GET  /api/daily-reflections        — List reflections, newest first.
GET  /api/daily-reflections/today  — Today's (UTC) latest reflection, or null.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, status

from app.db.supabase import get_supabase_client
from app.errors import ProviderError
from app.models.reflection import DailyReflection, DailyReflectionCreate
from app.security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/daily-reflections", tags=["reflections"])


@router.post(
    "",
    response_model=DailyReflection,
    status_code=status.HTTP_201_CREATED,
    summary="Save a daily reflection",
)
async def create_daily_reflection(
    body: DailyReflectionCreate,
    user: dict = Depends(get_current_user),
) -> DailyReflection:
    db = get_supabase_client()
    result = (
        db.table("daily_reflections")
        .insert({
            "user_id": user["id"],
            "question": body.question,
            "answer": body.answer,
            "date": datetime.now(timezone.utc).isoformat(),
        })
        .execute()
    )

    if not result.data:
        logger.error("Failed to insert daily reflection for user %s", user["id"])
        raise ProviderError("Failed to save reflection")

    return DailyReflection.model_validate(result.data[0])


@router.get("", response_model=list[DailyReflection], summary="List daily reflections")
async def list_daily_reflections(user: dict = Depends(get_current_user)) -> list[DailyReflection]:
    db = get_supabase_client()
    result = (
        db.table("daily_reflections")
        .select("*")
        .eq("user_id", user["id"])
        .order("date", desc=True)
        .execute()
    )
    return [DailyReflection.model_validate(row) for row in (result.data or [])]


@router.get("/today", response_model=Optional[DailyReflection], summary="Today's reflection")
async def get_today_reflection(user: dict = Depends(get_current_user)) -> Optional[DailyReflection]:
    start_of_day = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)

    db = get_supabase_client()
    result = (
        db.table("daily_reflections")
        .select("*")
        .eq("user_id", user["id"])
        .gte("date", start_of_day.isoformat())
        .order("date", desc=True)
        .limit(1)
        .execute()
    )

    if not result.data:
        return None
    return DailyReflection.model_validate(result.data[0])
