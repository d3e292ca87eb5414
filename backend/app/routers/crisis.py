"""
Crisis Events Router
====================
POST  /api/crisis-events               — Log that crisis support was opened.
GET   /api/crisis-events               — List events, newest first.
PATCH /api/crisis-events/{id}/resolve  — Mark an event resolved.

An event is created unresolved; the follow-up prompt resolves it once the
user reports feeling safe again.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status

from app.db.supabase import get_supabase_client
from app.errors import NotFound, ProviderError
from app.models.reflection import CrisisEvent
from app.security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/crisis-events", tags=["crisis"])


@router.post(
    "",
    response_model=CrisisEvent,
    status_code=status.HTTP_201_CREATED,
    summary="Record a crisis support event",
)
async def create_crisis_event(user: dict = Depends(get_current_user)) -> CrisisEvent:
    db = get_supabase_client()
    result = (
        db.table("crisis_events")
        .insert({
            "user_id": user["id"],
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "resolved": False,
        })
        .execute()
    )

    if not result.data:
        logger.error("Failed to insert crisis event for user %s", user["id"])
        raise ProviderError("Failed to record crisis event")

    event = CrisisEvent.model_validate(result.data[0])
    logger.info("Crisis event %s recorded for user %s", event.id, user["id"])
    return event


@router.get("", response_model=list[CrisisEvent], summary="List crisis events")
async def list_crisis_events(user: dict = Depends(get_current_user)) -> list[CrisisEvent]:
    db = get_supabase_client()
    result = (
        db.table("crisis_events")
        .select("*")
        .eq("user_id", user["id"])
        .order("timestamp", desc=True)
        .execute()
    )
    return [CrisisEvent.model_validate(row) for row in (result.data or [])]


@router.patch(
    "/{event_id}/resolve",
    response_model=CrisisEvent,
    summary="Resolve a crisis event",
    responses={404: {"description": "Event not found"}},
)
async def resolve_crisis_event(event_id: str, user: dict = Depends(get_current_user)) -> CrisisEvent:
    db = get_supabase_client()
    result = (
        db.table("crisis_events")
        .update({"resolved": True})
        .eq("id", event_id)
        .eq("user_id", user["id"])
        .execute()
    )

    if not result.data:
        raise NotFound("Crisis event not found")

    return CrisisEvent.model_validate(result.data[0])
