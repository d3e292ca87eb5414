"""
Journal Entries Router
======================
POST /api/journal-entries       — Save a completed journaling flow.
GET  /api/journal-entries       — List the user's entries, newest first.
GET  /api/journal-entries/{id}  — Fetch one entry.

This is the primary data ingestion point for the report page: every
analytics endpoint recomputes from the rows written here. Entries are
immutable once created; there is no update route.

Ownership is enforced on every read. An entry belonging to someone else
is reported as 404, never 403, so ids can't be probed.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status

from app.db.supabase import get_supabase_client
from app.errors import NotFound, ProviderError
from app.models.journal import JournalEntry, JournalEntryCreate
from app.security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/journal-entries", tags=["journal"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def fetch_journal_entries(user_id: str) -> list[JournalEntry]:
    """All of a user's entries, newest first, as score-engine records."""
    db = get_supabase_client()
    result = (
        db.table("journal_entries")
        .select("*")
        .eq("user_id", user_id)
        .order("created_at", desc=True)
        .execute()
    )
    return [JournalEntry.model_validate(row) for row in (result.data or [])]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=JournalEntry,
    status_code=status.HTTP_201_CREATED,
    summary="Save a journal entry",
    responses={
        201: {"description": "Entry created"},
        400: {"description": "Validation error (bad emotion level, journal type, etc.)"},
        401: {"description": "Authentication required"},
    },
)
async def create_journal_entry(
    body: JournalEntryCreate,
    user: dict = Depends(get_current_user),
) -> JournalEntry:
    db = get_supabase_client()

    insert_data: dict = {
        "user_id": user["id"],
        "journal_type": body.journal_type,
        "emotion_level": body.emotion_level,
        "emotion_type": body.emotion_type,
        "content": body.content,
        "body_mapping": body.body_mapping,
    }

    result = db.table("journal_entries").insert(insert_data).execute()

    if not result.data:
        logger.error("Failed to insert journal entry for user %s", user["id"])
        raise ProviderError("Failed to save journal entry")

    entry = JournalEntry.model_validate(result.data[0])
    logger.info(
        "Journal entry %s saved for user %s (type=%s, level=%d)",
        entry.id, user["id"], entry.journal_type, entry.emotion_level,
    )
    return entry


@router.get(
    "",
    response_model=list[JournalEntry],
    summary="List journal entries",
)
async def list_journal_entries(user: dict = Depends(get_current_user)) -> list[JournalEntry]:
    return fetch_journal_entries(user["id"])


@router.get(
    "/{entry_id}",
    response_model=JournalEntry,
    summary="Get one journal entry",
    responses={404: {"description": "Entry not found"}},
)
async def get_journal_entry(entry_id: str, user: dict = Depends(get_current_user)) -> JournalEntry:
    db = get_supabase_client()
    result = (
        db.table("journal_entries")
        .select("*")
        .eq("id", entry_id)
        .eq("user_id", user["id"])
        .maybe_single()
        .execute()
    )

    # maybe_single() returns None (not an empty result) on some client versions
    if not result or not result.data:
        raise NotFound("Journal entry not found")

    return JournalEntry.model_validate(result.data)
