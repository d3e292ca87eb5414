"""
Profile & Privacy Routers
=========================
GET    /api/profile/me        — The caller's profile row, or null.
PUT    /api/profile/me        — Create or update the profile.
DELETE /api/privacy/account   — Delete the account (body must be {"confirm": true}).

Account deletion removes the Supabase Auth user; rows keyed on the user id
go with it through the database's ON DELETE CASCADE.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response, status
from supabase import AuthError

from app.db.supabase import get_supabase_client
from app.errors import ProviderError
from app.models.profile import DeleteAccountRequest, ProfileResponse, ProfileUpdate
from app.security import clear_session_cookies, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/profile", tags=["profile"])
privacy_router = APIRouter(prefix="/api/privacy", tags=["privacy"])


@router.get("/me", response_model=ProfileResponse, summary="Get my profile")
async def get_profile(user: dict = Depends(get_current_user)) -> ProfileResponse:
    db = get_supabase_client()
    result = db.table("users").select("*").eq("id", user["id"]).maybe_single().execute()

    return ProfileResponse(profile=result.data if result else None)


@router.put("/me", response_model=ProfileResponse, summary="Update my profile")
async def update_profile(
    body: ProfileUpdate,
    user: dict = Depends(get_current_user),
) -> ProfileResponse:
    db = get_supabase_client()
    row = {"id": user["id"], **body.model_dump(exclude_none=True)}

    result = db.table("users").upsert(row, on_conflict="id").execute()

    if not result.data:
        logger.error("Profile upsert returned no rows for user %s", user["id"])
        raise ProviderError("Failed to update profile")

    return ProfileResponse(profile=result.data[0])


@privacy_router.delete(
    "/account",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete my account",
    responses={
        204: {"description": "Account deleted, session cookies cleared"},
        400: {"description": "Missing {\"confirm\": true}"},
    },
)
async def delete_account(
    body: DeleteAccountRequest,
    user: dict = Depends(get_current_user),
) -> Response:
    db = get_supabase_client()

    try:
        db.auth.admin.delete_user(user["id"])
    except AuthError as exc:
        logger.error("Account deletion failed for user %s: %s", user["id"], exc)
        raise ProviderError("Failed to delete account") from exc

    logger.info("Account %s deleted", user["id"])
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    clear_session_cookies(response)
    return response
