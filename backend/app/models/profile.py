"""
Profile & Privacy Schemas
=========================
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import Field

from app.models.base import CamelModel


class ProfileUpdate(CamelModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    profile_image_url: Optional[str] = Field(default=None, pattern=r"^https?://\S+$", max_length=2048)


class ProfileResponse(CamelModel):
    profile: Optional[dict[str, Any]] = None


class DeleteAccountRequest(CamelModel):
    """Account deletion is irreversible; the client must send ``{"confirm": true}``."""

    confirm: Literal[True]
