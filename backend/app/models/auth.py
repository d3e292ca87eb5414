"""
Auth Schemas
============
Request/response models for the ``/api/auth`` routes. Validation here
runs before the login governor or the identity provider is consulted;
a malformed payload never counts as a failed login.
"""

from __future__ import annotations

import re
from typing import Annotated, Optional

from pydantic import AfterValidator, Field, model_validator

from app.models.base import CamelModel

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
NICKNAME_PATTERN = r"^[A-Za-z0-9_\- ]{1,32}$"
MIN_PASSWORD_LENGTH = 8


def _check_password_strength(value: str) -> str:
    if not re.search(r"[A-Za-z]", value):
        raise ValueError("Password must contain at least one letter")
    if not re.search(r"\d", value):
        raise ValueError("Password must contain at least one number")
    return value


StrongPassword = Annotated[
    str,
    Field(min_length=MIN_PASSWORD_LENGTH, max_length=128),
    AfterValidator(_check_password_strength),
]


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class LoginRequest(CamelModel):
    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=254)
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=128)


class SignupRequest(CamelModel):
    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=254)
    password: StrongPassword
    nickname: Optional[str] = Field(default=None, pattern=NICKNAME_PATTERN)


class RefreshRequest(CamelModel):
    refresh_token: Optional[str] = None


class PasswordResetRequest(CamelModel):
    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=254)


class PasswordResetConfirm(CamelModel):
    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=254)
    verification_code: str = Field(..., min_length=1, max_length=64)
    password: StrongPassword
    confirm_password: str

    @model_validator(mode="after")
    def _passwords_match(self) -> "PasswordResetConfirm":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class SessionResponse(CamelModel):
    """Returned when a session was issued; the tokens themselves go in cookies."""

    user_id: str
    expires_at: Optional[int] = None


class MessageResponse(CamelModel):
    message: str


class CurrentUser(CamelModel):
    id: str
    email: Optional[str] = None


class MeResponse(CamelModel):
    user: CurrentUser
