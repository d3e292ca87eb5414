"""
Auth Provider Service
=====================
Thin wrapper around Supabase Auth (GoTrue) for the password flows:
sign-in, sign-up, session refresh and password recovery.

The app never sees password hashes or decides whether credentials are
valid. It forwards them and translates the provider's answer into our
error taxonomy:

    user_already_exists     -> Conflict (409)
    email_address_invalid   -> InvalidInput (400)
    any other 4xx           -> AuthRejected (401, generic message)
    5xx / transport errors  -> UpstreamProviderError (502)

Provider detail is logged here, server-side only. Clients only get the
generic message so responses never reveal whether an account exists.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx
from supabase import AuthError, Client

from app.db.supabase import get_supabase_auth_client, get_supabase_client
from app.errors import (
    AppError,
    AuthRejected,
    Conflict,
    InvalidInput,
    ProviderError,
    UpstreamProviderError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthSession:
    user_id: str
    email: Optional[str]
    access_token: str
    refresh_token: str
    expires_in: Optional[int] = None
    expires_at: Optional[int] = None


def map_auth_error(exc: Exception) -> AppError:
    """Translate a provider/transport failure into an AppError."""
    status = getattr(exc, "status", None)
    code = getattr(exc, "code", None)
    logger.error(
        "Auth provider error: %s (type=%s status=%s code=%s)",
        exc, type(exc).__name__, status, code,
    )

    if code == "user_already_exists":
        return Conflict("Email already registered", code="email_taken")
    if code == "email_address_invalid":
        return InvalidInput("Invalid email address")
    if isinstance(status, int) and 400 <= status < 500:
        return AuthRejected()
    return UpstreamProviderError()


def _session_from(response: Any) -> AuthSession:
    user = getattr(response, "user", None)
    session = getattr(response, "session", None)
    if not user or not session:
        raise AuthRejected()
    return AuthSession(
        user_id=user.id,
        email=getattr(user, "email", None),
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_in=getattr(session, "expires_in", None),
        expires_at=getattr(session, "expires_at", None),
    )


class AuthProviderService:
    """Password auth flows against Supabase, one fresh anon client per call."""

    def __init__(
        self,
        client_factory: Callable[[], Client] = get_supabase_auth_client,
        admin_factory: Callable[[], Client] = get_supabase_client,
    ) -> None:
        self._client_factory = client_factory
        self._admin_factory = admin_factory

    def sign_in(self, email: str, password: str) -> AuthSession:
        client = self._client_factory()
        try:
            response = client.auth.sign_in_with_password({"email": email, "password": password})
        except (AuthError, httpx.HTTPError) as exc:
            raise map_auth_error(exc) from exc
        return _session_from(response)

    def sign_up(
        self, email: str, password: str, nickname: Optional[str] = None
    ) -> tuple[str, Optional[AuthSession]]:
        """Register a user. The session is None while email confirmation is pending."""
        client = self._client_factory()
        credentials: dict[str, Any] = {"email": email, "password": password}
        if nickname:
            credentials["options"] = {"data": {"nickname": nickname}}

        try:
            response = client.auth.sign_up(credentials)
        except (AuthError, httpx.HTTPError) as exc:
            raise map_auth_error(exc) from exc

        if not response.user:
            logger.error("Sign-up returned no user")
            raise UpstreamProviderError()

        user_id = response.user.id
        self._upsert_profile(user_id, nickname)

        session = _session_from(response) if response.session else None
        return user_id, session

    def refresh(self, refresh_token: str) -> AuthSession:
        client = self._client_factory()
        try:
            response = client.auth.refresh_session(refresh_token)
        except (AuthError, httpx.HTTPError) as exc:
            raise map_auth_error(exc) from exc
        return _session_from(response)

    def send_password_reset(self, email: str, redirect_to: str) -> None:
        client = self._client_factory()
        try:
            client.auth.reset_password_for_email(email, {"redirect_to": redirect_to})
        except (AuthError, httpx.HTTPError) as exc:
            mapped = map_auth_error(exc)
            # Unknown addresses must look exactly like known ones.
            if isinstance(mapped, UpstreamProviderError):
                raise mapped from exc

    def confirm_password_reset(self, email: str, code: str, new_password: str) -> None:
        """Verify the emailed recovery code, then set the new password on that session."""
        client = self._client_factory()
        try:
            response = client.auth.verify_otp({"email": email, "token": code, "type": "recovery"})
            if not response.session:
                raise AuthRejected("Invalid or expired verification code")
            client.auth.update_user({"password": new_password})
        except AuthRejected:
            raise
        except (AuthError, httpx.HTTPError) as exc:
            mapped = map_auth_error(exc)
            if isinstance(mapped, AuthRejected):
                raise AuthRejected("Invalid or expired verification code") from exc
            raise mapped from exc

    def _upsert_profile(self, user_id: str, nickname: Optional[str]) -> None:
        db = self._admin_factory()
        try:
            db.table("profiles").upsert(
                {"id": user_id, "nickname": nickname},
                on_conflict="id",
            ).execute()
        except Exception as exc:
            logger.exception("Failed to create profile for user %s", user_id)
            raise ProviderError("Failed to create profile") from exc


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

_default_service: AuthProviderService | None = None


def get_auth_provider() -> AuthProviderService:
    global _default_service
    if _default_service is None:
        _default_service = AuthProviderService()
    return _default_service
