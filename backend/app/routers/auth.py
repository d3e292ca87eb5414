"""
Auth Router
===========
POST /api/auth/signup                   — Register (email + password).
POST /api/auth/login                    — Password login, sets session cookies.
POST /api/auth/logout                   — Clear session cookies.
POST /api/auth/refresh                  — Exchange a refresh token for a new session.
GET  /api/auth/me                       — Who am I.
POST /api/auth/password-reset           — Email a recovery code.
POST /api/auth/password-reset/confirm   — Set a new password with the code.

Login flow (order matters):

    1. Per-IP fixed-window limiter (429 rate_limited)
    2. Validate payload (400)
    3. Login governor: if the email is soft-locked, reject with 429 and
       "Try again in Ns." WITHOUT contacting the identity provider
    4. Forward credentials to Supabase Auth
    5. Any failure from step 4 -> governor.record_failure, then 401/502
    6. Success -> governor.clear_failure, set cookies, 200

Failed logins always get the same generic "Invalid credentials" message;
whether the email exists is never revealed.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Body, Cookie, Depends, Header, Response, status

from app.config import get_settings
from app.errors import AppError, AuthRejected, LockedOut
from app.models.auth import (
    CurrentUser,
    LoginRequest,
    MeResponse,
    MessageResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    RefreshRequest,
    SessionResponse,
    SignupRequest,
)
from app.security import (
    REFRESH_COOKIE,
    clear_session_cookies,
    get_current_user,
    set_session_cookies,
)
from app.services.auth_provider import get_auth_provider
from app.services.login_governor import get_login_governor
from app.services.rate_limit import rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


# ---------------------------------------------------------------------------
# Signup
# ---------------------------------------------------------------------------

@router.post(
    "/signup",
    status_code=status.HTTP_201_CREATED,
    response_model=SessionResponse | MessageResponse,
    summary="Create an account",
    responses={
        201: {"description": "Account created (session issued, or email confirmation pending)"},
        400: {"description": "Validation error"},
        409: {"description": "Email already registered"},
    },
)
async def signup(body: SignupRequest, response: Response) -> SessionResponse | MessageResponse:
    provider = get_auth_provider()
    user_id, session = provider.sign_up(body.email, body.password, body.nickname)

    if session is None:
        logger.info("User %s signed up; email confirmation pending", user_id)
        return MessageResponse(message="Check email to confirm")

    set_session_cookies(response, session)
    return SessionResponse(user_id=user_id, expires_at=session.expires_at)


# ---------------------------------------------------------------------------
# Login / logout
# ---------------------------------------------------------------------------

@router.post(
    "/login",
    response_model=SessionResponse,
    dependencies=[Depends(rate_limit("login", "rate_limit_login"))],
    summary="Log in with email and password",
    responses={
        401: {"description": "Invalid credentials"},
        429: {"description": "Too many attempts (soft-lock or rate limit)"},
        502: {"description": "Identity provider unavailable"},
    },
)
@router.post(
    "/auth/login",
    response_model=SessionResponse,
    dependencies=[Depends(rate_limit("login", "rate_limit_login"))],
    include_in_schema=False,
)
@router.post(
    "/sign-in",
    response_model=SessionResponse,
    dependencies=[Depends(rate_limit("login", "rate_limit_login"))],
    include_in_schema=False,
)
async def login(body: LoginRequest, response: Response) -> SessionResponse:
    governor = get_login_governor()

    lock = governor.check_locked(body.email)
    if lock.locked:
        logger.info("Login rejected: email is soft-locked for %ss", lock.retry_after_seconds)
        raise LockedOut(lock.retry_after_seconds or 1)

    provider = get_auth_provider()
    try:
        session = provider.sign_in(body.email, body.password)
    except AppError:
        governor.record_failure(body.email)
        raise

    governor.clear_failure(body.email)
    set_session_cookies(response, session)
    logger.info("User %s logged in", session.user_id)
    return SessionResponse(user_id=session.user_id, expires_at=session.expires_at)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, summary="Log out")
@router.post("/auth/logout", status_code=status.HTTP_204_NO_CONTENT, include_in_schema=False)
@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT, include_in_schema=False)
async def logout() -> Response:
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    clear_session_cookies(response)
    return response


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

@router.post("/refresh", response_model=SessionResponse, summary="Refresh the session")
async def refresh(
    response: Response,
    body: Optional[RefreshRequest] = Body(default=None),
    refresh_cookie: Optional[str] = Cookie(default=None, alias=REFRESH_COOKIE),
    refresh_header: Optional[str] = Header(default=None, alias="X-Refresh-Token"),
) -> SessionResponse:
    token = refresh_cookie or (body.refresh_token if body else None) or refresh_header
    if not token:
        raise AuthRejected("Refresh token missing", code="auth_required")

    session = get_auth_provider().refresh(token)
    set_session_cookies(response, session)
    return SessionResponse(user_id=session.user_id, expires_at=session.expires_at)


@router.get("/me", response_model=MeResponse, summary="Current user")
async def me(user: dict = Depends(get_current_user)) -> MeResponse:
    return MeResponse(user=CurrentUser(**user))


# ---------------------------------------------------------------------------
# Password reset
# ---------------------------------------------------------------------------

@router.post(
    "/password-reset",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Send a password reset email",
)
async def request_password_reset(body: PasswordResetRequest) -> MessageResponse:
    settings = get_settings()
    redirect_to = f"{settings.frontend_url.rstrip('/')}/password-reset/confirm"
    get_auth_provider().send_password_reset(body.email, redirect_to)
    # Same answer for known and unknown addresses.
    return MessageResponse(message="If that email is registered, a reset link is on its way.")


@router.post(
    "/password-reset/confirm",
    response_model=MessageResponse,
    summary="Set a new password with the emailed code",
)
async def confirm_password_reset(body: PasswordResetConfirm) -> MessageResponse:
    get_auth_provider().confirm_password_reset(body.email, body.verification_code, body.password)
    return MessageResponse(message="Password updated")
