"""
Request Authentication & Session Cookies
========================================
``get_current_user`` is the route dependency for every authenticated
endpoint. It reads the access token from ``Authorization: Bearer`` and
falls back to the ``sb-access-token`` cookie the web app receives on
login, then verifies it with Supabase Auth.

Cookies are HttpOnly + SameSite=Lax, and Secure in production.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Cookie, Header, Response

from app.config import get_settings
from app.db.supabase import get_supabase_client
from app.errors import AuthRequired
from app.services.auth_provider import AuthSession

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "sb-access-token"
REFRESH_COOKIE = "sb-refresh-token"

DEFAULT_ACCESS_MAX_AGE = 60 * 60
REFRESH_MAX_AGE = 60 * 60 * 24 * 30


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization.removeprefix("Bearer ").strip() or None
    return None


def get_current_user(
    authorization: Optional[str] = Header(default=None, description="Bearer token from Supabase Auth"),
    access_cookie: Optional[str] = Cookie(default=None, alias=ACCESS_COOKIE),
) -> dict:
    """Verify the access token and return ``{"id", "email"}``.

    Raises AuthRequired (401) when no token is present or the provider
    rejects it.
    """
    token = _bearer_token(authorization) or access_cookie
    if not token:
        raise AuthRequired("Authentication required")

    db = get_supabase_client()

    try:
        auth_response = db.auth.get_user(token)
    except Exception as exc:
        logger.warning("Auth token verification failed: %s", exc)
        raise AuthRequired("Invalid or expired token", code="auth_invalid") from exc

    if not auth_response or not auth_response.user:
        raise AuthRequired("User not found for token", code="auth_invalid")

    user = auth_response.user
    return {"id": user.id, "email": getattr(user, "email", None)}


def set_session_cookies(response: Response, session: AuthSession) -> None:
    settings = get_settings()
    common = {
        "httponly": True,
        "samesite": "lax",
        "secure": settings.is_production,
        "domain": settings.cookie_domain,
        "path": "/",
    }
    response.set_cookie(
        ACCESS_COOKIE,
        session.access_token,
        max_age=session.expires_in or DEFAULT_ACCESS_MAX_AGE,
        **common,
    )
    response.set_cookie(REFRESH_COOKIE, session.refresh_token, max_age=REFRESH_MAX_AGE, **common)


def clear_session_cookies(response: Response) -> None:
    domain = get_settings().cookie_domain
    response.delete_cookie(ACCESS_COOKIE, path="/", domain=domain)
    response.delete_cookie(REFRESH_COOKIE, path="/", domain=domain)
