"""
Application Errors
==================
Typed errors raised by services and dependencies. ``app.main`` renders
every ``AppError`` with the same ``{"detail": {"message", "code"}}``
envelope routers use when they raise ``HTTPException`` directly, so the
client only ever sees one error shape.

Messages on the auth path are deliberately generic. Provider detail is
logged server-side by whoever raises, never returned.
"""

from __future__ import annotations

from typing import Any, Optional


class AppError(Exception):
    """Base class: an HTTP status, a stable code and a user-safe message."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.headers = headers

    def to_detail(self) -> dict[str, Any]:
        return {"message": self.message, "code": self.code}


class InvalidInput(AppError):
    status_code = 400
    code = "validation_error"


class AuthRejected(AppError):
    """The identity provider declined the credentials or token."""

    status_code = 401
    code = "invalid_credentials"

    def __init__(self, message: str = "Invalid credentials", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class AuthRequired(AppError):
    status_code = 401
    code = "auth_required"


class NotFound(AppError):
    status_code = 404
    code = "not_found"


class Conflict(AppError):
    status_code = 409
    code = "conflict"


class LockedOut(AppError):
    """The login governor holds an active soft-lock for this email."""

    status_code = 429
    code = "locked_out"

    def __init__(self, retry_after_seconds: int) -> None:
        super().__init__(
            f"Too many attempts. Try again in {retry_after_seconds}s.",
            headers={"Retry-After": str(retry_after_seconds)},
        )
        self.retry_after_seconds = retry_after_seconds


class RateLimited(AppError):
    status_code = 429
    code = "rate_limited"

    def __init__(self, retry_after_seconds: int) -> None:
        super().__init__(
            "Too many requests. Please slow down and try again.",
            headers={"Retry-After": str(retry_after_seconds)},
        )
        self.retry_after_seconds = retry_after_seconds


class ProviderError(AppError):
    """A database read/write through Supabase failed."""

    status_code = 500
    code = "db_error"


class UpstreamProviderError(AppError):
    """Identity provider unreachable or returned a 5xx."""

    status_code = 502
    code = "upstream_error"

    def __init__(self, message: str = "Auth service error", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
