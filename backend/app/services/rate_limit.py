"""
Rate Limiting
=============
Fixed-window request limits keyed by ``scope:client-ip``, built on the
``limits`` library (the engine behind Flask-Limiter).

Used as a route dependency:

    @router.post("/login", dependencies=[Depends(rate_limit("login", "rate_limit_login"))])

The limit string is read from settings on every request ("5/minute",
"100/minute"), so tests and ops can change it without re-importing the
router. Counters live in process memory, like the login governor.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Callable

from fastapi import Request
from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter

from app.config import get_settings
from app.errors import RateLimited

logger = logging.getLogger(__name__)

_storage = MemoryStorage()
_limiter = FixedWindowRateLimiter(_storage)


def rate_limit(scope: str, setting_name: str) -> Callable[[Request], None]:
    """Build a dependency enforcing the limit named by ``setting_name`` per client IP."""

    def _dependency(request: Request) -> None:
        settings = get_settings()
        if not settings.rate_limit_enabled:
            return

        item = parse(getattr(settings, setting_name))
        host = request.client.host if request.client else "unknown"

        if not _limiter.hit(item, scope, host):
            reset_at, _remaining = _limiter.get_window_stats(item, scope, host)
            retry_after = max(1, math.ceil(reset_at - time.time()))
            logger.warning("Rate limit %s exceeded for scope %s", item, scope)
            raise RateLimited(retry_after)

    return _dependency


def reset_rate_limits() -> None:
    _storage.reset()
