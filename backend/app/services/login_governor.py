"""
Login Attempt Governor
======================
Per-email soft-lock for repeated failed logins, independent of the
per-IP rate limiter.

States per email:

    Clean         no record
    Accumulating  1..threshold-1 consecutive failures
    Locked        threshold reached, ``locked_until`` set
    -> Clean      after a successful login, or once the lock expires

The auth router consults ``check_locked`` *before* calling the identity
provider, so a locked email never reaches it.

Storage goes through the ``FailureStore`` protocol. The default
``InMemoryFailureStore`` is a process-local dict: it is not shared
between workers and is empty after a restart, so lockouts reset when the
server restarts. Concurrent failures for the same email can undercount.
The lock is a UX speed bump, not a security boundary; hard limits belong
to the identity provider.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Protocol

from app.config import get_settings

logger = logging.getLogger(__name__)

DEFAULT_LOCK_THRESHOLD = 5
DEFAULT_LOCK_DURATION = timedelta(minutes=5)


# ---------------------------------------------------------------------------
# Records & storage
# ---------------------------------------------------------------------------

@dataclass
class FailureRecord:
    attempts: int = 0
    locked_until: Optional[datetime] = None


@dataclass(frozen=True)
class LockStatus:
    locked: bool
    retry_after_seconds: Optional[int] = None


class FailureStore(Protocol):
    def get(self, key: str) -> Optional[FailureRecord]: ...

    def set(self, key: str, record: FailureRecord) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryFailureStore:
    """Process-local store. Lost on restart, not shared across workers."""

    def __init__(self) -> None:
        self._records: dict[str, FailureRecord] = {}

    def get(self, key: str) -> Optional[FailureRecord]:
        return self._records.get(key)

    def set(self, key: str, record: FailureRecord) -> None:
        self._records[key] = record

    def delete(self, key: str) -> None:
        self._records.pop(key, None)

    def __len__(self) -> int:
        return len(self._records)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Governor
# ---------------------------------------------------------------------------

class LoginGovernor:
    """Counts consecutive login failures per email and applies a temporary lock."""

    def __init__(
        self,
        store: Optional[FailureStore] = None,
        clock: Callable[[], datetime] = _utcnow,
        threshold: int = DEFAULT_LOCK_THRESHOLD,
        lock_duration: timedelta = DEFAULT_LOCK_DURATION,
    ) -> None:
        self._store = store if store is not None else InMemoryFailureStore()
        self._clock = clock
        self._threshold = threshold
        self._lock_duration = lock_duration

    @staticmethod
    def key_for(email: str) -> str:
        # Tracked verbatim after case folding; format checks happen upstream.
        return email.lower()

    def record_failure(self, email: str, now: Optional[datetime] = None) -> None:
        now = now or self._clock()
        key = self.key_for(email)
        record = self._store.get(key)

        if record is None or (record.locked_until is not None and now >= record.locked_until):
            record = FailureRecord()

        record.attempts += 1
        # An active lock is not extended by further failures.
        if record.attempts >= self._threshold and record.locked_until is None:
            record.locked_until = now + self._lock_duration
            logger.info("Login soft-lock applied after %d failed attempts", record.attempts)

        self._store.set(key, record)

    def check_locked(self, email: str, now: Optional[datetime] = None) -> LockStatus:
        now = now or self._clock()
        key = self.key_for(email)
        record = self._store.get(key)

        if record is None or record.locked_until is None:
            return LockStatus(locked=False)

        if now >= record.locked_until:
            self._store.delete(key)
            return LockStatus(locked=False)

        remaining = (record.locked_until - now).total_seconds()
        return LockStatus(locked=True, retry_after_seconds=math.ceil(remaining))

    def clear_failure(self, email: str) -> None:
        self._store.delete(self.key_for(email))


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

_default_governor: LoginGovernor | None = None


def get_login_governor() -> LoginGovernor:
    global _default_governor
    if _default_governor is None:
        settings = get_settings()
        _default_governor = LoginGovernor(
            threshold=settings.login_lock_threshold,
            lock_duration=timedelta(seconds=settings.login_lock_seconds),
        )
    return _default_governor
