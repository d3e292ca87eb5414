"""
Tests for the login attempt governor
====================================
Covers:
- Lock cycle: 4 failures unlocked, 5th locks for ~300s, expiry after 301s
  removes the record
- Success clears state: a fresh failure sequence restarts at 1
- Keys are case-insensitive but otherwise verbatim; malformed strings are
  still tracked
- Failures during an active lock bump the counter but don't extend it
- A failure after expiry starts a new window
- Explicit ``now`` overrides the injected clock
- Custom threshold / duration and a swapped-in store
- Known limitation: a new process (fresh store) forgets every lock

All timing uses a fake clock; nothing sleeps.

Run: pytest backend/tests/test_login_governor.py -v
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.services.login_governor import (
    FailureRecord,
    InMemoryFailureStore,
    LoginGovernor,
    get_login_governor,
)

_START = datetime(2026, 3, 4, 9, 0, tzinfo=timezone.utc)
_EMAIL = "user@example.com"


class FakeClock:
    def __init__(self, start: datetime = _START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryFailureStore:
    return InMemoryFailureStore()


@pytest.fixture
def governor(store: InMemoryFailureStore, clock: FakeClock) -> LoginGovernor:
    return LoginGovernor(store=store, clock=clock)


def _fail(governor: LoginGovernor, times: int, email: str = _EMAIL) -> None:
    for _ in range(times):
        governor.record_failure(email)


# ---------------------------------------------------------------------------
# Lock cycle
# ---------------------------------------------------------------------------

class TestLockCycle:

    def test_clean_email_is_not_locked(self, governor: LoginGovernor):
        status = governor.check_locked(_EMAIL)
        assert status.locked is False
        assert status.retry_after_seconds is None

    def test_four_failures_do_not_lock(self, governor: LoginGovernor):
        _fail(governor, 4)
        assert governor.check_locked(_EMAIL).locked is False

    def test_fifth_failure_locks_for_five_minutes(self, governor: LoginGovernor):
        _fail(governor, 5)
        status = governor.check_locked(_EMAIL)
        assert status.locked is True
        assert status.retry_after_seconds == 300

    def test_retry_after_rounds_up(self, governor: LoginGovernor, clock: FakeClock):
        _fail(governor, 5)
        clock.advance(0.4)
        assert governor.check_locked(_EMAIL).retry_after_seconds == 300
        clock.advance(299)
        assert governor.check_locked(_EMAIL).retry_after_seconds == 1

    def test_lock_expires_and_record_is_removed(
        self, governor: LoginGovernor, store: InMemoryFailureStore, clock: FakeClock
    ):
        _fail(governor, 5)
        clock.advance(301)

        assert governor.check_locked(_EMAIL).locked is False
        assert store.get(_EMAIL) is None
        assert len(store) == 0

    def test_expiry_is_inclusive(self, governor: LoginGovernor, clock: FakeClock):
        _fail(governor, 5)
        clock.advance(300)
        assert governor.check_locked(_EMAIL).locked is False


# ---------------------------------------------------------------------------
# Success / reset
# ---------------------------------------------------------------------------

class TestClearFailure:

    def test_clear_restarts_count_at_one(self, governor: LoginGovernor, store: InMemoryFailureStore):
        _fail(governor, 3)
        governor.clear_failure(_EMAIL)

        assert governor.check_locked(_EMAIL).locked is False
        governor.record_failure(_EMAIL)
        assert store.get(_EMAIL).attempts == 1

    def test_clear_lifts_an_active_lock(self, governor: LoginGovernor):
        _fail(governor, 5)
        governor.clear_failure(_EMAIL)
        assert governor.check_locked(_EMAIL).locked is False

    def test_clear_unknown_email_is_noop(self, governor: LoginGovernor):
        governor.clear_failure("nobody@example.com")

    def test_failure_after_expiry_starts_new_window(
        self, governor: LoginGovernor, store: InMemoryFailureStore, clock: FakeClock
    ):
        _fail(governor, 5)
        clock.advance(301)
        governor.record_failure(_EMAIL)

        record = store.get(_EMAIL)
        assert record.attempts == 1
        assert record.locked_until is None


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------

class TestKeys:

    def test_case_insensitive(self, governor: LoginGovernor):
        _fail(governor, 3, "User@Example.com")
        _fail(governor, 2, "USER@EXAMPLE.COM")
        assert governor.check_locked("user@example.com").locked is True

    def test_whitespace_is_not_trimmed(self, governor: LoginGovernor, store: InMemoryFailureStore):
        _fail(governor, 5, " user@example.com")
        assert store.get(" user@example.com").attempts == 5
        assert governor.check_locked(_EMAIL).locked is False

    def test_malformed_identifiers_are_tracked(self, governor: LoginGovernor, store: InMemoryFailureStore):
        governor.record_failure("Not An Email")
        assert store.get("not an email").attempts == 1

    def test_emails_are_independent(self, governor: LoginGovernor):
        _fail(governor, 5)
        assert governor.check_locked("other@example.com").locked is False


# ---------------------------------------------------------------------------
# Lock extension policy
# ---------------------------------------------------------------------------

class TestNoExtension:

    def test_failures_during_lock_do_not_move_locked_until(
        self, governor: LoginGovernor, store: InMemoryFailureStore, clock: FakeClock
    ):
        _fail(governor, 5)
        locked_until = store.get(_EMAIL).locked_until

        clock.advance(120)
        _fail(governor, 3)

        record = store.get(_EMAIL)
        assert record.attempts == 8
        assert record.locked_until == locked_until
        assert governor.check_locked(_EMAIL).retry_after_seconds == 180


# ---------------------------------------------------------------------------
# Configuration & injection
# ---------------------------------------------------------------------------

class TestConfiguration:

    def test_explicit_now_overrides_clock(self, governor: LoginGovernor):
        for _ in range(5):
            governor.record_failure(_EMAIL, now=_START)
        later = _START + timedelta(seconds=301)
        assert governor.check_locked(_EMAIL, now=later).locked is False

    def test_custom_threshold_and_duration(self, clock: FakeClock):
        governor = LoginGovernor(clock=clock, threshold=2, lock_duration=timedelta(seconds=30))
        _fail(governor, 2)
        assert governor.check_locked(_EMAIL).retry_after_seconds == 30

    def test_custom_store(self, clock: FakeClock):
        class RecordingStore(InMemoryFailureStore):
            def __init__(self) -> None:
                super().__init__()
                self.writes: list[str] = []

            def set(self, key: str, record: FailureRecord) -> None:
                self.writes.append(key)
                super().set(key, record)

        store = RecordingStore()
        governor = LoginGovernor(store=store, clock=clock)
        governor.record_failure("A@B.co")
        assert store.writes == ["a@b.co"]

    def test_singleton_uses_settings(self):
        governor = get_login_governor()
        assert get_login_governor() is governor
        governor.record_failure(_EMAIL)
        assert governor.check_locked(_EMAIL).locked is False


class TestKnownLimitations:

    def test_restart_forgets_locks(self, clock: FakeClock):
        """In-memory state only: a new process starts with every email clean."""
        before_restart = LoginGovernor(clock=clock)
        _fail(before_restart, 5)
        assert before_restart.check_locked(_EMAIL).locked is True

        after_restart = LoginGovernor(clock=clock)
        assert after_restart.check_locked(_EMAIL).locked is False
