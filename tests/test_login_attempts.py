"""Tests for the in-memory login attempt tracker."""

from __future__ import annotations

import asyncio

import pytest

from app.core.config import AppConfig
from app.services.login_attempts import LoginAttemptTracker, run_periodic_cleanup

_START = 1_750_000_000.0


class FakeClock:
    def __init__(self, now: float = _START) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def tracker(clock: FakeClock) -> LoginAttemptTracker:
    return LoginAttemptTracker(AppConfig(), clock=clock)


def _fail(tracker: LoginAttemptTracker, identifier: str, times: int) -> list:
    return [tracker.record_failed_attempt(identifier) for _ in range(times)]


def test_unknown_identifier_is_not_blocked(tracker):
    status = tracker.is_blocked("nobody@example.com")
    assert status.blocked is False
    assert status.requires_captcha is None
    assert tracker.get_attempt_count("nobody@example.com") == 0


def test_progressive_delays_then_lockout(tracker):
    results = _fail(tracker, "u1", 5)

    assert [r.delay for r in results] == [0, 1000, 3000, 5000, 0]
    assert [r.lockout for r in results[:4]] == [None, None, None, None]
    assert results[4].lockout == 900


def test_lockout_blocks_with_decreasing_remaining_time(tracker, clock):
    _fail(tracker, "u1", 5)

    first = tracker.is_blocked("u1")
    clock.advance(60)
    second = tracker.is_blocked("u1")

    assert first.blocked is True and first.remaining_time == 900
    assert second.blocked is True and second.remaining_time == 840


def test_remaining_time_rounds_up(tracker, clock):
    _fail(tracker, "u1", 5)
    clock.advance(0.5)
    assert tracker.is_blocked("u1").remaining_time == 900


def test_expired_lockout_clears_record(tracker, clock):
    _fail(tracker, "u1", 5)
    clock.advance(900)

    status = tracker.is_blocked("u1")

    assert status.blocked is False
    assert tracker.get_attempt_count("u1") == 0


def test_captcha_required_from_third_failure(tracker):
    _fail(tracker, "u1", 2)
    assert tracker.is_blocked("u1").requires_captcha is None

    tracker.record_failed_attempt("u1")
    status = tracker.is_blocked("u1")
    assert status.blocked is False
    assert status.requires_captcha is True


def test_success_resets_count_and_lockout(tracker):
    _fail(tracker, "u1", 5)
    tracker.record_successful_login("u1")

    assert tracker.get_attempt_count("u1") == 0
    assert tracker.is_blocked("u1").blocked is False


def test_identifiers_are_tracked_independently(tracker):
    _fail(tracker, "a@example.com", 3)
    assert tracker.get_attempt_count("a@example.com") == 3
    assert tracker.get_attempt_count("A@example.com") == 0


def test_delay_table_caps_at_last_entry(clock):
    config = AppConfig(login_max_attempts=10)
    tracker = LoginAttemptTracker(config, clock=clock)
    delays = [r.delay for r in _fail(tracker, "u1", 7)]
    assert delays == [0, 1000, 3000, 5000, 10000, 10000, 10000]


def test_cleanup_removes_only_stale_unlocked_records(tracker, clock):
    _fail(tracker, "stale", 2)
    _fail(tracker, "locked", 5)
    clock.advance(3601)
    _fail(tracker, "fresh", 1)

    # Lock on "locked" is long expired by now, so it is stale too
    assert tracker.cleanup() == 2
    assert tracker.get_attempt_count("stale") == 0
    assert tracker.get_attempt_count("locked") == 0
    assert tracker.get_attempt_count("fresh") == 1


def test_cleanup_keeps_active_lockout_regardless_of_age(clock):
    config = AppConfig(login_lockout_seconds=2 * 60 * 60)
    tracker = LoginAttemptTracker(config, clock=clock)
    _fail(tracker, "locked", 5)
    clock.advance(3601)

    assert tracker.cleanup() == 0
    assert tracker.is_blocked("locked").blocked is True


def test_periodic_cleanup_runs_tasks_until_cancelled():
    calls: list[int] = []

    def task() -> int:
        calls.append(1)
        return 0

    async def scenario() -> None:
        runner = asyncio.create_task(run_periodic_cleanup([task], 0.01))
        await asyncio.sleep(0.05)
        runner.cancel()
        with pytest.raises(asyncio.CancelledError):
            await runner

    asyncio.run(scenario())
    assert len(calls) >= 1
