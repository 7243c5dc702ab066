"""In-memory tracking of failed sign-in attempts.

Each identifier moves through three states: no record, failing (one to
``max_attempts - 1`` failures) and locked. A recorded success deletes the
record from any state; an expired lock is deleted lazily the next time it is
observed by ``is_blocked`` or ``cleanup``.

State is process-local. A restart forgets every identifier and separate
processes do not share counts.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from typing import Callable

from app.core.config import AppConfig
from app.domain.models import BlockStatus, FailedAttemptResult, LoginAttemptRecord

logger = logging.getLogger(__name__)


class LoginAttemptTracker:
    """Per-identifier failure counter with progressive delays and lockout."""

    def __init__(
        self,
        config: AppConfig | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        config = config or AppConfig()
        self.max_attempts = config.login_max_attempts
        self.lockout_seconds = config.login_lockout_seconds
        self.captcha_threshold = config.login_captcha_threshold
        self.progressive_delays_ms = list(config.login_progressive_delays_ms)
        self.stale_after_seconds = config.login_stale_after_seconds
        self._clock = clock
        self._attempts: dict[str, LoginAttemptRecord] = {}

    def is_blocked(self, identifier: str) -> BlockStatus:
        attempt = self._attempts.get(identifier)
        if attempt is None:
            return BlockStatus(blocked=False)

        now = self._clock()
        if attempt.locked_until is not None:
            if now < attempt.locked_until:
                return BlockStatus(
                    blocked=True,
                    remaining_time=math.ceil(attempt.locked_until - now),
                )
            del self._attempts[identifier]
            logger.info(f"Lockout expired for {identifier}")
            return BlockStatus(blocked=False)

        if attempt.count >= self.captcha_threshold:
            return BlockStatus(blocked=False, requires_captcha=True)

        return BlockStatus(blocked=False)

    def record_failed_attempt(self, identifier: str) -> FailedAttemptResult:
        """Count a failure and return the delay (ms) the caller should wait.

        Reaching ``max_attempts`` locks the identifier instead; the result then
        carries ``delay=0`` and the lockout length in seconds.
        """
        now = self._clock()
        attempt = self._attempts.get(identifier) or LoginAttemptRecord()
        attempt.count += 1
        attempt.last_attempt = now
        self._attempts[identifier] = attempt

        if attempt.count >= self.max_attempts:
            attempt.locked_until = now + self.lockout_seconds
            logger.warning(
                f"Locking {identifier} for {self.lockout_seconds}s "
                f"after {attempt.count} failed attempts"
            )
            return FailedAttemptResult(delay=0, lockout=math.ceil(self.lockout_seconds))

        index = min(attempt.count - 1, len(self.progressive_delays_ms) - 1)
        return FailedAttemptResult(delay=self.progressive_delays_ms[index])

    def record_successful_login(self, identifier: str) -> None:
        self._attempts.pop(identifier, None)

    def get_attempt_count(self, identifier: str) -> int:
        attempt = self._attempts.get(identifier)
        return attempt.count if attempt else 0

    def cleanup(self) -> int:
        """Drop idle records that are not under an active lock.

        Returns the number of records removed.
        """
        now = self._clock()
        stale = [
            key
            for key, attempt in self._attempts.items()
            if now - attempt.last_attempt > self.stale_after_seconds
            and (attempt.locked_until is None or now > attempt.locked_until)
        ]
        for key in stale:
            del self._attempts[key]
        return len(stale)


async def run_periodic_cleanup(
    tasks: list[Callable[[], int]],
    interval_seconds: float,
) -> None:
    """Call each cleanup task every *interval_seconds* until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        for task in tasks:
            try:
                removed = task()
            except Exception:
                logger.exception("Periodic cleanup task failed")
                continue
            if removed:
                logger.info(f"Cleanup removed {removed} stale record(s)")
