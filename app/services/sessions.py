"""Signed-in session tracking with inactivity timeout and device fingerprints."""

from __future__ import annotations

import hashlib
import json
import logging
import time
from typing import Callable

from app.core.config import AppConfig
from app.domain.models import SessionData
from app.repos.memory import SessionRepository

logger = logging.getLogger(__name__)

INACTIVITY = "inactivity"
FINGERPRINT_MISMATCH = "fingerprint_mismatch"


def generate_fingerprint(
    user_agent: str | None = None,
    accept_language: str | None = None,
    platform: str | None = None,
    timezone: str | None = None,
) -> str:
    """Hash the client-reported device traits into a stable fingerprint."""
    traits = {
        "user_agent": user_agent or "",
        "language": accept_language or "",
        "platform": platform or "",
        "timezone": timezone or "",
    }
    canonical = json.dumps(traits, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class SessionManager:
    """Creates, refreshes and expires sessions held in a ``SessionRepository``.

    ``on_session_expired`` is called with the session and a reason string
    whenever a session is expired by validation or by ``expire_idle``. It is
    not called by ``destroy``.
    """

    def __init__(
        self,
        repo: SessionRepository,
        config: AppConfig | None = None,
        on_session_expired: Callable[[SessionData, str], None] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        config = config or AppConfig()
        self.repo = repo
        self.inactivity_timeout_seconds = config.session_inactivity_timeout_seconds
        self.on_session_expired = on_session_expired
        self._clock = clock

    def start_session(
        self,
        user_id: str,
        fingerprint: str,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> SessionData:
        now = self._clock()
        session = SessionData(
            user_id=user_id,
            device_fingerprint=fingerprint,
            user_agent=user_agent,
            ip_address=ip_address,
            created_at=now,
            last_activity=now,
        )
        self.repo.add(session)
        return session

    def update_activity(self, session_id: str) -> SessionData | None:
        session = self.repo.get(session_id)
        if session is None:
            return None
        session.last_activity = self._clock()
        return session

    def validate_session(self, session_id: str, fingerprint: str) -> bool:
        """Expire the session if it is idle too long or seen from another device."""
        session = self.repo.get(session_id)
        if session is None:
            return False

        if self._clock() - session.last_activity > self.inactivity_timeout_seconds:
            logger.warning(f"Session {session_id} expired due to inactivity")
            self._expire(session, INACTIVITY)
            return False

        if session.device_fingerprint != fingerprint:
            logger.warning(
                f"Device fingerprint mismatch for session {session_id}, expiring"
            )
            self._expire(session, FINGERPRINT_MISMATCH)
            return False

        return True

    def is_session_valid(self, session_id: str) -> bool:
        session = self.repo.get(session_id)
        if session is None:
            return False
        return self._clock() - session.last_activity <= self.inactivity_timeout_seconds

    def get_session_age(self, session_id: str) -> float:
        session = self.repo.get(session_id)
        return self._clock() - session.created_at if session else 0

    def get_last_activity(self, session_id: str) -> float:
        session = self.repo.get(session_id)
        return session.last_activity if session else 0

    def destroy(self, session_id: str) -> None:
        self.repo.delete(session_id)

    def expire_idle(self) -> int:
        now = self._clock()
        idle = [
            s
            for s in self.repo.list_all()
            if now - s.last_activity > self.inactivity_timeout_seconds
        ]
        for session in idle:
            self._expire(session, INACTIVITY)
        return len(idle)

    def _expire(self, session: SessionData, reason: str) -> None:
        self.repo.delete(session.id)
        if self.on_session_expired is not None:
            self.on_session_expired(session, reason)
