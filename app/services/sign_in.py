"""The secure sign-in flow: attempt gating before, bookkeeping after."""

from __future__ import annotations

from app.domain.bus import EventBus
from app.domain.events import AccountLocked, SessionStarted, SignInFailed, SignInSucceeded
from app.domain.models import SessionData, SignInDecision, SignInFailure
from app.services.login_attempts import LoginAttemptTracker
from app.services.sessions import SessionManager


def normalize_identifier(email: str) -> str:
    return email.strip().lower()


class AccountLockedError(Exception):
    """Raised when a success is reported for an identifier under lockout."""

    def __init__(self, identifier: str, remaining_time: int | None) -> None:
        super().__init__(f"{identifier} is locked for {remaining_time}s")
        self.identifier = identifier
        self.remaining_time = remaining_time


class SignInGuard:
    """Composes the attempt tracker and session manager around a credential check.

    The credential check itself belongs to the identity provider; callers
    ask ``check`` first, then report the outcome with ``record_failure`` or
    ``record_success``.
    """

    def __init__(
        self,
        tracker: LoginAttemptTracker,
        sessions: SessionManager,
        bus: EventBus,
    ) -> None:
        self.tracker = tracker
        self.sessions = sessions
        self.bus = bus

    def check(self, email: str, captcha_verified: bool = False) -> SignInDecision:
        status = self.tracker.is_blocked(normalize_identifier(email))
        if status.blocked:
            return SignInDecision(
                allowed=False, reason="locked", remaining_time=status.remaining_time
            )
        requires_captcha = bool(status.requires_captcha)
        if requires_captcha and not captcha_verified:
            return SignInDecision(
                allowed=False, reason="captcha_required", requires_captcha=True
            )
        return SignInDecision(allowed=True, requires_captcha=requires_captcha)

    def record_failure(self, email: str) -> SignInFailure:
        """Count a failed sign-in.

        The returned delay is what the client should wait before its next
        attempt; it is not slept on here.
        """
        identifier = normalize_identifier(email)
        result = self.tracker.record_failed_attempt(identifier)
        count = self.tracker.get_attempt_count(identifier)

        if result.lockout:
            self.bus.publish(
                AccountLocked(
                    identifier=identifier,
                    attempt_count=count,
                    lockout_seconds=result.lockout,
                )
            )
        else:
            self.bus.publish(
                SignInFailed(identifier=identifier, attempt_count=count, delay_ms=result.delay)
            )

        status = self.tracker.is_blocked(identifier)
        return SignInFailure(
            delay=result.delay,
            lockout=result.lockout,
            requires_captcha=bool(status.requires_captcha),
        )

    def record_success(
        self,
        email: str,
        user_id: str,
        fingerprint: str,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> SessionData:
        """Reset the failure record and open a session.

        A locked identifier stays locked; ``AccountLockedError`` is raised
        instead.
        """
        identifier = normalize_identifier(email)
        status = self.tracker.is_blocked(identifier)
        if status.blocked:
            raise AccountLockedError(identifier, status.remaining_time)
        self.tracker.record_successful_login(identifier)
        session = self.sessions.start_session(
            user_id, fingerprint, user_agent=user_agent, ip_address=ip_address
        )
        self.bus.publish(SignInSucceeded(identifier=identifier, user_id=user_id))
        self.bus.publish(SessionStarted(session_id=session.id, user_id=user_id))
        return session
