"""Domain event handlers — wired up at application startup."""

from __future__ import annotations

import logging

from app.domain.bus import EventBus
from app.domain.events import (
    AccountLocked,
    ConflictDetected,
    SessionExpired,
    SessionStarted,
    SignInFailed,
    SignInSucceeded,
)
from app.domain.models import AuditEntry, AuditEntryType
from app.repos.memory import AuditRepository, CalendarEventRepository

logger = logging.getLogger(__name__)


class HandlerRegistry:
    """Wires domain-event handlers to the bus and records them in the audit log."""

    def __init__(
        self,
        bus: EventBus,
        audit_repo: AuditRepository,
        event_repo: CalendarEventRepository,
    ) -> None:
        self.bus = bus
        self.audit_repo = audit_repo
        self.event_repo = event_repo
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(SignInFailed, self.on_sign_in_failed)
        self.bus.subscribe(AccountLocked, self.on_account_locked)
        self.bus.subscribe(SignInSucceeded, self.on_sign_in_succeeded)
        self.bus.subscribe_all([SessionStarted, SessionExpired], self.on_session_changed)
        self.bus.subscribe(ConflictDetected, self.on_conflict_detected)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_sign_in_failed(self, event: SignInFailed) -> None:
        self.audit_repo.add(
            AuditEntry(
                type=AuditEntryType.SIGN_IN_FAILED,
                subject=event.identifier,
                payload={"attempt_count": event.attempt_count, "delay_ms": event.delay_ms},
            )
        )

    def on_account_locked(self, event: AccountLocked) -> None:
        self.audit_repo.add(
            AuditEntry(
                type=AuditEntryType.ACCOUNT_LOCKED,
                subject=event.identifier,
                payload={
                    "attempt_count": event.attempt_count,
                    "lockout_seconds": event.lockout_seconds,
                },
            )
        )

    def on_sign_in_succeeded(self, event: SignInSucceeded) -> None:
        self.audit_repo.add(
            AuditEntry(
                type=AuditEntryType.SIGN_IN_SUCCEEDED,
                subject=event.identifier,
                payload={"user_id": event.user_id},
            )
        )

    def on_session_changed(self, event: SessionStarted | SessionExpired) -> None:
        if isinstance(event, SessionExpired):
            entry_type = AuditEntryType.SESSION_EXPIRED
            payload = {"session_id": event.session_id, "reason": event.reason}
        else:
            entry_type = AuditEntryType.SESSION_STARTED
            payload = {"session_id": event.session_id}
        self.audit_repo.add(AuditEntry(type=entry_type, subject=event.user_id, payload=payload))

    def on_conflict_detected(self, event: ConflictDetected) -> None:
        stored = self.event_repo.get(event.event_id)
        if stored is None:
            return

        # Describe conflicts by title where the other event still exists
        conflict_titles = []
        for cid in event.conflicting_event_ids:
            conflicting = self.event_repo.get(cid)
            conflict_titles.append(f"{conflicting.title} ({cid})" if conflicting else cid)

        logger.info(f"Event {event.event_id} conflicts with {len(conflict_titles)} event(s)")
        self.audit_repo.add(
            AuditEntry(
                type=AuditEntryType.CONFLICT_DETECTED,
                subject=event.event_id,
                payload={
                    "title": stored.title,
                    "conflicting_event_ids": event.conflicting_event_ids,
                    "conflicts": conflict_titles,
                },
            )
        )
