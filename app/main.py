"""FastAPI application — entry point for the site calendar and sign-in guard."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Request

from app.core.config import configure_logging, load_config
from app.domain.bus import EventBus
from app.domain.categories import CATEGORY_OPTIONS, get_category_color, get_category_label
from app.domain.events import ConflictDetected, SessionExpired
from app.domain.handlers import HandlerRegistry
from app.domain.models import (
    AttemptSummary,
    AuditEntry,
    CalendarEvent,
    CategoryOption,
    ConflictCheckRequest,
    ConflictInfo,
    CreateEventRequest,
    EventWithConflicts,
    SessionData,
    SessionInfo,
    SignInCheckRequest,
    SignInDecision,
    SignInFailure,
    SignInFailureRequest,
    SignInSuccessRequest,
)
from app.repos.memory import (
    AuditRepository,
    CalendarEventRepository,
    SessionRepository,
    create_calendar_event_repository,
)
from app.services.conflicts import detect_conflicts
from app.services.login_attempts import LoginAttemptTracker, run_periodic_cleanup
from app.services.sessions import SessionManager, generate_fingerprint
from app.services.sign_in import AccountLockedError, SignInGuard, normalize_identifier

logger = logging.getLogger(__name__)

config = load_config()
configure_logging(config)

# ── Singletons (created at import time for simplicity) ────────────────
event_bus = EventBus()
event_repo = (
    create_calendar_event_repository() if config.seed_demo_data else CalendarEventRepository()
)
session_repo = SessionRepository()
audit_repo = AuditRepository()

handler_registry = HandlerRegistry(bus=event_bus, audit_repo=audit_repo, event_repo=event_repo)


def _publish_session_expired(session: SessionData, reason: str) -> None:
    event_bus.publish(
        SessionExpired(session_id=session.id, user_id=session.user_id, reason=reason)
    )


login_tracker = LoginAttemptTracker(config)
session_manager = SessionManager(
    session_repo, config, on_session_expired=_publish_session_expired
)
sign_in_guard = SignInGuard(login_tracker, session_manager, event_bus)


@contextlib.asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    task = asyncio.create_task(
        run_periodic_cleanup(
            [login_tracker.cleanup, session_manager.expire_idle],
            config.cleanup_interval_seconds,
        )
    )
    logger.info(f"Cleanup task started, interval {config.cleanup_interval_seconds}s")
    try:
        yield
    finally:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task


app = FastAPI(title="Site Calendar and Sign-in Guard", lifespan=lifespan)


def _request_fingerprint(request: Request) -> str:
    headers = request.headers
    return generate_fingerprint(
        user_agent=headers.get("user-agent"),
        accept_language=headers.get("accept-language"),
        platform=headers.get("sec-ch-ua-platform"),
        timezone=headers.get("x-timezone"),
    )


def _get_event_or_404(event_id: str) -> CalendarEvent:
    event = event_repo.get(event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


def _save_with_conflicts(event: CalendarEvent) -> EventWithConflicts:
    """Store *event* and report overlaps. Conflicts never block the save."""
    conflicts = detect_conflicts(event, event_repo.list_all(), exclude_event_id=event.id)
    event_repo.add(event)
    if conflicts.has_conflict:
        event_bus.publish(
            ConflictDetected(
                event_id=event.id,
                conflicting_event_ids=[c.id for c in conflicts.conflicting_events],
            )
        )
    return EventWithConflicts(event=event, conflicts=conflicts)


# ── Calendar routes ───────────────────────────────────────────────────


@app.post("/events/conflicts", response_model=ConflictInfo)
def check_conflicts(body: ConflictCheckRequest) -> ConflictInfo:
    """Classify a candidate interval against the stored events."""
    return detect_conflicts(body.candidate, event_repo.list_all(), body.exclude_event_id)


@app.get("/events", response_model=list[CalendarEvent])
def list_events(project_id: str | None = None) -> list[CalendarEvent]:
    """Return stored events ordered by start, optionally for one project."""
    if project_id is not None:
        return event_repo.list_for_project(project_id)
    return event_repo.list_all()


@app.get("/events/{event_id}", response_model=CalendarEvent)
def get_event(event_id: str) -> CalendarEvent:
    return _get_event_or_404(event_id)


@app.post("/events", response_model=EventWithConflicts, status_code=201)
def create_event(body: CreateEventRequest) -> EventWithConflicts:
    return _save_with_conflicts(CalendarEvent(**body.model_dump()))


@app.put("/events/{event_id}", response_model=EventWithConflicts)
def update_event(event_id: str, body: CreateEventRequest) -> EventWithConflicts:
    """Replace an event's fields; the event never conflicts with itself."""
    existing = _get_event_or_404(event_id)
    updated = existing.model_copy(
        update={**body.model_dump(), "updated_at": datetime.now(timezone.utc)}
    )
    return _save_with_conflicts(updated)


@app.delete("/events/{event_id}")
def delete_event(event_id: str) -> dict:
    if not event_repo.delete(event_id):
        raise HTTPException(status_code=404, detail="Event not found")
    return {"status": "deleted"}


@app.get("/categories", response_model=list[CategoryOption])
def list_categories() -> list[CategoryOption]:
    return CATEGORY_OPTIONS


@app.get("/categories/{category}", response_model=CategoryOption)
def get_category(category: str) -> CategoryOption:
    """Resolve display label and colour; unknown categories fall back to General."""
    return CategoryOption(
        value=category,
        label=get_category_label(category),
        color=get_category_color(category),
    )


# ── Sign-in routes ────────────────────────────────────────────────────


@app.post("/auth/sign-in/check", response_model=SignInDecision)
def sign_in_check(body: SignInCheckRequest) -> SignInDecision:
    """Decide whether a sign-in attempt may go to the identity provider."""
    return sign_in_guard.check(body.email, body.captcha_verified)


@app.post("/auth/sign-in/failure", response_model=SignInFailure)
def sign_in_failure(body: SignInFailureRequest) -> SignInFailure:
    return sign_in_guard.record_failure(body.email)


@app.post("/auth/sign-in/success", response_model=SessionData, status_code=201)
def sign_in_success(body: SignInSuccessRequest, request: Request) -> SessionData:
    try:
        return sign_in_guard.record_success(
            body.email,
            body.user_id,
            _request_fingerprint(request),
            user_agent=request.headers.get("user-agent"),
            ip_address=request.client.host if request.client else None,
        )
    except AccountLockedError as exc:
        raise HTTPException(
            status_code=423,
            detail=f"Account locked, try again in {exc.remaining_time}s",
        ) from exc


@app.get("/auth/attempts/{identifier}", response_model=AttemptSummary)
def get_attempts(identifier: str) -> AttemptSummary:
    identifier = normalize_identifier(identifier)
    # is_blocked may clear an expired lockout, so read the count after it
    status = login_tracker.is_blocked(identifier)
    return AttemptSummary(
        identifier=identifier,
        count=login_tracker.get_attempt_count(identifier),
        status=status,
    )


@app.post("/auth/cleanup")
def cleanup() -> dict:
    """Run one sweep of stale attempt records and idle sessions."""
    return {
        "attempts_removed": login_tracker.cleanup(),
        "sessions_expired": session_manager.expire_idle(),
    }


# ── Session routes ────────────────────────────────────────────────────


@app.get("/sessions/{session_id}", response_model=SessionInfo)
def get_session(session_id: str) -> SessionInfo:
    session = session_repo.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return SessionInfo(
        session=session,
        valid=session_manager.is_session_valid(session_id),
        age_seconds=session_manager.get_session_age(session_id),
    )


@app.post("/sessions/{session_id}/activity", response_model=SessionData)
def touch_session(session_id: str, request: Request) -> SessionData:
    """Validate the caller's device and refresh the inactivity window."""
    if session_repo.get(session_id) is None:
        raise HTTPException(status_code=404, detail="Session not found")
    if not session_manager.validate_session(session_id, _request_fingerprint(request)):
        raise HTTPException(status_code=401, detail="Session expired")
    return session_manager.update_activity(session_id)


@app.delete("/sessions/{session_id}")
def end_session(session_id: str) -> dict:
    session_manager.destroy(session_id)
    return {"status": "ended"}


@app.get("/audit", response_model=list[AuditEntry])
def list_audit(subject: str | None = None) -> list[AuditEntry]:
    if subject is not None:
        return audit_repo.list_for_subject(subject)
    return audit_repo.list_all()
