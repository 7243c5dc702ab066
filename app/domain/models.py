"""Domain models for the site calendar and sign-in guard."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import StrEnum
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, Field


class EventStatus(StrEnum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class EventPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AuditEntryType(StrEnum):
    SIGN_IN_FAILED = "sign_in_failed"
    SIGN_IN_SUCCEEDED = "sign_in_succeeded"
    ACCOUNT_LOCKED = "account_locked"
    CONFLICT_DETECTED = "conflict_detected"
    SESSION_STARTED = "session_started"
    SESSION_EXPIRED = "session_expired"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def assume_utc(value: datetime) -> datetime:
    """Read a naive timestamp as UTC so it compares with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(assume_utc)]


# ---------------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------------


class CalendarEvent(BaseModel):
    """A scheduled item on a project calendar.

    ``end_datetime`` is optional; an event without one occupies the single
    instant ``start_datetime``.
    """

    id: str = Field(default_factory=_new_id)
    title: str
    description: str | None = None
    project_id: str | None = None
    start_datetime: UtcDatetime
    end_datetime: UtcDatetime | None = None
    status: EventStatus = EventStatus.SCHEDULED
    priority: EventPriority = EventPriority.MEDIUM
    category: str = "general"
    is_meeting: bool = False
    attendees: list[str] = Field(default_factory=list)
    external_attendees: list[str] = Field(default_factory=list)
    created_by: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class EventCandidate(BaseModel):
    start_datetime: UtcDatetime
    end_datetime: UtcDatetime | None = None


class ConflictInfo(BaseModel):
    """Events are returned as given, in input order."""

    has_conflict: bool
    conflicting_events: list[Any] = Field(default_factory=list)
    message: str | None = None


class CategoryOption(BaseModel):
    value: str
    label: str
    color: str


# ---------------------------------------------------------------------------
# Sign-in guard
# ---------------------------------------------------------------------------


class LoginAttemptRecord(BaseModel):
    """Failure bookkeeping for one identifier. Times are epoch seconds."""

    count: int = 0
    last_attempt: float = 0.0
    locked_until: float | None = None


class BlockStatus(BaseModel):
    blocked: bool
    remaining_time: int | None = None
    requires_captcha: bool | None = None


class FailedAttemptResult(BaseModel):
    delay: int
    lockout: int | None = None


class SessionData(BaseModel):
    id: str = Field(default_factory=_new_id)
    user_id: str
    device_fingerprint: str
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: float
    last_activity: float


class AuditEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    timestamp: datetime = Field(default_factory=_utcnow)
    type: AuditEntryType
    subject: str
    payload: dict = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class ConflictCheckRequest(BaseModel):
    candidate: EventCandidate
    exclude_event_id: str | None = None


class CreateEventRequest(BaseModel):
    title: str
    description: str | None = None
    project_id: str | None = None
    start_datetime: UtcDatetime
    end_datetime: UtcDatetime | None = None
    status: EventStatus = EventStatus.SCHEDULED
    priority: EventPriority = EventPriority.MEDIUM
    category: str = "general"
    is_meeting: bool = False
    attendees: list[str] = Field(default_factory=list)
    external_attendees: list[str] = Field(default_factory=list)
    created_by: str | None = None


class EventWithConflicts(BaseModel):
    event: CalendarEvent
    conflicts: ConflictInfo


class SignInCheckRequest(BaseModel):
    email: str
    captcha_verified: bool = False


class SignInDecision(BaseModel):
    allowed: bool
    reason: str | None = None
    remaining_time: int | None = None
    requires_captcha: bool = False


class SignInFailureRequest(BaseModel):
    email: str


class SignInFailure(BaseModel):
    delay: int
    lockout: int | None = None
    requires_captcha: bool = False


class SignInSuccessRequest(BaseModel):
    email: str
    user_id: str


class AttemptSummary(BaseModel):
    identifier: str
    count: int
    status: BlockStatus


class SessionInfo(BaseModel):
    session: SessionData
    valid: bool
    age_seconds: float
