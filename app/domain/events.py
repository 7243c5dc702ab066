"""Domain events emitted by the calendar and sign-in flows."""

from __future__ import annotations

from pydantic import BaseModel


class SignInFailed(BaseModel):
    """Fired for a failed sign-in that did not trigger a lockout."""

    identifier: str
    attempt_count: int
    delay_ms: int


class AccountLocked(BaseModel):
    """Fired when an identifier reaches the failure limit."""

    identifier: str
    attempt_count: int
    lockout_seconds: int


class SignInSucceeded(BaseModel):
    identifier: str
    user_id: str


class SessionStarted(BaseModel):
    session_id: str
    user_id: str


class SessionExpired(BaseModel):
    """Fired when a session is expired by inactivity or a fingerprint mismatch."""

    session_id: str
    user_id: str
    reason: str


class ConflictDetected(BaseModel):
    """Fired when a saved calendar event overlaps with existing ones."""

    event_id: str
    conflicting_event_ids: list[str]
