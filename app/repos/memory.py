"""In-memory repositories for calendar events, sessions and the audit log."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from app.domain.models import AuditEntry, CalendarEvent, SessionData


class CalendarEventRepository:
    """Dict-backed store for CalendarEvent instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, CalendarEvent] = {}

    def add(self, event: CalendarEvent) -> None:
        self._store[event.id] = event

    def get(self, event_id: str) -> CalendarEvent | None:
        return self._store.get(event_id)

    def list_all(self) -> list[CalendarEvent]:
        """Return events ordered by start time, oldest first."""
        return sorted(self._store.values(), key=lambda e: e.start_datetime)

    def list_for_project(self, project_id: str) -> list[CalendarEvent]:
        return [e for e in self.list_all() if e.project_id == project_id]

    def delete(self, event_id: str) -> bool:
        return self._store.pop(event_id, None) is not None


class SessionRepository:
    """Dict-backed store for SessionData instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, SessionData] = {}

    def add(self, session: SessionData) -> None:
        self._store[session.id] = session

    def get(self, session_id: str) -> SessionData | None:
        return self._store.get(session_id)

    def list_all(self) -> list[SessionData]:
        return list(self._store.values())

    def delete(self, session_id: str) -> None:
        self._store.pop(session_id, None)


class AuditRepository:
    """List-backed store for AuditEntry instances."""

    def __init__(self) -> None:
        self._entries: list[AuditEntry] = []

    def add(self, entry: AuditEntry) -> None:
        self._entries.append(entry)

    def list_all(self) -> list[AuditEntry]:
        return sorted(self._entries, key=lambda e: e.timestamp)

    def list_for_subject(self, subject: str) -> list[AuditEntry]:
        return [e for e in self.list_all() if e.subject == subject]


# ---------------------------------------------------------------------------
# Seed data – a few near-future site events useful for conflict testing
# ---------------------------------------------------------------------------


def _seed_events(repo: CalendarEventRepository) -> None:
    now = datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0)

    repo.add(
        CalendarEvent(
            title="Site walk with client",
            project_id="demo-project",
            start_datetime=now + timedelta(hours=2),
            end_datetime=now + timedelta(hours=3),
            category="client_meeting",
            is_meeting=True,
        )
    )
    repo.add(
        CalendarEvent(
            title="Concrete pour",
            project_id="demo-project",
            start_datetime=now + timedelta(days=1, hours=1),
            end_datetime=now + timedelta(days=1, hours=5),
            category="internal",
        )
    )
    repo.add(
        CalendarEvent(
            title="Tender submission deadline",
            project_id="demo-project",
            start_datetime=now + timedelta(days=3),
            category="deadline",
        )
    )


def create_calendar_event_repository() -> CalendarEventRepository:
    """Return a CalendarEventRepository pre-loaded with sample data."""
    repo = CalendarEventRepository()
    _seed_events(repo)
    return repo
