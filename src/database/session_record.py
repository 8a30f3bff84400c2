"""
Duet - Session Record Store

CRUD operations for the `sessions` table, plus an in-memory equivalent
used when Supabase is not configured.
"""

import threading

from supabase import Client

from src.database.models import SessionRecord
from src.session.models import Session


class SupabaseSessionRecordStore:
    """Persists session records in Supabase."""

    def __init__(self, client: Client) -> None:
        self.client = client
        self.table = client.table("sessions")

    def create(self, session: Session) -> None:
        """Insert a freshly created session."""
        record = SessionRecord.from_session(session)
        self.table.insert(record.model_dump(mode="json")).execute()

    def get(self, session_id: str) -> Session | None:
        """Look up a session by its id."""
        data = (
            self.table
            .select("*")
            .eq("id", session_id)
            .execute()
        )
        if data.data:
            return SessionRecord.model_validate(data.data[0]).to_session()
        return None

    def get_by_code(self, invite_code: str) -> Session | None:
        """Look up the active session using an invite code."""
        data = (
            self.table
            .select("*")
            .eq("invite_code", invite_code.upper())
            .eq("is_active", True)
            .execute()
        )
        if data.data:
            return SessionRecord.model_validate(data.data[0]).to_session()
        return None

    def persist(self, session: Session) -> None:
        """Write the mutable fields of an existing session."""
        (
            self.table
            .update({
                "guest_id": session.guest_id,
                "guest_name": session.guest_name,
                "is_active": session.active,
            })
            .eq("id", session.id)
            .execute()
        )


class InMemorySessionRecordStore:
    """Process-local record store for development and tests."""

    def __init__(self) -> None:
        self._records: dict[str, SessionRecord] = {}
        self._lock = threading.Lock()

    def create(self, session: Session) -> None:
        with self._lock:
            self._records[session.id] = SessionRecord.from_session(session)

    def get(self, session_id: str) -> Session | None:
        with self._lock:
            record = self._records.get(session_id)
        return record.to_session() if record else None

    def get_by_code(self, invite_code: str) -> Session | None:
        code = invite_code.upper()
        with self._lock:
            for record in self._records.values():
                if record.invite_code == code and record.is_active:
                    return record.to_session()
        return None

    def persist(self, session: Session) -> None:
        with self._lock:
            self._records[session.id] = SessionRecord.from_session(session)
