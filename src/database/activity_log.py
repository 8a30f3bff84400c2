"""
Duet - Activity Log

Per-participant history of what they did in each zone ("Memory Lane").
Backed by the `activity_logs` table, with an in-memory equivalent.
"""

import threading
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Protocol

from supabase import Client

from src.database.models import ActivityEntry


class ActivityLog(Protocol):
    """Append-only activity history."""

    def log(self, participant_id: str, zone: str, activity: str) -> ActivityEntry: ...

    def history(self, participant_id: str) -> list[ActivityEntry]: ...


class SupabaseActivityLog:
    """Stores activity entries in Supabase."""

    def __init__(self, client: Client) -> None:
        self.client = client
        self.table = client.table("activity_logs")

    def log(self, participant_id: str, zone: str, activity: str) -> ActivityEntry:
        """Record one activity for a participant."""
        data = (
            self.table
            .insert({
                "participant_id": participant_id,
                "zone": zone,
                "activity": activity,
            })
            .execute()
        )
        return ActivityEntry.model_validate(data.data[0])

    def history(self, participant_id: str) -> list[ActivityEntry]:
        """All entries for a participant, newest first."""
        data = (
            self.table
            .select("*")
            .eq("participant_id", participant_id)
            .order("created_at", desc=True)
            .execute()
        )
        return [ActivityEntry.model_validate(row) for row in data.data]


class InMemoryActivityLog:
    """Process-local activity log for development and tests."""

    def __init__(self) -> None:
        self._entries: dict[str, list[ActivityEntry]] = defaultdict(list)
        self._lock = threading.Lock()

    def log(self, participant_id: str, zone: str, activity: str) -> ActivityEntry:
        entry = ActivityEntry(
            id=uuid.uuid4().hex,
            participant_id=participant_id,
            zone=zone,
            activity=activity,
            created_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._entries[participant_id].append(entry)
        return entry

    def history(self, participant_id: str) -> list[ActivityEntry]:
        with self._lock:
            return list(reversed(self._entries.get(participant_id, [])))
