"""Tests for src/database/activity_log.py."""

from unittest.mock import MagicMock

import pytest

from src.database.activity_log import InMemoryActivityLog, SupabaseActivityLog


def _row(entry_id: str, activity: str) -> dict:
    return {
        "id": entry_id,
        "participant_id": "alice",
        "zone": "music",
        "activity": activity,
        "created_at": "2024-05-01T12:00:00+00:00",
    }


@pytest.fixture
def mock_client():
    return MagicMock()


class TestSupabaseActivityLog:
    def test_log_inserts_and_returns_entry(self, mock_client):
        table = mock_client.table.return_value
        table.insert.return_value.execute.return_value.data = [_row("1", "Listened to Song T1")]

        entry = SupabaseActivityLog(mock_client).log("alice", "music", "Listened to Song T1")

        mock_client.table.assert_called_once_with("activity_logs")
        table.insert.assert_called_once_with(
            {"participant_id": "alice", "zone": "music", "activity": "Listened to Song T1"}
        )
        assert entry.id == "1"
        assert entry.created_at.year == 2024

    def test_history_newest_first(self, mock_client):
        table = mock_client.table.return_value
        query = table.select.return_value.eq.return_value
        query.order.return_value.execute.return_value.data = [_row("2", "b"), _row("1", "a")]

        entries = SupabaseActivityLog(mock_client).history("alice")

        table.select.return_value.eq.assert_called_once_with("participant_id", "alice")
        query.order.assert_called_once_with("created_at", desc=True)
        assert [e.id for e in entries] == ["2", "1"]


class TestInMemoryActivityLog:
    def test_history_newest_first(self):
        log = InMemoryActivityLog()
        log.log("alice", "music", "first")
        log.log("alice", "games", "second")

        assert [e.activity for e in log.history("alice")] == ["second", "first"]

    def test_history_is_per_participant(self):
        log = InMemoryActivityLog()
        log.log("alice", "music", "mine")
        assert log.history("bob") == []

    def test_entries_get_unique_ids(self):
        log = InMemoryActivityLog()
        first = log.log("alice", "music", "a")
        second = log.log("alice", "music", "a")
        assert first.id != second.id
