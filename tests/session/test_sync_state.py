"""Tests for src/session/state.py — navigation, playback, queue and the store."""

import threading

import pytest

from src.engine import GameStatus, TicTacToeEngine
from src.session.errors import Stale
from src.session.models import Session
from src.session.state import (
    NavigationState,
    PlaybackState,
    QueueState,
    SessionSyncState,
    SyncStateStore,
)


# ── NavigationState ────────────────────────────────────────────────────

class TestNavigationState:
    def test_last_write_wins(self):
        nav = NavigationState()
        assert nav.set_zone("alice", "music") is True
        assert nav.set_zone("alice", "games") is True
        assert nav.zones["alice"] == "games"

    def test_same_zone_reports_unchanged(self):
        nav = NavigationState()
        nav.set_zone("alice", "music")
        assert nav.set_zone("alice", "music") is False

    def test_participants_are_independent(self):
        nav = NavigationState()
        nav.set_zone("alice", "music")
        nav.set_zone("bob", "movies")
        assert nav.zones == {"alice": "music", "bob": "movies"}


# ── PlaybackState ──────────────────────────────────────────────────────

class TestPlaybackState:
    def test_first_play_is_a_load(self, track_factory):
        playback = PlaybackState()
        change = playback.play("T1", 0, "alice", track_factory("T1"))
        assert change.changed and change.is_new_track
        assert playback.active_track_id == "T1"
        assert playback.is_playing
        assert playback.track.title == "Song T1"
        assert playback.last_update_author == "alice"

    def test_same_track_is_seek_and_resume(self):
        playback = PlaybackState()
        playback.play("T1", 0, "alice")
        playback.pause(30, "alice")
        change = playback.play("T1", 42, "bob")
        assert change.changed and not change.is_new_track
        assert playback.position_seconds == 42
        assert playback.is_playing
        assert playback.last_update_author == "bob"

    def test_replayed_play_changes_nothing(self):
        playback = PlaybackState()
        playback.play("A", 10, "alice")
        before = playback.to_dict()
        change = playback.play("A", 10, "bob")
        assert change.changed is False
        assert playback.to_dict() == before

    def test_track_switch_drops_old_descriptor(self, track_factory):
        playback = PlaybackState()
        playback.play("T1", 0, "alice", track_factory("T1"))
        playback.play("T2", 0, "alice")
        assert playback.track is None

    def test_pause_freezes_position(self):
        playback = PlaybackState()
        playback.play("T1", 0, "alice")
        assert playback.pause(42.5, "alice") is True
        assert playback.position_seconds == 42.5
        assert not playback.is_playing

    def test_pause_without_track_is_stale(self):
        with pytest.raises(Stale):
            PlaybackState().pause(10, "alice")

    def test_stop(self):
        playback = PlaybackState()
        playback.play("T1", 12, "alice")
        playback.stop("bob")
        assert playback.to_dict() == {
            "trackId": None,
            "track": None,
            "isPlaying": False,
            "positionSeconds": 0.0,
            "lastUpdateAuthor": "bob",
        }


# ── QueueState ─────────────────────────────────────────────────────────

class TestQueueState:
    def test_fifo_order(self, track_factory):
        queue = QueueState()
        for tid in ("A", "B", "C"):
            queue.enqueue(track_factory(tid))
        assert [queue.pop_head().id for _ in range(3)] == ["A", "B", "C"]
        assert queue.pop_head() is None

    def test_enqueue_returns_index(self, track_factory):
        queue = QueueState()
        assert queue.enqueue(track_factory("A")) == 0
        assert queue.enqueue(track_factory("B")) == 1

    def test_remove_at(self, track_factory):
        queue = QueueState()
        for tid in ("A", "B", "C"):
            queue.enqueue(track_factory(tid))
        assert queue.remove_at(1).id == "B"
        assert [t["id"] for t in queue.to_list()] == ["A", "C"]

    def test_racing_removal_is_stale(self, track_factory):
        queue = QueueState()
        queue.enqueue(track_factory("A"))
        queue.enqueue(track_factory("B"))
        queue.remove_at(1)
        with pytest.raises(Stale):
            queue.remove_at(1)
        assert len(queue) == 1


# ── SessionSyncState ───────────────────────────────────────────────────

class TestSessionSyncState:
    def test_revision_is_monotonic(self):
        state = SessionSyncState(session_id="s")
        assert [state.bump() for _ in range(3)] == [1, 2, 3]

    def test_snapshot_is_personalized(self):
        session = Session(id="s", invite_code="ABCDEF", host_id="alice", guest_id="bob",
                          host_name="Alice", guest_name="Bob")
        state = SessionSyncState(session_id="s")
        state.game = TicTacToeEngine.new_game("alice", "bob")
        state.navigation.set_zone("bob", "games")

        alice_view = state.snapshot_for(session, "alice", {"alice"})
        bob_view = state.snapshot_for(session, "bob", {"alice", "bob"})

        assert alice_view["partnerId"] == "bob"
        assert alice_view["partnerConnected"] is False
        assert bob_view["partnerConnected"] is True
        assert alice_view["game"]["symbol"] == "X"
        assert bob_view["game"]["symbol"] == "O"
        assert alice_view["zones"] == {"bob": "games"}
        assert alice_view["participants"][1] == {"id": "bob", "username": "Bob", "connected": False}

    def test_new_state_has_waiting_game(self):
        state = SessionSyncState(session_id="s")
        assert state.game.status == GameStatus.WAITING_FOR_PLAYERS


# ── SyncStateStore ─────────────────────────────────────────────────────

class TestSyncStateStore:
    def test_get_or_create_returns_same_instance(self):
        store = SyncStateStore()
        assert store.get_or_create("s") is store.get_or_create("s")
        assert len(store) == 1

    def test_discard(self):
        store = SyncStateStore()
        store.get_or_create("s")
        store.discard("s")
        assert "s" not in store
        assert store.get("s") is None

    def test_concurrent_mutations_are_serialized(self):
        store = SyncStateStore()

        def bump_many():
            state = store.get_or_create("s")
            for _ in range(1000):
                with state.lock:
                    state.bump()

        threads = [threading.Thread(target=bump_many) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert store.get("s").revision == 4000
