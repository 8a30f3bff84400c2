"""
Duet - Sync State Store

Per-session mutable sub-states (navigation, playback, queue, game). Each
session owns one SessionSyncState with its own lock; every read or write of
a session's sub-states happens while holding that lock, so concurrent events
for the same session apply in a strict order while different sessions never
contend.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any

from src.engine import GameState
from src.session.errors import Stale
from src.session.models import Session, Track

logger = logging.getLogger(__name__)


@dataclass
class NavigationState:
    """Current zone per participant. Each participant only writes their own."""

    zones: dict[str, str] = field(default_factory=dict)

    def set_zone(self, participant_id: str, zone: str) -> bool:
        """Record a zone change. Returns True if the zone differed."""
        changed = self.zones.get(participant_id) != zone
        self.zones[participant_id] = zone
        return changed


@dataclass(frozen=True)
class PlaybackChange:
    """Outcome of a play request."""

    changed: bool
    is_new_track: bool


@dataclass
class PlaybackState:
    """
    Last playback checkpoint.

    position_seconds is the position at the moment of the last update; a
    client extrapolates elapsed time locally while is_playing is True.
    """

    active_track_id: str | None = None
    track: Track | None = None
    is_playing: bool = False
    position_seconds: float = 0.0
    last_update_author: str | None = None

    def play(
        self,
        track_id: str,
        position_seconds: float,
        author: str,
        track: Track | None = None,
    ) -> PlaybackChange:
        """Load-and-play a new track, or seek-and-resume the current one."""
        is_new_track = track_id != self.active_track_id
        before = self._observable()

        if is_new_track:
            self.track = track if track is not None and track.id == track_id else None
        elif track is not None and track.id == track_id:
            self.track = track
        self.active_track_id = track_id
        self.position_seconds = float(position_seconds)
        self.is_playing = True

        changed = self._observable() != before
        if changed:
            self.last_update_author = author
        return PlaybackChange(changed=changed, is_new_track=is_new_track)

    def pause(self, position_seconds: float, author: str) -> bool:
        """Freeze the checkpoint. Returns True if anything changed.

        Raises:
            Stale: Nothing is loaded.
        """
        if self.active_track_id is None:
            raise Stale("Pause with no active track")

        before = self._observable()
        self.position_seconds = float(position_seconds)
        self.is_playing = False
        changed = self._observable() != before
        if changed:
            self.last_update_author = author
        return changed

    def stop(self, author: str) -> None:
        """Unload the active track."""
        self.active_track_id = None
        self.track = None
        self.is_playing = False
        self.position_seconds = 0.0
        self.last_update_author = author

    def _observable(self) -> tuple[Any, ...]:
        return (self.active_track_id, self.is_playing, self.position_seconds)

    def to_dict(self) -> dict[str, Any]:
        return {
            "trackId": self.active_track_id,
            "track": self.track.model_dump() if self.track else None,
            "isPlaying": self.is_playing,
            "positionSeconds": self.position_seconds,
            "lastUpdateAuthor": self.last_update_author,
        }


@dataclass
class QueueState:
    """Shared FIFO of upcoming tracks. The playing track is not part of it."""

    tracks: list[Track] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.tracks)

    def enqueue(self, track: Track) -> int:
        """Append a track and return its index."""
        self.tracks.append(track)
        return len(self.tracks) - 1

    def remove_at(self, index: int) -> Track:
        """Best-effort removal by index.

        Raises:
            Stale: The index no longer exists (e.g. a racing removal won).
        """
        if not (0 <= index < len(self.tracks)):
            raise Stale(f"Queue index {index} out of range ({len(self.tracks)} queued)")
        return self.tracks.pop(index)

    def pop_head(self) -> Track | None:
        return self.tracks.pop(0) if self.tracks else None

    def to_list(self) -> list[dict[str, Any]]:
        return [track.model_dump() for track in self.tracks]


@dataclass
class SessionSyncState:
    """All synchronized sub-states of one session plus its ordering counter."""

    session_id: str
    navigation: NavigationState = field(default_factory=NavigationState)
    playback: PlaybackState = field(default_factory=PlaybackState)
    queue: QueueState = field(default_factory=QueueState)
    game: GameState = field(default_factory=GameState.waiting)
    revision: int = 0
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def bump(self) -> int:
        """Advance the monotonic revision after an accepted mutation."""
        self.revision += 1
        return self.revision

    def snapshot_for(self, session: Session, participant_id: str, online: set[str]) -> dict[str, Any]:
        """Point-in-time view of the session for one participant.

        Callers must hold self.lock.
        """
        partner_id = session.partner_of(participant_id)
        return {
            "sessionId": session.id,
            "inviteCode": session.invite_code,
            "hostId": session.host_id,
            "guestId": session.guest_id,
            "participants": [
                {
                    "id": pid,
                    "username": session.display_name_of(pid),
                    "connected": pid in online,
                }
                for pid in session.participants
            ],
            "partnerId": partner_id,
            "partnerConnected": partner_id in online if partner_id else False,
            "zones": dict(self.navigation.zones),
            "playback": self.playback.to_dict(),
            "queue": self.queue.to_list(),
            "game": self.game.view_for(participant_id),
            "revision": self.revision,
        }


class SyncStateStore:
    """Owns SessionSyncState instances keyed by session id."""

    def __init__(self) -> None:
        self._states: dict[str, SessionSyncState] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._states

    def get_or_create(self, session_id: str) -> SessionSyncState:
        with self._lock:
            state = self._states.get(session_id)
            if state is None:
                state = SessionSyncState(session_id=session_id)
                self._states[session_id] = state
                logger.debug("Created sync state for session %s", session_id)
            return state

    def get(self, session_id: str) -> SessionSyncState | None:
        with self._lock:
            return self._states.get(session_id)

    def discard(self, session_id: str) -> None:
        with self._lock:
            if self._states.pop(session_id, None) is not None:
                logger.debug("Discarded sync state for session %s", session_id)
