"""
Duet Sessions.

Session registry, data model, error taxonomy and the per-session
synchronized state store.
"""

from src.session.errors import (
    AlreadyFull,
    CodeExhausted,
    Conflict,
    Forbidden,
    NotFound,
    SessionError,
    Stale,
    UnknownEvent,
)
from src.session.models import Participant, Session, Track
from src.session.registry import SessionRecordStore, SessionRegistry, generate_invite_code
from src.session.state import (
    NavigationState,
    PlaybackState,
    QueueState,
    SessionSyncState,
    SyncStateStore,
)

__all__ = [
    # Models
    "Participant",
    "Session",
    "Track",
    # Errors
    "AlreadyFull",
    "CodeExhausted",
    "Conflict",
    "Forbidden",
    "NotFound",
    "SessionError",
    "Stale",
    "UnknownEvent",
    # Registry
    "SessionRecordStore",
    "SessionRegistry",
    "generate_invite_code",
    # State
    "NavigationState",
    "PlaybackState",
    "QueueState",
    "SessionSyncState",
    "SyncStateStore",
]
