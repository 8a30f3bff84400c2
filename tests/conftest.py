"""
Duet - Test Configuration and Fixtures

Common fixtures for the session, realtime and server test modules.
"""

from dataclasses import dataclass, field

import pytest

from src.realtime.events import OutboundEvent
from src.realtime.presence import PresenceTracker
from src.realtime.router import EventRouter
from src.session.models import Participant, Track
from src.session.registry import SessionRegistry
from src.session.state import SyncStateStore


# =============================================================================
# DELIVERY RECORDING
# =============================================================================

@dataclass
class Outbox:
    """Records every (connection_id, event) the presence tracker delivers."""

    sent: list[tuple[str, OutboundEvent]] = field(default_factory=list)

    def __call__(self, connection_id: str, event: OutboundEvent) -> None:
        self.sent.append((connection_id, event))

    def to(self, connection_id: str) -> list[OutboundEvent]:
        return [event for cid, event in self.sent if cid == connection_id]

    def names_to(self, connection_id: str) -> list[str]:
        return [event.name for event in self.to(connection_id)]

    def last_to(self, connection_id: str, name: str) -> OutboundEvent | None:
        matching = [event for event in self.to(connection_id) if event.name == name]
        return matching[-1] if matching else None

    def clear(self) -> None:
        self.sent.clear()


# =============================================================================
# PARTICIPANTS AND TRACKS
# =============================================================================

@pytest.fixture
def alice() -> Participant:
    return Participant(id="alice", display_name="Alice")


@pytest.fixture
def bob() -> Participant:
    return Participant(id="bob", display_name="Bob")


@pytest.fixture
def track_factory():
    """Build a Track with a predictable title."""
    def make(track_id: str) -> Track:
        return Track(id=track_id, title=f"Song {track_id}", author="Band", duration="3:30")
    return make


# =============================================================================
# CORE COMPONENTS
# =============================================================================

@pytest.fixture
def outbox() -> Outbox:
    return Outbox()


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def store() -> SyncStateStore:
    return SyncStateStore()


@pytest.fixture
def presence(outbox) -> PresenceTracker:
    return PresenceTracker(deliver=outbox)


@pytest.fixture
def router(registry, store, presence) -> EventRouter:
    return EventRouter(registry, store, presence)


@pytest.fixture
def paired_session(registry, alice, bob):
    """A session hosted by alice with bob redeemed as guest."""
    session = registry.create_session(alice.id, alice.display_name)
    return registry.redeem_invite_code(session.invite_code, bob.id, bob.display_name)


@pytest.fixture
def joined(router, paired_session, outbox):
    """Both participants connected and joined (alice on c-alice, bob on c-bob)."""
    router.handle("c-alice", "alice", "join-room", {"roomId": paired_session.id, "userId": "alice"})
    router.handle("c-bob", "bob", "join-room", {"roomId": paired_session.id, "userId": "bob"})
    outbox.clear()
    return paired_session
