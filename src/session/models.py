"""
Duet - Session Data Model

Participants and media descriptors cross the wire and are validated with
Pydantic; the Session record itself is an immutable dataclass owned by the
registry and replaced, never mutated, when the guest is bound.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from pydantic import BaseModel, Field


class Participant(BaseModel):
    """An authenticated end user, resolved by the identity gateway."""

    id: str = Field(min_length=1)
    display_name: str | None = None

    model_config = {"frozen": True}


class Track(BaseModel):
    """Media descriptor shared through the queue and playback events."""

    id: str = Field(min_length=1)
    title: str | None = None
    author: str | None = None
    thumbnail: str | None = None
    duration: str | None = None

    model_config = {"frozen": True, "extra": "ignore"}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Session:
    """
    A pairing of a host and (eventually) one guest.

    Attributes:
        id: Unique session id
        invite_code: Human-typeable code the guest redeems
        host_id: Participant who created the session
        guest_id: Participant who redeemed the code, set exactly once
        host_name: Host display name, if known
        guest_name: Guest display name, if known
        active: False once the session has been torn down
        created_at: Creation timestamp (informational only)
    """
    id: str
    invite_code: str
    host_id: str
    guest_id: str | None = None
    host_name: str | None = None
    guest_name: str | None = None
    active: bool = True
    created_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        if self.guest_id is not None and self.guest_id == self.host_id:
            raise ValueError("Host and guest must be different participants")

    @property
    def is_full(self) -> bool:
        return self.guest_id is not None

    @property
    def participants(self) -> tuple[str, ...]:
        """Bound participant ids, host first."""
        if self.guest_id is None:
            return (self.host_id,)
        return (self.host_id, self.guest_id)

    def has_participant(self, participant_id: str) -> bool:
        return participant_id in self.participants

    def partner_of(self, participant_id: str) -> str | None:
        """The other bound participant, or None if not yet joined."""
        if participant_id == self.host_id:
            return self.guest_id
        if participant_id == self.guest_id:
            return self.host_id
        return None

    def display_name_of(self, participant_id: str) -> str | None:
        if participant_id == self.host_id:
            return self.host_name
        if participant_id == self.guest_id:
            return self.guest_name
        return None

    def with_guest(self, guest_id: str, guest_name: str | None = None) -> "Session":
        """Return a copy with the guest bound."""
        return replace(self, guest_id=guest_id, guest_name=guest_name)

    def deactivated(self) -> "Session":
        return replace(self, active=False)
