"""
Duet - Realtime Event Definitions

Closed vocabulary of inbound client events (a Pydantic discriminated union
keyed by the Socket.IO event name) and outbound server events.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from src.engine import BOARD_SIZE
from src.session.errors import UnknownEvent
from src.session.models import Track


class InboundKind(str, Enum):
    """Event names a client may send."""

    JOIN = "join-room"
    ZONE_CHANGE = "zone-change"
    PLAYBACK_PLAY = "play-song"
    PLAYBACK_PAUSE = "pause-song"
    QUEUE_ENQUEUE = "add-to-queue"
    QUEUE_REMOVE = "remove-from-queue"
    QUEUE_SKIP = "skip-song"
    GAME_MOVE = "make-move"
    GAME_RESET = "reset-game"


class OutboundKind(str, Enum):
    """Event names the server emits."""

    PARTNER_JOINED = "partner-joined"
    PARTNER_CONNECTED = "partner-connected"
    PARTNER_DISCONNECTED = "partner-disconnected"
    SESSION_CLOSED = "session-closed"
    SESSION_STATE = "session-state"
    ZONE_CHANGED = "zone-changed"
    PLAYBACK_PLAY = "play-song"
    PLAYBACK_PAUSE = "pause-song"
    PLAYBACK_STOPPED = "playback-stopped"
    QUEUE_ENQUEUED = "add-to-queue"
    QUEUE_REMOVED = "remove-from-queue"
    GAME_INIT = "game-init"
    MOVE_APPLIED = "move-made"
    GAME_RESET = "game-reset"
    ERROR = "error"


# -- Inbound ----------------------------------------------------------------

class InboundEvent(BaseModel):
    """Fields shared by every inbound event."""

    session_id: str = Field(alias="roomId", min_length=1)
    participant_id: str | None = Field(default=None, alias="userId")

    model_config = {"populate_by_name": True, "extra": "ignore", "frozen": True}


class JoinEvent(InboundEvent):
    type: Literal["join-room"]


class ZoneChangeEvent(InboundEvent):
    type: Literal["zone-change"]
    zone: str = Field(min_length=1)


class PlaybackPlayEvent(InboundEvent):
    type: Literal["play-song"]
    track_id: str = Field(alias="videoId", min_length=1)
    position_seconds: float = Field(default=0.0, alias="currentTime", ge=0)
    track: Track | None = None


class PlaybackPauseEvent(InboundEvent):
    type: Literal["pause-song"]
    position_seconds: float = Field(default=0.0, alias="currentTime", ge=0)


class QueueEnqueueEvent(InboundEvent):
    type: Literal["add-to-queue"]
    track: Track


class QueueRemoveEvent(InboundEvent):
    type: Literal["remove-from-queue"]
    index: int = Field(ge=0)


class QueueSkipEvent(InboundEvent):
    type: Literal["skip-song"]


class GameMoveEvent(InboundEvent):
    type: Literal["make-move"]
    slot_index: int = Field(alias="position", ge=0, lt=BOARD_SIZE)


class GameResetEvent(InboundEvent):
    type: Literal["reset-game"]


ClientEvent = Annotated[
    Union[
        JoinEvent,
        ZoneChangeEvent,
        PlaybackPlayEvent,
        PlaybackPauseEvent,
        QueueEnqueueEvent,
        QueueRemoveEvent,
        QueueSkipEvent,
        GameMoveEvent,
        GameResetEvent,
    ],
    Field(discriminator="type"),
]

_client_event_adapter: TypeAdapter[ClientEvent] = TypeAdapter(ClientEvent)


def parse_inbound(kind: str, payload: dict[str, Any] | None) -> ClientEvent:
    """Validate a raw client event into its typed variant.

    Raises:
        UnknownEvent: Unsupported kind or malformed payload.
    """
    if not isinstance(payload, dict):
        raise UnknownEvent(f"Payload for {kind!r} must be an object")
    try:
        return _client_event_adapter.validate_python({**payload, "type": kind})
    except ValidationError as exc:
        raise UnknownEvent(f"Rejected {kind!r}: {exc.error_count()} invalid field(s)") from exc


# -- Outbound ---------------------------------------------------------------

@dataclass
class OutboundEvent:
    """Wrapper for an event emitted to clients."""

    kind: OutboundKind
    session_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.kind.value


def error_event(code: str, message: str, session_id: str | None = None) -> OutboundEvent:
    return OutboundEvent(
        kind=OutboundKind.ERROR,
        session_id=session_id,
        data={"code": code, "message": message},
    )
