"""
Duet - Event Router

Receives inbound client events and applies each with the same contract:
validate against session and presence, mutate the session's sync state
under its lock, then deliver derived events once the lock is released.

Expected races (stale or conflicting events) are dropped without a reply;
the next authoritative broadcast corrects the sender. Only unknown sessions,
foreign principals and malformed events are answered with an error event.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from src.engine import GameStatus, IllegalMove, TicTacToeEngine
from src.realtime.events import (
    ClientEvent,
    GameMoveEvent,
    GameResetEvent,
    JoinEvent,
    OutboundEvent,
    OutboundKind,
    PlaybackPauseEvent,
    PlaybackPlayEvent,
    QueueEnqueueEvent,
    QueueRemoveEvent,
    QueueSkipEvent,
    ZoneChangeEvent,
    error_event,
    parse_inbound,
)
from src.realtime.presence import PresenceTracker
from src.session.errors import Conflict, Forbidden, SessionError, Stale
from src.session.models import Participant, Session
from src.session.registry import SessionRegistry
from src.session.state import SessionSyncState, SyncStateStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Delivery:
    """An outbound event and where it goes.

    Exactly one addressing mode is used: a session room (optionally
    excluding the sender), a participant's personal room, or one connection.
    """

    event: OutboundEvent
    session_id: str | None = None
    exclude_connection: str | None = None
    participant_id: str | None = None
    connection_id: str | None = None


@dataclass(frozen=True)
class _Context:
    connection_id: str
    participant_id: str
    session: Session
    state: SessionSyncState

    def relay(self, kind: OutboundKind, **data: Any) -> Delivery:
        """Event for the partner only."""
        return Delivery(
            event=OutboundEvent(kind=kind, session_id=self.session.id, data=data),
            session_id=self.session.id,
            exclude_connection=self.connection_id,
        )

    def broadcast(self, kind: OutboundKind, **data: Any) -> Delivery:
        """Event for every connection in the session, sender included."""
        return Delivery(
            event=OutboundEvent(kind=kind, session_id=self.session.id, data=data),
            session_id=self.session.id,
        )


class EventRouter:
    """Validates, applies and fans out client events."""

    def __init__(
        self,
        registry: SessionRegistry,
        store: SyncStateStore,
        presence: PresenceTracker,
    ) -> None:
        self._registry = registry
        self._store = store
        self._presence = presence
        self._handlers: dict[type, Callable[[_Context, Any], list[Delivery]]] = {
            ZoneChangeEvent: self._on_zone_change,
            PlaybackPlayEvent: self._on_play,
            PlaybackPauseEvent: self._on_pause,
            QueueEnqueueEvent: self._on_enqueue,
            QueueRemoveEvent: self._on_queue_remove,
            QueueSkipEvent: self._on_skip,
            GameMoveEvent: self._on_move,
            GameResetEvent: self._on_reset,
        }

    # -- Entry points ----------------------------------------------------

    def handle(
        self,
        connection_id: str,
        principal_id: str,
        kind: str,
        payload: dict[str, Any] | None,
    ) -> None:
        """Process one raw client event. Never raises."""
        try:
            event = parse_inbound(kind, payload)
            if isinstance(event, JoinEvent):
                deliveries = self._join(connection_id, principal_id, event)
            else:
                deliveries = self._apply(connection_id, principal_id, event)
        except SessionError as exc:
            if exc.surfaced:
                logger.info("Rejected %s from %s: %s", kind, connection_id, exc.message)
                self._presence.send_to_connection(
                    connection_id, error_event(exc.code, exc.message)
                )
            else:
                logger.debug("Dropped %s from %s: %s", kind, connection_id, exc.message)
            return
        except Exception:
            logger.exception("Unexpected error handling %s from %s", kind, connection_id)
            return

        self._flush(deliveries)

    def disconnect(self, connection_id: str) -> None:
        """Unbind a closed connection; the partner is told if it was the last one."""
        try:
            self._presence.unbind(connection_id)
        except Exception:
            logger.exception("Unexpected error unbinding %s", connection_id)

    def snapshot(self, session_id: str, participant_id: str) -> dict[str, Any]:
        """Point-in-time session view for a bound participant.

        Raises:
            NotFound: Unknown session.
            Forbidden: Participant is not bound to the session.
        """
        session = self._registry.require_member(session_id, participant_id)
        state = self._store.get_or_create(session.id)
        online = self._presence.participants_in(session.id)
        with state.lock:
            return state.snapshot_for(session, participant_id, online)

    def close_session(self, session_id: str, participant_id: str) -> Session:
        """Tear a session down at the host's request.

        Everyone still bound to the session is told before the bindings go.

        Raises:
            NotFound: Unknown session.
            Forbidden: Caller is not the host.
        """
        session = self._registry.require_member(session_id, participant_id)
        if session.host_id != participant_id:
            raise Forbidden("Only the host can close a session")

        closed = self._registry.close_session(session.id)
        self._store.discard(session.id)
        self._presence.send_to_session(
            session.id,
            None,
            OutboundEvent(
                kind=OutboundKind.SESSION_CLOSED,
                session_id=session.id,
                data={"sessionId": session.id, "userId": participant_id},
            ),
        )
        self._presence.forget_session(session.id)
        return closed

    def notify_partner_joined(self, session: Session, guest: Participant) -> None:
        """Tell the host, wherever they are connected, that a guest redeemed the code."""
        self._presence.send_to_participant(
            session.host_id,
            OutboundEvent(
                kind=OutboundKind.PARTNER_JOINED,
                session_id=session.id,
                data={
                    "sessionId": session.id,
                    "partnerId": guest.id,
                    "partnerUsername": guest.display_name,
                },
            ),
        )

    # -- Join ------------------------------------------------------------

    def _join(self, connection_id: str, principal_id: str, event: JoinEvent) -> list[Delivery]:
        if event.participant_id is not None and event.participant_id != principal_id:
            raise Forbidden("Event participant does not match the connection")
        session = self._registry.require_member(event.session_id, principal_id)

        self._presence.bind(principal_id, connection_id, session.id)
        online = self._presence.participants_in(session.id)
        state = self._store.get_or_create(session.id)

        deliveries = [
            Delivery(
                event=OutboundEvent(
                    kind=OutboundKind.PARTNER_CONNECTED,
                    session_id=session.id,
                    data={"userId": principal_id},
                ),
                session_id=session.id,
                exclude_connection=connection_id,
            )
        ]

        with state.lock:
            game_created = self._maybe_init_game(session, state, online)
            deliveries.append(
                Delivery(
                    event=OutboundEvent(
                        kind=OutboundKind.SESSION_STATE,
                        session_id=session.id,
                        data=state.snapshot_for(session, principal_id, online),
                    ),
                    connection_id=connection_id,
                )
            )
            if game_created:
                for participant_id in state.game.players:
                    view = state.game.view_for(participant_id)
                    deliveries.append(
                        Delivery(
                            event=OutboundEvent(
                                kind=OutboundKind.GAME_INIT,
                                session_id=session.id,
                                data={
                                    "symbol": view["symbol"],
                                    "isYourTurn": view["isYourTurn"],
                                    "firstPlayer": view["firstPlayer"],
                                    "revision": state.revision,
                                },
                            ),
                            participant_id=participant_id,
                        )
                    )
        return deliveries

    def _maybe_init_game(
        self, session: Session, state: SessionSyncState, online: set[str]
    ) -> bool:
        """Create the game the first time both participants are bound."""
        if state.game.status is not GameStatus.WAITING_FOR_PLAYERS:
            return False
        if not session.is_full or not set(session.participants) <= online:
            return False

        # Order comes from the session record, never from connection order.
        state.game = TicTacToeEngine.new_game(session.host_id, session.guest_id)
        state.bump()
        logger.info("Game started in session %s, %s moves first", session.id, session.host_id)
        return True

    # -- In-session events -----------------------------------------------

    def _apply(
        self, connection_id: str, principal_id: str, event: ClientEvent
    ) -> list[Delivery]:
        binding = self._presence.binding_of(connection_id)
        if binding is None or binding.session_id != event.session_id:
            raise Stale(f"Connection is not bound to session {event.session_id}")
        if binding.participant_id != principal_id:
            raise Stale("Connection is bound to another participant")
        if event.participant_id is not None and event.participant_id != principal_id:
            raise Stale("Event participant does not match the connection")

        try:
            session = self._registry.require_member(event.session_id, principal_id)
        except SessionError as exc:
            raise Stale(exc.message) from exc

        state = self._store.get_or_create(session.id)
        handler = self._handlers[type(event)]
        ctx = _Context(connection_id, principal_id, session, state)
        with state.lock:
            return handler(ctx, event)

    def _on_zone_change(self, ctx: _Context, event: ZoneChangeEvent) -> list[Delivery]:
        ctx.state.navigation.set_zone(ctx.participant_id, event.zone)
        revision = ctx.state.bump()
        return [
            ctx.relay(
                OutboundKind.ZONE_CHANGED,
                userId=ctx.participant_id,
                zone=event.zone,
                revision=revision,
            )
        ]

    def _on_play(self, ctx: _Context, event: PlaybackPlayEvent) -> list[Delivery]:
        playback = ctx.state.playback
        change = playback.play(
            event.track_id, event.position_seconds, ctx.participant_id, event.track
        )
        if not change.changed:
            return []
        revision = ctx.state.bump()
        return [
            ctx.relay(
                OutboundKind.PLAYBACK_PLAY,
                videoId=playback.active_track_id,
                currentTime=playback.position_seconds,
                load=change.is_new_track,
                track=playback.track.model_dump() if playback.track else None,
                userId=ctx.participant_id,
                revision=revision,
            )
        ]

    def _on_pause(self, ctx: _Context, event: PlaybackPauseEvent) -> list[Delivery]:
        playback = ctx.state.playback
        if not playback.pause(event.position_seconds, ctx.participant_id):
            return []
        revision = ctx.state.bump()
        return [
            ctx.relay(
                OutboundKind.PLAYBACK_PAUSE,
                videoId=playback.active_track_id,
                currentTime=playback.position_seconds,
                userId=ctx.participant_id,
                revision=revision,
            )
        ]

    def _on_enqueue(self, ctx: _Context, event: QueueEnqueueEvent) -> list[Delivery]:
        index = ctx.state.queue.enqueue(event.track)
        revision = ctx.state.bump()
        return [
            ctx.relay(
                OutboundKind.QUEUE_ENQUEUED,
                track=event.track.model_dump(),
                index=index,
                userId=ctx.participant_id,
                revision=revision,
            )
        ]

    def _on_queue_remove(self, ctx: _Context, event: QueueRemoveEvent) -> list[Delivery]:
        track = ctx.state.queue.remove_at(event.index)
        revision = ctx.state.bump()
        return [
            ctx.relay(
                OutboundKind.QUEUE_REMOVED,
                index=event.index,
                trackId=track.id,
                userId=ctx.participant_id,
                revision=revision,
            )
        ]

    def _on_skip(self, ctx: _Context, event: QueueSkipEvent) -> list[Delivery]:
        state = ctx.state
        track = state.queue.pop_head()
        if track is None:
            state.playback.stop(ctx.participant_id)
            revision = state.bump()
            return [
                ctx.broadcast(
                    OutboundKind.PLAYBACK_STOPPED,
                    reason="queue-empty",
                    userId=ctx.participant_id,
                    revision=revision,
                )
            ]

        state.playback.play(track.id, 0.0, ctx.participant_id, track)
        revision = state.bump()
        # The server picked the next track, so the skipper is told as well.
        return [
            ctx.broadcast(
                OutboundKind.PLAYBACK_PLAY,
                videoId=track.id,
                currentTime=0.0,
                load=True,
                track=track.model_dump(),
                reason="skip",
                userId=ctx.participant_id,
                revision=revision,
            )
        ]

    def _on_move(self, ctx: _Context, event: GameMoveEvent) -> list[Delivery]:
        try:
            result = TicTacToeEngine.apply_move(
                ctx.state.game, ctx.participant_id, event.slot_index
            )
        except IllegalMove as exc:
            raise Conflict(str(exc)) from exc

        ctx.state.game = result.state
        revision = ctx.state.bump()
        if result.concluded:
            logger.info(
                "Game in session %s concluded, winner %s", ctx.session.id, result.state.winner
            )
        return [
            ctx.broadcast(
                OutboundKind.MOVE_APPLIED,
                index=result.slot_index,
                symbol=result.symbol.value,
                nextTurn=result.next_turn,
                winner=result.state.winner,
                status=result.state.status.value,
                userId=ctx.participant_id,
                revision=revision,
            )
        ]

    def _on_reset(self, ctx: _Context, event: GameResetEvent) -> list[Delivery]:
        try:
            ctx.state.game = TicTacToeEngine.reset(ctx.state.game)
        except IllegalMove as exc:
            raise Stale(str(exc)) from exc

        revision = ctx.state.bump()
        return [
            ctx.broadcast(
                OutboundKind.GAME_RESET,
                firstPlayer=ctx.state.game.first_mover,
                nextTurn=ctx.state.game.current_turn,
                userId=ctx.participant_id,
                revision=revision,
            )
        ]

    # -- Delivery --------------------------------------------------------

    def _flush(self, deliveries: list[Delivery]) -> None:
        for delivery in deliveries:
            if delivery.connection_id is not None:
                self._presence.send_to_connection(delivery.connection_id, delivery.event)
            elif delivery.participant_id is not None:
                self._presence.send_to_participant(delivery.participant_id, delivery.event)
            elif delivery.session_id is not None:
                self._presence.send_to_session(
                    delivery.session_id, delivery.exclude_connection, delivery.event
                )
