"""
Duet - Presence Tracker

Maps participants to their live connection handles and groups connections
into session rooms and personal notification rooms. Membership changes are
made under a single short lock; delivery always happens after the lock is
released so a slow peer cannot stall lookups for other sessions.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable

from src.realtime.events import OutboundEvent, OutboundKind

logger = logging.getLogger(__name__)

Deliver = Callable[[str, OutboundEvent], None]


@dataclass(frozen=True)
class Binding:
    """A connection's membership: who it belongs to and which session room."""

    connection_id: str
    participant_id: str
    session_id: str


class PresenceTracker:
    """Tracks bound connections and fans events out to them.

    deliver(connection_id, event) is the transport's fire-and-forget send.
    """

    def __init__(self, deliver: Deliver, clock: Callable[[], float] = time.monotonic) -> None:
        self._deliver = deliver
        self._clock = clock
        self._bindings: dict[str, Binding] = {}
        self._session_rooms: dict[str, set[str]] = defaultdict(set)
        self._participant_rooms: dict[str, set[str]] = defaultdict(set)
        self._last_seen: dict[str, float] = {}
        self._lock = threading.Lock()

    # -- Membership ------------------------------------------------------

    def bind(self, participant_id: str, connection_id: str, session_id: str) -> bool:
        """Join connection_id to the session room and the participant's room.

        A connection already bound elsewhere is moved. Returns True when this
        is the participant's first live connection in the session.
        """
        left = None
        with self._lock:
            previous = self._bindings.get(connection_id)
            if previous is not None:
                self._leave_session(previous)
                if previous.participant_id != participant_id:
                    self._discard(self._participant_rooms, previous.participant_id, connection_id)
                if previous.session_id != session_id:
                    self._last_seen[previous.session_id] = self._clock()
                    if not self._has_participant_in_session(
                        previous.participant_id, previous.session_id
                    ):
                        left = previous

            first = not self._has_participant_in_session(participant_id, session_id)
            binding = Binding(connection_id, participant_id, session_id)
            self._bindings[connection_id] = binding
            self._session_rooms[session_id].add(connection_id)
            self._participant_rooms[participant_id].add(connection_id)
            self._last_seen[session_id] = self._clock()

        logger.info(
            "Connection %s bound to session %s as %s", connection_id, session_id, participant_id
        )
        if left is not None:
            self._notify_departure(left)
        return first

    def unbind(self, connection_id: str) -> Binding | None:
        """Forget a connection, notifying the partner if it was the participant's last."""
        with self._lock:
            binding = self._bindings.get(connection_id)
            if binding is None:
                return None
            self._leave_session(binding)
            self._discard(self._participant_rooms, binding.participant_id, connection_id)
            self._last_seen[binding.session_id] = self._clock()
            last = not self._has_participant_in_session(
                binding.participant_id, binding.session_id
            )

        logger.info("Connection %s left session %s", connection_id, binding.session_id)
        if last:
            self._notify_departure(binding)
        return binding

    def forget_session(self, session_id: str) -> None:
        """Drop every binding of a reclaimed session without notifying anyone.

        Personal rooms survive; they belong to the live transport connection.
        """
        with self._lock:
            for connection_id in list(self._session_rooms.get(session_id, ())):
                self._leave_session(self._bindings[connection_id])
            self._last_seen.pop(session_id, None)

    # -- Queries ---------------------------------------------------------

    def binding_of(self, connection_id: str) -> Binding | None:
        with self._lock:
            return self._bindings.get(connection_id)

    def participants_in(self, session_id: str) -> set[str]:
        """Participants with at least one live connection in the session."""
        with self._lock:
            return {
                self._bindings[cid].participant_id
                for cid in self._session_rooms.get(session_id, ())
            }

    def last_activity(self, session_id: str) -> float | None:
        """Monotonic time of the last bind/unbind; +inf while anyone is bound."""
        with self._lock:
            if self._session_rooms.get(session_id):
                return math.inf
            return self._last_seen.get(session_id)

    # -- Delivery --------------------------------------------------------

    def send_to_session(
        self, session_id: str, exclude_connection: str | None, event: OutboundEvent
    ) -> int:
        """Deliver to every connection in the session except exclude_connection."""
        with self._lock:
            targets = [
                cid for cid in self._session_rooms.get(session_id, ())
                if cid != exclude_connection
            ]
        return self._fan_out(targets, event)

    def send_to_participant(self, participant_id: str, event: OutboundEvent) -> int:
        """Deliver to all of a participant's connections, whatever room they are in."""
        with self._lock:
            targets = list(self._participant_rooms.get(participant_id, ()))
        return self._fan_out(targets, event)

    def send_to_connection(self, connection_id: str, event: OutboundEvent) -> int:
        return self._fan_out([connection_id], event)

    def register_connection(self, connection_id: str, participant_id: str) -> None:
        """Join the personal room before any session is bound (pre-join notifications)."""
        with self._lock:
            self._participant_rooms[participant_id].add(connection_id)

    def release_connection(self, connection_id: str, participant_id: str) -> None:
        with self._lock:
            self._discard(self._participant_rooms, participant_id, connection_id)

    # -- Internals -------------------------------------------------------

    def _fan_out(self, targets: list[str], event: OutboundEvent) -> int:
        delivered = 0
        for connection_id in targets:
            try:
                self._deliver(connection_id, event)
                delivered += 1
            except Exception:
                logger.exception("Delivery of %s to %s failed", event.name, connection_id)
        return delivered

    def _has_participant_in_session(self, participant_id: str, session_id: str) -> bool:
        return any(
            self._bindings[cid].participant_id == participant_id
            for cid in self._session_rooms.get(session_id, ())
        )

    def _notify_departure(self, binding: Binding) -> None:
        self.send_to_session(
            binding.session_id,
            None,
            OutboundEvent(
                kind=OutboundKind.PARTNER_DISCONNECTED,
                session_id=binding.session_id,
                data={"userId": binding.participant_id},
            ),
        )

    def _leave_session(self, binding: Binding) -> None:
        self._bindings.pop(binding.connection_id, None)
        self._discard(self._session_rooms, binding.session_id, binding.connection_id)

    @staticmethod
    def _discard(rooms: dict[str, set[str]], key: str, connection_id: str) -> None:
        members = rooms.get(key)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            rooms.pop(key, None)
