"""
Duet - Idle Session Reaper

Background thread that reclaims the in-memory state of sessions nobody has
been connected to for longer than the grace period. Durable records are
left alone; a reclaimed session can still be restored from the record store.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from src.realtime.presence import PresenceTracker
from src.session.registry import SessionRegistry
from src.session.state import SyncStateStore

logger = logging.getLogger(__name__)


class SessionReaper:
    """Periodically evicts idle sessions from registry, state store and presence."""

    def __init__(
        self,
        registry: SessionRegistry,
        store: SyncStateStore,
        presence: PresenceTracker,
        *,
        grace_seconds: float = 300.0,
        interval: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._registry = registry
        self._store = store
        self._presence = presence
        self._grace_seconds = grace_seconds
        self._interval = interval
        self._clock = clock
        self._stop_event: threading.Event | None = None
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def reap_once(self) -> list[str]:
        """Reclaim every session idle past the grace period. Returns their ids."""
        cutoff = self._clock() - self._grace_seconds
        reclaimed = self._registry.idle_sessions(cutoff, self._presence.last_activity)
        for session_id in reclaimed:
            self._registry.evict(session_id)
            self._store.discard(session_id)
            self._presence.forget_session(session_id)
            logger.info("Reclaimed idle session %s", session_id)
        return reclaimed

    def start(self) -> None:
        """Start the background reaper thread."""
        if self.running:
            return

        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._loop,
            args=(self._stop_event,),
            daemon=True,
            name="session-reaper",
        )
        self._thread.start()

    def stop(self) -> None:
        """Signal the reaper thread to stop and wait for it."""
        if self._stop_event:
            self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5)
        self._stop_event = None
        self._thread = None

    def _loop(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self._interval):
            try:
                self.reap_once()
            except Exception:
                logger.exception("Reaper pass failed")
