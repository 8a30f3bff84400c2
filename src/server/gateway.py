"""
Duet - Socket.IO Gateway

Transport adapter between Socket.IO and the event router. Connections are
authenticated on connect; each inbound event name is handed to the router
together with the connection's participant. Outbound delivery schedules the
emit on the server loop and returns immediately.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Future
from typing import Any

import socketio

from src.database.identity import IdentityGateway, parse_bearer
from src.realtime.events import InboundKind, OutboundEvent
from src.realtime.presence import PresenceTracker
from src.realtime.router import EventRouter

logger = logging.getLogger(__name__)


class SocketGateway:
    """Registers Socket.IO handlers and delivers outbound events."""

    def __init__(self, sio: socketio.AsyncServer, identity: IdentityGateway) -> None:
        self.sio = sio
        self._identity = identity
        self._router: EventRouter | None = None
        self._presence: PresenceTracker | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    def attach(self, router: EventRouter, presence: PresenceTracker) -> None:
        """Wire the router and presence tracker, then register handlers."""
        self._router = router
        self._presence = presence
        self.sio.on("connect", handler=self._on_connect)
        self.sio.on("disconnect", handler=self._on_disconnect)
        for kind in InboundKind:
            self.sio.on(kind.value, handler=self._make_handler(kind.value))

    # -- Outbound ----------------------------------------------------------

    def deliver(self, connection_id: str, event: OutboundEvent) -> None:
        """Fire-and-forget emit to one connection."""
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.debug("No running loop, dropping %s for %s", event.name, connection_id)
            return
        future = asyncio.run_coroutine_threadsafe(
            self.sio.emit(event.name, event.data, to=connection_id), loop
        )
        future.add_done_callback(
            lambda done: self._log_emit_failure(done, event.name, connection_id)
        )

    @staticmethod
    def _log_emit_failure(future: Future, name: str, connection_id: str) -> None:
        if future.cancelled():
            logger.debug("Emit of %s to %s was cancelled", name, connection_id)
            return
        exc = future.exception()
        if exc is not None:
            logger.error("Emit of %s to %s failed", name, connection_id, exc_info=exc)

    # -- Inbound -----------------------------------------------------------

    async def _on_connect(
        self, sid: str, environ: dict[str, Any], auth: dict[str, Any] | None = None
    ) -> None:
        token = (auth or {}).get("token") or parse_bearer(environ.get("HTTP_AUTHORIZATION"))
        participant = await asyncio.to_thread(self._identity.verify, token) if token else None
        if participant is None:
            logger.warning("Refused unauthenticated connection %s", sid)
            raise socketio.exceptions.ConnectionRefusedError("Authentication required")

        self._loop = asyncio.get_running_loop()
        await self.sio.save_session(
            sid,
            {"participant_id": participant.id, "display_name": participant.display_name},
        )
        self._presence.register_connection(sid, participant.id)
        logger.info("Connection %s authenticated as %s", sid, participant.id)

    async def _on_disconnect(self, sid: str, reason: Any = None) -> None:
        session = await self._session_of(sid)
        self._router.disconnect(sid)
        participant_id = session.get("participant_id")
        if participant_id:
            self._presence.release_connection(sid, participant_id)
        logger.info("Connection %s closed (%s)", sid, reason)

    def _make_handler(self, kind: str):
        async def handler(sid: str, data: Any = None) -> None:
            session = await self._session_of(sid)
            participant_id = session.get("participant_id")
            if not participant_id:
                logger.debug("Dropping %s from unauthenticated %s", kind, sid)
                return
            self._router.handle(sid, participant_id, kind, data)

        handler.__name__ = f"on_{kind.replace('-', '_')}"
        return handler

    async def _session_of(self, sid: str) -> dict[str, Any]:
        try:
            return await self.sio.get_session(sid) or {}
        except KeyError:
            return {}
