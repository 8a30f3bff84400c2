"""
Duet - Service Wiring

Builds the registry, state store, presence tracker, router and reaper
around a Socket.IO server, choosing Supabase or in-memory collaborators
from settings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import socketio

from src.config.settings import Settings
from src.database.activity_log import ActivityLog, InMemoryActivityLog, SupabaseActivityLog
from src.database.client import get_supabase_client
from src.database.identity import IdentityGateway, StaticIdentityGateway, SupabaseIdentityGateway
from src.database.session_record import InMemorySessionRecordStore, SupabaseSessionRecordStore
from src.realtime.presence import PresenceTracker
from src.realtime.reaper import SessionReaper
from src.realtime.router import EventRouter
from src.server.gateway import SocketGateway
from src.server.media import MediaSearch
from src.session.registry import SessionRecordStore, SessionRegistry
from src.session.state import SyncStateStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything a running server needs, created once per app."""

    settings: Settings
    registry: SessionRegistry
    store: SyncStateStore
    presence: PresenceTracker
    router: EventRouter
    reaper: SessionReaper
    identity: IdentityGateway
    activity_log: ActivityLog
    gateway: SocketGateway
    media_search: MediaSearch | None = None


def build_services(
    settings: Settings,
    *,
    identity: IdentityGateway | None = None,
    record_store: SessionRecordStore | None = None,
    activity_log: ActivityLog | None = None,
    media_search: MediaSearch | None = None,
) -> Services:
    """Assemble services, defaulting collaborators from settings."""
    if settings.supabase_enabled:
        client = get_supabase_client(settings)
        identity = identity or SupabaseIdentityGateway(client)
        record_store = record_store or SupabaseSessionRecordStore(client)
        activity_log = activity_log or SupabaseActivityLog(client)
    else:
        logger.warning("Supabase not configured, using in-memory collaborators")
        identity = identity or StaticIdentityGateway()
        record_store = record_store or InMemorySessionRecordStore()
        activity_log = activity_log or InMemoryActivityLog()

    sio = socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=settings.cors_origins,
        logger=False,
        engineio_logger=False,
    )
    gateway = SocketGateway(sio, identity)

    registry = SessionRegistry(
        record_store,
        code_length=settings.invite_code_length,
        max_code_attempts=settings.invite_code_max_attempts,
    )
    store = SyncStateStore()
    presence = PresenceTracker(deliver=gateway.deliver)
    router = EventRouter(registry, store, presence)
    gateway.attach(router, presence)
    reaper = SessionReaper(
        registry,
        store,
        presence,
        grace_seconds=settings.idle_grace_seconds,
        interval=settings.reaper_interval_seconds,
    )

    return Services(
        settings=settings,
        registry=registry,
        store=store,
        presence=presence,
        router=router,
        reaper=reaper,
        identity=identity,
        activity_log=activity_log,
        gateway=gateway,
        media_search=media_search,
    )
