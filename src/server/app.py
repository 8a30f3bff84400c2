"""
Duet - ASGI Application

Combines the FastAPI surface and the Socket.IO server into one ASGI app.
The idle-session reaper runs for the lifetime of the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.config.settings import Settings, get_settings
from src.server.api import create_api
from src.server.services import Services, build_services


def create_app(
    settings: Settings | None = None,
    services: Services | None = None,
) -> socketio.ASGIApp:
    """Create the combined ASGI app."""
    settings = settings or get_settings()
    services = services or build_services(settings)

    api = create_api(services)
    origins = settings.cors_origins
    api.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if origins == "*" else origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        services.reaper.start()
        try:
            yield
        finally:
            services.reaper.stop()

    api.router.lifespan_context = lifespan
    return socketio.ASGIApp(services.gateway.sio, other_asgi_app=api)
