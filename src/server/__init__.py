"""
Duet Server.

Socket.IO transport and FastAPI surface around the session sync core.
"""

from src.server.app import create_app
from src.server.services import Services, build_services

__all__ = ["Services", "build_services", "create_app"]
