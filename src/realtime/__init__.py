"""
Duet Real-time Sync.

Event vocabulary, presence tracking, event routing and idle reclamation
for two-participant sessions.
"""

from src.realtime.events import (
    InboundKind,
    OutboundEvent,
    OutboundKind,
    parse_inbound,
)
from src.realtime.presence import Binding, PresenceTracker
from src.realtime.reaper import SessionReaper
from src.realtime.router import Delivery, EventRouter

__all__ = [
    "Binding",
    "Delivery",
    "EventRouter",
    "InboundKind",
    "OutboundEvent",
    "OutboundKind",
    "PresenceTracker",
    "SessionReaper",
    "parse_inbound",
]
