"""
Duet Database Layer.

Supabase integration for session records, activity history and identity,
with in-memory equivalents for development.
"""

from src.database.activity_log import ActivityLog, InMemoryActivityLog, SupabaseActivityLog
from src.database.client import get_supabase_client
from src.database.identity import (
    IdentityGateway,
    StaticIdentityGateway,
    SupabaseIdentityGateway,
    parse_bearer,
)
from src.database.models import ActivityEntry, SessionRecord
from src.database.session_record import InMemorySessionRecordStore, SupabaseSessionRecordStore

__all__ = [
    "get_supabase_client",
    "ActivityEntry",
    "ActivityLog",
    "IdentityGateway",
    "InMemoryActivityLog",
    "InMemorySessionRecordStore",
    "SessionRecord",
    "StaticIdentityGateway",
    "SupabaseActivityLog",
    "SupabaseIdentityGateway",
    "SupabaseSessionRecordStore",
    "parse_bearer",
]
