"""
Duet - Identity Gateway

Resolves a bearer token to an authenticated participant. Credential
issuance and storage live elsewhere; this only verifies.
"""

import logging
from typing import Protocol

from supabase import Client

from src.session.models import Participant

logger = logging.getLogger(__name__)


class IdentityGateway(Protocol):
    """Token verification: a Participant for a valid token, otherwise None."""

    def verify(self, token: str) -> Participant | None: ...


def parse_bearer(header: str | None) -> str | None:
    """Extract the token from an `Authorization: Bearer <token>` header."""
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class SupabaseIdentityGateway:
    """Verifies Supabase Auth access tokens."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def verify(self, token: str) -> Participant | None:
        if not token:
            return None
        try:
            response = self.client.auth.get_user(token)
        except Exception:
            logger.warning("Token verification failed", exc_info=True)
            return None

        user = getattr(response, "user", None)
        if user is None:
            return None

        metadata = getattr(user, "user_metadata", None) or {}
        email = getattr(user, "email", None) or ""
        display_name = metadata.get("username") or email.split("@")[0] or None
        return Participant(id=str(user.id), display_name=display_name)


class StaticIdentityGateway:
    """Fixed token -> participant table for local development and tests."""

    def __init__(self, participants: dict[str, Participant] | None = None) -> None:
        self._participants = dict(participants or {})

    def add(self, token: str, participant: Participant) -> None:
        self._participants[token] = participant

    def verify(self, token: str) -> Participant | None:
        return self._participants.get(token)
