"""
Duet - Session Registry

Owns the authoritative map of session id -> Session. All mutations are
short and lock-scoped; durable persistence happens after the lock is
released so a slow store never stalls lookups for unrelated sessions.
"""

from __future__ import annotations

import logging
import secrets
import string
import threading
import time
import uuid
from typing import Callable, Protocol

from src.session.errors import AlreadyFull, CodeExhausted, Forbidden, NotFound
from src.session.models import Session

logger = logging.getLogger(__name__)

INVITE_ALPHABET = (
    string.ascii_uppercase.replace("O", "").replace("I", "")
    + string.digits.replace("0", "").replace("1", "")
)


def generate_invite_code(length: int = 6) -> str:
    """Generate an alphanumeric invite code, avoiding ambiguous characters."""
    return "".join(secrets.choice(INVITE_ALPHABET) for _ in range(length))


def normalize_invite_code(code: str) -> str:
    return code.strip().upper()


class SessionRecordStore(Protocol):
    """Durable key-value storage for session records."""

    def create(self, session: Session) -> None: ...

    def get(self, session_id: str) -> Session | None: ...

    def get_by_code(self, invite_code: str) -> Session | None: ...

    def persist(self, session: Session) -> None: ...


class SessionRegistry:
    """In-memory registry of active sessions, optionally backed by a record store."""

    def __init__(
        self,
        record_store: SessionRecordStore | None = None,
        *,
        code_length: int = 6,
        max_code_attempts: int = 64,
        code_generator: Callable[[int], str] = generate_invite_code,
    ) -> None:
        self._record_store = record_store
        self._code_length = code_length
        self._max_code_attempts = max_code_attempts
        self._generate_code = code_generator
        self._sessions: dict[str, Session] = {}
        self._codes: dict[str, str] = {}
        self._registered_at: dict[str, float] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    # -- Operations ------------------------------------------------------

    def create_session(self, host_id: str, host_name: str | None = None) -> Session:
        """Create a session hosted by host_id with a fresh, unique invite code.

        Raises:
            CodeExhausted: If no unused code was found within the retry budget.
        """
        with self._lock:
            code = self._unused_code()
            session = Session(
                id=uuid.uuid4().hex,
                invite_code=code,
                host_id=host_id,
                host_name=host_name,
            )
            self._register(session)

        logger.info("Session %s created by %s (code %s)", session.id, host_id, code)
        self._store("create", session)
        return session

    def redeem_invite_code(
        self, code: str, guest_id: str, guest_name: str | None = None
    ) -> Session:
        """Bind guest_id to the session owning code.

        The host redeeming their own code gets the session back unchanged.

        Raises:
            NotFound: No active session uses this code.
            AlreadyFull: A guest is already bound.
        """
        code = normalize_invite_code(code)
        self._rehydrate_code(code)

        with self._lock:
            session_id = self._codes.get(code)
            session = self._sessions.get(session_id) if session_id else None
            if session is None or not session.active:
                raise NotFound(f"No active session for invite code {code}")
            if session.host_id == guest_id:
                return session
            if session.is_full:
                raise AlreadyFull(f"Session {session.id} already has a guest")

            session = session.with_guest(guest_id, guest_name)
            self._sessions[session.id] = session

        logger.info("Participant %s joined session %s", guest_id, session.id)
        self._store("persist", session)
        return session

    def get_session(self, session_id: str) -> Session:
        """Look up a session by id.

        Raises:
            NotFound: Unknown or torn down session.
        """
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            session = self._rehydrate_id(session_id)
        if session is None or not session.active:
            raise NotFound(f"Session {session_id} not found")
        return session

    def require_member(self, session_id: str, participant_id: str) -> Session:
        """Return the session if participant_id is bound to it.

        Raises:
            NotFound: Unknown session.
            Forbidden: Participant is not the host or guest.
        """
        session = self.get_session(session_id)
        if not session.has_participant(participant_id):
            raise Forbidden(f"{participant_id} is not part of session {session_id}")
        return session

    def close_session(self, session_id: str) -> Session:
        """Tear down a session: mark it inactive, free its code, persist."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
            if session is None:
                raise NotFound(f"Session {session_id} not found")
            self._codes.pop(session.invite_code, None)
            self._registered_at.pop(session_id, None)
            session = session.deactivated()

        logger.info("Session %s closed", session_id)
        self._store("persist", session)
        return session

    def evict(self, session_id: str) -> None:
        """Drop a session from memory only; its durable record is kept."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
            if session is not None:
                self._codes.pop(session.invite_code, None)
            self._registered_at.pop(session_id, None)

    def idle_sessions(
        self,
        cutoff: float,
        last_activity: Callable[[str], float | None],
    ) -> list[str]:
        """Ids of sessions whose last activity is older than cutoff.

        last_activity returns a monotonic timestamp for a session, or None
        when nothing was ever bound; the registration time is used then.
        """
        with self._lock:
            registered = dict(self._registered_at)

        idle = []
        for session_id, registered_at in registered.items():
            seen = last_activity(session_id)
            if (seen if seen is not None else registered_at) < cutoff:
                idle.append(session_id)
        return idle

    # -- Internals -------------------------------------------------------

    def _unused_code(self) -> str:
        for _ in range(self._max_code_attempts):
            code = normalize_invite_code(self._generate_code(self._code_length))
            if code not in self._codes:
                return code
        raise CodeExhausted(
            f"No unused invite code after {self._max_code_attempts} attempts"
        )

    def _register(self, session: Session) -> None:
        self._sessions[session.id] = session
        self._codes[session.invite_code] = session.id
        self._registered_at[session.id] = time.monotonic()

    def _rehydrate_id(self, session_id: str) -> Session | None:
        if self._record_store is None:
            return None
        try:
            record = self._record_store.get(session_id)
        except Exception:
            logger.exception("Failed to load session %s", session_id)
            return None
        return self._adopt(record)

    def _rehydrate_code(self, code: str) -> None:
        if self._record_store is None:
            return
        with self._lock:
            if code in self._codes:
                return
        try:
            record = self._record_store.get_by_code(code)
        except Exception:
            logger.exception("Failed to load session for code %s", code)
            return
        self._adopt(record)

    def _adopt(self, record: Session | None) -> Session | None:
        """Register a session loaded from the durable store."""
        if record is None or not record.active:
            return record
        with self._lock:
            existing = self._sessions.get(record.id)
            if existing is not None:
                return existing
            if record.invite_code in self._codes:
                return None
            self._register(record)
        logger.info("Session %s restored from record store", record.id)
        return record

    def _store(self, operation: str, session: Session) -> None:
        if self._record_store is None:
            return
        try:
            getattr(self._record_store, operation)(session)
        except Exception:
            logger.exception("Failed to %s record for session %s", operation, session.id)
