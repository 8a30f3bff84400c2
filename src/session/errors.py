"""
Duet - Session Error Taxonomy

Surfaced errors (NotFound, Forbidden, UnknownEvent) are reported back to the
originating client. Conflict and Stale describe expected races and are
dropped silently by the event router; the next authoritative broadcast
corrects the client's view.
"""


class SessionError(Exception):
    """Base class for all session-level errors."""

    code = "session_error"
    surfaced = True

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class NotFound(SessionError):
    """Unknown session id or invite code."""

    code = "not_found"


class Forbidden(SessionError):
    """Principal is not bound to the session."""

    code = "forbidden"


class Conflict(SessionError):
    """Move out of turn, occupied slot, or a similar expected race."""

    code = "conflict"
    surfaced = False


class AlreadyFull(Conflict):
    """The invite code was already redeemed by a guest."""

    code = "already_full"


class Stale(SessionError):
    """Event refers to state that has since moved on."""

    code = "stale"
    surfaced = False


class CodeExhausted(SessionError):
    """No unused invite code could be generated."""

    code = "code_exhausted"


class UnknownEvent(SessionError):
    """Inbound event kind or payload outside the supported vocabulary."""

    code = "unknown_event"
