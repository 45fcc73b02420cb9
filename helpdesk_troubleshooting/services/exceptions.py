"""
Service Layer Exceptions

Custom exceptions for the conversation flow, storage and retrieval layers.
"""


class HelpdeskError(Exception):
    """Base class for all helpdesk errors."""
    pass


class InvalidSessionStateError(HelpdeskError):
    """
    Raised when the flow is asked to advance without the guide or session
    it needs (e.g. a corrupted or hand-edited context).
    """
    pass


class PersistenceError(HelpdeskError):
    """Raised when a SessionStore operation fails."""
    pass


class SessionNotFoundError(HelpdeskError):
    """Raised when an update targets a session that does not exist."""

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} not found")
        self.session_id = session_id


class RetrievalBackendError(HelpdeskError):
    """Raised by retrieval backends on transport or query failure."""
    pass
