"""Session manager for handling multiple client sessions."""

import threading
import time
from dataclasses import dataclass, field

from .session import BbsSession


@dataclass
class SessionEntry:
    """Internal entry storing session and metadata."""

    session: BbsSession
    last_access: float  # Unix timestamp
    # Held while a request for this session is being handled.
    lock: threading.Lock = field(default_factory=threading.Lock)


class SessionManager:
    """Manages sessions for multiple connections.

    Provides session storage with automatic timeout cleanup. The registry
    itself is guarded by a lock because transports call in from many
    threads; serializing requests within one session is the caller's job,
    using the entry's own lock.
    """

    def __init__(self, timeout_seconds: int = 1800):
        """
        Initialize the session manager.

        Args:
            timeout_seconds: Seconds of inactivity before session expires.
                            Default is 30 minutes.
        """
        self._sessions: dict[str, SessionEntry] = {}
        self._timeout = timeout_seconds
        self._lock = threading.Lock()

    def create_session(self, session_id: str, session: BbsSession) -> SessionEntry:
        """
        Register a session, replacing any previous one with the same id.

        Args:
            session_id: Connection id or HTTP session id.
            session: The new session.

        Returns:
            The registry entry for the session.
        """
        entry = SessionEntry(session=session, last_access=time.time())
        with self._lock:
            self._sessions[session_id] = entry
        return entry

    def get_session(self, session_id: str) -> SessionEntry | None:
        """
        Look up a session.

        Accessing a session refreshes its last access time.

        Args:
            session_id: Connection id or HTTP session id.

        Returns:
            The registry entry, or None if there is no such session.
        """
        with self._lock:
            entry = self._sessions.get(session_id)
            if entry is not None:
                # Refresh timestamp on access
                entry.last_access = time.time()
            return entry

    def remove_session(self, session_id: str) -> bool:
        """
        Remove a session.

        Args:
            session_id: Connection id or HTTP session id.

        Returns:
            True if a session was removed.
        """
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def cleanup_expired(self) -> int:
        """
        Remove expired sessions.

        Returns:
            Number of sessions removed.
        """
        now = time.time()
        with self._lock:
            expired = [
                session_id
                for session_id, entry in self._sessions.items()
                if now - entry.last_access > self._timeout
            ]

            for session_id in expired:
                del self._sessions[session_id]

        return len(expired)

    def session_count(self) -> int:
        """Get the number of active sessions."""
        with self._lock:
            return len(self._sessions)

    def list_session_ids(self) -> list[str]:
        """Get list of all session ids."""
        with self._lock:
            return list(self._sessions.keys())
