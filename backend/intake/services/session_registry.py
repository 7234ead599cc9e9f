"""In-memory registry of live intake sessions.

Sessions expire after a period of inactivity; every successful lookup
extends the expiry. Expired or discarded sessions are closed so their
pending autosave never writes into a torn-down session.

Safe for single event loop usage only; not for multi-threaded access.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from intake.core.config import settings
from intake.core.errors import NotFoundError
from intake.services.intake_session import IntakeSession

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    session: IntakeSession
    expires_at: datetime


class SessionRegistry:
    """Session id -> IntakeSession map with TTL expiry."""

    def __init__(self, ttl_minutes: int | None = None) -> None:
        """Initialize the registry.

        Args:
            ttl_minutes: Inactivity timeout. Defaults to settings.
        """
        self._ttl = timedelta(
            minutes=ttl_minutes if ttl_minutes is not None else settings.session_ttl_minutes
        )
        self._entries: dict[str, _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def create(self, session: IntakeSession) -> IntakeSession:
        """Register a session under its id.

        Expired sessions are swept first, so abandoned ones do not pile up.

        Returns:
            The registered session.
        """
        self.cleanup_expired()
        self._entries[session.id] = _Entry(
            session=session,
            expires_at=datetime.now(UTC) + self._ttl,
        )
        return session

    def get(self, session_id: str) -> IntakeSession:
        """Look up a live session and extend its expiry.

        Raises:
            NotFoundError: If the id is unknown or the session expired.
        """
        entry = self._entries.get(session_id)
        now = datetime.now(UTC)
        if entry is None:
            raise NotFoundError("Session", session_id)
        if now > entry.expires_at:
            self._drop(session_id)
            raise NotFoundError("Session", session_id)
        entry.expires_at = now + self._ttl
        return entry.session

    def discard(self, session_id: str) -> None:
        """Close and remove a session.

        Raises:
            NotFoundError: If the id is unknown.
        """
        if session_id not in self._entries:
            raise NotFoundError("Session", session_id)
        self._drop(session_id)

    def cleanup_expired(self) -> int:
        """Close and remove every expired session.

        Returns:
            Number of sessions removed.
        """
        now = datetime.now(UTC)
        expired = [sid for sid, entry in self._entries.items() if now > entry.expires_at]
        for sid in expired:
            self._drop(sid)
        if expired:
            logger.info("Expired %d intake sessions", len(expired))
        return len(expired)

    def clear(self) -> None:
        """Close and remove all sessions (for testing)."""
        for sid in list(self._entries):
            self._drop(sid)

    def _drop(self, session_id: str) -> None:
        entry = self._entries.pop(session_id)
        entry.session.close()


# Singleton instance for the application
_registry: SessionRegistry | None = None


def get_session_registry() -> SessionRegistry:
    """Get the singleton session registry."""
    global _registry
    if _registry is None:
        _registry = SessionRegistry()
    return _registry


def reset_session_registry() -> None:
    """Reset the session registry singleton (for testing)."""
    global _registry
    if _registry is not None:
        _registry.clear()
    _registry = None
