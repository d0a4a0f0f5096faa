"""
Session Resolver.

Answers one question: is there a session, and is its email verified?
"""

import logging
from typing import Optional

from shared.exceptions import ErrorKind, StudyCoreError
from shared.models import Session
from .interfaces import IIdentityBackend
from .models import SessionResolution

logger = logging.getLogger(__name__)


class SessionResolver:
    """Read-only view of the backend session."""

    def __init__(self, backend: IIdentityBackend) -> None:
        self._backend = backend

    async def resolve_session(self) -> SessionResolution:
        """
        Query the backend for the current session.

        Never raises: a failed query resolves to unauthenticated with
        ``error=SESSION_QUERY_FAILED``.
        """
        try:
            session = await self._backend.get_session()
        except StudyCoreError as e:
            logger.warning(f"Session query failed: {e.message}")
            return SessionResolution(error=ErrorKind.SESSION_QUERY_FAILED)
        return self.resolve_from(session)

    @staticmethod
    def resolve_from(session: Optional[Session]) -> SessionResolution:
        """Classify a session already in hand (no round trip)."""
        if session is None:
            return SessionResolution()
        return SessionResolution(
            is_authenticated=True,
            is_verified=session.is_verified,
            session=session,
        )
