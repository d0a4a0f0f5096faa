"""
Cached authentication state.

Holds the client's copies of the current Session and Profile. The composite
state used for routing is rebuilt from them on every read.
"""

import asyncio
import logging
from typing import Optional

from shared.exceptions import ErrorKind, StudyCoreError
from shared.models import CompositeAuthState, Session
from modules.profiles.gate import ProfileGate
from modules.profiles.models import Profile

logger = logging.getLogger(__name__)


class AuthStateStore:
    """Cached Session and Profile shared by the auth flows."""

    def __init__(self) -> None:
        self._session: Optional[Session] = None
        self._profile: Optional[Profile] = None
        self._profile_unavailable = False
        self._profile_error: Optional[ErrorKind] = None

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def profile(self) -> Optional[Profile]:
        return self._profile

    @property
    def profile_unavailable(self) -> bool:
        return self._profile_unavailable

    @property
    def profile_error(self) -> Optional[ErrorKind]:
        """Why the last profile read failed, while the profile is unavailable."""
        return self._profile_error

    def set_session(self, session: Optional[Session]) -> None:
        """Replace the cached session. The profile is dropped when the user changes."""
        previous = self._session
        self._session = session
        if session is None or previous is None or previous.user_id != session.user_id:
            self._profile = None
            self._profile_unavailable = False
            self._profile_error = None

    def set_profile(self, profile: Optional[Profile]) -> None:
        if profile is not None and (
            self._session is None or profile.user_id != self._session.user_id
        ):
            logger.debug("Ignoring profile for a user that is no longer signed in")
            return
        self._profile = profile
        self._profile_unavailable = False
        self._profile_error = None

    def clear(self) -> None:
        self._session = None
        self._profile = None
        self._profile_unavailable = False
        self._profile_error = None

    def snapshot(self) -> CompositeAuthState:
        """Derive the composite state from the cached session and profile."""
        session = self._session
        if session is None:
            return CompositeAuthState()
        profile = self._profile
        return CompositeAuthState(
            is_authenticated=True,
            is_verified=session.is_verified,
            has_profile=profile is not None,
            is_profile_complete=profile is not None and profile.is_complete,
            profile_unavailable=self._profile_unavailable,
        )

    async def refresh_profile(
        self,
        gate: ProfileGate,
        timeout: Optional[float] = None,
    ) -> CompositeAuthState:
        """
        Resolve the cached user's profile through the gate.

        Unverified sessions are not resolved: profiles are only provisioned
        after verification. A failed or timed-out read marks the profile
        unavailable instead of raising.

        Args:
            gate: Profile Gate to resolve through
            timeout: Seconds to wait for the gate; None waits indefinitely

        Returns:
            The composite state after the refresh
        """
        session = self._session
        if session is None or not session.is_verified:
            return self.snapshot()

        try:
            resolution = await asyncio.wait_for(
                gate.resolve_profile(session.user_id, session.email, session.role_hint),
                timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Profile read for user {session.user_id} timed out")
            self._mark_unavailable(session, ErrorKind.NETWORK_UNAVAILABLE)
        except StudyCoreError as e:
            logger.warning(f"Profile read for user {session.user_id} failed: {e.message}")
            self._mark_unavailable(session, e.kind)
        else:
            if self._session is not None and self._session.user_id == session.user_id:
                self.set_profile(resolution.profile)
        return self.snapshot()

    def _mark_unavailable(self, session: Session, kind: ErrorKind) -> None:
        # A sign-out or user switch during the read makes the failure moot
        if self._session is not None and self._session.user_id == session.user_id:
            self._profile_unavailable = True
            self._profile_error = kind
