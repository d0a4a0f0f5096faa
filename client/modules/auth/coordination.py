"""
Sign-in coordination.

An orchestrated sign-in is represented by a SignInToken. The coordinator
holds at most one active token; every transition is a compare-and-set on
that token, so a late continuation of a superseded or reset sign-in can
neither navigate nor clear a newer sign-in's state.

The active token is mirrored to the local store under ``direct_signin`` so
that a restart mid-sign-in can be detected and cleaned up.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from shared.observability import mask_email
from shared.storage import LocalStore

logger = logging.getLogger(__name__)

# Well-known local store keys
DIRECT_SIGNIN_KEY = "direct_signin"
AUTH_DEBUG_KEY = "auth_debug"

COORDINATION_KEYS = (DIRECT_SIGNIN_KEY, AUTH_DEBUG_KEY)


@dataclass(eq=False)
class SignInToken:
    """Identity of one in-flight sign-in sequence."""

    email: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    started_at: float = field(default_factory=time.monotonic)
    navigation_claimed: bool = False
    cancelled: bool = False
    task: Optional[asyncio.Task] = None

    def bind(self, task: Optional[asyncio.Task]) -> None:
        """Attach the task running this sign-in so a reset can cancel it."""
        self.task = task


class SignInCoordinator:
    """Owner of the active sign-in token and its persisted mirror."""

    def __init__(self, store: LocalStore) -> None:
        self._store = store
        self._active: Optional[SignInToken] = None

    @property
    def active(self) -> Optional[SignInToken]:
        return self._active

    def is_active(self) -> bool:
        return self._active is not None

    def owns(self, token: SignInToken) -> bool:
        """Whether ``token`` is still the active sign-in."""
        return self._active is token and not token.cancelled

    def begin(self, email: str) -> SignInToken:
        """Start a sign-in sequence, superseding any active one."""
        if self._active is not None:
            logger.warning(f"Superseding in-flight sign-in {self._active.id}")
            self._cancel(self._active)
        token = SignInToken(email=email)
        self._active = token
        self._store.set(DIRECT_SIGNIN_KEY, True)
        logger.debug(f"Sign-in {token.id} started for {mask_email(email)}")
        return token

    def claim_navigation(self, token: SignInToken) -> bool:
        """
        Claim the single navigation of ``token``'s sequence.

        Returns True exactly once per token, and only while it is active.
        """
        if not self.owns(token) or token.navigation_claimed:
            return False
        token.navigation_claimed = True
        return True

    def complete(self, token: SignInToken) -> bool:
        """End ``token``'s sequence. A no-op if it is no longer active."""
        if self._active is not token:
            return False
        self._active = None
        self._store.remove(DIRECT_SIGNIN_KEY)
        logger.debug(f"Sign-in {token.id} completed")
        return True

    def reset(self) -> Optional[SignInToken]:
        """
        Cancel the active sign-in (if any) and clear every coordination flag.

        Returns:
            The token that was cancelled, or None
        """
        token = self._active
        self._active = None
        if token is not None:
            self._cancel(token)
        self._store.remove(*COORDINATION_KEYS)
        return token

    def clear_stale(self) -> bool:
        """
        Clear a ``direct_signin`` flag left behind by a previous run.

        Returns:
            True if a stale flag was found
        """
        if self._active is None and self._store.get(DIRECT_SIGNIN_KEY) is not None:
            logger.warning("Clearing stale sign-in flag from a previous run")
            self._store.remove(DIRECT_SIGNIN_KEY)
            return True
        return False

    def debug_reset_requested(self) -> bool:
        return self._store.get_flag(AUTH_DEBUG_KEY)

    def request_debug_reset(self) -> None:
        self._store.set(AUTH_DEBUG_KEY, True)

    @staticmethod
    def _cancel(token: SignInToken) -> None:
        token.cancelled = True
        if token.task is not None and not token.task.done():
            token.task.cancel()
