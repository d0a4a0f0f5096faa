"""
Recovery Controller.

Destructive resets for when the auth state machine looks stuck: a sign-in
that never finishes, flags left behind by a crash, or repeated failures to
read the session.
"""

import logging
from typing import Optional

from shared.cache import DisplayCache
from shared.exceptions import StudyCoreError
from shared.storage import LocalStore
from modules.navigation.models import Route
from modules.navigation.router import IRouter, is_on
from .coordination import SignInCoordinator
from .interfaces import IIdentityBackend
from .models import AuthResult, SessionResolution
from .state import AuthStateStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_FAILED_RESOLUTIONS = 3


class RecoveryController:
    """Reset operations. Every operation is safe to call from any state."""

    def __init__(
        self,
        backend: IIdentityBackend,
        coordinator: SignInCoordinator,
        state: AuthStateStore,
        router: IRouter,
        local_store: LocalStore,
        display_cache: Optional[DisplayCache] = None,
        max_failed_resolutions: int = DEFAULT_MAX_FAILED_RESOLUTIONS,
    ) -> None:
        self._backend = backend
        self._coordinator = coordinator
        self._state = state
        self._router = router
        self._local_store = local_store
        self._display_cache = display_cache
        self._max_failed_resolutions = max_failed_resolutions
        self._failed_resolutions = 0

    @property
    def failed_resolutions(self) -> int:
        return self._failed_resolutions

    async def reset_auth_state(self) -> AuthResult:
        """
        Cancel any in-flight sign-in, clear coordination flags, sign out
        globally, clear the cached session and profile, and go to login.
        """
        cancelled = self._coordinator.reset()
        if cancelled is not None:
            logger.warning(f"Auth reset cancelled in-flight sign-in {cancelled.id}")

        try:
            await self._backend.sign_out(scope="global")
        except StudyCoreError as e:
            logger.warning(f"Sign-out during auth reset failed: {e.message}")

        self._state.clear()
        self._failed_resolutions = 0
        if not is_on(self._router, Route.LOGIN):
            self._router.navigate(Route.LOGIN.value)
        logger.info("Auth state reset")
        return AuthResult.ok(destination=Route.LOGIN)

    async def clear_all_local_data(self) -> AuthResult:
        """Reset auth state, then purge the local store and the display cache."""
        result = await self.reset_auth_state()
        self._local_store.clear()
        if self._display_cache is not None:
            dropped = self._display_cache.clear()
            logger.info(f"Cleared {dropped} display cache entries")
        logger.info("All local data cleared")
        return result

    def request_debug_reset(self) -> None:
        """Ask the next start-up to reset auth state before anything else."""
        self._coordinator.request_debug_reset()
        logger.info("Auth reset requested for next start-up")

    async def record_resolution(self, resolution: SessionResolution) -> bool:
        """
        Track consecutive failed session queries; reset after too many.

        Returns:
            True if this resolution triggered a reset
        """
        if resolution.error is None:
            self._failed_resolutions = 0
            return False

        self._failed_resolutions += 1
        if self._failed_resolutions < self._max_failed_resolutions:
            return False

        logger.warning(
            f"{self._failed_resolutions} consecutive session queries failed, resetting auth state"
        )
        await self.reset_auth_state()
        return True
