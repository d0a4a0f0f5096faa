"""
Event Arbitrator.

Consumes the backend's session-change notifications. Notifications are
queued and handled one at a time in arrival order by a single worker task.

Events that belong to an orchestrated sign-in only refresh the cached state;
the orchestrator owns that sequence's navigation. Passive events (another
tab signed in, a token was refreshed) are routed through the same decision
function, but never re-navigate to the page the user is already on.
"""

import asyncio
import logging
from typing import Callable, Optional

from shared.models import Session
from modules.navigation.decision import decide_destination
from modules.navigation.models import Route
from modules.navigation.router import IRouter, is_on, is_on_identity_gate
from modules.profiles.gate import ProfileGate
from .coordination import SignInCoordinator
from .interfaces import IIdentityBackend
from .models import AuthEvent, SessionChange
from .state import AuthStateStore

logger = logging.getLogger(__name__)

# Events that only keep the cached session fresh; they route the user only
# while they are parked on a gate page
SESSION_UPDATE_EVENTS = frozenset({
    AuthEvent.TOKEN_REFRESHED,
    AuthEvent.USER_UPDATED,
    AuthEvent.INITIAL_SESSION,
})


class EventArbitrator:
    """Single consumer of the session-change stream."""

    def __init__(
        self,
        backend: IIdentityBackend,
        gate: ProfileGate,
        router: IRouter,
        coordinator: SignInCoordinator,
        state: AuthStateStore,
    ) -> None:
        self._backend = backend
        self._gate = gate
        self._router = router
        self._coordinator = coordinator
        self._state = state
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        """Subscribe to the backend and start the worker. Needs a running loop."""
        if self.running:
            return
        self._queue = asyncio.Queue()
        self._worker = asyncio.create_task(self._consume())
        self._unsubscribe = self._backend.subscribe_session_changes(self.notify)
        logger.debug("Event arbitrator started")

    async def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
        self._queue = None
        logger.debug("Event arbitrator stopped")

    def notify(self, event: AuthEvent, session: Optional[Session]) -> None:
        """
        Backend callback: queue a notification.

        Whether a sign-in was in flight is captured now, not when the event
        is handled, so a notification raised by an orchestrated sign-in is
        attributed to it even if handled after it completed.
        """
        if self._queue is None:
            logger.debug(f"Dropping {event.value}: arbitrator not started")
            return
        self._queue.put_nowait(
            SessionChange(
                event=event,
                session=session,
                orchestrated=self._coordinator.is_active(),
            )
        )

    async def drain(self) -> None:
        """Wait until every queued notification has been handled."""
        if self._queue is not None:
            await self._queue.join()

    async def _consume(self) -> None:
        assert self._queue is not None
        queue = self._queue
        while True:
            change = await queue.get()
            try:
                await self.handle_event(change)
            except Exception:
                logger.exception(f"Failed to handle {change.event.value}")
            finally:
                queue.task_done()

    async def handle_event(self, change: SessionChange) -> Optional[Route]:
        """
        Apply one notification.

        Returns:
            The route navigated to, or None if no navigation happened
        """
        orchestrated = change.orchestrated or self._coordinator.is_active()
        event = change.event
        logger.debug(
            f"Handling {event.value} ({'orchestrated' if orchestrated else 'passive'})"
        )

        if event == AuthEvent.SIGNED_OUT:
            self._state.clear()
            if orchestrated:
                logger.info("Signed out during an active sign-in, navigation suppressed")
                return None
            return self._navigate_to(Route.LOGIN)

        self._state.set_session(change.session)

        if orchestrated:
            # Acknowledge only: keep the cached display state fresh
            await self._state.refresh_profile(self._gate)
            return None

        if event == AuthEvent.PASSWORD_RECOVERY:
            return self._navigate_to(Route.RESET_PASSWORD)

        if event in SESSION_UPDATE_EVENTS and not is_on_identity_gate(self._router):
            if event == AuthEvent.USER_UPDATED:
                await self._state.refresh_profile(self._gate)
            return None

        auth_state = await self._state.refresh_profile(self._gate)
        if self._coordinator.is_active():
            # An orchestrated sign-in started while the profile was loading
            return None
        return self._navigate_to(decide_destination(auth_state))

    def _navigate_to(self, destination: Route) -> Optional[Route]:
        if is_on(self._router, destination):
            return None
        self._router.navigate(destination.value)
        return destination
