"""
Router interface and the default in-process router.

The auth layer only needs two things from routing: where the user is now,
and a way to send them somewhere else. Screens subscribe to route changes
through ``add_listener``.
"""

import logging
from typing import Callable, Optional, Protocol, runtime_checkable

from .models import Route

logger = logging.getLogger(__name__)


@runtime_checkable
class IRouter(Protocol):
    """
    Interface for the application router.

    Destinations are plain strings; the auth layer only ever passes
    Route values.
    """

    @property
    def current_route(self) -> Optional[str]:
        """The route currently displayed, or None before the first navigation."""
        ...

    def navigate(self, destination: str) -> None:
        """Display ``destination``."""
        ...


RouteListener = Callable[[str], None]


class HistoryRouter:
    """
    In-process router that records every navigation.

    Used by the terminal client and by tests, which assert on ``history``
    to count navigations.
    """

    def __init__(self, initial_route: Optional[str] = None) -> None:
        self._current = initial_route
        self.history: list[str] = []
        self._listeners: list[RouteListener] = []

    @property
    def current_route(self) -> Optional[str]:
        return self._current

    def navigate(self, destination: str) -> None:
        value = destination.value if isinstance(destination, Route) else destination
        logger.info(f"Navigating {self._current or '<start>'} -> {value}")
        self._current = value
        self.history.append(value)
        for listener in list(self._listeners):
            listener(value)

    def add_listener(self, listener: RouteListener) -> Callable[[], None]:
        """Register a route-change callback; returns a function that removes it."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove


def is_on(router: IRouter, destination: Route) -> bool:
    """Whether the router is already showing ``destination``."""
    return router.current_route == destination.value


def is_on_identity_gate(router: IRouter) -> bool:
    """Whether the user is parked on a gate route (or has no route yet)."""
    current = router.current_route
    if current is None:
        return True
    try:
        return Route(current).is_identity_gate
    except ValueError:
        return False
