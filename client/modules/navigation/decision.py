"""
Navigation decision function.

The routing table below is the only place that maps authentication state to
a destination. The sign-in orchestrator, the event arbitrator and the auth
service all call ``decide_destination``; none of them picks a route itself.
"""

from dataclasses import dataclass
from typing import Optional

from shared.models import CompositeAuthState

from .models import Route


@dataclass(frozen=True)
class RouteRule:
    """
    One row of the routing table.

    A field set to None is a wildcard; any other value must equal the
    corresponding CompositeAuthState field for the row to match.
    """

    destination: Route
    is_authenticated: Optional[bool] = None
    is_verified: Optional[bool] = None
    profile_unavailable: Optional[bool] = None
    has_profile: Optional[bool] = None
    is_profile_complete: Optional[bool] = None

    def matches(self, state: CompositeAuthState) -> bool:
        for field_name in (
            "is_authenticated",
            "is_verified",
            "profile_unavailable",
            "has_profile",
            "is_profile_complete",
        ):
            expected = getattr(self, field_name)
            if expected is not None and getattr(state, field_name) != expected:
                return False
        return True


# Evaluated top to bottom; the first matching row wins.
ROUTING_TABLE: tuple[RouteRule, ...] = (
    RouteRule(Route.LOGIN, is_authenticated=False),
    RouteRule(Route.VERIFY_EMAIL, is_authenticated=True, is_verified=False),
    # Profile read failed after sign-in: let the user in, flagged as degraded
    RouteRule(
        Route.DASHBOARD,
        is_authenticated=True,
        is_verified=True,
        profile_unavailable=True,
    ),
    RouteRule(
        Route.SETUP_PROFILE,
        is_authenticated=True,
        is_verified=True,
        has_profile=False,
    ),
    RouteRule(
        Route.SETUP_PROFILE,
        is_authenticated=True,
        is_verified=True,
        has_profile=True,
        is_profile_complete=False,
    ),
    RouteRule(
        Route.DASHBOARD,
        is_authenticated=True,
        is_verified=True,
        has_profile=True,
        is_profile_complete=True,
    ),
)


def decide_destination(state: CompositeAuthState) -> Route:
    """
    Map a composite auth state to exactly one destination.

    Args:
        state: Derived authentication state

    Returns:
        The route the user belongs on
    """
    for rule in ROUTING_TABLE:
        if rule.matches(state):
            return rule.destination
    # Unreachable: the table covers every combination of the fields.
    raise RuntimeError(f"No routing rule matches {state!r}")
