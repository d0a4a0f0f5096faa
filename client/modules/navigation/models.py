"""
Navigation module data models.
"""

from enum import Enum


class Route(str, Enum):
    """Destinations the auth state machine can send a user to."""

    LOGIN = "login"
    VERIFY_EMAIL = "verify-email"
    SETUP_PROFILE = "setup-profile"
    DASHBOARD = "dashboard"
    RESET_PASSWORD = "reset-password"

    @property
    def is_identity_gate(self) -> bool:
        """Whether this route exists only to hold a user until they are ready."""
        return self in IDENTITY_GATE_ROUTES


# Routes a user is parked on while not fully signed in
IDENTITY_GATE_ROUTES = frozenset({
    Route.LOGIN,
    Route.VERIFY_EMAIL,
    Route.SETUP_PROFILE,
})
