"""
Authentication module interface.

The auth layer depends on IIdentityBackend, not on the Supabase client.
This enables testing with an in-memory fake that emits session-change
events exactly when the real backend would.
"""

from typing import Callable, Optional, Protocol, runtime_checkable

from shared.models import Session
from .models import AuthEvent

SessionChangeHandler = Callable[[AuthEvent, Optional[Session]], None]


@runtime_checkable
class IIdentityBackend(Protocol):
    """
    Interface for the identity backend.

    Errors are raised as StudyCoreError subclasses carrying an ErrorKind;
    transport failures raise NetworkUnavailableError.
    """

    async def get_session(self) -> Optional[Session]:
        """
        Get the current session.

        Returns:
            Session if signed in, None otherwise

        Raises:
            SessionQueryFailedError: If the session cannot be read
        """
        ...

    async def sign_in(self, email: str, password: str) -> Optional[Session]:
        """
        Submit credentials.

        Returns:
            The new session, or None if the backend returned no session

        Raises:
            InvalidCredentialsError: Wrong email or password
            EmailNotConfirmedError: Correct password, unverified email
            UnknownAuthError: Any other rejection
        """
        ...

    async def sign_up(
        self,
        email: str,
        password: str,
        role_hint: Optional[str] = None,
    ) -> Optional[Session]:
        """
        Register a new account.

        Returns:
            A session if the account is usable immediately, None when the
            email must be verified first
        """
        ...

    async def sign_out(self, scope: str = "local") -> None:
        """End the session. ``scope="global"`` revokes every device's session."""
        ...

    async def reset_password_request(self, email: str) -> None:
        """Send a password reset email."""
        ...

    async def resend_verification(self, email: str) -> None:
        """Resend the sign-up verification email."""
        ...

    def subscribe_session_changes(self, handler: SessionChangeHandler) -> Callable[[], None]:
        """
        Register a session-change handler.

        Returns:
            A function that removes the subscription
        """
        ...
