"""
Authentication module exceptions.

Raised by the identity backend adapter. The orchestrator and the auth
service catch them and turn them into SignInResult / AuthResult values, so
none of these cross the public boundary.
"""

from shared.exceptions import AuthenticationError, ErrorKind, ExternalServiceError


class InvalidCredentialsError(AuthenticationError):
    """Raised when the email/password pair is rejected."""

    kind = ErrorKind.INVALID_CREDENTIALS

    def __init__(self, message: str = "Invalid login credentials"):
        super().__init__(message, code="INVALID_CREDENTIALS")


class EmailNotConfirmedError(AuthenticationError):
    """Raised when the password is right but the email is not verified yet."""

    kind = ErrorKind.EMAIL_NOT_CONFIRMED

    def __init__(self, message: str = "Email not confirmed"):
        super().__init__(message, code="EMAIL_NOT_CONFIRMED")


class UnknownAuthError(AuthenticationError):
    """Raised for identity backend failures that fit no other kind."""

    kind = ErrorKind.UNKNOWN

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_UNKNOWN")


class SessionQueryFailedError(ExternalServiceError):
    """Raised when the current session cannot be read from the backend."""

    kind = ErrorKind.SESSION_QUERY_FAILED

    def __init__(self, message: str = "Session query failed"):
        super().__init__(message, service="auth", code="SESSION_QUERY_FAILED")
