"""
Base exception classes for the StudyCore client.

Each module should define its own exceptions that inherit from these bases.
This keeps error classification consistent between the auth and profile
modules, which both surface failures through result objects.
"""

from enum import Enum
from typing import Optional, Any


class ErrorKind(str, Enum):
    """Failure taxonomy shared by every identity-related operation."""

    INVALID_CREDENTIALS = "invalid_credentials"
    EMAIL_NOT_CONFIRMED = "email_not_confirmed"
    SESSION_QUERY_FAILED = "session_query_failed"
    PROFILE_NOT_FOUND = "profile_not_found"  # Expected; triggers provisioning
    PROFILE_PROVISION_CONFLICT = "profile_provision_conflict"  # Resolved by re-read
    PROFILE_UPDATE_FAILED = "profile_update_failed"
    NETWORK_UNAVAILABLE = "network_unavailable"
    UNKNOWN = "unknown"


class StudyCoreError(Exception):
    """
    Base exception for all StudyCore errors.

    All custom exceptions should inherit from this class.
    """

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for logging or display layers."""
        return {
            "error": self.code,
            "kind": self.kind.value,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(StudyCoreError):
    """Resource not found."""

    pass


class ValidationError(StudyCoreError):
    """Input validation failed."""

    pass


class AuthenticationError(StudyCoreError):
    """Authentication failed (invalid, missing or unconfirmed credentials)."""

    pass


class ExternalServiceError(StudyCoreError):
    """Error communicating with an external service."""

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service


class NetworkUnavailableError(ExternalServiceError):
    """The backend could not be reached (transport failure or deadline)."""

    kind = ErrorKind.NETWORK_UNAVAILABLE

    def __init__(self, service: str, message: str = "Network unavailable"):
        super().__init__(message, service=service, code="NETWORK_UNAVAILABLE")
