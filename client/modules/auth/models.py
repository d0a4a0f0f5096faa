"""
Authentication module data models.

These models define the results the auth layer hands back to screens.
Every side-effecting operation returns one of them instead of raising.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from shared.exceptions import ErrorKind
from shared.models import Session
from modules.navigation.models import Route
from modules.profiles.models import Profile


class AuthEvent(str, Enum):
    """Session-change notifications emitted by the identity backend."""

    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    INITIAL_SESSION = "INITIAL_SESSION"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"


class SessionChange(BaseModel):
    """One queued session-change notification."""

    event: AuthEvent
    session: Optional[Session] = None
    orchestrated: bool = Field(
        default=False,
        description="A sign-in sequence was in flight when the event arrived",
    )

    model_config = {"frozen": True}


class SessionResolution(BaseModel):
    """Outcome of a Session Resolver query."""

    is_authenticated: bool = False
    is_verified: bool = False
    session: Optional[Session] = None
    error: Optional[ErrorKind] = None

    model_config = {"frozen": True}


# Shown to users. Backend error text is logged, never displayed.
USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.INVALID_CREDENTIALS: "Invalid email or password.",
    ErrorKind.EMAIL_NOT_CONFIRMED: "Please verify your email address before signing in.",
    ErrorKind.SESSION_QUERY_FAILED: "We could not check your session. Please try again.",
    ErrorKind.PROFILE_NOT_FOUND: "Your profile could not be found.",
    ErrorKind.PROFILE_PROVISION_CONFLICT: "Your profile is being set up. Please try again.",
    ErrorKind.PROFILE_UPDATE_FAILED: "Your profile could not be saved. Please try again.",
    ErrorKind.NETWORK_UNAVAILABLE: "Cannot reach the server. Check your internet connection.",
    ErrorKind.UNKNOWN: "An unexpected error occurred. Please try again later.",
}


class AuthFailure(BaseModel):
    """User-visible failure: a kind plus its fixed generic message."""

    kind: ErrorKind
    message: str

    model_config = {"frozen": True}

    @classmethod
    def from_kind(cls, kind: ErrorKind) -> "AuthFailure":
        return cls(kind=kind, message=USER_MESSAGES[kind])


class AuthResult(BaseModel):
    """Result of an auth operation other than sign-in."""

    success: bool
    error: Optional[AuthFailure] = None
    destination: Optional[Route] = Field(
        None, description="Where the operation sent the user, if anywhere"
    )
    profile: Optional[Profile] = None

    model_config = {"frozen": True}

    @classmethod
    def ok(
        cls,
        destination: Optional[Route] = None,
        profile: Optional[Profile] = None,
    ) -> "AuthResult":
        return cls(success=True, destination=destination, profile=profile)

    @classmethod
    def fail(cls, kind: ErrorKind, destination: Optional[Route] = None) -> "AuthResult":
        return cls(success=False, error=AuthFailure.from_kind(kind), destination=destination)


class SignInStatus(str, Enum):
    """Terminal states of one sign-in invocation."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REJECTED = "rejected"  # Another submission with different credentials is in flight
    CANCELLED = "cancelled"  # Abandoned by an auth reset


class SignInResult(BaseModel):
    """Outcome of a credential submission."""

    status: SignInStatus
    error: Optional[AuthFailure] = None
    destination: Optional[Route] = Field(
        None, description="Route navigated to by this sign-in, if any"
    )
    session: Optional[Session] = None
    profile_unavailable: bool = False

    model_config = {"frozen": True}

    @property
    def success(self) -> bool:
        return self.status == SignInStatus.SUCCEEDED

    @classmethod
    def failed(cls, kind: ErrorKind, destination: Optional[Route] = None) -> "SignInResult":
        return cls(
            status=SignInStatus.FAILED,
            error=AuthFailure.from_kind(kind),
            destination=destination,
        )
