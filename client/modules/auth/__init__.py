"""
Authentication module.

Decides where a user ends up after every identity-related event, exactly
once per transition, across explicit sign-ins and passive session changes.

Public API:
- AuthService: Facade used by screens
- IIdentityBackend / SupabaseIdentityBackend: Identity backend contract and adapter
- SessionResolver, SignInOrchestrator, EventArbitrator, RecoveryController: State machine parts
- SignInCoordinator / SignInToken: In-flight sign-in tracking
- Result models: AuthResult, SignInResult, AuthFailure
- Auth exceptions: InvalidCredentialsError, EmailNotConfirmedError, etc.
"""

from .interfaces import IIdentityBackend, SessionChangeHandler
from .models import (
    AuthEvent,
    AuthFailure,
    AuthResult,
    SessionChange,
    SessionResolution,
    SignInResult,
    SignInStatus,
    USER_MESSAGES,
)
from .exceptions import (
    InvalidCredentialsError,
    EmailNotConfirmedError,
    UnknownAuthError,
    SessionQueryFailedError,
)
from .coordination import (
    AUTH_DEBUG_KEY,
    DIRECT_SIGNIN_KEY,
    SignInCoordinator,
    SignInToken,
)
from .state import AuthStateStore
from .resolver import SessionResolver
from .orchestrator import SignInOrchestrator, normalize_email
from .arbitrator import EventArbitrator
from .recovery import RecoveryController
from .backend import SupabaseIdentityBackend
from .service import AuthService

__all__ = [
    # Interfaces
    "IIdentityBackend",
    "SessionChangeHandler",
    # Models
    "AuthEvent",
    "AuthFailure",
    "AuthResult",
    "SessionChange",
    "SessionResolution",
    "SignInResult",
    "SignInStatus",
    "USER_MESSAGES",
    # Exceptions
    "InvalidCredentialsError",
    "EmailNotConfirmedError",
    "UnknownAuthError",
    "SessionQueryFailedError",
    # Components
    "AUTH_DEBUG_KEY",
    "DIRECT_SIGNIN_KEY",
    "SignInCoordinator",
    "SignInToken",
    "AuthStateStore",
    "SessionResolver",
    "SignInOrchestrator",
    "normalize_email",
    "EventArbitrator",
    "RecoveryController",
    "SupabaseIdentityBackend",
    "AuthService",
]
