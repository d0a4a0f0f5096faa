"""
Shared infrastructure for the StudyCore client.

This package contains cross-cutting concerns that are used by multiple modules:
- config: Centralized settings management
- database: Supabase client factory
- exceptions: Base exception classes
- storage: Persisted local key/value store
- registry / cache: In-flight de-duplication and the display cache

Note: Business logic should NOT go here. This is for infrastructure only.
"""

from .config import Settings, get_settings
from .database import get_supabase_client, reset_client_cache
from .exceptions import (
    ErrorKind,
    StudyCoreError,
    NotFoundError,
    ValidationError,
    AuthenticationError,
    ExternalServiceError,
    NetworkUnavailableError,
)
from .models import Session, CompositeAuthState
from .storage import LocalStore
from .registry import InFlightRegistry
from .cache import DisplayCache

__all__ = [
    "Settings",
    "get_settings",
    "get_supabase_client",
    "reset_client_cache",
    "ErrorKind",
    "StudyCoreError",
    "NotFoundError",
    "ValidationError",
    "AuthenticationError",
    "ExternalServiceError",
    "NetworkUnavailableError",
    "Session",
    "CompositeAuthState",
    "LocalStore",
    "InFlightRegistry",
    "DisplayCache",
]
