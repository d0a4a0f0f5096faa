"""
Profiles module.

Owns the application-level profile that extends an auth session: lookup,
lazy provisioning on first verified sign-in, completeness, and updates.

Public API:
- ProfileGate: Fetch-or-provision access used by the auth layer
- IProfileStore: Interface for profile persistence
- SupabaseProfileRepository / InMemoryProfileStore: Store implementations
- Profile, ProfileResolution, ProfileUpdate, Role, ApprovalState: Models
- Profile exceptions
"""

from .interfaces import IProfileStore
from .models import (
    ApprovalState,
    Profile,
    ProfileResolution,
    ProfileUpdate,
    Role,
    SELF_SERVICE_ROLES,
)
from .exceptions import (
    ProfileError,
    ProfileNotFoundError,
    ProfileProvisionConflictError,
    ProfileUpdateFailedError,
    ProfileStoreError,
)
from .repository import InMemoryProfileStore, SupabaseProfileRepository
from .gate import ProfileGate

__all__ = [
    # Interface
    "IProfileStore",
    # Gate and stores
    "ProfileGate",
    "SupabaseProfileRepository",
    "InMemoryProfileStore",
    # Models
    "ApprovalState",
    "Profile",
    "ProfileResolution",
    "ProfileUpdate",
    "Role",
    "SELF_SERVICE_ROLES",
    # Exceptions
    "ProfileError",
    "ProfileNotFoundError",
    "ProfileProvisionConflictError",
    "ProfileUpdateFailedError",
    "ProfileStoreError",
]
