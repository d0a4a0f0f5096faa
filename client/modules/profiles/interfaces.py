"""
Profiles module interface.

The Profile Gate depends on IProfileStore, not on Supabase. This keeps the
provisioning logic testable against an in-memory store with the same
unique-constraint behaviour as the real table.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from .models import Profile


@runtime_checkable
class IProfileStore(Protocol):
    """
    Interface for the profiles table.

    Implementations must enforce one profile per user_id.
    """

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        """
        Get the profile for a user.

        Returns:
            Profile if found, None otherwise (not-found is not an error)

        Raises:
            NetworkUnavailableError: If the store cannot be reached
            ProfileStoreError: For any other store failure
        """
        ...

    async def insert_profile(self, fields: dict[str, Any]) -> Profile:
        """
        Insert a new profile row.

        Raises:
            ProfileProvisionConflictError: If a row for fields["user_id"] exists
        """
        ...

    async def update_profile(self, user_id: str, fields: dict[str, Any]) -> Optional[Profile]:
        """
        Update a user's profile.

        Returns:
            The updated Profile, or None if the user has no profile row

        Raises:
            ProfileUpdateFailedError: If the store rejects the update
        """
        ...
