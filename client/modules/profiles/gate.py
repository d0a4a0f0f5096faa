"""
Profile Gate.

Given a verified session, fetch the user's profile, create it if it does not
exist yet, and report whether it is complete. Every caller (the sign-in
orchestrator, the session-event arbitrator, screens refreshing their data)
goes through this one gate, so provisioning happens once per user.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional, Union

from shared.exceptions import StudyCoreError
from shared.observability import mask_email
from shared.registry import InFlightRegistry
from .interfaces import IProfileStore
from .models import Profile, ProfileResolution, ProfileUpdate, Role
from .exceptions import (
    ProfileNotFoundError,
    ProfileProvisionConflictError,
    ProfileUpdateFailedError,
)

logger = logging.getLogger(__name__)


class ProfileGate:
    """
    Fetch-or-provision access to profiles.

    Concurrent resolutions for the same user attach to one in-flight lookup.
    A second client (another tab, another device) racing us to the insert is
    caught by the store's unique constraint and resolved by re-reading.
    """

    def __init__(self, store: IProfileStore) -> None:
        self._store = store
        self._pending: InFlightRegistry[ProfileResolution] = InFlightRegistry("profile-gate")

    async def resolve_profile(
        self,
        user_id: str,
        email: Optional[str] = None,
        role_hint: Optional[str] = None,
    ) -> ProfileResolution:
        """
        Resolve the profile for a verified user, provisioning it if absent.

        Args:
            user_id: Auth user ID
            email: Email to copy into a newly provisioned profile
            role_hint: Role chosen at sign-up (parsed with Role.from_hint)

        Returns:
            ProfileResolution with has_profile and is_complete

        Raises:
            NetworkUnavailableError: If the store cannot be reached
            ProfileStoreError: For other store failures
        """
        return await self._pending.run(
            user_id, lambda: self._fetch_or_provision(user_id, email, role_hint)
        )

    async def _fetch_or_provision(
        self,
        user_id: str,
        email: Optional[str],
        role_hint: Optional[str],
    ) -> ProfileResolution:
        profile = await self._store.get_profile(user_id)
        if profile is not None:
            return ProfileResolution.from_profile(profile)

        role = Role.from_hint(role_hint)
        logger.info(f"Provisioning {role.value} profile for {mask_email(email)}")
        try:
            profile = await self._store.insert_profile(
                {
                    "user_id": user_id,
                    "email": email,
                    "role": role.value,
                    "full_name": None,
                }
            )
        except ProfileProvisionConflictError:
            logger.info(f"Profile for user {user_id} was provisioned concurrently, re-reading")
            profile = await self._store.get_profile(user_id)
            if profile is None:
                raise
            return ProfileResolution.from_profile(profile)

        return ProfileResolution.from_profile(profile, provisioned=True)

    async def update_profile(
        self,
        user_id: str,
        fields: Union[ProfileUpdate, dict[str, Any]],
    ) -> Profile:
        """
        Update a user's profile and re-stamp updated_at.

        Raises:
            ProfileNotFoundError: If the user has no profile
            ProfileUpdateFailedError: If the store rejects the update
        """
        if isinstance(fields, ProfileUpdate):
            changes = fields.to_fields()
        else:
            changes = ProfileUpdate(**fields).to_fields()
        changes["updated_at"] = datetime.now(timezone.utc).isoformat()

        try:
            profile = await self._store.update_profile(user_id, changes)
        except (ProfileUpdateFailedError, ProfileNotFoundError):
            raise
        except StudyCoreError as e:
            raise ProfileUpdateFailedError(user_id, e.message) from e

        if profile is None:
            raise ProfileNotFoundError(user_id)
        return profile
