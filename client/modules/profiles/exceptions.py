"""
Profiles module exceptions.

ProfileNotFoundError and ProfileProvisionConflictError are expected during
provisioning and are handled inside the Profile Gate; the others reach
callers, which turn them into result objects.
"""

from shared.exceptions import (
    ErrorKind,
    ExternalServiceError,
    NotFoundError,
    StudyCoreError,
)


class ProfileError(StudyCoreError):
    """Base exception for profile-related errors."""

    pass


class ProfileNotFoundError(NotFoundError):
    """Raised when no profile row exists for a user."""

    kind = ErrorKind.PROFILE_NOT_FOUND

    def __init__(self, user_id: str):
        super().__init__(
            f"Profile not found for user: {user_id}",
            code="PROFILE_NOT_FOUND",
            details={"user_id": user_id},
        )


class ProfileProvisionConflictError(ProfileError):
    """Raised when inserting a profile hits the unique user_id constraint."""

    kind = ErrorKind.PROFILE_PROVISION_CONFLICT

    def __init__(self, user_id: str):
        super().__init__(
            f"Profile already exists for user: {user_id}",
            code="PROFILE_PROVISION_CONFLICT",
            details={"user_id": user_id},
        )


class ProfileUpdateFailedError(ProfileError):
    """Raised when a profile update is rejected by the store."""

    kind = ErrorKind.PROFILE_UPDATE_FAILED

    def __init__(self, user_id: str, reason: str):
        super().__init__(
            f"Failed to update profile for user {user_id}: {reason}",
            code="PROFILE_UPDATE_FAILED",
            details={"user_id": user_id, "reason": reason},
        )


class ProfileStoreError(ExternalServiceError):
    """Raised when the profile store returns an unexpected error."""

    def __init__(self, message: str, operation: str):
        super().__init__(
            message,
            service="profiles",
            code="PROFILE_STORE_ERROR",
            details={"operation": operation},
        )
