"""
Shared data models used across modules.

These models are shared infrastructure, not business logic.
Module-specific models should stay in their respective module directories.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class Session(BaseModel):
    """
    Client-side copy of the backend-issued session.

    Owned by the identity backend. The client never edits it; a new copy
    replaces the old one on sign-in, refresh or sign-out events.
    """

    user_id: str = Field(..., description="User ID (UUID from Supabase)")
    # Not validated as an address: phone and OAuth accounts have none
    email: Optional[str] = Field(None, description="User's email address")
    email_verified_at: Optional[datetime] = Field(
        None, description="When the email was confirmed; None while unverified"
    )
    issued_at: datetime = Field(..., description="Access token issue time")
    role_hint: Optional[str] = Field(
        None, description="Role chosen at sign-up, from user metadata"
    )

    model_config = {
        "frozen": True,  # Backend-owned, read-only copy
        "extra": "ignore",
    }

    @property
    def is_verified(self) -> bool:
        return self.email_verified_at is not None


class CompositeAuthState(BaseModel):
    """
    Derived authentication state used to pick a destination.

    Never stored: it is rebuilt from the cached Session and Profile each time
    it is read, so it cannot go stale after a concurrent mutation.
    """

    is_authenticated: bool = False
    is_verified: bool = False
    has_profile: bool = False
    is_profile_complete: bool = False
    # The profile read failed after a successful sign-in (degraded mode)
    profile_unavailable: bool = False

    model_config = {"frozen": True}
