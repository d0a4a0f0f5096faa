"""
Profiles module data models.

A profile is the application-level record extending an auth session with a
role and display data. It is created lazily on first verified sign-in.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field


class Role(str, Enum):
    """Platform roles. Closed set: parse once, never compare raw strings."""

    STUDENT = "student"
    TUTOR = "tutor"
    ADMIN = "admin"

    @classmethod
    def from_hint(cls, hint: Optional[str]) -> "Role":
        """
        Parse the role a user picked at sign-up.

        Only self-service roles are honoured; anything else (including
        "admin", which users could put in their own metadata) falls back
        to STUDENT.
        """
        if hint is None:
            return cls.STUDENT
        try:
            role = cls(hint.strip().lower())
        except ValueError:
            return cls.STUDENT
        return role if role in SELF_SERVICE_ROLES else cls.STUDENT


SELF_SERVICE_ROLES = frozenset({Role.STUDENT, Role.TUTOR})


class ApprovalState(str, Enum):
    """Administrator approval of an account."""

    PENDING = "pending"
    APPROVED = "approved"


class Profile(BaseModel):
    """A row of the profiles table."""

    id: Optional[str] = Field(None, description="Row ID")
    user_id: str = Field(..., description="Owning auth user ID (1:1)")
    email: Optional[str] = Field(None, description="Email copied from the session")
    role: Role = Field(default=Role.STUDENT, description="Platform role")
    full_name: Optional[str] = Field(None, description="Display name; None until set up")
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    approval_state: ApprovalState = Field(default=ApprovalState.PENDING)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"frozen": True}

    @property
    def is_complete(self) -> bool:
        """A profile without a name must go through profile setup."""
        return self.full_name is not None and self.full_name != ""

    @property
    def awaiting_approval(self) -> bool:
        """Non-admin accounts need administrator approval to use the platform."""
        return self.role != Role.ADMIN and self.approval_state != ApprovalState.APPROVED


class ProfileResolution(BaseModel):
    """Outcome of a Profile Gate lookup."""

    has_profile: bool
    is_complete: bool
    profile: Optional[Profile] = None
    provisioned: bool = Field(
        default=False, description="The profile was created by this lookup"
    )

    model_config = {"frozen": True}

    @classmethod
    def from_profile(cls, profile: Profile, provisioned: bool = False) -> "ProfileResolution":
        return cls(
            has_profile=True,
            is_complete=profile.is_complete,
            profile=profile,
            provisioned=provisioned,
        )


class ProfileUpdate(BaseModel):
    """User-editable profile fields. Only fields that were set are written."""

    full_name: Optional[str] = Field(None, max_length=200)
    bio: Optional[str] = Field(None, max_length=2000)
    avatar_url: Optional[str] = None

    model_config = {"extra": "forbid"}

    def to_fields(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)
