"""
Profile repositories.

- SupabaseProfileRepository: the ``profiles`` table, queried as the signed-in
  user (RLS applies)
- InMemoryProfileStore: same contract in memory, for development and tests
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

import httpx
from supabase import PostgrestAPIError

from shared.exceptions import NetworkUnavailableError
from shared.repository import BaseRepository
from .models import ApprovalState, Profile, Role
from .exceptions import (
    ProfileProvisionConflictError,
    ProfileStoreError,
    ProfileUpdateFailedError,
)

logger = logging.getLogger(__name__)

# Postgres unique_violation
UNIQUE_VIOLATION = "23505"

PROFILES_TABLE = "profiles"


def map_row_to_profile(row: dict[str, Any]) -> Profile:
    """Map a profiles row to a Profile model."""
    return Profile(
        id=str(row["id"]) if row.get("id") is not None else None,
        user_id=str(row["user_id"]),
        email=row.get("email"),
        role=Role(row.get("role") or Role.STUDENT.value),
        full_name=row.get("full_name"),
        bio=row.get("bio"),
        avatar_url=row.get("avatar_url"),
        approval_state=(
            ApprovalState.APPROVED if row.get("approved") else ApprovalState.PENDING
        ),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class SupabaseProfileRepository(BaseRepository[Profile]):
    """
    Repository for the profiles table.

    Note: This repository does NOT decide anything about provisioning or
    completeness. The Profile Gate owns those rules.
    """

    table_name = PROFILES_TABLE

    def _map_row(self, row: dict[str, Any]) -> Profile:
        return map_row_to_profile(row)

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        """Get a profile by owning user ID."""
        try:
            result = await (
                self._table()
                .select("*")
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
        except httpx.TransportError as e:
            raise NetworkUnavailableError("profiles", str(e)) from e
        except PostgrestAPIError as e:
            raise ProfileStoreError(f"Profile lookup failed: {e.message}", "select") from e

        return self._first_row(result)

    async def insert_profile(self, fields: dict[str, Any]) -> Profile:
        """Insert a profile row; a duplicate user_id raises a conflict."""
        try:
            result = await self._table().insert(fields).execute()
        except httpx.TransportError as e:
            raise NetworkUnavailableError("profiles", str(e)) from e
        except PostgrestAPIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise ProfileProvisionConflictError(fields["user_id"]) from e
            raise ProfileStoreError(f"Profile insert failed: {e.message}", "insert") from e

        profile = self._first_row(result)
        if profile is None:
            # RLS can hide the inserted row from the returning select
            raise ProfileStoreError("Profile insert returned no row", "insert")
        return profile

    async def update_profile(self, user_id: str, fields: dict[str, Any]) -> Optional[Profile]:
        """Update a profile by owning user ID."""
        try:
            result = await (
                self._table()
                .update(fields)
                .eq("user_id", user_id)
                .execute()
            )
        except httpx.TransportError as e:
            raise NetworkUnavailableError("profiles", str(e)) from e
        except PostgrestAPIError as e:
            raise ProfileUpdateFailedError(user_id, e.message or "rejected by store") from e

        return self._first_row(result)


class InMemoryProfileStore:
    """
    Profile store held in memory.

    Enforces the unique user_id constraint like the real table and yields to
    the event loop on every call, so concurrent callers interleave the way
    they do against the network.
    """

    def __init__(self, rows: Optional[list[dict[str, Any]]] = None) -> None:
        self._rows: dict[str, dict[str, Any]] = {}
        self.insert_calls = 0
        self.get_calls = 0
        for row in rows or []:
            self._rows[row["user_id"]] = dict(row)

    def __len__(self) -> int:
        return len(self._rows)

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        self.get_calls += 1
        await asyncio.sleep(0)
        row = self._rows.get(user_id)
        return map_row_to_profile(row) if row else None

    async def insert_profile(self, fields: dict[str, Any]) -> Profile:
        self.insert_calls += 1
        await asyncio.sleep(0)
        user_id = fields["user_id"]
        if user_id in self._rows:
            raise ProfileProvisionConflictError(user_id)
        now = datetime.now(timezone.utc)
        row = {
            "id": str(uuid.uuid4()),
            "approved": False,
            "created_at": now,
            "updated_at": now,
            **fields,
        }
        self._rows[user_id] = row
        return map_row_to_profile(row)

    async def update_profile(self, user_id: str, fields: dict[str, Any]) -> Optional[Profile]:
        await asyncio.sleep(0)
        row = self._rows.get(user_id)
        if row is None:
            return None
        row.update(fields)
        return map_row_to_profile(row)
