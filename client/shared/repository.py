"""
Base repository for tables the client reads as the signed-in user.

Queries go through the anon-key async client, so row level security decides
what each user can see. A repository maps rows to one model type and never
makes routing or provisioning decisions.
"""

from typing import Any, Generic, Optional, TypeVar

from supabase import AsyncClient


T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base class for Supabase table repositories.

    Subclasses name their table in ``table_name`` and implement ``_map_row``;
    ``_first_row`` then turns a query response into a model or None.

    Example:
        class TutorNoteRepository(BaseRepository[TutorNote]):
            table_name = "tutor_notes"

            def _map_row(self, row: dict[str, Any]) -> TutorNote:
                return TutorNote(**row)

            async def latest_for(self, user_id: str) -> Optional[TutorNote]:
                result = await (
                    self._table().select("*").eq("user_id", user_id).limit(1).execute()
                )
                return self._first_row(result)
    """

    table_name: str = ""

    def __init__(self, db: AsyncClient) -> None:
        self._db = db

    def _table(self) -> Any:
        """Query builder for this repository's table."""
        if not self.table_name:
            raise NotImplementedError(f"{type(self).__name__} does not name a table")
        return self._db.table(self.table_name)

    def _map_row(self, row: dict[str, Any]) -> T:
        raise NotImplementedError

    def _first_row(self, result: Any) -> Optional[T]:
        """Map the first row of a response; None when RLS or a filter left nothing."""
        if not result.data:
            return None
        return self._map_row(result.data[0])
