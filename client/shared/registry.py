"""
Pending-operation registry for async de-duplication.

Concurrent callers asking for the same thing (the same profile, the same
sign-in submission, the same cached screen data) attach to a single
in-flight task instead of starting their own or polling for a marker.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Hashable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InFlightRegistry(Generic[T]):
    """
    Registry of in-flight operations keyed by request identity.

    The first caller for a key starts the operation as a task; callers that
    arrive while it is running await the same task. The entry is dropped as
    soon as the task finishes, successfully or not, so the next call after
    completion starts fresh.

    Waiters are shielded: cancelling one waiter does not cancel the shared
    operation for the others. Use ``cancel(key)`` to abandon the operation
    itself.
    """

    def __init__(self, name: str = "registry") -> None:
        self._name = name
        self._pending: dict[Hashable, asyncio.Task] = {}

    def is_pending(self, key: Hashable) -> bool:
        return key in self._pending

    def get(self, key: Hashable) -> Optional[asyncio.Task]:
        return self._pending.get(key)

    def __len__(self) -> int:
        return len(self._pending)

    async def run(self, key: Hashable, factory: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``factory()`` for ``key`` unless an identical operation is in flight.

        Args:
            key: Request identity
            factory: Zero-argument callable returning the awaitable to run

        Returns:
            The operation's result (shared by all attached callers)
        """
        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._pending[key] = task
            task.add_done_callback(lambda t, k=key: self._discard(k, t))
        else:
            logger.debug(f"{self._name}: attaching to in-flight operation {key!r}")
        return await asyncio.shield(task)

    def _discard(self, key: Hashable, task: asyncio.Task) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]
        # Retrieve the exception so a failure nobody awaited is not reported
        # as "never retrieved" by the loop.
        if not task.cancelled():
            task.exception()

    def cancel(self, key: Hashable) -> bool:
        """Cancel the in-flight operation for ``key``. Returns whether one existed."""
        task = self._pending.pop(key, None)
        if task is None:
            return False
        task.cancel()
        return True

    def cancel_all(self) -> int:
        """Cancel every in-flight operation. Returns how many were cancelled."""
        tasks = list(self._pending.values())
        self._pending.clear()
        for task in tasks:
            task.cancel()
        return len(tasks)
