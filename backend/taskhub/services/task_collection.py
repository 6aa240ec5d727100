"""In-memory task collection for a signed-in session.

The list is replaced wholesale only by `refresh`; every mutation waits for
the repository call to succeed and then splices a single element by id.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from taskhub.core.logging import get_logger
from taskhub.services.task_repository import TaskPersistenceError

if TYPE_CHECKING:
    from collections.abc import Callable

    from taskhub.schemas.tasks import TaskCreate, TaskRead, TaskUpdate
    from taskhub.services.task_repository import TaskRepository

logger = get_logger(__name__)

DEFAULT_SESSION_IDLE_SECONDS = 3600.0


class NoActiveOwnerError(Exception):
    """Raised when a task mutation is attempted without a signed-in owner."""

    def __init__(self, message: str = "User not authenticated") -> None:
        super().__init__(message)
        self.message = message


class TaskCollection:
    """Authoritative task list for one owner, kept in sync after each mutation."""

    def __init__(self, repository: TaskRepository, *, owner_id: str | None = None) -> None:
        self._repository = repository
        self._owner_id = owner_id
        self._tasks: list[TaskRead] = []
        self.loading = False
        self.error: str | None = None

    @property
    def owner_id(self) -> str | None:
        return self._owner_id

    @property
    def tasks(self) -> list[TaskRead]:
        """Snapshot of the current list, newest insertions first."""
        return list(self._tasks)

    def get(self, task_id: str) -> TaskRead | None:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    async def set_owner(self, owner_id: str | None) -> None:
        """Switch the active owner; sign-in reloads, sign-out empties."""
        if owner_id == self._owner_id:
            return
        self._owner_id = owner_id
        self._tasks = []
        self.error = None
        if owner_id is not None:
            await self.refresh()

    async def refresh(self) -> None:
        """Reload the full list; on failure keep the previous list and record the error."""
        if self._owner_id is None:
            return
        self.loading = True
        try:
            self.error = None
            self._tasks = await self._repository.list(self._owner_id)
        except TaskPersistenceError as exc:
            self.error = exc.message
            logger.warning(
                "tasks.collection.refresh.failed owner_id=%s error=%s",
                self._owner_id,
                exc.message,
            )
        finally:
            self.loading = False

    async def create(self, payload: TaskCreate) -> TaskRead:
        if self._owner_id is None:
            raise NoActiveOwnerError
        try:
            self.error = None
            task = await self._repository.create(payload, self._owner_id)
        except TaskPersistenceError as exc:
            self.error = exc.message
            raise
        self._tasks.insert(0, task)
        return task

    async def update(self, task_id: str, payload: TaskUpdate) -> TaskRead:
        try:
            self.error = None
            updated = await self._repository.update(task_id, payload)
        except TaskPersistenceError as exc:
            self.error = exc.message
            raise
        self._tasks = [updated if task.id == task_id else task for task in self._tasks]
        return updated

    async def delete(self, task_id: str) -> None:
        try:
            self.error = None
            await self._repository.delete(task_id)
        except TaskPersistenceError as exc:
            self.error = exc.message
            raise
        self._tasks = [task for task in self._tasks if task.id != task_id]


class TaskSessionRegistry:
    """One `TaskCollection` per signed-in user, built once at application start.

    A collection holds its owner's full task list in memory until sign-out.
    Collections not opened for `idle_seconds` are evicted on the next `open`
    and reload from the store when their owner returns.
    """

    def __init__(
        self,
        repository: TaskRepository,
        *,
        idle_seconds: float = DEFAULT_SESSION_IDLE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._repository = repository
        self._idle_seconds = idle_seconds
        self._clock = clock
        self._collections: dict[str, TaskCollection] = {}
        self._last_used: dict[str, float] = {}

    def __contains__(self, owner_id: object) -> bool:
        return owner_id in self._collections

    def __len__(self) -> int:
        return len(self._collections)

    def _evict_idle(self, now: float) -> None:
        cutoff = now - self._idle_seconds
        for owner_id, last_used in list(self._last_used.items()):
            if last_used < cutoff:
                self._collections.pop(owner_id, None)
                del self._last_used[owner_id]
                logger.info("tasks.session.evict owner_id=%s", owner_id)

    async def open(self, owner_id: str) -> TaskCollection:
        """Return the owner's collection, loading it on first use."""
        now = self._clock()
        self._evict_idle(now)
        self._last_used[owner_id] = now
        collection = self._collections.get(owner_id)
        if collection is None:
            collection = TaskCollection(self._repository)
            self._collections[owner_id] = collection
            logger.info("tasks.session.open owner_id=%s", owner_id)
            await collection.set_owner(owner_id)
        return collection

    async def close(self, owner_id: str) -> None:
        """Sign-out: empty and forget the owner's collection."""
        collection = self._collections.pop(owner_id, None)
        self._last_used.pop(owner_id, None)
        if collection is None:
            return
        await collection.set_owner(None)
        logger.info("tasks.session.close owner_id=%s", owner_id)

    def clear(self) -> None:
        self._collections.clear()
        self._last_used.clear()
