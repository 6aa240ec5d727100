"""Wiring of the task services shared by the API for the life of the process."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from taskhub.services.task_collection import DEFAULT_SESSION_IDLE_SECONDS, TaskSessionRegistry
from taskhub.services.task_repository import TaskRepository

if TYPE_CHECKING:
    from taskhub.services.document_store import DocumentStore


@dataclass
class TaskServices:
    """Store, repository and per-user session registry built at startup."""

    store: DocumentStore
    repository: TaskRepository
    sessions: TaskSessionRegistry

    @classmethod
    def build(
        cls,
        store: DocumentStore,
        *,
        collection: str = "tasks",
        idle_seconds: float = DEFAULT_SESSION_IDLE_SECONDS,
    ) -> TaskServices:
        repository = TaskRepository(store, collection=collection)
        sessions = TaskSessionRegistry(repository, idle_seconds=idle_seconds)
        return cls(store=store, repository=repository, sessions=sessions)

    def close(self) -> None:
        self.sessions.clear()
