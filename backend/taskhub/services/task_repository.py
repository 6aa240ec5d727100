"""Task persistence on top of a flat document store.

Task documents only hold strings: tags travel as one comma-joined value
capped at `TAGS_MAX_SERIALIZED_LENGTH` characters, the due date as ISO-8601
(or empty) and attachments as an always-empty value.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, get_args

from taskhub.core.logging import get_logger
from taskhub.schemas.tasks import TaskPriority, TaskRead, TaskStatus
from taskhub.services.document_store import StoreError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from taskhub.schemas.tasks import TaskCreate, TaskUpdate
    from taskhub.services.document_store import Document, DocumentStore

logger = get_logger(__name__)

DEFAULT_TASK_TITLE = "Untitled Task"
TAGS_MAX_SERIALIZED_LENGTH = 100
TAG_SEPARATOR = ","
TASK_STATUSES: tuple[str, ...] = get_args(TaskStatus)
TASK_PRIORITIES: tuple[str, ...] = get_args(TaskPriority)


class TaskPersistenceError(Exception):
    """Raised when the document store rejects or fails a task operation."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def serialize_tags(tags: Iterable[str] | None) -> str:
    """Join tags with commas, truncated to the serialized budget."""
    if not tags:
        return ""
    return TAG_SEPARATOR.join(tags)[:TAGS_MAX_SERIALIZED_LENGTH]


def deserialize_tags(raw: str | None) -> list[str]:
    """Split a stored tag value; empty segments are dropped."""
    if not raw:
        return []
    return [tag for tag in raw.split(TAG_SEPARATOR) if tag]


def _serialize_title(title: str | None) -> str:
    return (title or "").strip() or DEFAULT_TASK_TITLE


def _serialize_description(description: str | None) -> str:
    return (description or "").strip()


def _serialize_due_date(due_date: datetime | None) -> str:
    return due_date.isoformat() if due_date is not None else ""


def _parse_due_date(raw: str | None, *, task_id: str) -> datetime | None:
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        logger.warning("tasks.repository.due_date.unparseable task_id=%s value=%r", task_id, raw)
        return None


def _enum_field(raw: str | None, allowed: tuple[str, ...], default: str) -> str:
    return raw if raw in allowed else default


def task_from_document(document: Document) -> TaskRead:
    """Rebuild a typed task from its flat stored document."""
    fields = document.fields
    return TaskRead(
        id=document.id,
        user_id=fields.get("userId") or document.owner_id,
        title=fields.get("title") or DEFAULT_TASK_TITLE,
        description=fields.get("description", ""),
        status=_enum_field(fields.get("status"), TASK_STATUSES, "pending"),
        priority=_enum_field(fields.get("priority"), TASK_PRIORITIES, "medium"),
        due_date=_parse_due_date(fields.get("dueDate"), task_id=document.id),
        tags=deserialize_tags(fields.get("tags")),
        attachments=[],
        created_at=document.created_at,
        updated_at=document.updated_at,
    )


class TaskRepository:
    """Translate task payloads to store documents and back, one call per operation."""

    def __init__(self, store: DocumentStore, *, collection: str = "tasks") -> None:
        self._store = store
        self._collection = collection

    @property
    def collection(self) -> str:
        return self._collection

    async def create(self, payload: TaskCreate, owner_id: str) -> TaskRead:
        """Persist a new task owned by `owner_id`."""
        fields = {
            "title": _serialize_title(payload.title),
            "description": _serialize_description(payload.description),
            "status": payload.status or "pending",
            "priority": payload.priority or "medium",
            "userId": owner_id,
            "dueDate": _serialize_due_date(payload.due_date),
            "tags": serialize_tags(payload.tags),
            "attachments": "",
        }
        try:
            document = await self._store.create(self._collection, owner_id, fields)
        except StoreError as exc:
            logger.warning("tasks.repository.create.failed owner_id=%s error=%s", owner_id, exc)
            raise TaskPersistenceError(exc.message or "Failed to create task") from exc
        logger.info("tasks.repository.create owner_id=%s task_id=%s", owner_id, document.id)
        return task_from_document(document)

    async def list(self, owner_id: str) -> list[TaskRead]:
        """Return every task owned by `owner_id`, in store order."""
        try:
            documents = await self._store.list(self._collection, owner_equals=owner_id)
        except StoreError as exc:
            logger.warning("tasks.repository.list.failed owner_id=%s error=%s", owner_id, exc)
            raise TaskPersistenceError(exc.message or "Failed to fetch tasks") from exc
        return [task_from_document(document) for document in documents]

    async def get(self, task_id: str) -> TaskRead:
        try:
            document = await self._store.get(self._collection, task_id)
        except StoreError as exc:
            raise TaskPersistenceError(exc.message or "Failed to fetch task") from exc
        return task_from_document(document)

    async def update(self, task_id: str, payload: TaskUpdate) -> TaskRead:
        """Write only the fields explicitly present in `payload`."""
        present = payload.model_fields_set
        fields: dict[str, str] = {}
        if "title" in present:
            fields["title"] = _serialize_title(payload.title)
        if "description" in present:
            fields["description"] = _serialize_description(payload.description)
        if "status" in present and payload.status is not None:
            fields["status"] = payload.status
        if "priority" in present and payload.priority is not None:
            fields["priority"] = payload.priority
        if "due_date" in present:
            fields["dueDate"] = _serialize_due_date(payload.due_date)
        if "tags" in present:
            fields["tags"] = serialize_tags(payload.tags)
        if fields:
            # Attachments are disabled; any write blanks them.
            fields["attachments"] = ""
        try:
            document = await self._store.update(self._collection, task_id, fields)
        except StoreError as exc:
            logger.warning("tasks.repository.update.failed task_id=%s error=%s", task_id, exc)
            raise TaskPersistenceError(exc.message or "Failed to update task") from exc
        logger.info(
            "tasks.repository.update task_id=%s fields=%s",
            task_id,
            ",".join(sorted(fields)),
        )
        return task_from_document(document)

    async def delete(self, task_id: str) -> None:
        try:
            await self._store.delete(self._collection, task_id)
        except StoreError as exc:
            logger.warning("tasks.repository.delete.failed task_id=%s error=%s", task_id, exc)
            raise TaskPersistenceError(exc.message or "Failed to delete task") from exc
        logger.info("tasks.repository.delete task_id=%s", task_id)
