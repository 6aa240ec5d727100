# ruff: noqa: INP001
"""Mapping between task payloads and flat store documents."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from fakes import InMemoryDocumentStore

from taskhub.schemas.tasks import TaskCreate, TaskUpdate
from taskhub.services.document_store import DOCUMENT_NOT_FOUND_MESSAGE, StoreError
from taskhub.services.task_repository import (
    DEFAULT_TASK_TITLE,
    TAGS_MAX_SERIALIZED_LENGTH,
    TaskPersistenceError,
    TaskRepository,
    deserialize_tags,
    serialize_tags,
    task_from_document,
)


def _repository() -> tuple[TaskRepository, InMemoryDocumentStore]:
    store = InMemoryDocumentStore()
    return TaskRepository(store), store


def test_serialize_tags_truncates_to_budget() -> None:
    tags = [f"tag{i:02d}-" + "x" * 20 for i in range(10)]

    serialized = serialize_tags(tags)

    assert len(",".join(tags)) > TAGS_MAX_SERIALIZED_LENGTH
    assert len(serialized) == TAGS_MAX_SERIALIZED_LENGTH
    assert serialized == ",".join(tags)[:TAGS_MAX_SERIALIZED_LENGTH]


def test_deserialize_tags_drops_empty_segments() -> None:
    assert deserialize_tags("work,,home,") == ["work", "home"]
    assert deserialize_tags("") == []
    assert deserialize_tags(None) == []


def test_truncated_tags_deserialize_without_error() -> None:
    serialized = serialize_tags(["a" * 50, "b" * 50, "c" * 50])

    tags = deserialize_tags(serialized)

    assert tags == ["a" * 50, "b" * 49]


@pytest.mark.asyncio
async def test_create_writes_flat_document_with_defaults() -> None:
    repository, store = _repository()

    task = await repository.create(
        TaskCreate(title="  File taxes  ", tags=["finance", "home"]),
        "user-1",
    )

    op, fields = store.calls[-1]
    assert op == "create"
    assert fields == {
        "title": "File taxes",
        "description": "",
        "status": "pending",
        "priority": "medium",
        "userId": "user-1",
        "dueDate": "",
        "tags": "finance,home",
        "attachments": "",
    }
    assert task.title == "File taxes"
    assert task.user_id == "user-1"
    assert task.tags == ["finance", "home"]
    assert task.attachments == []
    assert task.id in store.documents


@pytest.mark.asyncio
async def test_create_serializes_due_date_as_iso() -> None:
    repository, store = _repository()
    due = datetime(2026, 4, 15, 17, 0, tzinfo=UTC)

    task = await repository.create(TaskCreate(title="Taxes", due_date=due), "user-1")

    assert store.calls[-1][1]["dueDate"] == "2026-04-15T17:00:00+00:00"
    assert task.due_date == due


@pytest.mark.asyncio
async def test_create_defaults_blank_title_reaching_repository() -> None:
    repository, store = _repository()
    # Bypass form validation to reach the repository with a blank title.
    payload = TaskCreate.model_construct(title="   ", status="pending", priority="medium", tags=[])

    task = await repository.create(payload, "user-1")

    assert store.calls[-1][1]["title"] == DEFAULT_TASK_TITLE
    assert task.title == DEFAULT_TASK_TITLE


@pytest.mark.asyncio
async def test_create_wraps_store_failure_with_store_message() -> None:
    repository, store = _repository()
    store.fail_with["create"] = "Invalid document structure"

    with pytest.raises(TaskPersistenceError) as exc:
        await repository.create(TaskCreate(title="x"), "user-1")

    assert exc.value.message == "Invalid document structure"
    assert isinstance(exc.value.__cause__, StoreError)


@pytest.mark.asyncio
async def test_failure_without_message_uses_fallback() -> None:
    repository, store = _repository()
    store.fail_with["list"] = ""

    with pytest.raises(TaskPersistenceError, match="Failed to fetch tasks"):
        await repository.list("user-1")


@pytest.mark.asyncio
async def test_list_filters_by_owner_and_keeps_store_order() -> None:
    repository, _store = _repository()
    first = await repository.create(TaskCreate(title="First"), "user-1")
    await repository.create(TaskCreate(title="Other user"), "user-2")
    second = await repository.create(TaskCreate(title="Second"), "user-1")

    tasks = await repository.list("user-1")

    assert [task.id for task in tasks] == [first.id, second.id]


@pytest.mark.asyncio
async def test_update_sends_only_present_fields() -> None:
    repository, store = _repository()
    created = await repository.create(
        TaskCreate(title="Draft", description="keep me", priority="low"),
        "user-1",
    )

    updated = await repository.update(created.id, TaskUpdate(status="completed"))

    op, fields = store.calls[-1]
    assert op == "update"
    assert fields == {"status": "completed", "attachments": ""}
    assert updated.status == "completed"
    assert updated.description == "keep me"
    assert updated.priority == "low"


@pytest.mark.asyncio
async def test_update_applies_title_default_and_tag_serialization() -> None:
    repository, store = _repository()
    created = await repository.create(TaskCreate(title="Draft"), "user-1")

    updated = await repository.update(
        created.id,
        TaskUpdate.model_validate({"title": None, "tags": ["x" * 50, "y" * 50, "z"]}),
    )

    fields = store.calls[-1][1]
    assert fields["title"] == DEFAULT_TASK_TITLE
    assert len(fields["tags"]) == TAGS_MAX_SERIALIZED_LENGTH
    assert updated.tags == ["x" * 50, "y" * 49]


@pytest.mark.asyncio
async def test_update_can_clear_due_date() -> None:
    repository, store = _repository()
    created = await repository.create(
        TaskCreate(title="Dated", due_date=datetime(2026, 5, 1, tzinfo=UTC)),
        "user-1",
    )

    updated = await repository.update(created.id, TaskUpdate.model_validate({"due_date": None}))

    assert store.calls[-1][1]["dueDate"] == ""
    assert updated.due_date is None


@pytest.mark.asyncio
async def test_empty_update_leaves_stored_task_unchanged() -> None:
    repository, store = _repository()
    created = await repository.create(
        TaskCreate(title="Stable", description="d", priority="high", tags=["a"]),
        "user-1",
    )
    before = store.documents[created.id]

    updated = await repository.update(created.id, TaskUpdate())

    assert store.calls[-1] == ("update", {})
    assert store.documents[created.id] == before
    assert updated == created


@pytest.mark.asyncio
async def test_update_unknown_id_raises_persistence_error() -> None:
    repository, _store = _repository()

    with pytest.raises(TaskPersistenceError, match=DOCUMENT_NOT_FOUND_MESSAGE):
        await repository.update("missing", TaskUpdate(title="x"))


@pytest.mark.asyncio
async def test_get_and_delete_round_trip() -> None:
    repository, store = _repository()
    created = await repository.create(TaskCreate(title="Short lived"), "user-1")

    fetched = await repository.get(created.id)
    await repository.delete(created.id)

    assert fetched == created
    assert created.id not in store.documents
    with pytest.raises(TaskPersistenceError):
        await repository.get(created.id)


@pytest.mark.asyncio
async def test_delete_failure_is_raised_not_swallowed() -> None:
    repository, store = _repository()
    created = await repository.create(TaskCreate(title="Keep"), "user-1")
    store.fail_with["delete"] = "permission denied"

    with pytest.raises(TaskPersistenceError, match="permission denied"):
        await repository.delete(created.id)

    assert created.id in store.documents


def test_document_with_unknown_enum_values_reads_back_with_defaults() -> None:
    from taskhub.services.document_store import Document

    now = datetime(2026, 1, 1, tzinfo=UTC)
    document = Document(
        id="doc-x",
        collection="tasks",
        owner_id="user-1",
        created_at=now,
        updated_at=now,
        fields={"title": "Imported", "status": "done", "priority": "urgent", "dueDate": "soon"},
    )

    task = task_from_document(document)

    assert task.status == "pending"
    assert task.priority == "medium"
    assert task.due_date is None
    assert task.user_id == "user-1"
