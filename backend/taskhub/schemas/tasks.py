"""Task schemas: request validation, read shape, list filters and statistics."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field, field_validator
from sqlmodel import SQLModel

from taskhub.schemas.common import NonEmptyStr

RUNTIME_ANNOTATION_TYPES = (datetime,)

TaskStatus = Literal["pending", "completed"]
TaskPriority = Literal["low", "medium", "high"]
StatusFilter = Literal["all", "pending", "completed"]
PriorityFilter = Literal["all", "low", "medium", "high"]
SortKey = Literal["createdAt", "dueDate", "priority", "title"]
SortOrder = Literal["asc", "desc"]

TAG_MAX_LENGTH = 50


def normalize_tags(value: object) -> list[str]:
    """Split, trim and truncate raw tag input; empty tags are dropped.

    Accepts either a list of strings or the comma-separated text a form sends.
    """
    if value is None:
        return []
    if isinstance(value, str):
        raw_tags: list[object] = list(value.split(","))
    elif isinstance(value, (list, tuple)):
        raw_tags = list(value)
    else:
        raise ValueError("tags must be a list of strings or a comma-separated string")
    tags: list[str] = []
    for raw in raw_tags:
        if not isinstance(raw, str):
            raise ValueError("each tag must be a string")
        tag = raw.strip()[:TAG_MAX_LENGTH]
        if tag:
            tags.append(tag)
    return tags


class TaskAttachment(SQLModel):
    """File reference attached to a task. Never populated while uploads are disabled."""

    id: str
    name: str
    type: str = Field(description="MIME type.", examples=["application/pdf"])
    size: int = Field(ge=0, description="Size in bytes.")
    url: str


class TaskCreate(SQLModel):
    """Payload for creating a task."""

    title: NonEmptyStr = Field(examples=["File taxes"])
    description: str | None = Field(default=None, examples=["Gather receipts first."])
    status: TaskStatus = "pending"
    priority: TaskPriority = "medium"
    due_date: datetime | None = Field(default=None, examples=["2026-04-15T17:00:00Z"])
    tags: list[str] = Field(default_factory=list, examples=[["finance", "home"]])

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value: object) -> list[str]:
        return normalize_tags(value)


class TaskUpdate(SQLModel):
    """Partial task update; only fields present in the request are written."""

    title: NonEmptyStr | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    tags: list[str] | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value: object) -> list[str]:
        return normalize_tags(value)

    @field_validator("status", "priority")
    @classmethod
    def _reject_null_enum(cls, value: str | None) -> str | None:
        if value is None:
            raise ValueError("must be provided when present")
        return value


class TaskRead(SQLModel):
    """Task as returned to clients and held in the in-memory collection."""

    id: str
    user_id: str
    title: str
    description: str = ""
    status: TaskStatus = "pending"
    priority: TaskPriority = "medium"
    due_date: datetime | None = None
    tags: list[str] = Field(default_factory=list)
    attachments: list[TaskAttachment] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class TaskFilters(SQLModel):
    """Filter and sort selection applied to the task list view."""

    status: StatusFilter = "all"
    priority: PriorityFilter = "all"
    search: str = ""
    sort_by: SortKey = "createdAt"
    sort_order: SortOrder = "desc"


class TaskStats(SQLModel):
    """Aggregate counts over the caller's whole (unfiltered) task collection."""

    total: int = 0
    completed: int = 0
    pending: int = 0
    overdue: int = 0


class TaskListResponse(SQLModel):
    """Filtered/sorted task view plus collection-wide statistics."""

    items: list[TaskRead] = Field(default_factory=list)
    stats: TaskStats = Field(default_factory=TaskStats)
    loading: bool = False
    error: str | None = Field(
        default=None,
        description="Last task-store error for this session; the items may be stale.",
    )
