"""Structured error payload schemas used by API responses."""

from __future__ import annotations

from pydantic import Field
from sqlmodel import SQLModel


class ErrorResponse(SQLModel):
    """Error envelope returned by every handler installed in `core.error_handling`."""

    detail: str | dict[str, object] | list[object] = Field(
        description="Error payload; a message string or a list of validation issues.",
        examples=["Failed to update task", [{"loc": ["body", "title"], "msg": "Field required"}]],
    )
    request_id: str | None = Field(
        default=None,
        description="Request correlation identifier injected by middleware.",
    )
    code: str | None = Field(
        default=None,
        description="Optional machine-readable error code.",
        examples=["task_persistence_error"],
    )
    retryable: bool | None = Field(
        default=None,
        description="Whether retrying the same call could succeed. Always false for task errors.",
    )
