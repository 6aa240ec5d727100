"""User API schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field
from sqlmodel import SQLModel

RUNTIME_ANNOTATION_TYPES = (UUID, datetime)


class UserRead(SQLModel):
    """User profile returned by auth and user endpoints."""

    id: UUID = Field(
        description="Internal user UUID; owner id of the user's tasks.",
        examples=["11111111-1111-1111-1111-111111111111"],
    )
    email: str | None = Field(
        default=None,
        description="Primary email address for the user.",
        examples=["alex@example.com"],
    )
    name: str | None = Field(
        default=None,
        description="Full display name.",
        examples=["Alex Chen"],
    )
    created_at: datetime
    updated_at: datetime
