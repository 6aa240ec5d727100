"""User model mirroring identities resolved by the auth provider."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from taskhub.core.time import utcnow

RUNTIME_ANNOTATION_TYPES = (datetime,)


class User(SQLModel, table=True):
    """Authenticated account; read-only to task code apart from id, email and name."""

    __tablename__ = "users"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    clerk_user_id: str = Field(index=True, unique=True)
    email: str | None = Field(default=None, index=True)
    name: str | None = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
