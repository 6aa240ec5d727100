"""Generic flat document rows backing the document store."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from taskhub.core.time import utcnow

RUNTIME_ANNOTATION_TYPES = (datetime,)


def _new_document_id() -> str:
    return uuid4().hex


class StoredDocument(SQLModel, table=True):
    """A single document: string fields grouped by collection and owner."""

    __tablename__ = "documents"  # pyright: ignore[reportAssignmentType]

    id: str = Field(default_factory=_new_document_id, primary_key=True, max_length=36)
    collection: str = Field(index=True)
    owner_id: str = Field(index=True)
    data: dict[str, str] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)
