"""Document store contract and its SQL-backed implementation.

The task layer only ever sees flat documents: a map of string fields plus
store-managed id, owner and timestamps. Any failure inside a store surfaces
as `StoreError` carrying a human-readable message.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, select

from taskhub.core.logging import get_logger
from taskhub.core.time import utcnow
from taskhub.models.documents import StoredDocument

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from sqlalchemy.ext.asyncio import async_sessionmaker
    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)

DOCUMENT_NOT_FOUND_MESSAGE = "Document with the requested ID could not be found."


class StoreError(Exception):
    """Raised by a document store for any failed operation."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


@dataclass(frozen=True)
class Document:
    """Store-level view of one document."""

    id: str
    collection: str
    owner_id: str
    created_at: datetime
    updated_at: datetime
    fields: dict[str, str] = field(default_factory=dict)


class DocumentStore(Protocol):
    """Async CRUD-plus-equality-query contract the task repository depends on."""

    async def create(
        self,
        collection: str,
        owner_id: str,
        fields: Mapping[str, str],
    ) -> Document: ...

    async def list(self, collection: str, *, owner_equals: str) -> list[Document]: ...

    async def get(self, collection: str, document_id: str) -> Document: ...

    async def update(
        self,
        collection: str,
        document_id: str,
        fields: Mapping[str, str],
    ) -> Document: ...

    async def delete(self, collection: str, document_id: str) -> None: ...

    async def ping(self) -> None: ...


def _to_document(row: StoredDocument) -> Document:
    return Document(
        id=row.id,
        collection=row.collection,
        owner_id=row.owner_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
        fields=dict(row.data),
    )


class SQLDocumentStore:
    """Document store persisted in the `documents` table.

    Each call opens its own session from the injected factory.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker

    async def _load(
        self,
        session: AsyncSession,
        collection: str,
        document_id: str,
    ) -> StoredDocument:
        row = await session.get(StoredDocument, document_id)
        if row is None or row.collection != collection:
            raise StoreError(DOCUMENT_NOT_FOUND_MESSAGE)
        return row

    async def create(
        self,
        collection: str,
        owner_id: str,
        fields: Mapping[str, str],
    ) -> Document:
        now = utcnow()
        row = StoredDocument(
            collection=collection,
            owner_id=owner_id,
            data=dict(fields),
            created_at=now,
            updated_at=now,
        )
        try:
            async with self._session_maker() as session:
                session.add(row)
                await session.commit()
                await session.refresh(row)
        except SQLAlchemyError as exc:
            logger.warning("store.create.failed collection=%s error=%s", collection, exc)
            raise StoreError(str(exc)) from exc
        logger.debug("store.create collection=%s id=%s", collection, row.id)
        return _to_document(row)

    async def list(self, collection: str, *, owner_equals: str) -> list[Document]:
        statement = (
            select(StoredDocument)
            .where(col(StoredDocument.collection) == collection)
            .where(col(StoredDocument.owner_id) == owner_equals)
            .order_by(col(StoredDocument.created_at).asc())
        )
        try:
            async with self._session_maker() as session:
                rows = (await session.exec(statement)).all()
        except SQLAlchemyError as exc:
            logger.warning("store.list.failed collection=%s error=%s", collection, exc)
            raise StoreError(str(exc)) from exc
        return [_to_document(row) for row in rows]

    async def get(self, collection: str, document_id: str) -> Document:
        try:
            async with self._session_maker() as session:
                row = await self._load(session, collection, document_id)
        except SQLAlchemyError as exc:
            raise StoreError(str(exc)) from exc
        return _to_document(row)

    async def update(
        self,
        collection: str,
        document_id: str,
        fields: Mapping[str, str],
    ) -> Document:
        try:
            async with self._session_maker() as session:
                row = await self._load(session, collection, document_id)
                if fields:
                    # Reassign so the JSON column is flagged dirty.
                    row.data = {**row.data, **fields}
                    row.updated_at = utcnow()
                    session.add(row)
                    await session.commit()
                    await session.refresh(row)
        except SQLAlchemyError as exc:
            logger.warning(
                "store.update.failed collection=%s id=%s error=%s",
                collection,
                document_id,
                exc,
            )
            raise StoreError(str(exc)) from exc
        return _to_document(row)

    async def delete(self, collection: str, document_id: str) -> None:
        try:
            async with self._session_maker() as session:
                row = await self._load(session, collection, document_id)
                await session.delete(row)
                await session.commit()
        except SQLAlchemyError as exc:
            logger.warning(
                "store.delete.failed collection=%s id=%s error=%s",
                collection,
                document_id,
                exc,
            )
            raise StoreError(str(exc)) from exc
        logger.debug("store.delete collection=%s id=%s", collection, document_id)

    async def ping(self) -> None:
        """Round-trip a trivial query to prove the backing database is reachable."""
        try:
            async with self._session_maker() as session:
                connection = await session.connection()
                await connection.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            raise StoreError(str(exc)) from exc
