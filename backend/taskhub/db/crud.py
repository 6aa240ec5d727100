"""Small generic CRUD helpers shared by auth and services."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlmodel import SQLModel, select

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlmodel.ext.asyncio.session import AsyncSession

ModelT = TypeVar("ModelT", bound=SQLModel)


async def get_or_create(
    session: AsyncSession,
    model: type[ModelT],
    *,
    defaults: Mapping[str, Any] | None = None,
    **lookup: Any,
) -> tuple[ModelT, bool]:
    """Return the row matching `lookup`, inserting it with `defaults` when missing.

    A concurrent insert of the same row is resolved by re-reading after the
    unique constraint fires.
    """
    statement = select(model).filter_by(**lookup)
    existing = (await session.exec(statement)).first()
    if existing is not None:
        return existing, False

    instance = model(**lookup, **dict(defaults or {}))
    session.add(instance)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        existing = (await session.exec(statement)).first()
        if existing is None:
            raise
        return existing, False
    await session.refresh(instance)
    return instance, True
