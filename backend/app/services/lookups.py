"""Small query helpers shared by the entity services."""

from collections.abc import Iterable
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession


async def exists(db: AsyncSession, column, value: Any) -> bool:
    result = await db.execute(select(column).where(column == value).limit(1))
    return result.first() is not None


async def count_where(db: AsyncSession, model, *criteria) -> int:
    result = await db.execute(select(func.count()).select_from(model).where(*criteria))
    return result.scalar_one()


async def grouped_counts(
    db: AsyncSession,
    key_column,
    keys: Iterable[Any],
    *criteria,
) -> dict[Any, int]:
    """``{key: row count}`` for the given keys in one grouped query."""
    keys = list(keys)
    if not keys:
        return {}
    result = await db.execute(
        select(key_column, func.count())
        .where(key_column.in_(keys), *criteria)
        .group_by(key_column)
    )
    return {row[0]: row[1] for row in result.all()}
