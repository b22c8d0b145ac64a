"""School service - override CRUD and merged school records."""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..content.store import SchoolContentStore
from ..merge import merge_record
from ..models.base import utcnow
from ..models.override import SchoolOverride

logger = logging.getLogger(__name__)

# asyncpg raises plain OSError subclasses when the server cannot be reached.
STORE_UNAVAILABLE = (SQLAlchemyError, OSError)


async def get_override(db: AsyncSession, school_id: str) -> dict | None:
    stmt = select(SchoolOverride.data).where(SchoolOverride.school_id == school_id)
    return (await db.execute(stmt)).scalar_one_or_none()


async def list_overrides(db: AsyncSession) -> list[SchoolOverride]:
    stmt = select(SchoolOverride).order_by(SchoolOverride.updated_at.desc())
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def upsert_override(db: AsyncSession, school_id: str, patch: dict) -> None:
    """Insert or replace the school's patch in a single statement (last write wins)."""
    dialect = db.get_bind().dialect.name
    insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
    now = utcnow()
    stmt = insert(SchoolOverride).values(school_id=school_id, data=patch, updated_at=now)
    stmt = stmt.on_conflict_do_update(
        index_elements=[SchoolOverride.school_id],
        set_={"data": stmt.excluded.data, "updated_at": now},
    )
    await db.execute(stmt)
    await db.commit()


async def delete_override(db: AsyncSession, school_id: str) -> bool:
    stmt = delete(SchoolOverride).where(SchoolOverride.school_id == school_id)
    result = await db.execute(stmt)
    await db.commit()
    return (result.rowcount or 0) > 0


async def get_overrides_map(db: AsyncSession | None) -> dict[str, dict]:
    """All stored patches by school id.

    An unconfigured or unreachable database means "no overrides".
    """
    if db is None:
        return {}
    try:
        result = await db.execute(select(SchoolOverride.school_id, SchoolOverride.data))
    except STORE_UNAVAILABLE:
        logger.warning("Override store unavailable; serving static content", exc_info=True)
        await db.rollback()
        return {}
    return {row.school_id: row.data or {} for row in result if row.school_id}


async def list_merged(store: SchoolContentStore, db: AsyncSession | None) -> list[tuple[str, dict]]:
    """(school_id, merged record) for every known school, in content order."""
    overrides = await get_overrides_map(db)
    out = []
    for school_id in store.list_ids():
        base = store.get_record(school_id)
        out.append((school_id, merge_record(base, overrides.get(school_id))))
    return out


async def merged_record(
    store: SchoolContentStore, db: AsyncSession | None, school_id: str
) -> dict | None:
    base = store.get_record(school_id)
    if base is None:
        return None
    if db is None:
        return base
    try:
        patch = await get_override(db, school_id)
    except STORE_UNAVAILABLE:
        logger.warning("Override lookup failed for %s; serving static content", school_id, exc_info=True)
        await db.rollback()
        patch = None
    return merge_record(base, patch)
