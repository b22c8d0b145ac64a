"""Import the editable CSV back into the override store."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..content.store import SchoolContentStore
from ..services import school_svc
from .csv_codec import read_csv, row_to_patch

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    records: int = 0
    updated: int = 0
    errors: list[str] = field(default_factory=list)


async def import_schools_csv(db: AsyncSession, store: SchoolContentStore, text: str) -> ImportResult:
    """Upsert one override per CSV row; unknown school ids are rejected."""
    rows = read_csv(text)
    result = ImportResult(records=len(rows))

    for row in rows:
        school_id = row["id"].strip()
        if not store.has(school_id):
            result.errors.append(f"Unknown id: {school_id}")
            continue

        patch, cell_errors = row_to_patch(row)
        result.errors.extend(f"{school_id}: {e}" for e in cell_errors)

        try:
            await school_svc.upsert_override(db, school_id, patch)
        except SQLAlchemyError as e:
            await db.rollback()
            result.errors.append(f"{school_id}: {e}")
            continue
        result.updated += 1

    logger.info("CSV import: %d rows, %d updated, %d errors", result.records, result.updated, len(result.errors))
    return result
