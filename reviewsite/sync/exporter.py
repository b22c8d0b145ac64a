"""Export merged school records as the editable CSV."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from ..content.store import SchoolContentStore
from ..services import school_svc
from .csv_codec import record_to_row, write_csv


async def export_schools_csv(store: SchoolContentStore, db: AsyncSession | None) -> str:
    merged = await school_svc.list_merged(store, db)
    rows = [record_to_row(school_id, record) for school_id, record in merged]
    rows.sort(key=lambda r: (r["name"], r["id"]))
    return write_csv(rows)
