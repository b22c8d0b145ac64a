"""Health and readiness checks."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ..content.store import SchoolContentStore, get_content_store
from ..database import get_optional_db
from ..services.school_svc import STORE_UNAVAILABLE

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(
    db: AsyncSession | None = Depends(get_optional_db),
    store: SchoolContentStore = Depends(get_content_store),
):
    status = {"content": "ok" if store.list_ids() else "empty"}
    if db is None:
        status["database"] = "unconfigured"
    else:
        try:
            await db.execute(text("SELECT 1"))
            status["database"] = "ok"
        except STORE_UNAVAILABLE:
            logger.warning("Database health check failed", exc_info=True)
            status["database"] = "error"
    healthy = status["database"] != "error"
    return {"status": "healthy" if healthy else "degraded", "service": "reviewsite", "checks": status}
