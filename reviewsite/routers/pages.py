"""Server-rendered school pages and the merged-record JSON view."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..content.store import SchoolContentStore, get_content_store
from ..database import get_optional_db
from ..services import review_svc, school_svc
from ..stats import DetailedStats, detailed_stats

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pages"])
templates = Jinja2Templates(directory=str(settings.templates_dir))
templates.env.globals["app_title"] = settings.app_title


async def _approved_stats(db: AsyncSession | None, school_id: str) -> DetailedStats:
    if db is None:
        return detailed_stats([])
    try:
        return await review_svc.school_stats(db, school_id)
    except school_svc.STORE_UNAVAILABLE:
        logger.warning("Review stats unavailable for %s", school_id, exc_info=True)
        await db.rollback()
        return detailed_stats([])


@router.get("/")
async def school_list(
    request: Request,
    store: SchoolContentStore = Depends(get_content_store),
    db: AsyncSession | None = Depends(get_optional_db),
):
    schools = await school_svc.list_merged(store, db)
    schools.sort(key=lambda item: item[1].get("name") or "")
    return templates.TemplateResponse(request, "index.html", {"schools": schools})


@router.get("/schools/{school_id}")
async def school_detail(
    request: Request,
    school_id: str,
    store: SchoolContentStore = Depends(get_content_store),
    db: AsyncSession | None = Depends(get_optional_db),
):
    school = await school_svc.merged_record(store, db, school_id)
    if school is None:
        return templates.TemplateResponse(request, "not_found.html", {}, status_code=404)
    stats = await _approved_stats(db, school_id)
    return templates.TemplateResponse(request, "schools/detail.html", {
        "school_id": school_id,
        "school": school,
        "stats": stats,
    })


@router.get("/api/schools/{school_id}")
async def school_json(
    school_id: str,
    store: SchoolContentStore = Depends(get_content_store),
    db: AsyncSession | None = Depends(get_optional_db),
):
    school = await school_svc.merged_record(store, db, school_id)
    if school is None:
        raise HTTPException(status_code=404, detail="School not found")
    return {"id": school_id, "data": school}


@router.get("/review/submit")
async def review_form(
    request: Request,
    school_id: str = "",
    submitted: bool = False,
    store: SchoolContentStore = Depends(get_content_store),
):
    school = store.get_record(school_id) if school_id else None
    return templates.TemplateResponse(request, "review_form.html", {
        "school_id": school_id,
        "school": school,
        "submitted": submitted,
    })
