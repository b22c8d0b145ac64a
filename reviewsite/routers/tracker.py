"""Admin endpoints: moderation status changes and school override editing.

Authentication for these routes is handled in front of the app.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from ..config import settings
from ..content.store import SchoolContentStore, get_content_store
from ..database import get_db
from ..models.review import REVIEW_STATUSES
from ..models.tracking import CONVERSION_STATUSES
from ..security.request_meta import safe_return_to
from ..services import review_svc, school_svc, tracking_svc
from ..sync.editor import editor_patch_to_override
from ..sync.exporter import export_schools_csv
from ..sync.importer import import_schools_csv

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tracker", tags=["tracker"])


def _redirect(location: str) -> RedirectResponse:
    return RedirectResponse(url=location, status_code=303, headers={"cache-control": "no-store"})


def _parse_id(raw) -> int | None:
    try:
        value = int(str(raw or "").strip())
    except ValueError:
        return None
    return value if value > 0 else None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"ok": False, "error": message}, status_code=status_code)


@router.post("/conversion-status")
async def conversion_status(request: Request, db: AsyncSession = Depends(get_db)):
    form = await request.form()
    conversion_id = _parse_id(form.get("id"))
    status = str(form.get("status") or "").strip()
    if conversion_id is None:
        return PlainTextResponse("Invalid id", status_code=400)
    if status not in CONVERSION_STATUSES:
        return PlainTextResponse("Invalid status", status_code=400)

    try:
        await tracking_svc.set_conversion_status(db, conversion_id, status)
    except SQLAlchemyError as e:
        await db.rollback()
        return PlainTextResponse(str(e), status_code=500)
    return _redirect(safe_return_to(form.get("returnTo"), "/tracker"))


@router.post("/review-status")
async def review_status(request: Request, db: AsyncSession = Depends(get_db)):
    form = await request.form()
    review_id = _parse_id(form.get("id"))
    status = str(form.get("status") or "").strip()
    comment = str(form.get("review_comment") or "").strip() or None
    if review_id is None:
        return PlainTextResponse("Invalid id", status_code=400)
    if status not in REVIEW_STATUSES:
        return PlainTextResponse("Invalid status", status_code=400)

    try:
        await review_svc.set_status(db, review_id, status, review_comment=comment)
    except SQLAlchemyError as e:
        await db.rollback()
        return PlainTextResponse(str(e), status_code=500)
    return _redirect(safe_return_to(form.get("returnTo"), "/tracker/reviews"))


@router.post("/review-improvement-response")
async def review_improvement_response(request: Request, db: AsyncSession = Depends(get_db)):
    form = await request.form()
    review_id = _parse_id(form.get("id"))
    text = str(form.get("improvement_points_response") or "").strip()
    limit = settings.review_improvement_response_max_length
    if review_id is None:
        return PlainTextResponse("Invalid id", status_code=400)
    if not text:
        return PlainTextResponse("improvement_points_response is required", status_code=400)
    if len(text) > limit:
        return PlainTextResponse(
            f"improvement_points_response must be {limit} characters or less", status_code=400
        )

    try:
        written = await review_svc.respond_to_improvement_points(db, review_id, text)
    except SQLAlchemyError as e:
        await db.rollback()
        return PlainTextResponse(str(e), status_code=500)
    if not written:
        return PlainTextResponse("Already responded or no improvement_points", status_code=409)
    return _redirect(safe_return_to(form.get("returnTo"), "/tracker/reviews"))


# -- School overrides --------------------------------------------------------


@router.get("/schools/list")
async def list_school_overrides(db: AsyncSession = Depends(get_db)):
    try:
        overrides = await school_svc.list_overrides(db)
    except SQLAlchemyError as e:
        await db.rollback()
        return _error(500, str(e))
    rows = [
        {
            "school_id": o.school_id,
            "data": o.data,
            "updated_at": o.updated_at.isoformat() if o.updated_at else None,
        }
        for o in overrides
    ]
    return {"ok": True, "rows": rows}


async def _json_body(request: Request) -> dict | None:
    try:
        body = await request.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


@router.post("/schools/save")
async def save_school_override(
    request: Request,
    db: AsyncSession = Depends(get_db),
    store: SchoolContentStore = Depends(get_content_store),
):
    body = await _json_body(request)
    if body is None:
        return _error(400, "Invalid JSON")
    school_id = str(body.get("schoolId") or "").strip()
    patch = body.get("patch")
    if not school_id:
        return _error(400, "schoolId is required")
    if not isinstance(patch, dict):
        return _error(400, "patch is required")
    if not store.has(school_id):
        return _error(400, "Invalid schoolId")

    try:
        await school_svc.upsert_override(db, school_id, editor_patch_to_override(patch))
    except SQLAlchemyError as e:
        await db.rollback()
        return _error(500, str(e))
    logger.info("Saved override for %s", school_id)
    return {"ok": True}


@router.post("/schools/clear")
async def clear_school_override(request: Request, db: AsyncSession = Depends(get_db)):
    body = await _json_body(request)
    if body is None:
        return _error(400, "Invalid JSON")
    school_id = str(body.get("schoolId") or "").strip()
    if not school_id:
        return _error(400, "schoolId is required")

    try:
        await school_svc.delete_override(db, school_id)
    except SQLAlchemyError as e:
        await db.rollback()
        return _error(500, str(e))
    logger.info("Cleared override for %s", school_id)
    return {"ok": True}


@router.get("/schools/export")
async def export_schools(
    db: AsyncSession = Depends(get_db),
    store: SchoolContentStore = Depends(get_content_store),
):
    csv_text = await export_schools_csv(store, db)
    return Response(
        content=csv_text.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={
            "content-disposition": 'attachment; filename="schools.csv"',
            "cache-control": "no-store",
        },
    )


@router.post("/schools/import")
async def import_schools(
    request: Request,
    db: AsyncSession = Depends(get_db),
    store: SchoolContentStore = Depends(get_content_store),
):
    form = await request.form()
    upload = form.get("file")
    if not isinstance(upload, UploadFile):
        return _error(400, "file is required")
    try:
        text = (await upload.read()).decode("utf-8")
    except UnicodeDecodeError:
        return _error(400, "file must be UTF-8 encoded CSV")

    result = await import_schools_csv(db, store, text)
    if not result.records:
        return _error(400, "No records")
    return {"ok": True, "updated": result.updated, "errors": result.errors}
