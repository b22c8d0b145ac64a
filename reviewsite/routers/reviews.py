"""Public review form endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..content.store import SchoolContentStore, get_content_store
from ..database import get_db
from ..schemas.common import first_error
from ..schemas.review import ReviewSubmission
from ..security.request_meta import client_ip, ip_version, sha256_hex
from ..services import notify_svc, review_svc

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/review", tags=["reviews"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"ok": False, "error": message}, status_code=status_code)


@router.post("/submit")
async def submit_review(
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    store: SchoolContentStore = Depends(get_content_store),
):
    form = await request.form()
    try:
        submission = ReviewSubmission.model_validate(
            {k: v for k, v in form.items() if isinstance(v, str)}
        )
    except ValidationError as e:
        return _error(400, first_error(e)[1])

    if not store.has(submission.school_id):
        return _error(400, "Invalid school_id")

    ip = client_ip(request.headers)
    ip_hash = sha256_hex(ip) if ip else None
    if ip_hash:
        try:
            recent = await review_svc.count_recent_by_ip_hash(db, ip_hash)
        except SQLAlchemyError:
            logger.warning("Review rate limit check failed", exc_info=True)
            await db.rollback()
        else:
            if recent >= settings.review_rate_limit_per_hour:
                return _error(429, "Too many submissions. Please try again later.")

    try:
        await review_svc.create_review(
            db,
            submission.school_id,
            **submission.model_dump(exclude={"school_id"}),
            ip=ip,
            ip_hash=ip_hash,
            ip_version=ip_version(ip),
            user_agent=request.headers.get("user-agent"),
            referrer=request.headers.get("referer"),
        )
    except SQLAlchemyError as e:
        logger.exception("Failed to store review for %s", submission.school_id)
        await db.rollback()
        return _error(500, str(e))

    background_tasks.add_task(
        notify_svc.notify_review_submitted,
        submission.school_id,
        submission.body,
        submission.overall_rating,
    )
    return RedirectResponse(url="/review/submit?submitted=true", status_code=303)


@router.get("/webhook-test")
async def webhook_test(key: str = ""):
    expected = settings.review_webhook_test_key.strip()
    if expected and key != expected:
        return _error(403, "Forbidden")
    return await notify_svc.probe_webhook()
