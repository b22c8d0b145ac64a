"""Inbound automation webhooks (campaign approval)."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..content.store import SchoolContentStore, get_content_store
from ..database import get_db
from ..security.webhooks import verify_webhook_secret
from ..services import campaign_svc

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhook", tags=["webhooks"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=status_code)


@router.post("/approve-campaign", dependencies=[Depends(verify_webhook_secret)])
async def approve_campaign(
    request: Request,
    db: AsyncSession = Depends(get_db),
    store: SchoolContentStore = Depends(get_content_store),
):
    try:
        payload = await request.json()
    except ValueError:
        return _error(400, "Invalid JSON")
    if not isinstance(payload, dict):
        return _error(400, "Invalid JSON")

    school_id = str(payload.get("schoolId") or "").strip()
    if not school_id:
        return _error(400, "schoolId is required")
    campaign = campaign_svc.campaign_from_payload(payload)
    if not campaign.get("campaignText"):
        return _error(400, "campaignText is required")

    try:
        return await campaign_svc.apply_campaign(
            db,
            store,
            school_id,
            campaign,
            approved_by=payload.get("approvedBy"),
            slack_message_ts=payload.get("slackMessageTs"),
        )
    except campaign_svc.UnknownSchoolError:
        return _error(404, f"Unknown schoolId: {school_id}")
    except SQLAlchemyError as e:
        logger.exception("Failed to apply campaign for %s", school_id)
        await db.rollback()
        return _error(500, str(e))
