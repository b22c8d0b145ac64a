"""Campaign service - apply approved campaign changes as overrides."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from ..content.store import SchoolContentStore
from ..merge import merge_record
from ..models.campaign import CampaignLog
from . import school_svc

logger = logging.getLogger(__name__)

CAMPAIGN_FIELDS: tuple[str, ...] = ("campaignText", "campaignEndsAt", "benefitText", "campaignBullets")


class UnknownSchoolError(LookupError):
    """Raised when a campaign targets a school id with no static content."""


def campaign_from_payload(payload: dict) -> dict:
    """Accept the nested ``campaignData`` shape or the flat automation shape."""
    if isinstance(payload.get("campaignData"), dict):
        return dict(payload["campaignData"])
    return {
        "campaignText": payload.get("campaignText") or None,
        "campaignEndsAt": payload.get("campaignEndsAt") or payload.get("deadline") or None,
        "benefitText": payload.get("benefitText") or payload.get("benefit") or None,
        "campaignBullets": payload.get("campaignBullets") or [],
    }


async def apply_campaign(
    db: AsyncSession,
    store: SchoolContentStore,
    school_id: str,
    campaign: dict,
    approved_by: str | None = None,
    slack_message_ts: str | None = None,
) -> dict:
    base = store.get_record(school_id)
    if base is None:
        raise UnknownSchoolError(school_id)

    existing = await school_svc.get_override(db, school_id) or {}
    current = merge_record(base, existing)
    old_campaign = {k: current.get(k) for k in CAMPAIGN_FIELDS}
    new_campaign = {k: campaign[k] for k in CAMPAIGN_FIELDS if k in campaign}

    await school_svc.upsert_override(db, school_id, {**existing, **new_campaign})

    db.add(CampaignLog(
        school_id=school_id,
        action="approved" if approved_by else "updated",
        old_campaign_data=old_campaign,
        new_campaign_data=new_campaign,
        approved_by=approved_by,
        approved_at=datetime.now(timezone.utc) if approved_by else None,
        slack_message_ts=slack_message_ts,
        source_url=base.get("officialUrl"),
    ))
    await db.commit()
    logger.info("Campaign %s for %s", "approved" if approved_by else "updated", school_id)

    return {
        "success": True,
        "schoolId": school_id,
        "schoolName": current.get("name"),
        "oldCampaign": old_campaign,
        "newCampaign": new_campaign,
        "updatedAt": datetime.now(timezone.utc).isoformat(),
    }
