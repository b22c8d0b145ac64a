"""Tracking service - affiliate clicks, conversions and their risk annotation."""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import timedelta

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..models.base import utcnow
from ..models.tracking import Click, Conversion

logger = logging.getLogger(__name__)

RISK_LABELS = {
    "ip_rate_1m_high": "短時間に同一IPからのCVが多い",
    "missing_referer": "Refererが無い",
    "missing_user_agent": "User-Agentが無い",
}

# Reasons strong enough to force manual review.
BLOCKING_REASONS = frozenset({"ip_rate_1m_high"})


@dataclass
class RiskAssessment:
    reasons: list[str] = field(default_factory=list)

    @property
    def needs_review(self) -> bool:
        return any(r in BLOCKING_REASONS for r in self.reasons)

    @property
    def comment(self) -> str | None:
        if not self.reasons:
            return None
        return " / ".join(RISK_LABELS.get(r, r) for r in self.reasons)

    def as_json(self, now_ms: int) -> dict | None:
        if not self.reasons:
            return None
        return {
            "score": len(self.reasons),
            "reasons": list(self.reasons),
            "needs_review": self.needs_review,
            "computed_at_ms": now_ms,
        }


@dataclass
class ConversionResult:
    id: int | None
    deduped: bool = False


def new_click_id() -> str:
    return uuid.uuid4().hex


async def record_click(db: AsyncSession, offer_id: str, url: str, **meta) -> Click:
    click = Click(offer_id=offer_id, click_id=new_click_id(), url=url, **meta)
    db.add(click)
    await db.commit()
    await db.refresh(click)
    return click


async def find_conversion_by_event_id(db: AsyncSession, event_id: str) -> int | None:
    stmt = select(Conversion.id).where(Conversion.event_id == event_id).limit(1)
    return (await db.execute(stmt)).scalar_one_or_none()


async def count_recent_conversions(
    db: AsyncSession, ip_hash: str, window: timedelta = timedelta(minutes=1)
) -> int:
    cutoff = utcnow() - window
    stmt = select(func.count()).select_from(Conversion).where(
        Conversion.ip_hash == ip_hash, Conversion.created_at > cutoff
    )
    return (await db.execute(stmt)).scalar() or 0


async def assess_risk(
    db: AsyncSession, referrer: str | None, user_agent: str | None, ip_hash: str | None
) -> RiskAssessment:
    risk = RiskAssessment()
    if not referrer:
        risk.reasons.append("missing_referer")
    if not user_agent:
        risk.reasons.append("missing_user_agent")
    if ip_hash:
        try:
            recent = await count_recent_conversions(db, ip_hash)
        except SQLAlchemyError:
            logger.warning("Conversion rate check failed", exc_info=True)
            await db.rollback()
        else:
            if recent >= settings.conversion_ip_rate_per_minute:
                risk.reasons.append("ip_rate_1m_high")
    return risk


async def record_conversion(
    db: AsyncSession,
    offer_id: str,
    requested_status: str = "pending",
    event_id: str | None = None,
    **fields,
) -> ConversionResult:
    """Store a conversion, deduplicating on ``event_id``.

    A duplicate event returns the original row id with ``deduped=True``.
    """
    if event_id:
        existing = await find_conversion_by_event_id(db, event_id)
        if existing is not None:
            return ConversionResult(id=existing, deduped=True)

    now_ms = int(time.time() * 1000)
    risk = await assess_risk(
        db, fields.get("referrer"), fields.get("user_agent"), fields.get("ip_hash")
    )
    status = "check" if risk.needs_review else requested_status

    conversion = Conversion(
        offer_id=offer_id,
        event_id=event_id,
        status=status,
        risk=risk.as_json(now_ms),
        review_comment=risk.comment,
        **fields,
    )
    db.add(conversion)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent retry of the same event.
        await db.rollback()
        if event_id:
            existing = await find_conversion_by_event_id(db, event_id)
            if existing is not None:
                return ConversionResult(id=existing, deduped=True)
        raise
    await db.refresh(conversion)
    return ConversionResult(id=conversion.id)


async def set_conversion_status(db: AsyncSession, conversion_id: int, status: str) -> bool:
    result = await db.execute(
        update(Conversion).where(Conversion.id == conversion_id).values(status=status)
    )
    await db.commit()
    return (result.rowcount or 0) > 0
