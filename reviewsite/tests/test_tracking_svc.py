"""Tests for click and conversion tracking."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select

from reviewsite.models import Click, Conversion
from reviewsite.services import tracking_svc
from reviewsite.services.tracking_svc import RiskAssessment


def test_risk_assessment_comment_and_json():
    risk = RiskAssessment(["missing_referer", "ip_rate_1m_high"])
    assert risk.needs_review is True
    assert risk.comment == "Refererが無い / 短時間に同一IPからのCVが多い"
    assert risk.as_json(123) == {
        "score": 2,
        "reasons": ["missing_referer", "ip_rate_1m_high"],
        "needs_review": True,
        "computed_at_ms": 123,
    }
    assert RiskAssessment().as_json(1) is None
    assert RiskAssessment().comment is None


@pytest.mark.asyncio
async def test_record_click_generates_unique_ids(db):
    a = await tracking_svc.record_click(db, "alpha", "https://alpha.example.com/")
    b = await tracking_svc.record_click(db, "alpha", "https://alpha.example.com/")
    assert a.click_id != b.click_id
    assert len(a.click_id) == 32
    assert (await db.execute(select(func.count()).select_from(Click))).scalar() == 2


@pytest.mark.asyncio
async def test_record_conversion_clean(db):
    result = await tracking_svc.record_conversion(
        db, "alpha", requested_status="approved", referrer="https://lp.example/", user_agent="UA", ip_hash="h"
    )
    conversion = await db.get(Conversion, result.id)
    assert result.deduped is False
    assert conversion.status == "approved"
    assert conversion.risk is None
    assert conversion.review_comment is None


@pytest.mark.asyncio
async def test_record_conversion_dedupes_on_event_id(db):
    first = await tracking_svc.record_conversion(db, "alpha", event_id="evt-1", referrer="r", user_agent="u")
    second = await tracking_svc.record_conversion(db, "alpha", event_id="evt-1", referrer="r", user_agent="u")
    assert second.deduped is True
    assert second.id == first.id
    assert (await db.execute(select(func.count()).select_from(Conversion))).scalar() == 1


@pytest.mark.asyncio
async def test_missing_headers_annotate_without_blocking(db):
    result = await tracking_svc.record_conversion(db, "alpha")
    conversion = await db.get(Conversion, result.id)
    assert conversion.status == "pending"
    assert conversion.risk["reasons"] == ["missing_referer", "missing_user_agent"]
    assert conversion.review_comment == "Refererが無い / User-Agentが無い"


@pytest.mark.asyncio
async def test_ip_burst_forces_check_status(db, monkeypatch):
    from reviewsite.config import settings

    monkeypatch.setattr(settings, "conversion_ip_rate_per_minute", 2)
    for _ in range(2):
        await tracking_svc.record_conversion(db, "alpha", referrer="r", user_agent="u", ip_hash="burst")
    result = await tracking_svc.record_conversion(
        db, "alpha", requested_status="approved", referrer="r", user_agent="u", ip_hash="burst"
    )
    conversion = await db.get(Conversion, result.id)
    assert conversion.status == "check"
    assert conversion.risk["needs_review"] is True
    assert "ip_rate_1m_high" in conversion.risk["reasons"]


@pytest.mark.asyncio
async def test_set_conversion_status(db):
    result = await tracking_svc.record_conversion(db, "alpha", referrer="r", user_agent="u")
    assert await tracking_svc.set_conversion_status(db, result.id, "rejected") is True
    conversion = await db.get(Conversion, result.id)
    await db.refresh(conversion)
    assert conversion.status == "rejected"
    assert await tracking_svc.set_conversion_status(db, 9999, "approved") is False
