"""Affiliate click and conversion tracking models."""

from __future__ import annotations

from sqlalchemy import JSON, BigInteger, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, CreatedAtMixin, IntPKMixin, RequestMetaMixin

CONVERSION_STATUSES = ("pending", "check", "approved", "rejected")


class Click(IntPKMixin, CreatedAtMixin, RequestMetaMixin, Base):
    __tablename__ = "clicks"

    offer_id: Mapped[str] = mapped_column(String(100), index=True)
    click_id: Mapped[str] = mapped_column(String(64), unique=True)
    url: Mapped[str] = mapped_column(Text)


class Conversion(IntPKMixin, CreatedAtMixin, RequestMetaMixin, Base):
    __tablename__ = "conversions"

    offer_id: Mapped[str] = mapped_column(String(100), index=True)
    student_id: Mapped[str | None] = mapped_column(String(256), default=None)
    student_id_hash: Mapped[str | None] = mapped_column(String(64), default=None)
    event_id: Mapped[str | None] = mapped_column(String(128), default=None, unique=True)
    client_ts_ms: Mapped[int | None] = mapped_column(BigInteger, default=None)

    risk: Mapped[dict | None] = mapped_column(JSON, default=None)
    review_comment: Mapped[str | None] = mapped_column(Text, default=None)
    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)
    # pending / check / approved / rejected

    reward: Mapped[float | None] = mapped_column(Float, default=None)
    payout: Mapped[float | None] = mapped_column(Float, default=None)
    amount: Mapped[float | None] = mapped_column(Float, default=None)
    commission: Mapped[float | None] = mapped_column(Float, default=None)

    country: Mapped[str | None] = mapped_column(String(8), default=None)
    accept_language: Mapped[str | None] = mapped_column(Text, default=None)
    origin: Mapped[str | None] = mapped_column(Text, default=None)
    page_url: Mapped[str | None] = mapped_column(Text, default=None)
    cf_ray: Mapped[str | None] = mapped_column(String(100), default=None)
    request_id: Mapped[str | None] = mapped_column(String(100), default=None)
    request_headers: Mapped[dict | None] = mapped_column(JSON, default=None)
