"""User-submitted review model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, CreatedAtMixin, IntPKMixin, RequestMetaMixin

REVIEW_STATUSES = ("pending", "approved", "rejected")


class Review(IntPKMixin, CreatedAtMixin, RequestMetaMixin, Base):
    __tablename__ = "reviews"

    school_id: Mapped[str] = mapped_column(String(100), index=True)
    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)
    # pending / approved / rejected

    overall_rating: Mapped[float | None] = mapped_column(Float, default=None)
    teacher_quality: Mapped[float | None] = mapped_column(Float, default=None)
    material_quality: Mapped[float | None] = mapped_column(Float, default=None)
    connection_quality: Mapped[float | None] = mapped_column(Float, default=None)
    price_rating: Mapped[float | None] = mapped_column(Float, default=None)
    satisfaction_rating: Mapped[float | None] = mapped_column(Float, default=None)

    body: Mapped[str] = mapped_column(Text)
    age: Mapped[str | None] = mapped_column(String(20), default=None)
    review_comment: Mapped[str | None] = mapped_column(Text, default=None)

    improvement_points: Mapped[str | None] = mapped_column(Text, default=None)
    improvement_points_response: Mapped[str | None] = mapped_column(Text, default=None)
    improvement_points_responded_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
