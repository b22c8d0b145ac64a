"""Campaign approval audit log."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, CreatedAtMixin, IntPKMixin


class CampaignLog(IntPKMixin, CreatedAtMixin, Base):
    __tablename__ = "campaign_logs"

    school_id: Mapped[str] = mapped_column(String(100), index=True)
    action: Mapped[str] = mapped_column(String(20))  # approved / updated
    old_campaign_data: Mapped[dict | None] = mapped_column(JSON, default=None)
    new_campaign_data: Mapped[dict | None] = mapped_column(JSON, default=None)
    approved_by: Mapped[str | None] = mapped_column(String(100), default=None)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    slack_message_ts: Mapped[str | None] = mapped_column(String(50), default=None)
    source_url: Mapped[str | None] = mapped_column(Text, default=None)
