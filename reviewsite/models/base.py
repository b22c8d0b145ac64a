"""Base model classes and mixins for review site models."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class IntPKMixin:
    """Adds an autoincrement integer primary key."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)


class CreatedAtMixin:
    """Adds a created_at column."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True
    )


class RequestMetaMixin:
    """Anti-abuse request metadata shared by reviews, clicks and conversions."""

    ip: Mapped[str | None] = mapped_column(String(45), default=None)
    ip_hash: Mapped[str | None] = mapped_column(String(64), default=None, index=True)
    ip_version: Mapped[int | None] = mapped_column(Integer, default=None)
    user_agent: Mapped[str | None] = mapped_column(Text, default=None)
    referrer: Mapped[str | None] = mapped_column(Text, default=None)
