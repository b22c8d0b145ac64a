"""Review service - public submissions, moderation, aggregates."""

from __future__ import annotations

from datetime import timedelta

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.base import utcnow
from ..models.review import Review
from ..stats import DetailedStats, detailed_stats


async def create_review(db: AsyncSession, school_id: str, **kwargs) -> Review:
    review = Review(school_id=school_id, status="pending", **kwargs)
    db.add(review)
    await db.commit()
    await db.refresh(review)
    return review


async def count_recent_by_ip_hash(
    db: AsyncSession, ip_hash: str, window: timedelta = timedelta(hours=1)
) -> int:
    cutoff = utcnow() - window
    stmt = select(func.count()).select_from(Review).where(
        Review.ip_hash == ip_hash, Review.created_at > cutoff
    )
    return (await db.execute(stmt)).scalar() or 0


async def list_reviews(
    db: AsyncSession,
    school_id: str | None = None,
    status: str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> tuple[list[Review], int]:
    stmt = select(Review)
    if school_id:
        stmt = stmt.where(Review.school_id == school_id)
    if status:
        stmt = stmt.where(Review.status == status)
    count_stmt = select(func.count()).select_from(stmt.subquery())
    total = (await db.execute(count_stmt)).scalar() or 0
    stmt = stmt.order_by(Review.created_at.desc(), Review.id.desc()).offset(offset).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all()), total


async def set_status(
    db: AsyncSession, review_id: int, status: str, review_comment: str | None = None
) -> bool:
    stmt = update(Review).where(Review.id == review_id).values(status=status, review_comment=review_comment)
    result = await db.execute(stmt)
    await db.commit()
    return (result.rowcount or 0) > 0


async def respond_to_improvement_points(db: AsyncSession, review_id: int, response: str) -> bool:
    """One-time write of the school's answer to a review's improvement points.

    Returns False when the review has no improvement points or already has an answer.
    """
    stmt = (
        update(Review)
        .where(
            Review.id == review_id,
            Review.improvement_points.is_not(None),
            Review.improvement_points_response.is_(None),
        )
        .values(improvement_points_response=response, improvement_points_responded_at=utcnow())
    )
    result = await db.execute(stmt)
    await db.commit()
    return (result.rowcount or 0) > 0


async def school_stats(db: AsyncSession, school_id: str) -> DetailedStats:
    """Aggregates over a school's approved reviews."""
    stmt = select(
        Review.overall_rating,
        Review.teacher_quality,
        Review.material_quality,
        Review.connection_quality,
        Review.price_rating,
        Review.satisfaction_rating,
    ).where(Review.school_id == school_id, Review.status == "approved")
    rows = (await db.execute(stmt)).mappings().all()
    return detailed_stats(rows)
