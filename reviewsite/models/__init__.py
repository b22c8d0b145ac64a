"""Review site models - re-exports all models and Base.metadata."""

from .base import Base, utcnow, IntPKMixin, CreatedAtMixin, RequestMetaMixin
from .override import SchoolOverride
from .review import Review, REVIEW_STATUSES
from .tracking import Click, Conversion, CONVERSION_STATUSES
from .campaign import CampaignLog

__all__ = [
    "Base",
    "utcnow",
    "IntPKMixin",
    "CreatedAtMixin",
    "RequestMetaMixin",
    "SchoolOverride",
    "Review",
    "REVIEW_STATUSES",
    "Click",
    "Conversion",
    "CONVERSION_STATUSES",
    "CampaignLog",
]
