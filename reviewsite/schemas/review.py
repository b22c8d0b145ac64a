"""Review submission schemas."""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, field_validator

from ..config import settings
from .common import OptionalText, to_finite_number

RATING_MIN = 1.0
RATING_MAX = 5.0


def is_valid_rating(value: float | None) -> bool:
    """1 to 5 inclusive, in 0.5 steps."""
    if value is None or not RATING_MIN <= value <= RATING_MAX:
        return False
    return abs(value - round(value * 2) / 2) < 0.01


Rating = Annotated[float | None, BeforeValidator(to_finite_number)]


class ReviewSubmission(BaseModel):
    model_config = ConfigDict(validate_default=True, extra="ignore")

    school_id: Annotated[str, BeforeValidator(lambda v: (v or "").strip())] = ""
    overall_rating: Rating = None
    teacher_quality: Rating = None
    material_quality: Rating = None
    connection_quality: Rating = None
    price_rating: Rating = None
    satisfaction_rating: Rating = None
    body: Annotated[str, BeforeValidator(lambda v: (v or "").strip())] = ""
    age: OptionalText = None
    improvement_points: OptionalText = None

    @field_validator("school_id")
    @classmethod
    def _school_id_required(cls, v: str) -> str:
        if not v:
            raise ValueError("school_id is required")
        return v

    @field_validator("overall_rating", "teacher_quality", "material_quality", "connection_quality")
    @classmethod
    def _core_rating(cls, v: float | None) -> float:
        if not is_valid_rating(v):
            raise ValueError("All ratings must be between 1 and 5 in 0.5 increments")
        return v

    @field_validator("price_rating", "satisfaction_rating")
    @classmethod
    def _optional_rating(cls, v: float | None) -> float | None:
        if v is not None and not is_valid_rating(v):
            raise ValueError("All ratings must be between 1 and 5 in 0.5 increments")
        return v

    @field_validator("body")
    @classmethod
    def _body_length(cls, v: str) -> str:
        lo, hi = settings.review_body_min_length, settings.review_body_max_length
        if not lo <= len(v) <= hi:
            raise ValueError(f"Body must be between {lo} and {hi} characters")
        return v

    @field_validator("age")
    @classmethod
    def _age_length(cls, v: str | None) -> str | None:
        return v[: settings.review_age_max_length] if v else v

    @field_validator("improvement_points")
    @classmethod
    def _improvement_length(cls, v: str | None) -> str | None:
        limit = settings.review_improvement_points_max_length
        if v and len(v) > limit:
            raise ValueError(f"improvement_points must be {limit} characters or less")
        return v

