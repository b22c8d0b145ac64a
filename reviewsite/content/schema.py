"""Pydantic schema for static school content files.

Keys in the JSON files are camelCase; attributes are snake_case with a camel
alias generator so ``model_dump(by_alias=True)`` gives back the file shape.
"""

from __future__ import annotations

from typing import Annotated, Literal
from urllib.parse import urlparse

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _check_url(value: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError(f"not an absolute URL: {value!r}")
    return value


Url = Annotated[str, AfterValidator(_check_url)]


class _Content(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class Source(_Content):
    url: Url | None = None
    note: str | None = None


class ImageMedia(_Content):
    type: Literal["image"]
    src: str
    alt: str | None = None
    width: int | None = Field(default=None, gt=0)
    height: int | None = Field(default=None, gt=0)


class IframeMedia(_Content):
    type: Literal["iframe"]
    src: str
    width: int | None = Field(default=None, gt=0)
    height: int | None = Field(default=None, gt=0)


IntroMedia = Annotated[ImageMedia | IframeMedia, Field(discriminator="type")]


class IntroSection(_Content):
    title: str
    body: str
    wide_media: IntroMedia | None = None
    side_media: IntroMedia | None = None
    reverse: bool | None = None


class PrSection(_Content):
    icon_text: str | None = None
    icon_url: str | None = None
    title: str
    body: str
    image: dict | None = None
    reverse: bool | None = None


class PrimarySource(_Content):
    label: str
    url: Url
    type: Literal["official", "lp", "pr"]


class SchoolRecord(_Content):
    name: str
    official_url: Url
    summary: str
    source: Source

    logo_url: str | None = None
    plan_url: Url | None = None
    banner_image: str | None = None
    banner_alt: str | None = None
    banner_href: Url | None = None

    price_text: str | None = None
    trial_text: str | None = None
    trial_detail_text: str | None = None
    benefit_text: str | None = None
    hours_text: str | None = None

    campaign_text: str | None = None
    campaign_ends_at: str | None = None
    campaign_bullets: list[str] = Field(default_factory=list)

    hero_description: str | None = None
    hero_image_url: str | None = None
    hero_image_alt: str | None = None

    pr_section_title: str | None = None
    pr_sections: list[PrSection] = Field(default_factory=list)

    intro_section_title: str | None = None
    intro_placement: Literal["section", "hero"] | None = None
    intro_sections: list[IntroSection] = Field(default_factory=list)

    editorial_comments: list[str] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    points: list[str] = Field(default_factory=list)
    recommended_for: list[str] = Field(default_factory=list)
    methodology: list[str] = Field(default_factory=list)
    uniqueness_title: str | None = None
    uniqueness_bullets: list[str] = Field(default_factory=list)
    primary_sources: list[PrimarySource] = Field(default_factory=list)

    tags_section_title: str | None = None
    tags_section_subtitle: str | None = None
    recommended_tags_title: str | None = None
    feature_tags_title: str | None = None
    key_facts_section_title: str | None = None
    key_facts_section_subtitle: str | None = None
    basic_data_section_title: str | None = None
    methodology_section_title: str | None = None
    methodology_section_subtitle: str | None = None
    feature_section_title: str | None = None
    reviews_section_title: str | None = None
    reviews_section_subtitle: str | None = None

    # Derived from review data, never authored through overrides.
    rating: float | None = Field(default=None, ge=0, le=5)
    teacher_quality: float | None = Field(default=None, ge=0, le=5)
    material_quality: float | None = Field(default=None, ge=0, le=5)
    connection_quality: float | None = Field(default=None, ge=0, le=5)

    @field_validator("teacher_quality", "material_quality", "connection_quality")
    @classmethod
    def _half_steps(cls, v: float | None) -> float | None:
        if v is not None and round(v * 2) / 2 != v:
            raise ValueError("must be in 0.5 increments")
        return v


def dump_record(record: SchoolRecord) -> dict:
    """Serialize a validated record back to its camelCase JSON shape."""
    return record.model_dump(by_alias=True, mode="json")
