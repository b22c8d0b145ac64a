"""Typed override patch: which school fields editors may override."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal, TypedDict


class SourcePatch(TypedDict, total=False):
    url: str | None
    note: str | None


class OverridePatch(TypedDict, total=False):
    """Editable subset of a school record, keyed exactly as in the content files.

    Review-derived scores and partner-controlled links are deliberately not
    members; see ``PROTECTED_KEYS``.
    """

    name: str
    logoUrl: str | None
    planUrl: str | None
    bannerImage: str | None
    bannerAlt: str | None

    priceText: str | None
    trialText: str | None
    trialDetailText: str | None
    benefitText: str | None
    hoursText: str | None

    campaignText: str | None
    campaignEndsAt: str | None
    campaignBullets: list[str]

    summary: str
    heroDescription: str | None
    heroImageUrl: str | None
    heroImageAlt: str | None
    prSectionTitle: str | None

    introSectionTitle: str | None
    introPlacement: Literal["section", "hero"] | None
    introSections: list[dict[str, Any]]

    editorialComments: list[str]
    features: list[str]
    points: list[str]
    recommendedFor: list[str]
    methodology: list[str]
    uniquenessTitle: str | None
    uniquenessBullets: list[str]
    primarySources: list[dict[str, str]]

    tagsSectionTitle: str | None
    tagsSectionSubtitle: str | None
    recommendedTagsTitle: str | None
    featureTagsTitle: str | None
    keyFactsSectionTitle: str | None
    keyFactsSectionSubtitle: str | None
    basicDataSectionTitle: str | None
    methodologySectionTitle: str | None
    methodologySectionSubtitle: str | None
    featureSectionTitle: str | None
    reviewsSectionTitle: str | None
    reviewsSectionSubtitle: str | None

    source: SourcePatch


# Always taken from static content, whatever a stored patch contains.
PROTECTED_KEYS: frozenset[str] = frozenset({
    "rating",
    "teacherQuality",
    "materialQuality",
    "connectionQuality",
    "prSections",
    "officialUrl",
    "bannerHref",
})

EDITABLE_KEYS: frozenset[str] = frozenset(OverridePatch.__annotations__)


def clean_patch(raw: Mapping[str, Any] | None) -> OverridePatch:
    """Keep only editable keys of a stored patch, preserving key order."""
    if not isinstance(raw, Mapping):
        return OverridePatch()
    out: dict[str, Any] = {}
    for key, value in raw.items():
        if key in EDITABLE_KEYS:
            out[key] = value
    return OverridePatch(**out)
