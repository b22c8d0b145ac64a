"""Tests for combining static school records with override patches."""

from __future__ import annotations

import copy

import pytest

from reviewsite.content.schema import SchoolRecord
from reviewsite.merge import merge_record
from reviewsite.merge.engine import enforce_schema, merge_shallow
from reviewsite.merge.patch import PROTECTED_KEYS, clean_patch


@pytest.fixture
def alpha(store):
    return store.get_record("alpha")


@pytest.fixture
def beta(store):
    return store.get_record("beta")


def test_no_override_returns_static_record(alpha):
    assert merge_record(alpha, None) == alpha
    assert merge_record(alpha, {}) == alpha


def test_no_override_returns_a_copy(alpha):
    merged = merge_record(alpha, None)
    merged["features"].append("mutated")
    assert "mutated" not in alpha["features"]


def test_override_wins_per_key(alpha):
    merged = merge_record(alpha, {"priceText": "月額2,000円", "trialText": "7日間無料"})
    assert merged["priceText"] == "月額2,000円"
    assert merged["trialText"] == "7日間無料"
    assert merged["name"] == alpha["name"]
    assert merged["features"] == alpha["features"]


def test_protected_fields_always_come_from_static(alpha):
    patch = {
        "rating": 1.0,
        "teacherQuality": 1.5,
        "materialQuality": 1.0,
        "connectionQuality": 1.0,
        "prSections": [],
        "officialUrl": "https://evil.example/",
        "bannerHref": "https://evil.example/aff",
        "summary": "Edited summary",
    }
    merged = merge_record(alpha, patch)
    for key in PROTECTED_KEYS:
        assert merged[key] == alpha[key]
    assert merged["summary"] == "Edited summary"


def test_unknown_keys_are_dropped(alpha):
    merged = merge_record(alpha, {"notAField": "x"})
    assert "notAField" not in merged
    assert merged == alpha


def test_source_is_merged_shallowly(alpha):
    merged = merge_record(alpha, {"source": {"note": "checked 2026-10"}})
    assert merged["source"] == {"url": "https://alpha.example.com/", "note": "checked 2026-10"}


def test_source_url_override_wins(beta):
    merged = merge_record(beta, {"source": {"url": "https://beta.example.com/plans"}})
    assert merged["source"]["url"] == "https://beta.example.com/plans"


def test_wrapped_json_list_is_unwrapped(alpha):
    merged = merge_record(alpha, {"features": ['["A","B"]']})
    assert merged["features"] == ["A", "B"]


def test_unparseable_wrapped_list_reverts_to_static(alpha):
    merged = merge_record(alpha, {"features": ["[not valid json"]})
    assert merged["features"] == alpha["features"]

    merged = merge_record(alpha, {"features": ["[not valid json]"]})
    assert merged["features"] == alpha["features"]


def test_bracket_prefixed_bullet_survives_merge(alpha):
    merged = merge_record(alpha, {"features": ["[初回限定] 無料体験2回"]})
    assert merged["features"] == ["[初回限定] 無料体験2回"]


def test_placeholder_text_keeps_static_value(alpha):
    merged = merge_record(alpha, {"priceText": "〇〇円から"})
    assert merged["priceText"] == "月額1,000円"


def test_placeholder_in_required_field_keeps_static_value(alpha):
    merged = merge_record(alpha, {"name": "○○英会話"})
    assert merged["name"] == "Alpha English"


def test_intro_title_json_artifact_reverts(beta):
    merged = merge_record(beta, {"introSectionTitle": '["About", "Beta"]'})
    assert merged["introSectionTitle"] == "About Beta"


def test_intro_sections_unwrapped(beta):
    merged = merge_record(beta, {"introSections": ['[{"title": "T", "body": "B"}]']})
    assert [(s["title"], s["body"]) for s in merged["introSections"]] == [("T", "B")]


def test_intro_sections_with_invalid_items_revert(beta):
    merged = merge_record(beta, {"introSections": ['[{"title": "T"}]']})
    assert merged["introSections"] == beta["introSections"]


def test_intro_placement_out_of_enum_reverts(beta):
    merged = merge_record(beta, {"introPlacement": "sidebar"})
    assert merged["introPlacement"] == "section"

    merged = merge_record(beta, {"introPlacement": "hero"})
    assert merged["introPlacement"] == "hero"


def test_schema_violations_revert_to_static(alpha):
    merged = merge_record(alpha, {
        "planUrl": "not a url",
        "name": None,
        "campaignBullets": [1, 2],
        "priceText": "月額3,000円",
    })
    assert merged["planUrl"] == alpha["planUrl"]
    assert merged["name"] == alpha["name"]
    assert merged["campaignBullets"] == alpha["campaignBullets"]
    assert merged["priceText"] == "月額3,000円"


def test_merge_does_not_mutate_inputs(alpha):
    base_before = copy.deepcopy(alpha)
    patch = {"features": ['["A"]'], "source": {"note": "n"}}
    patch_before = copy.deepcopy(patch)
    merge_record(alpha, patch)
    assert alpha == base_before
    assert patch == patch_before


def test_merged_record_is_schema_valid(beta):
    merged = merge_record(beta, {
        "introSections": ["[broken]"],
        "introPlacement": 3,
        "points": '["x"]',
    })
    SchoolRecord.model_validate(merged)


def test_merge_shallow_skips_protected():
    out = merge_shallow({"rating": 4.0, "name": "A"}, {"rating": 1.0, "name": "B"})
    assert out == {"rating": 4.0, "name": "B"}


def test_enforce_schema_falls_back_to_base(alpha):
    candidate = dict(alpha, summary=None)
    assert enforce_schema(alpha, candidate)["summary"] == alpha["summary"]


def test_clean_patch_keeps_only_editable_keys():
    assert clean_patch({"name": "A", "rating": 5, "bogus": 1}) == {"name": "A"}
    assert clean_patch(None) == {}
    assert clean_patch(["not", "a", "mapping"]) == {}
