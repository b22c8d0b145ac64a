"""Repairs for override values damaged by spreadsheet export/import round trips.

Each step inspects one key of the merged record. When the value carries a
known corruption pattern it is either recovered (a JSON list that ended up
as text inside a one-element list) or replaced with the trusted static value.
Steps mutate ``merged`` in place and never raise.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any

# Bullet/tag lists rendered as plain strings.
STRING_LIST_FIELDS: tuple[str, ...] = (
    "editorialComments",
    "features",
    "points",
    "recommendedFor",
    "campaignBullets",
    "uniquenessBullets",
    "methodology",
)

# Scalar text fields where a pasted JSON list means the cell was mis-mapped.
JSON_TEXT_FIELDS: tuple[str, ...] = ("introSectionTitle", "priceText")

INTRO_PLACEMENTS = frozenset({"section", "hero"})

# Template fillers meaning "fill in the blank" (full-width double circles).
PLACEHOLDER_MARKERS: tuple[str, ...] = ("〇〇", "○○")


def looks_like_json_array_string(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    s = value.strip()
    return s.startswith("[") and s.endswith("]")


def looks_like_json_array_fragment(value: Any) -> bool:
    """A serialized array, possibly cut short by a spreadsheet cell limit.

    Text like ``[Limited] two free trials`` is an ordinary bullet, not JSON.
    """
    if looks_like_json_array_string(value):
        return True
    if not isinstance(value, str):
        return False
    s = value.strip()
    return s.startswith("[") and "]" not in s


def looks_like_placeholder(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    s = value.strip()
    if not s:
        return False
    return any(marker in s for marker in PLACEHOLDER_MARKERS)


def _parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return None


def _base_list(base: dict, key: str) -> list:
    value = base.get(key)
    return list(value) if isinstance(value, list) else []


def _base_text(base: dict, key: str) -> str | None:
    value = base.get(key)
    return value if isinstance(value, str) else None


def _is_intro_section(item: Any) -> bool:
    return (
        isinstance(item, dict)
        and isinstance(item.get("title"), str)
        and isinstance(item.get("body"), str)
    )


def normalize_string_list(base: dict, merged: dict, key: str) -> None:
    """Unwrap ``["[\\"a\\",\\"b\\"]"]`` to ``["a", "b"]``; otherwise fall back to static."""
    value = merged.get(key)
    if isinstance(value, list) and len(value) == 1 and looks_like_json_array_fragment(value[0]):
        parsed = _parse_json(value[0])
        if isinstance(parsed, list) and all(isinstance(x, str) for x in parsed):
            merged[key] = [str(x) for x in parsed]
        else:
            merged[key] = _base_list(base, key)
    elif looks_like_json_array_string(value):
        merged[key] = _base_list(base, key)


def normalize_json_text_field(base: dict, merged: dict, key: str) -> None:
    """A scalar holding JSON list text is a mis-mapped cell; use the static value."""
    if looks_like_json_array_string(merged.get(key)):
        merged[key] = _base_text(base, key)


def normalize_placeholder_text(base: dict, merged: dict, key: str) -> None:
    """Placeholder text counts as "not provided": keep the static value."""
    if looks_like_placeholder(merged.get(key)):
        if key in base:
            merged[key] = base[key]
        else:
            merged.pop(key, None)


def normalize_intro_sections(base: dict, merged: dict, key: str = "introSections") -> None:
    value = merged.get(key)
    if isinstance(value, list) and len(value) == 1 and looks_like_json_array_fragment(value[0]):
        parsed = _parse_json(value[0])
        if isinstance(parsed, list) and all(_is_intro_section(x) for x in parsed):
            merged[key] = parsed
        else:
            merged[key] = _base_list(base, key)
    elif looks_like_json_array_string(value):
        merged[key] = _base_list(base, key)


def normalize_intro_placement(base: dict, merged: dict, key: str = "introPlacement") -> None:
    value = merged.get(key)
    if value is not None and value not in INTRO_PLACEMENTS:
        merged[key] = base.get(key)


def sanitize_merged(base: dict, merged: dict, override_keys: Iterable[str]) -> dict:
    """Run every repair step over the keys that came from the override."""
    keys = set(override_keys)

    for key in STRING_LIST_FIELDS:
        if key in keys:
            normalize_string_list(base, merged, key)

    for key in JSON_TEXT_FIELDS:
        if key in keys:
            normalize_json_text_field(base, merged, key)

    if "introSections" in keys:
        normalize_intro_sections(base, merged)
    if "introPlacement" in keys:
        normalize_intro_placement(base, merged)

    for key in sorted(keys):
        if isinstance(merged.get(key), str):
            normalize_placeholder_text(base, merged, key)

    return merged
