"""Combine a static school record with its stored override patch."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from ..content.schema import SchoolRecord, dump_record
from .patch import PROTECTED_KEYS, clean_patch
from .sanitize import sanitize_merged


def merge_shallow(
    base: Mapping[str, Any], override: Mapping[str, Any], protected: frozenset[str] = PROTECTED_KEYS
) -> dict:
    """Top-level merge where the override wins, except for protected keys."""
    out = dict(base)
    for key, value in override.items():
        if key in protected:
            continue
        out[key] = value
    return out


def enforce_schema(base: dict, merged: dict) -> dict:
    """Validate ``merged``; any top-level key that fails reverts to the static value."""
    candidate = dict(merged)
    for _ in range(3):
        try:
            return dump_record(SchoolRecord.model_validate(candidate))
        except ValidationError as e:
            bad_keys = {err["loc"][0] for err in e.errors() if err.get("loc")}
            for key in bad_keys:
                if key in base:
                    candidate[key] = copy.deepcopy(base[key])
                else:
                    candidate.pop(key, None)
    return copy.deepcopy(base)


def merge_record(base: dict, patch: Mapping[str, Any] | None) -> dict:
    """Return the record a page should render.

    ``base`` is a validated static record; ``patch`` is the raw stored
    override (or None). Pure: neither argument is modified.
    """
    if not patch:
        return copy.deepcopy(base)

    cleaned = clean_patch(patch)
    if not cleaned:
        return copy.deepcopy(base)

    merged = merge_shallow(copy.deepcopy(base), copy.deepcopy(dict(cleaned)))
    override_source = cleaned.get("source")
    if isinstance(override_source, Mapping) and isinstance(base.get("source"), Mapping):
        merged["source"] = merge_shallow(base["source"], override_source, frozenset())

    sanitize_merged(base, merged, cleaned.keys())
    return enforce_schema(base, merged)
