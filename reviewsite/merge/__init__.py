"""Merge engine: static content + editorial overrides."""

from .engine import enforce_schema, merge_record, merge_shallow
from .patch import EDITABLE_KEYS, PROTECTED_KEYS, OverridePatch, SourcePatch, clean_patch

__all__ = [
    "enforce_schema",
    "merge_record",
    "merge_shallow",
    "EDITABLE_KEYS",
    "PROTECTED_KEYS",
    "OverridePatch",
    "SourcePatch",
    "clean_patch",
]
