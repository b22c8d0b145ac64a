"""Convert the admin editor form into a stored override patch."""

from __future__ import annotations

from typing import Any

from ..merge.patch import EDITABLE_KEYS, PROTECTED_KEYS
from .csv_codec import LIST_COLUMNS, parse_primary_sources, split_lines

_STRUCTURED_KEYS = frozenset({"introSections", "primarySources", "source"})


def _text_or_none(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def editor_patch_to_override(form: dict[str, Any]) -> dict[str, Any]:
    """Textareas become lists, ``sourceUrl``/``sourceNote`` become ``source``.

    Keys absent from the form are left out so they do not overwrite anything.
    Protected and unknown keys are dropped.
    """
    data: dict[str, Any] = {}
    for key, value in form.items():
        if key in PROTECTED_KEYS or key not in EDITABLE_KEYS or key in _STRUCTURED_KEYS:
            continue
        if key in LIST_COLUMNS:
            data[key] = value if isinstance(value, list) else split_lines(_text_or_none(value))
        else:
            data[key] = _text_or_none(value)

    if "introSections" in form and isinstance(form["introSections"], list):
        data["introSections"] = form["introSections"]
    if "primarySources" in form:
        data["primarySources"] = parse_primary_sources(_text_or_none(form["primarySources"]))

    url = _text_or_none(form.get("sourceUrl"))
    if url:
        source = {"url": url}
        note = _text_or_none(form.get("sourceNote"))
        if note:
            source["note"] = note
        data["source"] = source
    return data
