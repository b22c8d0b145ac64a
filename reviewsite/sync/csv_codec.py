"""CSV row <-> school record conversion for the spreadsheet editing workflow.

Cells hold plain text: bullet lists are newline-joined inside one cell,
object arrays are embedded JSON, primary sources are ``[type] label url``
lines. Exports carry a UTF-8 BOM so spreadsheet apps detect the encoding.
"""

from __future__ import annotations

import csv
import io
import json
import re
from collections.abc import Iterable
from typing import Any

from ..merge.patch import PROTECTED_KEYS

CSV_COLUMNS: tuple[str, ...] = (
    "id",
    "name",
    "officialUrl",
    "logoUrl",
    "planUrl",
    "bannerHref",
    "bannerImage",
    "bannerAlt",
    "priceText",
    "trialText",
    "trialDetailText",
    "benefitText",
    "hoursText",
    "campaignText",
    "campaignEndsAt",
    "campaignBullets",
    "summary",
    "heroDescription",
    "heroImageUrl",
    "heroImageAlt",
    "prSectionTitle",
    "prSections",
    "introSectionTitle",
    "introPlacement",
    "introSections",
    "editorialComments",
    "features",
    "points",
    "recommendedFor",
    "methodology",
    "uniquenessTitle",
    "uniquenessBullets",
    "primarySources",
    "sourceUrl",
    "sourceNote",
    "tagsSectionTitle",
    "tagsSectionSubtitle",
    "recommendedTagsTitle",
    "featureTagsTitle",
    "keyFactsSectionTitle",
    "keyFactsSectionSubtitle",
    "basicDataSectionTitle",
    "methodologySectionTitle",
    "methodologySectionSubtitle",
    "featureSectionTitle",
    "reviewsSectionTitle",
    "reviewsSectionSubtitle",
)

LIST_COLUMNS = frozenset({
    "campaignBullets",
    "editorialComments",
    "features",
    "points",
    "recommendedFor",
    "methodology",
    "uniquenessBullets",
})
JSON_COLUMNS = frozenset({"prSections", "introSections"})
# Empty cells for these mean "keep the static value" rather than null.
REQUIRED_TEXT_COLUMNS = frozenset({"name", "summary"})
SOURCE_COLUMNS = ("sourceUrl", "sourceNote")
_NOT_PATCHED = frozenset({"id", *SOURCE_COLUMNS})

BOM = "\ufeff"

_SOURCE_LINE_RE = re.compile(r"^\[(official|lp|pr)\]\s*(.+)$", re.IGNORECASE)
_URL_TOKEN_RE = re.compile(r"^https?://", re.IGNORECASE)


def join_lines(values: Any) -> str:
    if not isinstance(values, list):
        return ""
    return "\n".join(s for s in (str(v if v is not None else "").strip() for v in values) if s)


def split_lines(text: str | None) -> list[str]:
    return [s for s in (line.strip() for line in re.split(r"\r?\n", text or "")) if s]


def _drop_nulls(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _drop_nulls(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_drop_nulls(v) for v in value]
    return value


def json_cell(values: Any) -> str:
    if not isinstance(values, list) or not values:
        return ""
    return json.dumps(_drop_nulls(values), ensure_ascii=False)


def sources_to_lines(sources: Any) -> str:
    if not isinstance(sources, list):
        return ""
    lines = []
    for src in sources:
        if not isinstance(src, dict):
            continue
        parts = [f"[{src['type']}]" if src.get("type") else "", src.get("label") or "", src.get("url") or ""]
        line = " ".join(p for p in parts if p)
        if line:
            lines.append(line)
    return "\n".join(lines)


def parse_primary_sources(text: str | None) -> list[dict[str, str]]:
    """Parse ``[type] label url`` lines; type defaults to ``official``."""
    out = []
    for line in split_lines(text):
        kind, rest = "official", line
        m = _SOURCE_LINE_RE.match(line)
        if m:
            kind, rest = m.group(1).lower(), m.group(2).strip()
        parts = rest.split()
        url_idx = next((i for i, p in enumerate(parts) if _URL_TOKEN_RE.match(p)), -1)
        if url_idx < 0:
            continue
        label = " ".join(parts[:url_idx]).strip()
        url = " ".join(parts[url_idx:])
        if label and url:
            out.append({"label": label, "url": url, "type": kind})
    return out


def record_to_row(school_id: str, record: dict) -> dict[str, str]:
    """Flatten a merged school record into one CSV row."""
    row: dict[str, str] = {}
    for col in CSV_COLUMNS:
        if col == "id":
            row[col] = school_id
        elif col in LIST_COLUMNS:
            row[col] = join_lines(record.get(col))
        elif col in JSON_COLUMNS:
            row[col] = json_cell(record.get(col))
        elif col == "primarySources":
            row[col] = sources_to_lines(record.get(col))
        elif col in SOURCE_COLUMNS:
            source = record.get("source") if isinstance(record.get("source"), dict) else {}
            value = source.get("url" if col == "sourceUrl" else "note")
            row[col] = "" if value is None else str(value)
        else:
            value = record.get(col)
            row[col] = "" if value is None else str(value)
    return row


def row_to_patch(row: dict[str, str]) -> tuple[dict, list[str]]:
    """Build an override patch from a CSV row.

    Only columns present in the row contribute, in ``CSV_COLUMNS`` order.
    Protected columns are ignored. Returns the patch and per-cell errors.
    """
    patch: dict[str, Any] = {}
    errors: list[str] = []
    for col in CSV_COLUMNS:
        if col not in row or col in PROTECTED_KEYS or col in _NOT_PATCHED:
            continue
        raw = row[col] or ""
        if col in LIST_COLUMNS:
            patch[col] = split_lines(raw)
        elif col == "introSections":
            text = raw.strip()
            if not text:
                patch[col] = []
                continue
            try:
                parsed = json.loads(text)
            except ValueError:
                errors.append(f"{col}: invalid JSON")
                continue
            if not isinstance(parsed, list):
                errors.append(f"{col}: expected a JSON array")
                continue
            patch[col] = parsed
        elif col == "primarySources":
            patch[col] = parse_primary_sources(raw)
        else:
            text = raw.strip()
            if not text and col in REQUIRED_TEXT_COLUMNS:
                continue
            patch[col] = text or None

    if "sourceUrl" in row or "sourceNote" in row:
        patch["source"] = {
            "url": (row.get("sourceUrl") or "").strip() or None,
            "note": (row.get("sourceNote") or "").strip() or None,
        }
    return patch, errors


def write_csv(rows: Iterable[dict[str, str]]) -> str:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=list(CSV_COLUMNS), lineterminator="\n")
    writer.writeheader()
    writer.writerows(rows)
    return BOM + buf.getvalue()


def read_csv(text: str) -> list[dict[str, str]]:
    """Parse CSV text into row dicts; rows with a blank id are skipped."""
    if text.startswith(BOM):
        text = text[len(BOM):]
    reader = csv.DictReader(io.StringIO(text, newline=""))
    if reader.fieldnames:
        reader.fieldnames = [(h or "").strip() for h in reader.fieldnames]
    records = []
    for rec in reader:
        row = {k: (v if v is not None else "") for k, v in rec.items() if k}
        if not row.get("id", "").strip():
            continue
        records.append(row)
    return records
