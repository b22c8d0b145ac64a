"""File-backed static school content (one JSON document per school)."""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path

from pydantic import ValidationError

from ..config import settings
from .schema import SchoolRecord, dump_record

logger = logging.getLogger(__name__)


class SchoolContentStore:
    """Loads and validates ``<school_id>.json`` files from a directory.

    Records are read once and cached; ``reload()`` re-reads the directory.
    Files that fail to parse or validate are logged and skipped.
    """

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)
        self._records: dict[str, dict] | None = None

    def _load(self) -> dict[str, dict]:
        records: dict[str, dict] = {}
        if not self.directory.is_dir():
            logger.warning("School content directory %s does not exist", self.directory)
            return records
        for path in sorted(self.directory.glob("*.json")):
            school_id = path.stem
            try:
                raw = json.loads(path.read_text(encoding="utf-8"))
                record = SchoolRecord.model_validate(raw)
            except (OSError, json.JSONDecodeError, ValidationError) as e:
                logger.warning("Skipping invalid school content %s: %s", path.name, e)
                continue
            records[school_id] = dump_record(record)
        return records

    @property
    def records(self) -> dict[str, dict]:
        if self._records is None:
            self._records = self._load()
        return self._records

    def reload(self) -> None:
        self._records = None

    def list_ids(self) -> list[str]:
        return list(self.records)

    def has(self, school_id: str) -> bool:
        return school_id in self.records

    def get_record(self, school_id: str) -> dict | None:
        """Return a copy of the static record, or None for unknown ids."""
        record = self.records.get(school_id)
        return copy.deepcopy(record) if record is not None else None


_store: SchoolContentStore | None = None


def get_content_store() -> SchoolContentStore:
    """FastAPI dependency returning the process-wide content store."""
    global _store
    if _store is None:
        _store = SchoolContentStore(settings.content_path)
    return _store
