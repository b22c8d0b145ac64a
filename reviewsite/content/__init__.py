"""Static school content: schema and file-backed store."""

from .schema import SchoolRecord, dump_record
from .store import SchoolContentStore, get_content_store

__all__ = ["SchoolRecord", "dump_record", "SchoolContentStore", "get_content_store"]
