"""Persistent, capacity-bounded reading progress store."""

from readtime.store.backend import MemoryBackend, SQLiteBackend, StorageBackend
from readtime.store.models import ReadingRecord, ReadingStats
from readtime.store.parser import domain_from_url, parse_record
from readtime.store.progress_store import ProgressStore
from readtime.store.query import list_records, summarize

__all__ = [
    "MemoryBackend",
    "SQLiteBackend",
    "StorageBackend",
    "ReadingRecord",
    "ReadingStats",
    "domain_from_url",
    "parse_record",
    "ProgressStore",
    "list_records",
    "summarize",
]
