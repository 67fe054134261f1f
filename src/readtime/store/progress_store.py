"""Bounded per-URL store of reading progress."""

from __future__ import annotations

import logging
from dataclasses import replace

from readtime.exceptions import ContextTornDownError, StorageError
from readtime.store.backend import StorageBackend
from readtime.store.models import ReadingRecord
from readtime.store.parser import parse_record, parse_records

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100
DEFAULT_NAMESPACE = "readtime_articles"
COMPLETION_THRESHOLD = 90.0


class ProgressStore:
    """Reading records keyed by URL, evicting the least recently updated.

    Every write is a read-modify-write of the whole record map performed
    atomically by the backend; concurrent writers get last-write-wins per URL.

    Args:
        backend: Storage medium holding the record map.
        capacity: Maximum number of records kept (default 100).
        namespace: Key the record map is stored under.
        completion_threshold: Progress at or above which a record is completed.
    """

    def __init__(
        self,
        backend: StorageBackend,
        capacity: int = DEFAULT_CAPACITY,
        namespace: str = DEFAULT_NAMESPACE,
        completion_threshold: float = COMPLETION_THRESHOLD,
    ):
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self.backend = backend
        self.capacity = capacity
        self.namespace = namespace
        self.completion_threshold = completion_threshold

    def save(self, record: ReadingRecord) -> bool:
        """Upsert a record; returns False instead of raising on storage failure."""
        try:
            record = self._normalize(record)
        except (TypeError, ValueError) as e:
            logger.error("Rejected record for %s: %s", record.url, e)
            return False

        def _apply(articles: dict) -> dict:
            articles[record.url] = record.to_dict()
            if len(articles) > self.capacity:
                articles = self._evict(articles)
            return articles

        try:
            self.backend.update(self.namespace, _apply)
        except ContextTornDownError as e:
            logger.warning("Storage context torn down, progress for %s not saved: %s", record.url, e)
            return False
        except (StorageError, TypeError, ValueError) as e:
            logger.error("Save failed for %s: %s", record.url, e)
            return False
        return True

    def get(self, url: str) -> ReadingRecord | None:
        """Saved record for a URL, or None."""
        try:
            raw = self.backend.read(self.namespace).get(url)
        except StorageError as e:
            self._log_read_failure(e)
            return None
        if raw is None:
            return None
        return parse_record(raw)

    def get_all(self) -> dict[str, ReadingRecord]:
        """All well-formed records; empty when storage is unavailable."""
        try:
            raw_map = self.backend.read(self.namespace)
        except StorageError as e:
            self._log_read_failure(e)
            return {}
        return parse_records(raw_map)

    def delete(self, url: str) -> None:
        """Remove a record. Deleting an absent URL is a no-op."""

        def _apply(articles: dict) -> dict:
            articles.pop(url, None)
            return articles

        try:
            self.backend.update(self.namespace, _apply)
        except ContextTornDownError as e:
            logger.warning("Storage context torn down, %s not deleted: %s", url, e)
        except StorageError as e:
            logger.error("Delete failed for %s: %s", url, e)

    def count(self) -> int:
        return len(self.get_all())

    def is_completed(self, progress: float) -> bool:
        return progress >= self.completion_threshold

    def _normalize(self, record: ReadingRecord) -> ReadingRecord:
        progress = min(100.0, max(0.0, float(record.progress)))
        return replace(
            record,
            progress=progress,
            scroll_position=max(0.0, float(record.scroll_position)),
            completed=self.is_completed(progress),
        )

    def _evict(self, articles: dict) -> dict:
        """Keep the ``capacity`` most recently updated entries."""
        ranked = sorted(articles.items(), key=_recency, reverse=True)
        evicted = len(ranked) - self.capacity
        logger.debug("Evicting %d record(s) from %r", evicted, self.namespace)
        return dict(ranked[: self.capacity])

    @staticmethod
    def _log_read_failure(error: StorageError) -> None:
        if isinstance(error, ContextTornDownError):
            logger.warning("Storage context torn down, nothing to resume: %s", error)
        else:
            logger.error("Load failed: %s", error)


def _recency(item: tuple[str, dict]) -> float:
    _, raw = item
    timestamp = raw.get("timestamp") if isinstance(raw, dict) else None
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        # Malformed entries rank oldest.
        return float("-inf")
    return float(timestamp)
