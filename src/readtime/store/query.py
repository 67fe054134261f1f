"""Listing and summary queries over saved records."""

from __future__ import annotations

from typing import Iterable

from readtime.progress.calculator import minutes_read
from readtime.store.models import ReadingRecord, ReadingStats

STATUS_FILTERS = {"all", "in_progress", "completed"}


def list_records(
    records: Iterable[ReadingRecord],
    status: str = "all",
    query: str = "",
) -> list[ReadingRecord]:
    """Most recently updated first, filtered by completion state and text."""
    if status not in STATUS_FILTERS:
        raise ValueError(f"Unknown status filter: {status!r}")

    needle = (query or "").strip().lower()
    matched = []
    for record in records:
        if status == "completed" and not record.completed:
            continue
        if status == "in_progress" and record.completed:
            continue
        if needle and needle not in record.title.lower() and needle not in record.domain.lower():
            continue
        matched.append(record)

    matched.sort(key=lambda r: r.timestamp, reverse=True)
    return matched


def summarize(records: Iterable[ReadingRecord]) -> ReadingStats:
    """Totals across a set of records."""
    stats = ReadingStats()
    for record in records:
        stats.total += 1
        if record.completed:
            stats.completed += 1
        stats.minutes_read += minutes_read(record.reading_time, record.progress)
    return stats
