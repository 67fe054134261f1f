"""Parse stored values into reading records."""

from __future__ import annotations

import logging
from urllib.parse import urlparse

from readtime.exceptions import MalformedRecordError
from readtime.store.models import ReadingRecord

logger = logging.getLogger(__name__)


def parse_record(raw: dict) -> ReadingRecord | None:
    """Normalize one stored value; returns None for malformed values."""
    try:
        return ReadingRecord.from_dict(raw)
    except MalformedRecordError as e:
        logger.debug("Skipping malformed record: %s", e)
        return None


def parse_records(raw_map: dict) -> dict[str, ReadingRecord]:
    """Parse a stored url -> value map, dropping anything malformed."""
    records: dict[str, ReadingRecord] = {}
    for key, raw in raw_map.items():
        record = parse_record(raw)
        if record is None:
            continue
        records[key] = record
    return records


def domain_from_url(url: str) -> str:
    """Host part of a URL, lowercased."""
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""
