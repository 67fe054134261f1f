"""Data models for the progress store."""

from __future__ import annotations

from dataclasses import dataclass

from readtime.exceptions import MalformedRecordError


@dataclass
class ReadingRecord:
    """Saved reading progress for one URL."""

    url: str
    title: str
    domain: str
    scroll_position: float
    progress: float
    timestamp: int
    completed: bool = False
    reading_time: int = 0
    word_count: int = 0

    def to_dict(self) -> dict:
        """Persisted layout."""
        return {
            "url": self.url,
            "title": self.title,
            "domain": self.domain,
            "scrollPosition": self.scroll_position,
            "progress": self.progress,
            "timestamp": self.timestamp,
            "completed": self.completed,
            "readingTime": self.reading_time,
            "wordCount": self.word_count,
        }

    @classmethod
    def from_dict(cls, raw: dict) -> ReadingRecord:
        if not isinstance(raw, dict):
            raise MalformedRecordError(f"Expected an object, got {type(raw).__name__}")

        url = raw.get("url")
        if not isinstance(url, str) or not url.strip():
            raise MalformedRecordError("Record has no url")

        timestamp = raw.get("timestamp")
        if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
            raise MalformedRecordError(f"Record for {url} has no usable timestamp")

        try:
            return cls(
                url=url,
                title=str(raw.get("title") or ""),
                domain=str(raw.get("domain") or ""),
                scroll_position=max(0.0, float(raw.get("scrollPosition") or 0)),
                progress=float(raw.get("progress") or 0),
                timestamp=int(timestamp),
                completed=bool(raw.get("completed", False)),
                reading_time=int(raw.get("readingTime") or 0),
                word_count=int(raw.get("wordCount") or 0),
            )
        except (TypeError, ValueError) as e:
            raise MalformedRecordError(f"Record for {url} has bad field: {e}") from e


@dataclass
class ReadingStats:
    """Totals shown alongside a record listing."""

    total: int = 0
    completed: int = 0
    minutes_read: int = 0
