"""Tests for listing queries."""

import pytest

from readtime.store.models import ReadingRecord
from readtime.store.query import list_records, summarize


def _record(url, title, domain, progress, timestamp, reading_time=10):
    return ReadingRecord(
        url=url,
        title=title,
        domain=domain,
        scroll_position=0,
        progress=progress,
        timestamp=timestamp,
        completed=progress >= 90,
        reading_time=reading_time,
        word_count=reading_time * 200,
    )


@pytest.fixture
def records():
    return [
        _record("https://news.test/a", "Rust in Production", "news.test", 40, 10),
        _record("https://blog.test/b", "Python Packaging", "blog.test", 100, 30),
        _record("https://news.test/c", "Gardening Notes", "news.test", 60, 20),
    ]


def test_sorted_newest_first(records):
    urls = [r.url for r in list_records(records)]
    assert urls == ["https://blog.test/b", "https://news.test/c", "https://news.test/a"]


def test_filter_by_status(records):
    assert [r.url for r in list_records(records, status="completed")] == ["https://blog.test/b"]
    assert len(list_records(records, status="in_progress")) == 2


def test_search_title_and_domain(records):
    assert [r.url for r in list_records(records, query="python")] == ["https://blog.test/b"]
    assert len(list_records(records, query="NEWS.test")) == 2


def test_unknown_status(records):
    with pytest.raises(ValueError, match="Unknown status"):
        list_records(records, status="archived")


def test_summarize(records):
    stats = summarize(records)
    assert stats.total == 3
    assert stats.completed == 1
    assert stats.minutes_read == 4 + 10 + 6


def test_summarize_empty():
    assert summarize([]).total == 0
