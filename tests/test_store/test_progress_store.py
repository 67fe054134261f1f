"""Tests for the bounded progress store."""

from unittest.mock import MagicMock

import pytest

from readtime.exceptions import ContextTornDownError, StorageError
from readtime.store.backend import MemoryBackend, SQLiteBackend
from readtime.store.models import ReadingRecord
from readtime.store.progress_store import ProgressStore


def _record(url="https://example.com/post", progress=40.0, timestamp=1000, **kwargs):
    fields = {
        "url": url,
        "title": "A Post",
        "domain": "example.com",
        "scroll_position": 900,
        "progress": progress,
        "timestamp": timestamp,
        "reading_time": 6,
        "word_count": 1200,
    }
    fields.update(kwargs)
    return ReadingRecord(**fields)


@pytest.fixture
def store():
    return ProgressStore(MemoryBackend())


def test_save_and_get(store):
    assert store.save(_record()) is True
    record = store.get("https://example.com/post")
    assert record is not None
    assert record.progress == 40.0
    assert record.reading_time == 6


def test_get_missing_returns_none(store):
    assert store.get("https://example.com/missing") is None


def test_save_twice_keeps_one_record(store):
    store.save(_record(progress=20.0, timestamp=1))
    store.save(_record(progress=55.0, timestamp=2, title="Renamed"))
    records = store.get_all()
    assert len(records) == 1
    record = records["https://example.com/post"]
    assert record.progress == 55.0
    assert record.title == "Renamed"


def test_completed_recomputed_on_save(store):
    store.save(_record(progress=95.0, completed=False))
    assert store.get("https://example.com/post").completed is True

    store.save(_record(progress=30.0, completed=True, timestamp=2000))
    assert store.get("https://example.com/post").completed is False


def test_completion_threshold_boundary(store):
    store.save(_record(url="https://a.test/1", progress=90.0))
    store.save(_record(url="https://a.test/2", progress=89.9))
    assert store.get("https://a.test/1").completed is True
    assert store.get("https://a.test/2").completed is False


def test_progress_clamped(store):
    store.save(_record(progress=140.0))
    assert store.get("https://example.com/post").progress == 100.0
    store.save(_record(progress=-3.0, timestamp=2000))
    assert store.get("https://example.com/post").progress == 0.0


def test_eviction_drops_oldest_timestamp(store):
    # Timestamps out of insertion order; the smallest is inserted midway.
    timestamps = list(range(1000, 1101))
    oldest = timestamps.pop(0)
    timestamps.insert(50, oldest)
    for ts in timestamps:
        assert store.save(_record(url=f"https://example.com/{ts}", timestamp=ts)) is True

    records = store.get_all()
    assert len(records) == 100
    assert f"https://example.com/{oldest}" not in records


def test_eviction_keeps_recently_updated(store):
    small = ProgressStore(MemoryBackend(), capacity=3)
    small.save(_record(url="https://a.test/old", timestamp=1))
    small.save(_record(url="https://a.test/b", timestamp=2))
    small.save(_record(url="https://a.test/c", timestamp=3))
    # Revisit the oldest article.
    small.save(_record(url="https://a.test/old", timestamp=4))
    small.save(_record(url="https://a.test/d", timestamp=5))

    assert set(small.get_all()) == {
        "https://a.test/old",
        "https://a.test/c",
        "https://a.test/d",
    }


def test_eviction_discards_malformed_first():
    backend = MemoryBackend()
    backend.write("readtime_articles", {"https://a.test/bad": {"title": "no timestamp"}})
    small = ProgressStore(backend, capacity=1)
    small.save(_record(url="https://a.test/good", timestamp=1))
    assert list(backend.read("readtime_articles")) == ["https://a.test/good"]


def test_delete(store):
    store.save(_record())
    store.delete("https://example.com/post")
    assert store.get("https://example.com/post") is None
    assert store.count() == 0


def test_delete_missing_is_noop(store):
    store.save(_record())
    store.delete("https://example.com/never-saved")
    assert store.count() == 1


def test_get_all_skips_malformed():
    backend = MemoryBackend()
    backend.write(
        "readtime_articles",
        {
            "https://a.test/ok": _record(url="https://a.test/ok").to_dict(),
            "https://a.test/bad": {"url": "https://a.test/bad"},
        },
    )
    assert list(ProgressStore(backend).get_all()) == ["https://a.test/ok"]


def test_torn_down_save_returns_false():
    backend = MemoryBackend()
    store = ProgressStore(backend)
    backend.close()
    assert store.save(_record()) is False
    assert store.get_all() == {}
    assert store.get("https://example.com/post") is None
    store.delete("https://example.com/post")


def test_storage_error_is_not_raised():
    backend = MagicMock()
    backend.update.side_effect = StorageError("disk full")
    backend.read.side_effect = StorageError("disk full")
    store = ProgressStore(backend)
    assert store.save(_record()) is False
    assert store.get_all() == {}


def test_unserializable_record_returns_false(tmp_path, caplog):
    store = ProgressStore(SQLiteBackend(tmp_path / "progress.db"))
    store.save(_record(url="https://example.com/kept"))
    with caplog.at_level("ERROR"):
        assert store.save(_record(title=object())) is False
    assert "Cannot serialize" in caplog.text
    assert set(store.get_all()) == {"https://example.com/kept"}


def test_non_numeric_progress_returns_false(store):
    assert store.save(_record(progress="halfway")) is False
    assert store.count() == 0


def test_torn_down_is_logged(caplog):
    backend = MagicMock()
    backend.update.side_effect = ContextTornDownError("context invalidated")
    store = ProgressStore(backend)
    with caplog.at_level("WARNING"):
        assert store.save(_record()) is False
    assert "torn down" in caplog.text


def test_namespaces_are_isolated():
    backend = MemoryBackend()
    first = ProgressStore(backend, namespace="one")
    second = ProgressStore(backend, namespace="two")
    first.save(_record())
    assert second.get_all() == {}


def test_invalid_capacity():
    with pytest.raises(ValueError):
        ProgressStore(MemoryBackend(), capacity=0)


def test_stores_sharing_sqlite_file(tmp_path):
    db_path = tmp_path / "progress.db"
    tab_a = ProgressStore(SQLiteBackend(db_path))
    tab_b = ProgressStore(SQLiteBackend(db_path))
    tab_a.save(_record(url="https://a.test/1", timestamp=1))
    tab_b.save(_record(url="https://b.test/1", timestamp=2))
    assert set(tab_a.get_all()) == {"https://a.test/1", "https://b.test/1"}
