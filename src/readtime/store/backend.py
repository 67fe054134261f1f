"""Storage backends holding namespaced record maps."""

from __future__ import annotations

import copy
import json
import logging
import os
import sqlite3
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable

from readtime.exceptions import ContextTornDownError, StorageError

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".readtime" / "progress.db"

Mutator = Callable[[dict], dict]


def default_db_path() -> Path:
    """Database location, overridable with READTIME_DB_PATH."""
    env_path = os.environ.get("READTIME_DB_PATH")
    return Path(env_path).expanduser() if env_path else DEFAULT_DB_PATH


class StorageBackend(ABC):
    """Abstract key-value medium; each namespace holds one JSON object."""

    @abstractmethod
    def read(self, namespace: str) -> dict:
        """Return the stored object, or an empty dict."""
        ...

    @abstractmethod
    def write(self, namespace: str, value: dict) -> None:
        """Replace the stored object."""
        ...

    @abstractmethod
    def update(self, namespace: str, mutate: Mutator) -> dict:
        """Atomically read, apply ``mutate`` and write back. Returns the new value."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Tear down the backend; later calls raise ContextTornDownError."""
        ...


class MemoryBackend(StorageBackend):
    """In-process backend guarded by a lock."""

    def __init__(self) -> None:
        self._data: dict[str, dict] = {}
        self._lock = threading.Lock()
        self._closed = False

    def read(self, namespace: str) -> dict:
        with self._lock:
            self._check_open()
            return copy.deepcopy(self._data.get(namespace, {}))

    def write(self, namespace: str, value: dict) -> None:
        with self._lock:
            self._check_open()
            self._data[namespace] = copy.deepcopy(value)

    def update(self, namespace: str, mutate: Mutator) -> dict:
        with self._lock:
            self._check_open()
            value = mutate(copy.deepcopy(self._data.get(namespace, {})))
            self._data[namespace] = copy.deepcopy(value)
            return value

    def close(self) -> None:
        with self._lock:
            self._closed = True

    def _check_open(self) -> None:
        if self._closed:
            raise ContextTornDownError("Memory backend has been closed")


class SQLiteBackend(StorageBackend):
    """SQLite-backed store shared by every process using the same file.

    Args:
        db_path: Database file (default: READTIME_DB_PATH or ~/.readtime/progress.db).
        timeout: Seconds to wait on a locked database.
    """

    def __init__(self, db_path: Path | str | None = None, timeout: float = 5.0):
        self.db_path = Path(db_path) if db_path else default_db_path()
        self.timeout = timeout
        self._closed = False
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create storage directory {self.db_path.parent}: {e}") from e

        conn = self._connect()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_store (
                    namespace TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )
        except sqlite3.Error as e:
            raise StorageError(f"Failed initializing {self.db_path}: {e}") from e
        finally:
            conn.close()

    def read(self, namespace: str) -> dict:
        conn = self._connect()
        try:
            return self._select(conn, namespace)
        except sqlite3.Error as e:
            raise StorageError(f"Failed reading {namespace!r}: {e}") from e
        finally:
            conn.close()

    def write(self, namespace: str, value: dict) -> None:
        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
            self._upsert(conn, namespace, value)
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            self._rollback(conn)
            raise StorageError(f"Failed writing {namespace!r}: {e}") from e
        except StorageError:
            self._rollback(conn)
            raise
        finally:
            conn.close()

    def update(self, namespace: str, mutate: Mutator) -> dict:
        conn = self._connect()
        try:
            # Take the write lock before reading so concurrent writers serialize.
            conn.execute("BEGIN IMMEDIATE")
            value = mutate(self._select(conn, namespace))
            self._upsert(conn, namespace, value)
            conn.execute("COMMIT")
            return value
        except sqlite3.Error as e:
            self._rollback(conn)
            raise StorageError(f"Failed updating {namespace!r}: {e}") from e
        except Exception:
            self._rollback(conn)
            raise
        finally:
            conn.close()

    def close(self) -> None:
        self._closed = True

    def _connect(self) -> sqlite3.Connection:
        if self._closed:
            raise ContextTornDownError(f"Storage at {self.db_path} has been closed")
        try:
            return sqlite3.connect(
                str(self.db_path), timeout=self.timeout, isolation_level=None
            )
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open {self.db_path}: {e}") from e

    def _select(self, conn: sqlite3.Connection, namespace: str) -> dict:
        row = conn.execute(
            "SELECT value FROM kv_store WHERE namespace = ?", (namespace,)
        ).fetchone()
        if row is None:
            return {}
        return self._decode(namespace, row[0])

    @staticmethod
    def _upsert(conn: sqlite3.Connection, namespace: str, value: dict) -> None:
        try:
            blob = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Cannot serialize {namespace!r}: {e}") from e
        conn.execute(
            """
            INSERT INTO kv_store (namespace, value) VALUES (?, ?)
            ON CONFLICT(namespace) DO UPDATE SET value = excluded.value
            """,
            (namespace, blob),
        )

    @staticmethod
    def _decode(namespace: str, blob: str) -> dict:
        try:
            value = json.loads(blob)
        except (TypeError, ValueError) as e:
            logger.warning("Discarding corrupt value in %r: %s", namespace, e)
            return {}
        if not isinstance(value, dict):
            logger.warning("Discarding non-object value in %r", namespace)
            return {}
        return value

    @staticmethod
    def _rollback(conn: sqlite3.Connection) -> None:
        if conn.in_transaction:
            try:
                conn.execute("ROLLBACK")
            except sqlite3.Error as e:
                logger.warning("Rollback failed: %s", e)
