from __future__ import annotations

import logging
import os
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from threading import RLock
from typing import Dict, Generator, Optional

from .settings import get_settings

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class KeyValueStore(ABC):
    """
    Best-effort durable storage for string documents addressed by key.

    Implementations never raise to the caller: a failed read returns None and a
    failed write is dropped. Callers treat None as "no data".
    """

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """Return the stored document for key, or None if missing or unreadable."""

    @abstractmethod
    def write(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous document."""


class InMemoryStore(KeyValueStore):
    """
    Process-local store suitable for testing and default runtime.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._lock = RLock()
        self._docs: Dict[str, str] = dict(initial or {})

    def read(self, key: str) -> Optional[str]:
        with self._lock:
            return self._docs.get(key)

    def write(self, key: str, value: str) -> None:
        with self._lock:
            self._docs[key] = value


class FileStore(KeyValueStore):
    """
    One file per key inside a directory: <storage_dir>/<key>.json

    Writes go to a temp file first and are then renamed over the target, so a
    reader sees either the old or the new document.
    """

    def __init__(self, storage_dir: str) -> None:
        self._dir = Path(storage_dir)
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Cannot create storage directory {self._dir}: {e}")

    def _path(self, key: str) -> Path:
        return self._dir / f"{key}.json"

    def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read {path}: {e}")
            return None

    def write(self, key: str, value: str) -> None:
        path = self._path(key)
        temp_path = path.with_suffix(".tmp")
        try:
            temp_path.write_text(value, encoding="utf-8")
            temp_path.replace(path)
            logger.debug(f"Wrote {len(value)} bytes to {path}")
        except OSError as e:
            logger.warning(f"Failed to write {path}: {e}")


@dataclass(frozen=True)
class _Cols:
    table: str = "documents"
    key: str = "key"
    value: str = "value"


_COLS = _Cols()


class SQLiteStore(KeyValueStore):
    """
    Lightweight SQLite key/value table implementing the KeyValueStore interface.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        try:
            os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
            self._init_db()
        except (OSError, sqlite3.Error) as e:
            logger.warning(f"Cannot initialize sqlite store at {db_path}: {e}")

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.key} TEXT PRIMARY KEY,
                    {_COLS.value} TEXT NOT NULL
                )
                """
            )

    def read(self, key: str) -> Optional[str]:
        try:
            with self._conn() as conn:
                row = conn.execute(
                    f"SELECT {_COLS.value} FROM {_COLS.table} WHERE {_COLS.key} = ?", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            logger.warning(f"Failed to read '{key}' from {self._db_path}: {e}")
            return None
        return str(row[0]) if row else None

    def write(self, key: str, value: str) -> None:
        try:
            with self._conn() as conn:
                conn.execute(
                    f"""
                    INSERT INTO {_COLS.table} ({_COLS.key}, {_COLS.value}) VALUES (?, ?)
                    ON CONFLICT({_COLS.key}) DO UPDATE SET {_COLS.value} = excluded.{_COLS.value}
                    """,
                    (key, value),
                )
        except sqlite3.Error as e:
            logger.warning(f"Failed to write '{key}' to {self._db_path}: {e}")


# PUBLIC_INTERFACE
def get_store() -> KeyValueStore:
    """
    Factory to return the configured document store based on settings.
    - memory: InMemoryStore
    - file: FileStore rooted at STORAGE_DIR
    - sqlite: SQLiteStore at SQLITE_DB_PATH
    """
    settings = get_settings()
    if settings.persistence_backend == "file":
        return FileStore(settings.storage_dir)
    if settings.persistence_backend == "sqlite":
        return SQLiteStore(settings.sqlite_db_path)
    return InMemoryStore()
