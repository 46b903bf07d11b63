"""
SQLite database handle shared by the history and model-config stores.

Constructed once by the application factory and passed to the stores, so
nothing opens a database at import time.

Schema
──────
table: search_history
  id                INTEGER PRIMARY KEY AUTOINCREMENT
  user_id           TEXT NOT NULL
  query             TEXT NOT NULL
  active_components TEXT NOT NULL  (JSON array of component names)
  created_at        TEXT NOT NULL  (ISO-8601 UTC)

table: api_models
  api_name    TEXT PRIMARY KEY
  model_name  TEXT NOT NULL
  updated_at  TEXT NOT NULL  (ISO-8601 UTC)
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS search_history (
        id                INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id           TEXT NOT NULL,
        query             TEXT NOT NULL,
        active_components TEXT NOT NULL,
        created_at        TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_search_history_user ON search_history (user_id)",
    """
    CREATE TABLE IF NOT EXISTS api_models (
        api_name   TEXT PRIMARY KEY,
        model_name TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
)


class Database:
    """Opens short-lived connections to one SQLite file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        """Yield a connected sqlite3.Connection, creating the file/dir if needed."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init_schema(self) -> None:
        """Create the tables if they don't exist yet."""
        with self.connect() as conn:
            for statement in _SCHEMA:
                conn.execute(statement)
        logger.info("Database initialised at %s", self.path)
