"""
Saved searches for Market Pulse.

A saved search records who ran which query with which dashboard components
switched on. Rows are created on an explicit save and removed on an explicit
delete; a user can only see and delete their own rows.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone

from pulse.models import SavedSearch
from pulse.storage import Database

logger = logging.getLogger(__name__)


class HistoryStore:
    """Create / list / get / delete saved searches in the injected database."""

    def __init__(self, db: Database) -> None:
        self.db = db

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> SavedSearch:
        return SavedSearch(
            id=row["id"],
            user_id=row["user_id"],
            query=row["query"],
            active_components=json.loads(row["active_components"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def save(self, user_id: str, query: str, active_components: list[str]) -> SavedSearch:
        """Persist a search and return the stored entry.

        Raises:
            ValueError: If *user_id* or *query* is blank.
        """
        user_id = user_id.strip()
        query = query.strip()
        if not user_id:
            raise ValueError("user_id must not be empty.")
        if not query:
            raise ValueError("Query must not be empty.")

        now = datetime.now(timezone.utc)
        with self.db.connect() as conn:
            cursor = conn.execute(
                "INSERT INTO search_history (user_id, query, active_components, created_at) "
                "VALUES (?, ?, ?, ?)",
                (user_id, query, json.dumps(list(active_components)), now.isoformat()),
            )
            row_id = cursor.lastrowid

        logger.info("Saved search id=%d user=%s query=%r", row_id, user_id, query)
        return SavedSearch(
            id=row_id,
            user_id=user_id,
            query=query,
            active_components=list(active_components),
            created_at=now,
        )

    def list_for_user(self, user_id: str, limit: int = 50) -> list[SavedSearch]:
        """Return *user_id*'s most recent saved searches, newest first."""
        with self.db.connect() as conn:
            rows = conn.execute(
                "SELECT id, user_id, query, active_components, created_at "
                "FROM search_history WHERE user_id = ? ORDER BY id DESC LIMIT ?",
                (user_id, limit),
            ).fetchall()

        entries: list[SavedSearch] = []
        for row in rows:
            try:
                entries.append(self._row_to_entry(row))
            except (ValueError, TypeError) as exc:
                logger.warning("Skipping corrupt history entry id=%d: %s", row["id"], exc)
        return entries

    def get(self, user_id: str, entry_id: int) -> SavedSearch | None:
        """Fetch one of *user_id*'s entries, or ``None``."""
        with self.db.connect() as conn:
            row = conn.execute(
                "SELECT id, user_id, query, active_components, created_at "
                "FROM search_history WHERE id = ? AND user_id = ?",
                (entry_id, user_id),
            ).fetchone()
        return self._row_to_entry(row) if row is not None else None

    def delete(self, user_id: str, entry_id: int) -> bool:
        """Delete one of *user_id*'s entries. False if absent or not theirs."""
        with self.db.connect() as conn:
            cursor = conn.execute(
                "DELETE FROM search_history WHERE id = ? AND user_id = ?",
                (entry_id, user_id),
            )
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Deleted saved search id=%d user=%s", entry_id, user_id)
        return deleted
