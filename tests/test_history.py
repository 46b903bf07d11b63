"""
Tests for pulse/history.py

Uses a temporary SQLite file so the real history DB is never touched.

Run with: pytest tests/test_history.py
"""

import pytest

from pulse.history import HistoryStore
from pulse.storage import Database


@pytest.fixture
def db(tmp_path) -> Database:
    database = Database(tmp_path / "nested" / "test_history.db")
    database.init_schema()
    return database


@pytest.fixture
def store(db) -> HistoryStore:
    return HistoryStore(db)


class TestSaveAndRetrieve:
    def test_save_returns_entry(self, store):
        entry = store.save("user-1", "  headphones ", ["RedditAnalytics", "XAnalytics"])

        assert entry.id > 0
        assert entry.query == "headphones"
        assert entry.active_components == ["RedditAnalytics", "XAnalytics"]
        assert entry.created_at.tzinfo is not None

    def test_get_returns_entry(self, store):
        saved = store.save("user-1", "headphones", ["QuoraAnalysis"])
        entry = store.get("user-1", saved.id)

        assert entry is not None
        assert entry == saved

    def test_get_missing_returns_none(self, store):
        assert store.get("user-1", 99999) is None

    def test_get_other_users_entry_returns_none(self, store):
        saved = store.save("user-1", "headphones", [])
        assert store.get("user-2", saved.id) is None

    @pytest.mark.parametrize("user_id, query", [("", "q"), ("  ", "q"), ("u", ""), ("u", "   ")])
    def test_blank_values_rejected(self, store, user_id, query):
        with pytest.raises(ValueError):
            store.save(user_id, query, [])

    def test_list_returns_newest_first(self, store):
        first = store.save("user-1", "topic A", [])
        second = store.save("user-1", "topic B", [])

        entries = store.list_for_user("user-1")

        assert [e.id for e in entries] == [second.id, first.id]

    def test_list_respects_limit(self, store):
        for i in range(5):
            store.save("user-1", f"topic {i}", [])
        assert len(store.list_for_user("user-1", limit=3)) == 3

    def test_list_is_scoped_to_user(self, store):
        store.save("user-1", "mine", [])
        store.save("user-2", "theirs", [])
        assert [e.query for e in store.list_for_user("user-1")] == ["mine"]

    def test_corrupt_row_is_skipped(self, store, db):
        good = store.save("user-1", "fine", [])
        with db.connect() as conn:
            conn.execute(
                "INSERT INTO search_history (user_id, query, active_components, created_at) "
                "VALUES ('user-1', 'broken', 'not json', 'not a date')"
            )
        assert [e.id for e in store.list_for_user("user-1")] == [good.id]


class TestDelete:
    def test_delete_existing(self, store):
        saved = store.save("user-1", "ml", [])
        assert store.delete("user-1", saved.id) is True
        assert store.get("user-1", saved.id) is None

    def test_delete_missing_returns_false(self, store):
        assert store.delete("user-1", 99999) is False

    def test_cannot_delete_other_users_entry(self, store):
        saved = store.save("user-1", "ml", [])
        assert store.delete("user-2", saved.id) is False
        assert store.get("user-1", saved.id) is not None

    def test_deleted_entry_absent_from_list(self, store):
        saved = store.save("user-1", "ml", [])
        store.delete("user-1", saved.id)
        assert saved.id not in [e.id for e in store.list_for_user("user-1")]
