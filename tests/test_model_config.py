"""
Tests for pulse/model_config.py

Run with: pytest tests/test_model_config.py
"""

import sqlite3
from unittest.mock import MagicMock, patch

import openai
import pytest

from pulse.model_config import ModelConfigStore
from pulse.storage import Database


@pytest.fixture
def db(tmp_path) -> Database:
    database = Database(tmp_path / "models.db")
    database.init_schema()
    return database


class TestGetModelName:
    def test_missing_row_uses_default(self, db):
        assert ModelConfigStore(db).get_model_name("SmartQuery", "fallback") == "fallback"

    def test_configured_row(self, db):
        store = ModelConfigStore(db)
        store.set_model("FacebookAdsAnalysis", "llama-3.1-8b-instant")
        assert store.get_model_name("FacebookAdsAnalysis", "fallback") == "llama-3.1-8b-instant"

    def test_database_error_uses_default(self, db):
        store = ModelConfigStore(db)
        with patch.object(db, "connect", side_effect=sqlite3.OperationalError("locked")):
            assert store.get_model_name("SmartQuery", "fallback") == "fallback"

    def test_update_seen_on_next_lookup(self, db):
        store = ModelConfigStore(db)
        store.set_model("SmartQuery", "a")
        store.set_model("SmartQuery", "b")
        assert store.get_model_name("SmartQuery", "x") == "b"
        assert len(store.list_models()) == 1


class TestSetModel:
    def test_rejects_blank(self, db):
        with pytest.raises(ValueError):
            ModelConfigStore(db).set_model("SmartQuery", "  ")

    def test_validates_against_endpoint(self, db):
        llm = MagicMock()
        llm.list_models.return_value = ["llama-3.3-70b-versatile"]
        store = ModelConfigStore(db, llm)

        with pytest.raises(ValueError, match='Model "gpt-x" is not available'):
            store.set_model("SmartQuery", "gpt-x")
        row = store.set_model("SmartQuery", "llama-3.3-70b-versatile")
        assert row.model_name == "llama-3.3-70b-versatile"

    def test_unreachable_endpoint_skips_validation(self, db):
        llm = MagicMock()
        llm.list_models.side_effect = openai.OpenAIError("no route")
        store = ModelConfigStore(db, llm)

        assert store.set_model("SmartQuery", "anything").model_name == "anything"


class TestListAndDelete:
    def test_list_ordered_by_name(self, db):
        store = ModelConfigStore(db)
        store.set_model("SmartQuery", "m1")
        store.set_model("FacebookAdsAnalysis", "m2")
        assert [row.api_name for row in store.list_models()] == ["FacebookAdsAnalysis", "SmartQuery"]

    def test_delete(self, db):
        store = ModelConfigStore(db)
        store.set_model("SmartQuery", "m1")
        assert store.delete("SmartQuery") is True
        assert store.delete("SmartQuery") is False
        assert store.get_model_name("SmartQuery", "fallback") == "fallback"
