"""Model configuration table: ``api_name`` → ``model_name``.

Sources that pick their completion model dynamically read it here at call
time. The lookup never fails: a missing row or a database error falls back
to the caller's default. Nothing is cached, so an update takes effect on the
next fetch.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

import openai

from pulse.models import ApiModel
from pulse.storage import Database

if TYPE_CHECKING:
    from pulse.llm import CompletionClient

logger = logging.getLogger(__name__)


class ModelConfigStore:
    """Reads and edits the ``api_models`` table."""

    def __init__(self, db: Database, llm: Optional[CompletionClient] = None) -> None:
        """
        Args:
            db: Shared database handle.
            llm: When given, ``set_model`` checks names against the endpoint's
                model list.
        """
        self.db = db
        self.llm = llm

    def get_model_name(self, api_name: str, default: str) -> str:
        """Return the configured model for *api_name*, or *default*."""
        try:
            with self.db.connect() as conn:
                row = conn.execute(
                    "SELECT model_name FROM api_models WHERE api_name = ?",
                    (api_name,),
                ).fetchone()
        except sqlite3.Error as exc:
            logger.warning("Model lookup failed for %s, using %s: %s", api_name, default, exc)
            return default

        if row is None or not row["model_name"]:
            return default
        return row["model_name"]

    def list_models(self) -> list[ApiModel]:
        """All configured rows, ordered by ``api_name``."""
        with self.db.connect() as conn:
            rows = conn.execute(
                "SELECT api_name, model_name, updated_at FROM api_models ORDER BY api_name"
            ).fetchall()
        return [
            ApiModel(
                api_name=row["api_name"],
                model_name=row["model_name"],
                updated_at=datetime.fromisoformat(row["updated_at"]),
            )
            for row in rows
        ]

    def available_models(self) -> Optional[list[str]]:
        """Model ids served by the endpoint, or ``None`` if it can't be asked."""
        if self.llm is None:
            return None
        try:
            return self.llm.list_models()
        except openai.OpenAIError as exc:
            logger.warning("Could not list endpoint models: %s", exc)
            return None

    def set_model(self, api_name: str, model_name: str) -> ApiModel:
        """Create or update the row for *api_name*.

        Raises:
            ValueError: Blank names, or a model the endpoint does not serve.
        """
        api_name = api_name.strip()
        model_name = model_name.strip()
        if not api_name or not model_name:
            raise ValueError("api_name and model_name must not be empty.")

        available = self.available_models()
        if available is not None and model_name not in available:
            raise ValueError(
                f'Model "{model_name}" is not available. '
                "Please select from available models."
            )

        now = datetime.now(timezone.utc)
        with self.db.connect() as conn:
            conn.execute(
                "INSERT INTO api_models (api_name, model_name, updated_at) VALUES (?, ?, ?) "
                "ON CONFLICT(api_name) DO UPDATE SET "
                "model_name = excluded.model_name, updated_at = excluded.updated_at",
                (api_name, model_name, now.isoformat()),
            )
        logger.info("Model for %s set to %s", api_name, model_name)
        return ApiModel(api_name=api_name, model_name=model_name, updated_at=now)

    def delete(self, api_name: str) -> bool:
        """Remove the row for *api_name*. False if there was none."""
        with self.db.connect() as conn:
            cursor = conn.execute("DELETE FROM api_models WHERE api_name = ?", (api_name,))
        return cursor.rowcount > 0
