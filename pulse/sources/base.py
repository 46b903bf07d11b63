"""Base class for upstream integrations.

A source knows how to fetch and normalize items from one API and which
prompt contract and report schema its analysis uses. The credential check,
relevance filtering, model selection, the completion call and parsing are
done once by ``pulse.pipeline.Pipeline``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Optional

import requests

from pulse.http import get_json, post_json
from pulse.llm import DEFAULT_MODEL
from pulse.models import Normalized, ShapeMismatch, SourceItem
from pulse.reports import AnalysisReport
from pulse.text import assemble_corpus

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)


def collect(results: Iterable[Normalized]) -> list[SourceItem]:
    """Keep the ``SourceItem`` results, logging and dropping ``ShapeMismatch``."""
    items: list[SourceItem] = []
    for result in results:
        if isinstance(result, ShapeMismatch):
            logger.warning("Dropped %s item: %s", result.source, result.reason)
            continue
        items.append(result)
    return items


class Source(ABC):
    """One upstream API plus its prompt contract."""

    #: Dashboard component name; also the registry key.
    name: str = ""
    #: Upstream label used in error messages (``"<service> API error: 503"``).
    service: str = ""
    #: Schema the completion must match.
    report_model: type[AnalysisReport] = AnalysisReport
    #: Completion model used unless ``model_config_key`` resolves to another.
    model: str = DEFAULT_MODEL
    #: ``api_name`` in the model configuration table, for dynamic selection.
    model_config_key: Optional[str] = None
    temperature: float = 0.7
    max_tokens: int = 4500
    #: Drop items that don't mention the query before prompting.
    filter_relevance: bool = False
    #: An empty fetch fails the run; false for completion-only reports.
    requires_items: bool = True

    def __init__(self, settings: Settings, session: requests.Session) -> None:
        self.settings = settings
        self.session = session

    # ── Credentials ────────────────────────────────────────────────────────

    @abstractmethod
    def credentials(self) -> dict[str, str]:
        """Upstream credential values keyed by setting name."""

    def llm_api_key(self) -> str:
        """Key used for this source's completion calls."""
        return self.settings.llm_api_key

    def is_configured(self) -> bool:
        return bool(self.llm_api_key()) and all(self.credentials().values())

    # ── Fetching ───────────────────────────────────────────────────────────

    @abstractmethod
    def fetch(self, query: str) -> list[SourceItem]:
        """Fetch and normalize items for *query* (already trimmed, non-empty)."""

    def select(self, items: list[SourceItem]) -> list[SourceItem]:
        """Final cut applied after relevance filtering."""
        return items

    def searchable_text(self, item: SourceItem) -> str:
        """Text the relevance filter matches query tokens against."""
        return item.body

    # ── Prompt contract ────────────────────────────────────────────────────

    @abstractmethod
    def system_prompt(self, query: str) -> str:
        """Fixed instruction describing the JSON report to return."""

    def build_corpus(self, query: str, items: list[SourceItem]) -> str:  # noqa: ARG002
        """User turn sent with the prompt; item bodies joined by default."""
        return assemble_corpus(item.body for item in items)

    # ── HTTP shortcuts ─────────────────────────────────────────────────────

    def get(self, url: str, **kwargs: Any) -> Any:
        return get_json(
            self.session, url, service=self.service,
            timeout=self.settings.request_timeout, **kwargs,
        )

    def post(self, url: str, **kwargs: Any) -> Any:
        return post_json(
            self.session, url, service=self.service,
            timeout=self.settings.request_timeout, **kwargs,
        )
