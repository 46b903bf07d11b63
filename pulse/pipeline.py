"""The fetch → filter → prompt → parse sequence, written once for every source.

``Pipeline.run`` is the only public entry point. It never raises: each
failure category in ``pulse.errors`` (and any unexpected exception) becomes a
failed ``FetchResult`` whose ``error`` is the user-facing message.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Optional

from pulse.errors import ConfigurationError, EmptyResultError, PipelineError
from pulse.llm import CompletionClient
from pulse.models import FetchResult, SourceReport
from pulse.relevance import filter_relevant
from pulse.reports import parse_report, strip_code_fence
from pulse.sources.base import Source

if TYPE_CHECKING:
    from config.settings import Settings
    from pulse.model_config import ModelConfigStore

logger = logging.getLogger(__name__)

LLMFactory = Callable[[str], CompletionClient]


class Pipeline:
    """Runs sources and turns their items into parsed reports."""

    def __init__(
        self,
        settings: Settings,
        model_config: Optional[ModelConfigStore] = None,
        llm_factory: Optional[LLMFactory] = None,
    ) -> None:
        """
        Args:
            settings: Application settings (LLM base URL and timeout).
            model_config: Lookup for sources that select their model dynamically.
            llm_factory: Builds a completion client for an API key; tests pass
                a factory returning a mock.
        """
        self.settings = settings
        self.model_config = model_config
        self._llm_factory = llm_factory or self._default_llm
        self._clients: dict[str, CompletionClient] = {}

    def _default_llm(self, api_key: str) -> CompletionClient:
        return CompletionClient(
            api_key=api_key,
            base_url=self.settings.llm_base_url,
            timeout=self.settings.request_timeout,
        )

    def llm_for(self, api_key: str) -> CompletionClient:
        """One completion client per API key, reused across runs."""
        if api_key not in self._clients:
            self._clients[api_key] = self._llm_factory(api_key)
        return self._clients[api_key]

    def resolve_model(self, source: Source) -> str:
        if source.model_config_key and self.model_config is not None:
            return self.model_config.get_model_name(source.model_config_key, source.model)
        return source.model

    def _run(self, source: Source, query: str) -> SourceReport:
        if not source.is_configured():
            raise ConfigurationError()

        items = source.fetch(query)
        if not items and source.requires_items:
            raise EmptyResultError()

        if items and source.filter_relevance:
            relevant = filter_relevant(items, query, text_of=source.searchable_text)
            if not relevant:
                raise EmptyResultError(
                    f'No items contain the query keywords "{query}". '
                    f"Found {len(items)} items but none were relevant."
                )
            items = relevant
        items = source.select(items)

        model = self.resolve_model(source)
        text = self.llm_for(source.llm_api_key()).complete(
            source.system_prompt(query),
            source.build_corpus(query, items),
            model=model,
            temperature=source.temperature,
            max_tokens=source.max_tokens,
        )
        report = parse_report(strip_code_fence(text).strip(), source.report_model)
        return SourceReport(
            query=query, source=source.name, model=model, items=items, report=report
        )

    def run(self, source: Source, query: str) -> FetchResult[SourceReport]:
        """Fetch, filter, analyse and parse *query* for *source*.

        Returns:
            ``FetchResult.ok(SourceReport)`` or ``FetchResult.fail(message)``.
        """
        query = (query or "").strip()
        if not query:
            return FetchResult.fail("Query cannot be empty")

        logger.info("Running %s for %r", source.name, query)
        try:
            report = self._run(source, query)
        except PipelineError as exc:
            logger.warning("%s failed: %s", source.name, exc)
            return FetchResult.fail(str(exc))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error in %s", source.name)
            return FetchResult.fail(str(exc) or "Unknown error occurred")

        logger.info("%s: analysed %d items with %s", source.name, len(report.items), report.model)
        return FetchResult.ok(report)
