"""News coverage via the Tavily search API."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlparse

from pulse.errors import EmptyResultError
from pulse.models import Normalized, ShapeMismatch, SourceItem
from pulse.reports import NewsReport
from pulse.sources.base import Source, collect
from pulse.text import assemble_corpus, strip_html, text_or, truncate

logger = logging.getLogger(__name__)

SEARCH_URL = "https://api.tavily.com/search"
MAX_RESULTS = 10
SNIPPET_CHARS = 600

SYSTEM_PROMPT = """You are a strategic market analyst. Using the news articles provided about "{query}", write a market insights report in STRICT JSON format.

IMPORTANT RULES:
- ONLY return a valid JSON object
- NO markdown or code block formatting
- ALL fields MUST be present

JSON STRUCTURE:
{{
  "overview": "Concise market analysis summary",
  "trends": [
    {{"title": "Market Trend Name", "description": "Detailed trend description", "percentage": 0-100}}
  ] (exactly 4 items),
  "competitors": [
    {{"name": "Competitor Name", "strength": "Competitor analysis", "score": 0-100}}
  ] (exactly 5 items),
  "opportunities": ["4 concrete market opportunities"]
}}"""


def _hostname(url: str) -> str:
    netloc = urlparse(url).netloc
    return netloc[4:] if netloc.startswith("www.") else netloc


def normalize_article(raw: Any) -> Normalized:
    if not isinstance(raw, dict):
        return ShapeMismatch("news", "result is not an object", raw)
    url = text_or(raw.get("url"))
    title = strip_html(text_or(raw.get("title")))
    if not url or not title:
        return ShapeMismatch("news", "article without title or url", raw)
    return SourceItem(
        source="news",
        title=title,
        body=truncate(strip_html(text_or(raw.get("content"))), SNIPPET_CHARS),
        author=text_or(raw.get("source"), _hostname(url) or "Unknown Source"),
        url=url,
        published_at=text_or(raw.get("published_date")),
    )


class NewsSource(Source):
    name = "NewsAnalysis"
    service = "News"
    report_model = NewsReport
    temperature = 0.5
    max_tokens = 3000

    def credentials(self) -> dict[str, str]:
        return {"TAVILY_API_KEY": self.settings.tavily_api_key}

    def fetch(self, query: str) -> list[SourceItem]:
        body = self.post(
            SEARCH_URL,
            json={"query": query, "max_results": MAX_RESULTS, "topic": "news"},
            headers={"Authorization": f"Bearer {self.settings.tavily_api_key}"},
        )
        results = body.get("results") if isinstance(body, dict) else None
        items = collect(normalize_article(raw) for raw in results or [])
        if not items:
            raise EmptyResultError()
        return items[:MAX_RESULTS]

    def system_prompt(self, query: str) -> str:
        return SYSTEM_PROMPT.format(query=query)

    def build_corpus(self, query: str, items: list[SourceItem]) -> str:
        return assemble_corpus(
            f"{item.title} ({item.author}, {item.published_at or 'undated'})\n{item.body}"
            for item in items
        )
