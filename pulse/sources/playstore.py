"""Google Play reviews via the RapidAPI ``store-apps`` service."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pulse.errors import EmptyResultError
from pulse.models import Normalized, ShapeMismatch, SourceItem
from pulse.reports import ReviewReport
from pulse.sources.base import Source, collect
from pulse.text import text_or, to_float, to_int, truncate

logger = logging.getLogger(__name__)

API_HOST = "store-apps.p.rapidapi.com"
API_BASE = f"https://{API_HOST}"
SEARCH_LIMIT = 10
REVIEW_LIMIT = 20
REVIEW_MAX_CHARS = 500

#: A query shaped like a package name is treated as an explicit app id.
_PACKAGE_ID = re.compile(r"^[A-Za-z][\w]*(\.[A-Za-z_][\w]*)+$")

SYSTEM_PROMPT = """You are an expert app review analyst. You analyze app reviews to provide insights about user sentiment, pain points, and product opportunities for the market around "{query}". Reply with JSON only, exactly in this format:
{{
  "overview": "string",
  "sentiment_analysis": {{
    "overall": "positive|negative|neutral|mixed",
    "score": number,
    "distribution": {{"positive": number, "neutral": number, "negative": number}},
    "trends": [{{"topic": "string", "sentiment": "positive|negative|neutral|mixed", "intensity": number}}]
  }},
  "pain_points": [
    {{
      "title": "string",
      "description": "string",
      "frequency": number,
      "impact": number,
      "sentiment": "positive|negative|neutral|mixed",
      "possible_solutions": ["string"]
    }}
  ],
  "user_experiences": [
    {{
      "scenario": "string",
      "sentiment": "positive|negative|neutral|mixed",
      "impact": "string",
      "frequency_pattern": "string"
    }}
  ],
  "market_implications": "string"
}}"""


def normalize_app(raw: Any) -> dict[str, Any] | None:
    """Compact app summary for the app picker, or ``None`` without an id."""
    if not isinstance(raw, dict) or not text_or(raw.get("app_id")):
        return None
    return {
        "app_id": raw["app_id"],
        "app_name": text_or(raw.get("app_name"), "Unknown"),
        "app_icon": text_or(raw.get("app_icon")),
        "app_category": text_or(raw.get("app_category")),
        "rating": to_float(raw.get("rating")),
    }


def normalize_review(raw: Any, app: dict[str, Any]) -> Normalized:
    if not isinstance(raw, dict):
        return ShapeMismatch("playstore", "review is not an object", raw)
    return SourceItem(
        source="playstore",
        title=app["app_name"],
        body=truncate(text_or(raw.get("review_text")), REVIEW_MAX_CHARS),
        author=text_or(raw.get("author_name"), "Anonymous"),
        url=f"https://play.google.com/store/apps/details?id={app['app_id']}",
        likes=to_int(raw.get("review_likes")),
        published_at=text_or(raw.get("review_datetime_utc")),
        metadata={
            "review_id": text_or(raw.get("review_id")),
            "rating": to_int(raw.get("review_rating")),
            "app_version": text_or(raw.get("author_app_version")),
            "developer_reply": text_or(raw.get("app_developer_reply")),
            "app_id": app["app_id"],
        },
    )


class PlayStoreSource(Source):
    name = "PlayStoreAnalytics"
    service = "Play Store"
    report_model = ReviewReport

    def credentials(self) -> dict[str, str]:
        return {"RAPIDAPI_KEY": self.settings.rapidapi_key}

    def _headers(self) -> dict[str, str]:
        return {"x-rapidapi-key": self.settings.rapidapi_key, "x-rapidapi-host": API_HOST}

    @staticmethod
    def _payload(body: Any, key: str) -> list[Any]:
        if not isinstance(body, dict) or body.get("status") != "OK":
            return []
        data = body.get("data")
        value = data.get(key) if isinstance(data, dict) else None
        return value if isinstance(value, list) else []

    def search_apps(self, query: str) -> list[dict[str, Any]]:
        """Apps matching *query*, as compact summaries."""
        body = self.get(
            f"{API_BASE}/search",
            params={"q": query, "limit": SEARCH_LIMIT},
            headers=self._headers(),
        )
        return [app for app in map(normalize_app, self._payload(body, "apps")) if app]

    def app_details(self, app_id: str) -> dict[str, Any]:
        """Summary for a known *app_id*; falls back to the id as its name."""
        body = self.get(
            f"{API_BASE}/app-details", params={"app_id": app_id}, headers=self._headers()
        )
        data = body.get("data") if isinstance(body, dict) and body.get("status") == "OK" else None
        return normalize_app(data) or {
            "app_id": app_id, "app_name": app_id, "app_icon": "", "app_category": "", "rating": 0.0,
        }

    def app_reviews(self, app_id: str, limit: int = REVIEW_LIMIT) -> list[Any]:
        body = self.get(
            f"{API_BASE}/app-reviews",
            params={
                "app_id": app_id,
                "limit": limit,
                "sort_by": "MOST_RELEVANT",
                "device": "PHONE",
                "rating": "ANY",
                "region": "us",
                "language": "en",
            },
            headers=self._headers(),
        )
        return self._payload(body, "reviews")

    def fetch(self, query: str) -> list[SourceItem]:
        if _PACKAGE_ID.match(query):
            app = self.app_details(query)
        else:
            apps = self.search_apps(query)
            if not apps:
                raise EmptyResultError("No apps found for the query")
            app = apps[0]

        items = [
            item for item in collect(
                normalize_review(raw, app) for raw in self.app_reviews(app["app_id"])
            )
            if item.body
        ]
        if not items:
            raise EmptyResultError("No reviews available for analysis")
        logger.info("Play Store: %d reviews for %s", len(items), app["app_id"])
        return items

    def system_prompt(self, query: str) -> str:
        return SYSTEM_PROMPT.format(query=query)

    def build_corpus(self, query: str, items: list[SourceItem]) -> str:
        reviews = [
            {
                "id": item.metadata.get("review_id", ""),
                "rating": item.metadata.get("rating", 0),
                "text": item.body,
                "date": item.published_at,
                "version": item.metadata.get("app_version", ""),
            }
            for item in items
        ]
        app_name = items[0].title if items else query
        app_id = items[0].metadata.get("app_id", "") if items else ""
        return f'App: "{app_name}" (ID: {app_id})\nReviews: {json.dumps(reviews)}'
