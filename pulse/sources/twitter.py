"""X (Twitter) search via the RapidAPI ``twitter-api45`` service."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pulse.errors import EmptyResultError, TransportError
from pulse.models import Normalized, ShapeMismatch, SourceItem
from pulse.reports import TrendReport
from pulse.sources.base import Source, collect
from pulse.text import text_or, to_int, truncate

logger = logging.getLogger(__name__)

API_HOST = "twitter-api45.p.rapidapi.com"
SEARCH_URL = f"https://{API_HOST}/search.php"
MAX_TWEETS = 50
MAX_TWEETS_FOR_ANALYSIS = 30
MAX_CONTENT_CHARS = 100

_HASHTAG = re.compile(r"#\w+")
_MENTION = re.compile(r"@\w+")

SYSTEM_PROMPT = """You are an expert social media trend analyst with deep expertise in identifying patterns, sentiment shifts, and emerging movements in social media data.

Your task is to analyze tweets about "{query}" and provide actionable trend insights.

Analyze the provided tweets with specific focus on:
1. Identifying exactly 3 key triggers (events or themes that provoke responses)
2. Identifying exactly 3 current trends (popular topics or patterns)
3. Predicting exactly 3 upcoming trends (emerging patterns with potential growth)
4. Providing detailed trend insights that go beyond basic statistics

Provide an analysis in the following JSON format:

{{
  "overview": "Concise summary of key findings limited to 2-3 sentences",
  "sentiment": {{"score": -1 to 1, "label": "positive/negative/neutral", "confidence": 0 to 1}},
  "triggers": [
    {{"name": "string", "description": "string", "impact_score": 1-10, "frequency": number, "examples": ["1-2 tweet examples"]}}
  ] (exactly 3 items),
  "current_trends": [
    {{"name": "string", "description": "string", "popularity_score": 1-10, "growth_rate": percentage, "examples": ["1-2 tweet examples"]}}
  ] (exactly 3 items),
  "upcoming_trends": [
    {{"name": "string", "description": "string", "prediction_confidence": 1-10, "potential_impact": 1-10, "early_indicators": ["1-2 early signs"]}}
  ] (exactly 3 items),
  "relevant_hashtags": [
    {{"tag": "#hashtag", "count": number, "relevance": 1-10}}
  ] (top 5 only),
  "trend_insights": {{
    "comparisons": ["How current trends compare to previous patterns"],
    "actionable_insights": ["Specific ways businesses can capitalize on these trends"],
    "demographic_patterns": ["Audience segments most responsive to each trend"]
  }}
}}

Focus on revealing hidden patterns, unexpected connections, and actionable strategic insights rather than surface-level observations."""


def extract_hashtags(text: str) -> list[str]:
    return [tag.lower() for tag in _HASHTAG.findall(text)]


def extract_mentions(text: str) -> list[str]:
    return [mention.lower() for mention in _MENTION.findall(text)]


def normalize_tweet(raw: Any) -> Normalized:
    if not isinstance(raw, dict):
        return ShapeMismatch("twitter", "timeline entry is not an object", raw)
    text = text_or(raw.get("text"))
    if not text:
        return ShapeMismatch("twitter", "tweet without text", raw)

    retweets = to_int(raw.get("retweets"))
    favorites = to_int(raw.get("favorites"))
    replies = to_int(raw.get("replies"))
    author = text_or(raw.get("screen_name"), "anonymous")
    tweet_id = text_or(raw.get("tweet_id"))
    hashtags = raw.get("hashtags") if isinstance(raw.get("hashtags"), list) else extract_hashtags(text)
    mentions = (
        raw.get("user_mentions") if isinstance(raw.get("user_mentions"), list)
        else extract_mentions(text)
    )
    return SourceItem(
        source="twitter",
        body=truncate(text, MAX_CONTENT_CHARS),
        author=author,
        url=f"https://x.com/{author}/status/{tweet_id}" if tweet_id else "",
        upvotes=retweets,
        likes=favorites,
        comments=replies,
        published_at=text_or(raw.get("created_at")),
        metadata={
            "engagement": retweets + favorites + replies,
            "hashtags": hashtags,
            "mentions": mentions,
            "followers": to_int(raw.get("followers_count")),
        },
    )


class TwitterSource(Source):
    name = "XAnalytics"
    service = "Twitter"
    report_model = TrendReport
    temperature = 0.5
    max_tokens = 3000

    def credentials(self) -> dict[str, str]:
        return {"X_RAPIDAPI_KEY": self.settings.x_rapidapi_key}

    def fetch(self, query: str) -> list[SourceItem]:
        body = self.get(
            SEARCH_URL,
            params={"query": query, "count": str(MAX_TWEETS)},
            headers={"x-rapidapi-key": self.settings.x_rapidapi_key,
                     "x-rapidapi-host": API_HOST},
        )
        timeline = body.get("timeline") if isinstance(body, dict) else None
        if not isinstance(timeline, list):
            raise TransportError(self.service, 200, "invalid response format")

        tweets = collect(normalize_tweet(raw) for raw in timeline)
        tweets.sort(key=lambda item: item.metadata["engagement"], reverse=True)
        if not tweets:
            raise EmptyResultError("No valid tweets found")
        return tweets[:MAX_TWEETS_FOR_ANALYSIS]

    def system_prompt(self, query: str) -> str:
        return SYSTEM_PROMPT.format(query=query)

    def build_corpus(self, query: str, items: list[SourceItem]) -> str:
        return json.dumps({
            "query": query,
            "sample_size": len(items),
            "tweets": [
                {
                    "content": item.body,
                    "engagement": item.metadata["engagement"],
                    "created_at": item.published_at,
                    "author": item.author,
                    "hashtags": item.metadata["hashtags"],
                    "mentions": item.metadata["mentions"],
                }
                for item in items
            ],
        })
