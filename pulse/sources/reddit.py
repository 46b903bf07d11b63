"""Reddit discussions via the OAuth API.

A fresh application-only token is requested on every fetch (client
credentials grant); tokens are not cached. Subreddits are searched one after
another until ``MAX_POSTS`` posts with real discussion are collected; a
subreddit whose search or comment request fails is skipped.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from pulse.errors import EmptyResultError, TransportError
from pulse.http import post_json
from pulse.models import Normalized, ShapeMismatch, SourceItem
from pulse.reports import MarketingInsightReport
from pulse.sources.base import Source, collect
from pulse.text import text_or, to_float, to_int, truncate

logger = logging.getLogger(__name__)

TOKEN_URL = "https://www.reddit.com/api/v1/access_token"
API_BASE = "https://oauth.reddit.com"

#: Searched in this order.
SUBREDDITS: tuple[str, ...] = (
    "technology", "products", "business", "marketing",
    "startups", "entrepreneurship", "productmanagement",
)
MAX_POSTS = 5
POSTS_PER_SUBREDDIT = 5
MIN_SELFTEXT_CHARS = 50
TOP_COMMENTS = 5
SNIPPET_CHARS = 300
COMMENT_CORPUS_CHARS = 500

SYSTEM_PROMPT = """As a specialized market research analyst, analyze these Reddit discussions about "{query}" to provide marketing insights. Focus on key trends, consumer sentiment, and actionable recommendations. Return findings in JSON format:
{{
  "overview": "Brief analysis of market dynamics and consumer behavior patterns",
  "recurring_pain_points": [
    {{
      "issue": "Specific pain point",
      "frequency": 80,
      "impact_score": 75,
      "verbatim_quotes": ["Selected user quotes"],
      "suggested_solutions": ["Actionable recommendations"]
    }}
  ],
  "niche_communities": [
    {{
      "segment": "Market segment",
      "demographic_indicators": ["Observable patterns"],
      "discussion_themes": ["Conversation topics"],
      "engagement_level": 85,
      "influence_score": 70,
      "key_influencers": ["Notable community members"]
    }}
  ],
  "sentiment_analysis": {{
    "overall_sentiment": 65,
    "emotional_triggers": [
      {{
        "trigger": "Emotional catalyst",
        "intensity": 80,
        "context": "Situation analysis",
        "activation_phrases": ["Trigger phrases"]
      }}
    ],
    "brand_perception": {{
      "positive_attributes": ["Brand strengths"],
      "negative_attributes": ["Areas of concern"],
      "neutral_observations": ["Market observations"]
    }}
  }},
  "psychographic_insights": {{
    "motivation_factors": ["Purchase drivers"],
    "decision_drivers": ["Decision factors"],
    "adoption_barriers": ["Adoption obstacles"]
  }},
  "competitive_intelligence": {{
    "market_positioning": "Competitive landscape analysis",
    "share_of_voice": 65,
    "competitive_advantages": ["Market advantages"],
    "threat_assessment": "Competitive risk assessment"
  }}
}}

Give creative, not generic ideas. Use professional marketing terminology.
Provide 6 pain points, 3 niche communities, and 3 emotional triggers."""


def top_comments(listing: Any, limit: int = TOP_COMMENTS) -> list[dict[str, Any]]:
    """Highest-scored, non-stickied top-level comments from a comments listing.

    *listing* is the two-element array Reddit returns for a permalink: the
    post itself, then its comment tree.
    """
    if not isinstance(listing, list) or len(listing) < 2:
        return []
    tree = listing[1].get("data", {}) if isinstance(listing[1], dict) else {}
    comments = []
    for child in tree.get("children") or []:
        if not isinstance(child, dict) or child.get("kind") != "t1":
            continue
        data = child.get("data")
        if not isinstance(data, dict):
            continue
        if not text_or(data.get("body")) or data.get("stickied"):
            continue
        comments.append({
            "body": data["body"],
            "score": to_int(data.get("score")),
            "author": text_or(data.get("author"), "Anonymous"),
        })
    comments.sort(key=lambda comment: comment["score"], reverse=True)
    return comments[:limit]


def is_discussion(post: Any) -> bool:
    """A post worth analysing: real self-text and at least one comment."""
    data = post.get("data") if isinstance(post, dict) else None
    if not isinstance(data, dict):
        return False
    selftext = data.get("selftext") or ""
    return len(selftext) > MIN_SELFTEXT_CHARS and to_int(data.get("num_comments")) > 0


def normalize_post(post: Any, comments: list[dict[str, Any]]) -> Normalized:
    data = post.get("data") if isinstance(post, dict) else None
    if not isinstance(data, dict):
        return ShapeMismatch("reddit", "listing child without data", post)

    permalink = text_or(data.get("permalink"))
    created = data.get("created_utc")
    published = (
        datetime.fromtimestamp(created, tz=timezone.utc).isoformat()
        if isinstance(created, (int, float)) else ""
    )
    return SourceItem(
        source="reddit",
        title=text_or(data.get("title"), "No Title"),
        body=truncate(text_or(data.get("selftext")), SNIPPET_CHARS),
        author=text_or(data.get("author"), "Anonymous"),
        url=f"https://reddit.com{permalink}" if permalink else text_or(data.get("url")),
        upvotes=to_int(data.get("score")),
        comments=to_int(data.get("num_comments")),
        ratio=to_float(data.get("upvote_ratio")),
        published_at=published,
        metadata={
            "subreddit": text_or(data.get("subreddit")),
            "awards": to_int(data.get("total_awards_received")),
            "top_comments": comments,
        },
    )


class RedditSource(Source):
    name = "RedditAnalytics"
    service = "Reddit"
    report_model = MarketingInsightReport

    def credentials(self) -> dict[str, str]:
        return {
            "REDDIT_CLIENT_ID": self.settings.reddit_client_id,
            "REDDIT_CLIENT_SECRET": self.settings.reddit_client_secret,
        }

    def access_token(self) -> str:
        """Exchange the client id/secret for a bearer token."""
        data = post_json(
            self.session,
            TOKEN_URL,
            service="Reddit Authentication",
            timeout=self.settings.request_timeout,
            auth=(self.settings.reddit_client_id, self.settings.reddit_client_secret),
            data={"grant_type": "client_credentials"},
        )
        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise TransportError("Reddit Authentication", 200, "no access_token in response")
        return token

    def fetch(self, query: str) -> list[SourceItem]:
        headers = {"Authorization": f"Bearer {self.access_token()}"}
        normalized: list[Normalized] = []

        for subreddit in SUBREDDITS:
            if len(normalized) >= MAX_POSTS:
                break
            try:
                listing = self.get(
                    f"{API_BASE}/r/{subreddit}/search",
                    params={"q": query, "limit": POSTS_PER_SUBREDDIT, "sort": "relevance"},
                    headers=headers,
                )
            except TransportError as exc:
                logger.warning("Skipping r/%s: %s", subreddit, exc)
                continue

            children = (listing.get("data") or {}).get("children") if isinstance(listing, dict) else None
            for post in filter(is_discussion, children or []):
                if len(normalized) >= MAX_POSTS:
                    break
                try:
                    thread = self.get(
                        f"{API_BASE}{post['data'].get('permalink', '')}",
                        params={"limit": 10, "depth": 1},
                        headers=headers,
                    )
                except TransportError as exc:
                    logger.warning("Skipping comments for post in r/%s: %s", subreddit, exc)
                    continue
                normalized.append(normalize_post(post, top_comments(thread)))

        items = collect(normalized)
        if not items:
            raise EmptyResultError()
        logger.info("Reddit: collected %d posts", len(items))
        return items

    def system_prompt(self, query: str) -> str:
        return SYSTEM_PROMPT.format(query=query)

    def build_corpus(self, query: str, items: list[SourceItem]) -> str:
        posts = [
            {
                "title": item.title,
                "subreddit": item.metadata.get("subreddit", ""),
                "content": item.body,
                "comments": " | ".join(
                    comment["body"] for comment in item.metadata.get("top_comments", [])
                )[:COMMENT_CORPUS_CHARS],
                "engagement": {"upvote_ratio": item.ratio, "comment_count": item.comments},
            }
            for item in items
        ]
        return json.dumps(posts)
