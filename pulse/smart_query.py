"""Rewrite one user query into a platform-specific query per component."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Optional

import openai

from pulse.errors import PipelineError
from pulse.llm import DEFAULT_MODEL, CompletionClient
from pulse.reports import strip_code_fence

if TYPE_CHECKING:
    from pulse.model_config import ModelConfigStore

logger = logging.getLogger(__name__)

MODEL_CONFIG_KEY = "SmartQuery"

PROMPT = """You are a query optimization expert. Given the user's search query: "{query}",
generate specialized, optimized search queries for different platforms.
Don't add random words; only add the same or relatable words, or just structure the query properly.
Return ONLY a JSON object with the following structure, with NO additional explanation:

{{
  "RedditAnalytics": "optimized query for direct search on Reddit",
  "PlayStoreAnalytics": "relevant app names only",
  "YouTubeVideos": "optimized query for YouTube search",
  "QuoraAnalysis": "optimized query for Quora",
  "XAnalytics": "optimized query for Twitter/X search",
  "NewsAnalysis": "optimized query for news search",
  "FacebookAdsAnalysis": "optimized keyword for the Facebook Ads Library",
  "StrategyAnalysis": "optimized query for a marketing strategy analysis"
}}

Guidelines:
- For PlayStoreAnalytics: only include an app name or app category, no other terms
- For RedditAnalytics: don't use site: or mention subreddits; add words like "experience" or "problems" if appropriate
- For YouTubeVideos: format for video search, include terms like "review" if appropriate
- For QuoraAnalysis: format as a question when possible
- For XAnalytics: include relevant hashtags with the # symbol if appropriate
- For FacebookAdsAnalysis: a single advertiser, product type or product name
- For StrategyAnalysis: a comprehensive query naming the product, brand or market to plan for

Remember to return ONLY the JSON object with no additional text."""


def smart_query(
    query: str,
    llm: CompletionClient,
    components: Iterable[str],
    model_config: Optional[ModelConfigStore] = None,
    default_model: str = DEFAULT_MODEL,
) -> dict[str, str]:
    """Map each known component name to an optimized query.

    Unknown keys and non-string values in the completion are dropped. Any
    failure returns ``{}``; callers fall back to the raw query.
    """
    query = (query or "").strip()
    if not query:
        return {}

    model = (
        model_config.get_model_name(MODEL_CONFIG_KEY, default_model)
        if model_config is not None else default_model
    )
    try:
        content = llm.complete(
            None,
            PROMPT.format(query=query),
            model=model,
            temperature=0.1,
            max_tokens=1000,
            json_mode=False,
        )
        parsed = json.loads(strip_code_fence(content).strip())
    except (PipelineError, openai.OpenAIError, json.JSONDecodeError) as exc:
        logger.warning("Smart query failed for %r: %s", query, exc)
        return {}

    if not isinstance(parsed, dict):
        logger.warning("Smart query returned %s, expected an object", type(parsed).__name__)
        return {}

    known = set(components)
    return {
        name: value.strip()
        for name, value in parsed.items()
        if name in known and isinstance(value, str) and value.strip()
    }
