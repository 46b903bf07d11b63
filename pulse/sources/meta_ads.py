"""Competitor ads from the Meta Ad Library via RapidAPI.

More ads are requested than are finally analysed: the library search is
loose, so the pipeline's relevance filter discards ads that never mention
the query and ``select`` keeps the first ``AD_LIMIT`` survivors.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from pulse.errors import EmptyResultError, TransportError
from pulse.models import Normalized, ShapeMismatch, SourceItem
from pulse.reports import AdReport
from pulse.sources.base import Source, collect
from pulse.text import collapse_whitespace, strip_html, text_or, truncate

logger = logging.getLogger(__name__)

API_HOST = "meta-ad-library.p.rapidapi.com"
SEARCH_URL = f"https://{API_HOST}/search/ads"
AD_LIMIT = 50
FETCH_MULTIPLIER = 3
MAX_INITIAL_FETCH = 200
SIGNATURE_CHARS = 150
MIN_SIGNATURE_CHARS = 20
SIMILARITY_THRESHOLD = 0.85
AD_MAX_CHARS = 600

SYSTEM_PROMPT = """You are an expert competitive advertising analyst. Analyze the competitor ads provided for "{query}" and return a strategic breakdown in STRICT JSON format with exactly these fields:

{{
  "overview": "Executive summary of the competitive advertising landscape",
  "messaging_strategies": [
    {{"strategy": "string", "description": "string", "prevalence": 0-100, "effectiveness": 1-10, "examples": ["1-2 ad copy examples"]}}
  ] (4-6 items),
  "visual_tactics": [
    {{"tactic": "string", "implementation": "string", "impact": "string", "frequency_of_use": 0-100}}
  ] (3-5 items),
  "audience_targeting": [
    {{"segment": "string", "approach": "string", "intensity": 1-10, "engagement_potential": "High|Medium|Low"}}
  ] (3-5 items),
  "competitive_advantage": "What sets the strongest advertisers apart",
  "call_to_action_effectiveness": [
    {{"cta": "string", "context": "string", "strength": 1-10, "conversion_potential": "High|Medium|Low"}}
  ] (3-5 items),
  "recommended_counter_strategies": "Concrete recommendations to out-position these competitors"
}}

Return only the JSON object."""


def flatten_results(body: Any) -> list[Any]:
    """The ad library nests ads in groups; return them as one flat list."""
    results = body.get("results") if isinstance(body, dict) else None
    if not isinstance(results, list):
        raise TransportError("Meta Ad", 200, "invalid response format")
    ads: list[Any] = []
    for group in results:
        if isinstance(group, list):
            ads.extend(group)
    return ads


def _snapshot(ad: Any) -> dict[str, Any]:
    snapshot = ad.get("snapshot") if isinstance(ad, dict) else None
    return snapshot if isinstance(snapshot, dict) else {}


def _cards(snapshot: dict[str, Any]) -> list[dict[str, Any]]:
    cards = snapshot.get("cards")
    return [card for card in cards if isinstance(card, dict)] if isinstance(cards, list) else []


def _html_body(snapshot: dict[str, Any]) -> str:
    body = snapshot.get("body")
    markup = body.get("markup") if isinstance(body, dict) else None
    return strip_html(text_or(markup.get("__html"))) if isinstance(markup, dict) else ""


def ad_text(ad: Any) -> str:
    """All copy in an ad: card text, the body markup, title and link description."""
    snapshot = _snapshot(ad)
    parts: list[str] = []
    for card in _cards(snapshot):
        parts.extend([text_or(card.get("body")), text_or(card.get("title"))])
    parts.extend([
        _html_body(snapshot),
        text_or(snapshot.get("title")),
        text_or(snapshot.get("link_description")),
    ])
    return collapse_whitespace(" ".join(part for part in parts if part))


def content_signature(ad: Any) -> str:
    snapshot = _snapshot(ad)
    parts = [text_or(snapshot.get("title")), _html_body(snapshot),
             text_or(snapshot.get("link_description"))]
    for card in _cards(snapshot):
        parts.extend([text_or(card.get("title")), text_or(card.get("body"))])
    return collapse_whitespace(" ".join(p for p in parts if p)).lower()[:SIGNATURE_CHARS]


def similarity(first: str, second: str) -> float:
    """Jaccard similarity of the two strings' word sets."""
    if first == second:
        return 1.0
    words_a, words_b = set(first.split()), set(second.split())
    if not words_a or not words_b:
        return 0.0
    return len(words_a & words_b) / len(words_a | words_b)


def dedupe_ads(ads: list[Any]) -> list[Any]:
    """Drop repeated archive ids, then ads whose copy nearly matches an earlier one.

    Ads too short to fingerprint are always kept.
    """
    by_id: dict[str, Any] = {}
    for ad in ads:
        archive_id = text_or(ad.get("adArchiveID")) if isinstance(ad, dict) else ""
        if archive_id and archive_id not in by_id:
            by_id[archive_id] = ad

    unique: list[Any] = []
    signatures: list[str] = []
    for ad in by_id.values():
        signature = content_signature(ad)
        if len(signature) > MIN_SIGNATURE_CHARS:
            if any(similarity(signature, seen) > SIMILARITY_THRESHOLD for seen in signatures):
                continue
            signatures.append(signature)
        unique.append(ad)
    return unique


def _media(snapshot: dict[str, Any]) -> dict[str, list[str]]:
    images: list[str] = []
    for image in snapshot.get("images") or []:
        if isinstance(image, str):
            images.append(image)
        elif isinstance(image, dict):
            url = (text_or(image.get("original_image_url"))
                   or text_or(image.get("resized_image_url")))
            if url:
                images.append(url)
    for card in _cards(snapshot):
        for key in ("image_url", "video_preview_image_url"):
            if text_or(card.get(key)):
                images.append(card[key])

    videos: list[str] = []
    for video in snapshot.get("videos") or []:
        if isinstance(video, dict):
            url = text_or(video.get("video_hd_url")) or text_or(video.get("video_sd_url"))
            if url:
                videos.append(url)
    return {"images": images, "videos": videos}


def normalize_ad(ad: Any) -> Normalized:
    if not isinstance(ad, dict):
        return ShapeMismatch("meta_ads", "ad is not an object", ad)
    body = ad_text(ad)
    if not body:
        return ShapeMismatch("meta_ads", "ad without any copy", ad)

    snapshot = _snapshot(ad)
    created = snapshot.get("creation_time")
    link = next((text_or(card.get("link_url")) for card in _cards(snapshot)
                 if text_or(card.get("link_url"))), "")
    return SourceItem(
        source="meta_ads",
        title=text_or(snapshot.get("title")),
        body=truncate(body, AD_MAX_CHARS),
        author=text_or(ad.get("pageName"), "Unknown Page"),
        url=link,
        published_at=(
            datetime.fromtimestamp(created, tz=timezone.utc).isoformat()
            if isinstance(created, (int, float)) else ""
        ),
        metadata={
            "ad_id": text_or(ad.get("adArchiveID")),
            "page_id": text_or(ad.get("pageID")),
            "active": bool(ad.get("isActive")),
            **_media(snapshot),
        },
    )


class MetaAdsSource(Source):
    name = "FacebookAdsAnalysis"
    service = "Meta Ad"
    report_model = AdReport
    model_config_key = "FacebookAdsAnalysis"
    filter_relevance = True

    country_code = "IN"
    platform = "facebook,instagram"

    def credentials(self) -> dict[str, str]:
        return {"FACEBOOK_RAPIDAPI_KEY": self.settings.facebook_rapidapi_key}

    def llm_api_key(self) -> str:
        return self.settings.facebook_llm_api_key

    def fetch(self, query: str) -> list[SourceItem]:
        body = self.get(
            SEARCH_URL,
            params={
                "query": query,
                "country_code": self.country_code,
                "active_status": "all",
                "media_types": "all",
                "platform": self.platform,
                "ad_type": "all",
                "search_type": "keyword_unordered",
            },
            headers={"x-rapidapi-key": self.settings.facebook_rapidapi_key,
                     "x-rapidapi-host": API_HOST},
        )
        raw_ads = flatten_results(body)
        unique = dedupe_ads(raw_ads)[: min(AD_LIMIT * FETCH_MULTIPLIER, MAX_INITIAL_FETCH)]
        logger.info("Meta ads: %d returned, %d unique", len(raw_ads), len(unique))

        items = collect(normalize_ad(ad) for ad in unique)
        if not items:
            raise EmptyResultError("No relevant ads found for the query")
        return items

    def select(self, items: list[SourceItem]) -> list[SourceItem]:
        return items[:AD_LIMIT]

    def searchable_text(self, item: SourceItem) -> str:
        return " ".join((item.body, item.title, item.author))

    def system_prompt(self, query: str) -> str:
        return SYSTEM_PROMPT.format(query=query)

    def build_corpus(self, query: str, items: list[SourceItem]) -> str:
        ads = [
            {
                "page": item.author,
                "title": item.title,
                "content": item.body,
                "active": item.metadata.get("active", False),
                "has_video": bool(item.metadata.get("videos")),
                "image_count": len(item.metadata.get("images", [])),
            }
            for item in items
        ]
        return f'Competitor ads for "{query}":\n{json.dumps(ads)}'
