"""Upstream integrations, keyed by dashboard component name."""

from __future__ import annotations

from typing import TYPE_CHECKING

import requests

from pulse.sources.base import Source
from pulse.sources.meta_ads import MetaAdsSource
from pulse.sources.news import NewsSource
from pulse.sources.playstore import PlayStoreSource
from pulse.sources.quora import QuoraSource
from pulse.sources.reddit import RedditSource
from pulse.sources.strategy import StrategySource
from pulse.sources.twitter import TwitterSource
from pulse.sources.youtube import YouTubeSource

if TYPE_CHECKING:
    from config.settings import Settings

SOURCES: dict[str, type[Source]] = {
    cls.name: cls
    for cls in (
        QuoraSource,
        RedditSource,
        PlayStoreSource,
        YouTubeSource,
        TwitterSource,
        NewsSource,
        MetaAdsSource,
        StrategySource,
    )
}


def build_sources(settings: Settings, session: requests.Session) -> dict[str, Source]:
    """Instantiate every registered source around one shared HTTP session."""
    return {name: cls(settings, session) for name, cls in SOURCES.items()}


__all__ = ["SOURCES", "Source", "build_sources"]
