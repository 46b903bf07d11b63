"""YouTube comments via the Data API v3.

Searches videos for the query, merges view statistics, and analyses the
comment threads of the most-viewed result.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from pulse.errors import EmptyResultError
from pulse.models import Normalized, ShapeMismatch, SourceItem
from pulse.reports import CommentReport
from pulse.sources.base import Source, collect
from pulse.text import assemble_corpus, text_or, to_int, truncate

logger = logging.getLogger(__name__)

API_BASE = "https://www.googleapis.com/youtube/v3"
MAX_VIDEOS = 8
MAX_COMMENTS = 100
COMMENT_MAX_CHARS = 1000

SYSTEM_PROMPT = """You are an expert content analysis specialist focusing on YouTube audience behavior and sentiment around "{query}". Analyze the provided comments and generate a comprehensive analysis in the following JSON format:

{{
  "overview": "Executive summary of the comment analysis using sophisticated content creator terminology",
  "pain_points": [
    {{
      "title": "Clear, impactful title of the issue or concern",
      "description": "Detailed analysis of the viewer feedback",
      "frequency": 1-10,
      "impact": 1-10,
      "possible_solutions": ["2-3 potential content improvements"]
    }}
  ] (exactly 6 items),
  "user_experiences": [
    {{
      "scenario": "Detailed description of the viewer experience",
      "impact": "How this experience affects viewer engagement",
      "frequency_pattern": "Pattern of occurrence and context",
      "sentiment": "positive/negative/neutral"
    }}
  ] (exactly 3 items),
  "emotional_triggers": [
    {{
      "trigger": "Name of the emotional trigger",
      "context": "Detailed context where this trigger appears",
      "intensity": 1-10,
      "response_pattern": "Typical viewer response to this trigger"
    }}
  ] (exactly 3 items),
  "market_implications": "Strategic insights for content creation and audience development"
}}

Ensure the analysis is data-driven, uses professional creator terminology, and provides actionable insights."""


def video_id(item: Any) -> Optional[str]:
    """The video id of a search item whose ``id`` is a string or ``{videoId}``."""
    if not isinstance(item, dict):
        return None
    raw = item.get("id")
    if isinstance(raw, str) and raw:
        return raw
    if isinstance(raw, dict) and text_or(raw.get("videoId")):
        return raw["videoId"]
    return None


def normalize_video(item: Any, statistics: dict[str, Any]) -> Optional[dict[str, Any]]:
    vid = video_id(item)
    if vid is None:
        return None
    snippet = item.get("snippet") if isinstance(item.get("snippet"), dict) else {}
    stats = statistics.get(vid) or {}
    return {
        "video_id": vid,
        "title": text_or(snippet.get("title"), "No Title"),
        "channel": text_or(snippet.get("channelTitle")),
        "published_at": text_or(snippet.get("publishedAt")),
        "views": to_int(stats.get("viewCount")),
        "likes": to_int(stats.get("likeCount")),
        "comments": to_int(stats.get("commentCount")),
    }


def normalize_comment(thread: Any, video: dict[str, Any]) -> Normalized:
    snippet = thread.get("snippet") if isinstance(thread, dict) else None
    top = snippet.get("topLevelComment") if isinstance(snippet, dict) else None
    comment = top.get("snippet") if isinstance(top, dict) else None
    if not isinstance(comment, dict):
        return ShapeMismatch("youtube", "comment thread without topLevelComment", thread)

    comment_id = text_or(top.get("id"))
    return SourceItem(
        source="youtube",
        title=video["title"],
        body=truncate(text_or(comment.get("textOriginal") or comment.get("textDisplay")),
                      COMMENT_MAX_CHARS),
        author=text_or(comment.get("authorDisplayName"), "Anonymous"),
        url=f"https://www.youtube.com/watch?v={video['video_id']}&lc={comment_id}",
        likes=to_int(comment.get("likeCount")),
        comments=to_int(snippet.get("totalReplyCount")),
        published_at=text_or(comment.get("publishedAt")),
        metadata={"video_id": video["video_id"], "video_views": video["views"]},
    )


class YouTubeSource(Source):
    name = "YouTubeVideos"
    service = "YouTube"
    report_model = CommentReport

    def credentials(self) -> dict[str, str]:
        return {"YOUTUBE_API_KEY": self.settings.youtube_api_key}

    def video_statistics(self, video_ids: list[str]) -> dict[str, Any]:
        if not video_ids:
            return {}
        body = self.get(
            f"{API_BASE}/videos",
            params={"part": "statistics", "id": ",".join(video_ids),
                    "key": self.settings.youtube_api_key},
        )
        return {
            item["id"]: item.get("statistics") or {}
            for item in (body.get("items") or [] if isinstance(body, dict) else [])
            if isinstance(item, dict) and item.get("id")
        }

    def search_videos(self, query: str) -> list[dict[str, Any]]:
        """Videos for *query* with statistics, most viewed first."""
        body = self.get(
            f"{API_BASE}/search",
            params={"part": "snippet", "type": "video", "maxResults": MAX_VIDEOS,
                    "q": query, "key": self.settings.youtube_api_key},
        )
        raw_items = body.get("items") or [] if isinstance(body, dict) else []
        statistics = self.video_statistics(
            [vid for vid in map(video_id, raw_items) if vid]
        )
        videos = [
            video for video in (normalize_video(item, statistics) for item in raw_items)
            if video
        ]
        videos.sort(key=lambda video: video["views"], reverse=True)
        return videos

    def comment_threads(self, vid: str) -> list[Any]:
        body = self.get(
            f"{API_BASE}/commentThreads",
            params={"part": "snippet", "videoId": vid, "maxResults": MAX_COMMENTS,
                    "order": "relevance", "textFormat": "plainText",
                    "key": self.settings.youtube_api_key},
        )
        return body.get("items") or [] if isinstance(body, dict) else []

    def fetch(self, query: str) -> list[SourceItem]:
        videos = self.search_videos(query)
        if not videos:
            raise EmptyResultError("No videos found for the query")
        video = videos[0]

        items = [
            item for item in collect(
                normalize_comment(thread, video)
                for thread in self.comment_threads(video["video_id"])
            )
            if item.body
        ]
        if not items:
            raise EmptyResultError("No comments found for this video")
        logger.info("YouTube: %d comments on %s", len(items), video["video_id"])
        return items

    def system_prompt(self, query: str) -> str:
        return SYSTEM_PROMPT.format(query=query)

    def build_corpus(self, query: str, items: list[SourceItem]) -> str:
        header = f'Video: "{items[0].title}"\n\n' if items else ""
        return header + assemble_corpus(item.body for item in items)
