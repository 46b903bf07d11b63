"""Quora answers via the RapidAPI ``quora-scraper`` service.

Flow
────
1. search(query)            → up to 5 question URLs (quora.com links only)
2. question details         → fetched in parallel; a failed detail is skipped,
                               a timed-out one fails the fetch
3. normalize                → one SourceItem per answer (top + 2 additional)
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from pulse.errors import EmptyResultError, PipelineError, RequestTimedOut
from pulse.models import Normalized, ShapeMismatch, SourceItem
from pulse.reports import ForumReport
from pulse.sources.base import Source, collect
from pulse.text import assemble_corpus, text_or, to_int, truncate

logger = logging.getLogger(__name__)

API_HOST = "quora-scraper.p.rapidapi.com"
API_BASE = f"https://{API_HOST}/api/v1"
MAX_QUESTIONS = 5
ANSWERS_PER_QUESTION = 3
ANSWER_MAX_CHARS = 1000

SYSTEM_PROMPT = """You are a market research analyst studying Quora discussions about "{query}".
Each entry below is a question and one of its answers, with the author and upvote count.
Return ONLY a JSON object in this format:
{{
  "overview": "2-3 sentence summary of what people ask and answer about the topic",
  "sentiment": {{"score": -1 to 1, "label": "positive|negative|neutral", "confidence": 0 to 1}},
  "pain_points": [
    {{
      "title": "Short name of the problem",
      "description": "What askers struggle with, in their terms",
      "frequency": 1-10,
      "impact": 1-10,
      "sentiment": "positive|negative|neutral",
      "possible_solutions": ["2-3 concrete ideas"]
    }}
  ] (exactly 5 items),
  "expert_opinions": [
    {{
      "author": "Answer author",
      "stance": "Position taken",
      "summary": "One sentence summary of the argument",
      "credibility": 1-10
    }}
  ] (exactly 3 items),
  "recommendations": ["4 actionable marketing recommendations"]
}}
Weight highly upvoted answers more. Use professional marketing terminology."""


def normalize_question(payload: Any) -> list[Normalized]:
    """Turn one question-details payload into answer items."""
    data = payload.get("data") if isinstance(payload, dict) else None
    question = data.get("question") if isinstance(data, dict) else None
    if not isinstance(question, dict):
        return [ShapeMismatch("quora", "question details without a question", payload)]

    answers = data.get("answers") or []
    if not isinstance(answers, list):
        return [ShapeMismatch("quora", "answers is not a list", payload)]

    title = text_or(question.get("title"), "No Title")
    url = text_or(question.get("url"))
    topics = question.get("topics") if isinstance(question.get("topics"), list) else []

    results: list[Normalized] = []
    for rank, answer in enumerate(answers[:ANSWERS_PER_QUESTION]):
        if not isinstance(answer, dict):
            results.append(ShapeMismatch("quora", "answer is not an object", answer))
            continue
        body = truncate(text_or(answer.get("content")), ANSWER_MAX_CHARS)
        if not body:
            continue
        author = answer.get("author") if isinstance(answer.get("author"), dict) else {}
        results.append(SourceItem(
            source="quora",
            title=title,
            body=body,
            author=text_or(author.get("name"), "Anonymous"),
            url=url,
            upvotes=to_int(answer.get("upvotes")),
            comments=to_int(answer.get("comment_count")),
            published_at=text_or(answer.get("post_time")),
            metadata={
                "topics": topics,
                "followers": to_int(question.get("followers")),
                "author_profile": text_or(author.get("profile_url")),
                "author_credentials": text_or(author.get("credentials")),
                "top_answer": rank == 0,
            },
        ))
    return results


class QuoraSource(Source):
    name = "QuoraAnalysis"
    service = "Quora"
    report_model = ForumReport
    filter_relevance = True

    def credentials(self) -> dict[str, str]:
        return {"RAPIDAPI_KEY": self.settings.rapidapi_key}

    def _headers(self) -> dict[str, str]:
        return {"X-RapidAPI-Key": self.settings.rapidapi_key, "X-RapidAPI-Host": API_HOST}

    def search_questions(self, query: str) -> list[str]:
        """Return up to ``MAX_QUESTIONS`` Quora question URLs for *query*."""
        data = self.get(
            f"{API_BASE}/search",
            params={"query": query, "type": "question", "limit": str(MAX_QUESTIONS)},
            headers=self._headers(),
        )
        results = data.get("results") if isinstance(data, dict) else None
        urls = [
            result["url"]
            for result in results or []
            if isinstance(result, dict)
            and isinstance(result.get("url"), str)
            and "quora.com/" in result["url"]
        ]
        return urls[:MAX_QUESTIONS]

    def question_details(self, url: str) -> Any:
        return self.get(
            f"{API_BASE}/question/details", params={"url": url}, headers=self._headers()
        )

    def fetch(self, query: str) -> list[SourceItem]:
        urls = self.search_questions(query)
        if not urls:
            raise EmptyResultError("No relevant Quora questions found")

        with ThreadPoolExecutor(max_workers=len(urls)) as pool:
            futures = [pool.submit(self.question_details, url) for url in urls]

        normalized: list[Normalized] = []
        for url, future in zip(urls, futures):
            try:
                normalized.extend(normalize_question(future.result()))
            except RequestTimedOut:
                raise
            except PipelineError as exc:
                logger.warning("Skipping Quora question %s: %s", url, exc)

        items = collect(normalized)
        logger.info("Quora: %d questions → %d answers", len(urls), len(items))
        return items

    def system_prompt(self, query: str) -> str:
        return SYSTEM_PROMPT.format(query=query)

    def build_corpus(self, query: str, items: list[SourceItem]) -> str:
        return assemble_corpus(
            (
                f"Q: {item.title}\nA ({item.author}, {item.upvotes} upvotes): {item.body}"
                for item in items
            ),
            total_limit=12000,
        )
