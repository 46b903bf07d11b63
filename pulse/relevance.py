"""Query relevance filtering.

A precision heuristic, not a ranker: an item passes when its text contains at
least one *meaningful* query token as a whole word (case-insensitive). There
is no scoring, stemming or reordering.

Meaningful tokens are what remains after lower-casing the query, replacing
punctuation with spaces, splitting on whitespace, and dropping tokens of two
characters or fewer and common stop words. A query with no meaningful tokens
disables the filter.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

#: Words that never make an item relevant on their own.
STOP_WORDS: frozenset[str] = frozenset([
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "is", "are", "was", "were", "be", "been", "being",
    "have", "has", "had", "do", "does", "did", "will", "would", "could",
    "should", "may", "might", "can", "shall", "about", "into", "through",
    "during", "before", "after", "above", "below", "between", "among",
])

_PUNCTUATION = re.compile(r"[^\w\s]")


def meaningful_tokens(query: str) -> list[str]:
    """Return the de-duplicated meaningful tokens of *query*, in order.

    Examples:
        >>> meaningful_tokens("The best noise-cancelling headphones!")
        ['best', 'noise', 'cancelling', 'headphones']
        >>> meaningful_tokens("is it on")
        []
    """
    cleaned = _PUNCTUATION.sub(" ", query.lower())
    tokens: list[str] = []
    for word in cleaned.split():
        if len(word) <= 2 or word in STOP_WORDS or word in tokens:
            continue
        tokens.append(word)
    return tokens


def _token_patterns(tokens: Sequence[str]) -> list[re.Pattern[str]]:
    return [re.compile(rf"\b{re.escape(token)}\b", re.IGNORECASE) for token in tokens]


def is_relevant(text: str, tokens: Sequence[str]) -> bool:
    """True when *text* contains any of *tokens* as a whole word."""
    return any(pattern.search(text or "") for pattern in _token_patterns(tokens))


def filter_relevant(
    items: Sequence[T],
    query: str,
    text_of: Callable[[T], str] = lambda item: getattr(item, "body", ""),
) -> list[T]:
    """Keep the items whose text mentions a meaningful token of *query*.

    Args:
        items: Normalized items, in upstream order.
        query: The user's original query.
        text_of: Returns the searchable text of an item (its body by default).

    Returns:
        The matching subset in original order, or *items* unchanged (as a
        new list) when the query has no meaningful tokens.
    """
    tokens = meaningful_tokens(query)
    if not tokens:
        logger.info("Relevance filter skipped: no meaningful tokens in %r", query)
        return list(items)

    patterns = _token_patterns(tokens)
    kept = [
        item for item in items
        if any(pattern.search(text_of(item) or "") for pattern in patterns)
    ]
    logger.info(
        "Relevance filter tokens=%s kept %d/%d items", tokens, len(kept), len(items)
    )
    return kept
