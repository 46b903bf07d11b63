"""Response-normalization helpers.

Every upstream integration funnels raw JSON fields through these functions,
so none of them raise: unparseable numbers become ``0``, missing text becomes
the given default, and long bodies are cut at a word boundary.

Corpus assembly also lives here: it is plain concatenation with a cap,
used to bound how much text is sent to the completion endpoint.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any, Optional

ELLIPSIS = "..."

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_WHITESPACE = re.compile(r"\s+")
_HTML_TAG = re.compile(r"<[^>]*>")


def to_int(value: Any) -> int:
    """Coerce *value* to a non-negative integer, defaulting to ``0``.

    Accepts ints, floats and numeric-looking strings. Strings are parsed by
    their leading digits, so ``"12.5k"`` gives ``12``.

    Examples:
        >>> to_int("42")
        42
        >>> to_int("n/a")
        0
        >>> to_int(-3)
        0
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return 0
        return max(int(value), 0)
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        if match:
            return max(int(match.group(1)), 0)
    return 0


def to_float(value: Any, default: float = 0.0) -> float:
    """Coerce *value* to a float, returning *default* when impossible."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return default
    return default


def text_or(value: Any, default: str = "") -> str:
    """Return *value* when it is a non-blank string, else *default*."""
    if isinstance(value, str) and value.strip():
        return value
    return default


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces and strip the ends."""
    return _WHITESPACE.sub(" ", text or "").strip()


def strip_html(text: str) -> str:
    """Remove HTML tags and collapse whitespace."""
    return collapse_whitespace(_HTML_TAG.sub(" ", text or ""))


def truncate(text: str, limit: int) -> str:
    """Collapse whitespace and cut *text* to at most *limit* characters.

    The cut happens at the last whole-word boundary that leaves room for the
    trailing ellipsis, so a word is never split. Text already within the
    limit is returned (whitespace-collapsed) unchanged.

    Examples:
        >>> truncate("the quick brown fox", 12)
        'the quick...'
    """
    cleaned = collapse_whitespace(text)
    if len(cleaned) <= limit:
        return cleaned
    if limit < len(ELLIPSIS):
        return ELLIPSIS[: max(limit, 0)]

    room = max(limit - len(ELLIPSIS), 0)
    # One extra character so a space sitting exactly at the cut still counts.
    window = cleaned[: room + 1]
    boundary = window.rfind(" ")
    head = cleaned[:boundary].rstrip() if boundary > 0 else ""
    return head + ELLIPSIS


def assemble_corpus(
    texts: Iterable[Optional[str]],
    separator: str = "\n\n",
    per_item_limit: Optional[int] = None,
    total_limit: Optional[int] = None,
) -> str:
    """Join item bodies into one bounded text blob for the prompt.

    Entries are trimmed and blank ones dropped. ``per_item_limit`` truncates
    each entry; ``total_limit`` stops adding entries once the next one would
    push the corpus over the cap. No deduplication is done.
    """
    parts: list[str] = []
    size = 0
    for text in texts:
        if not text or not text.strip():
            continue
        part = text.strip()
        if per_item_limit is not None:
            part = truncate(part, per_item_limit)
        added = len(part) + (len(separator) if parts else 0)
        if total_limit is not None and size + added > total_limit:
            break
        parts.append(part)
        size += added
    return separator.join(parts)
