"""
Tests for pulse/relevance.py

Run with: pytest tests/test_relevance.py
"""

import re

from pulse.models import SourceItem
from pulse.relevance import filter_relevant, is_relevant, meaningful_tokens


def _item(body: str) -> SourceItem:
    return SourceItem(source="quora", body=body)


class TestMeaningfulTokens:
    def test_drops_stop_words_and_short_tokens(self):
        assert meaningful_tokens("The best noise-cancelling headphones!") == [
            "best", "noise", "cancelling", "headphones",
        ]

    def test_deduplicates(self):
        assert meaningful_tokens("apps apps APPS") == ["apps"]

    def test_only_stop_words(self):
        assert meaningful_tokens("is it on the") == []


class TestIsRelevant:
    def test_whole_word_case_insensitive(self):
        assert is_relevant("Great HEADPHONES here", ["headphones"])

    def test_substring_is_not_a_match(self):
        assert not is_relevant("my noisy neighbours", ["noise"])


class TestFilterRelevant:
    def test_noise_cancelling_headphones(self):
        items = [
            _item("Best noise cancelling headphones for travel"),
            _item("Headphones review after a month"),
            _item("My noisy neighbours keep me awake"),
            _item("Cooking pasta tonight"),
            _item("The cancelling of flights was a mess"),
        ]
        kept = filter_relevant(items, "noise cancelling headphones")
        assert len(kept) == 3
        assert [i.body for i in kept] == [items[0].body, items[1].body, items[4].body]

    def test_every_kept_item_matches_a_token(self):
        items = [_item(text) for text in ("Battery life is poor", "battery", "nothing", "LIFE")]
        query = "battery life"
        tokens = meaningful_tokens(query)
        for item in filter_relevant(items, query):
            assert any(re.search(rf"\b{t}\b", item.body, re.IGNORECASE) for t in tokens)

    def test_stop_word_query_is_noop(self):
        items = [_item("anything"), _item("at all")]
        kept = filter_relevant(items, "is it on the")
        assert kept == items
        assert kept is not items

    def test_custom_text_accessor(self):
        items = [SourceItem(source="meta_ads", body="Shop now", title="Acme Headphones")]
        kept = filter_relevant(items, "headphones", text_of=lambda i: f"{i.body} {i.title}")
        assert kept == items
