"""
Tests for pulse/widget.py

Run with: pytest tests/test_widget.py
"""

import threading

import pytest

from pulse.models import FetchResult
from pulse.widget import Widget, WidgetBoard, WidgetState


class TestLifecycle:
    def test_starts_idle(self):
        snap = Widget("RedditAnalytics").snapshot()
        assert snap["state"] == "idle"
        assert snap["result"] is None

    def test_success(self):
        widget = Widget("RedditAnalytics")
        assert widget.run("headphones", lambda q: FetchResult.ok({"query": q}))
        assert widget.state is WidgetState.SUCCESS
        assert widget.snapshot()["result"] == {"success": True, "data": {"query": "headphones"}}

    def test_failure_envelope(self):
        widget = Widget("RedditAnalytics")
        widget.run("headphones", lambda q: FetchResult.fail("Request timed out"))
        assert widget.state is WidgetState.ERROR
        assert widget.snapshot()["result"]["error"] == "Request timed out"

    def test_raising_fetch_becomes_error(self):
        def fetch(query):
            raise RuntimeError("socket closed")

        widget = Widget("RedditAnalytics")
        widget.run("headphones", fetch)
        assert widget.state is WidgetState.ERROR
        assert widget.result.error == "socket closed"

    def test_begin_enters_loading(self):
        widget = Widget("XAnalytics")
        widget.run("old", lambda q: FetchResult.ok(q))
        widget.begin("new")
        assert widget.state is WidgetState.LOADING
        assert widget.query == "new"
        assert widget.result is None


class TestRetry:
    def test_retry_reruns_last_query(self):
        widget = Widget("QuoraAnalysis")
        widget.run("headphones", lambda q: FetchResult.fail("Quora API error: 503"))

        seen = []
        widget.retry(lambda q: seen.append(q) or FetchResult.ok(q))

        assert seen == ["headphones"]
        assert widget.state is WidgetState.SUCCESS

    def test_retry_only_from_error(self):
        widget = Widget("QuoraAnalysis")
        with pytest.raises(ValueError):
            widget.retry(lambda q: FetchResult.ok(q))
        widget.run("headphones", lambda q: FetchResult.ok(q))
        with pytest.raises(ValueError):
            widget.retry(lambda q: FetchResult.ok(q))

    def test_concurrent_retries_start_once(self):
        widget = Widget("QuoraAnalysis")
        widget.run("headphones", lambda q: FetchResult.fail("Quora API error: 503"))

        release = threading.Event()
        started = threading.Event()
        calls = []

        def slow_fetch(query):
            calls.append(query)
            started.set()
            release.wait(timeout=5)
            return FetchResult.ok(query)

        first = threading.Thread(target=widget.retry, args=(slow_fetch,))
        first.start()
        assert started.wait(timeout=5)

        assert widget.state is WidgetState.LOADING
        with pytest.raises(ValueError):
            widget.retry(slow_fetch)

        release.set()
        first.join(timeout=5)
        assert calls == ["headphones"]
        assert widget.state is WidgetState.SUCCESS


class TestStaleResponses:
    def test_stale_token_is_discarded(self):
        widget = Widget("NewsAnalysis")
        token_a = widget.begin("A")
        token_b = widget.begin("B")

        assert widget.resolve(token_b, FetchResult.ok("report B"))
        assert not widget.resolve(token_a, FetchResult.ok("report A"))

        snap = widget.snapshot()
        assert snap["query"] == "B"
        assert snap["result"]["data"] == "report B"

    def test_slow_first_fetch_does_not_overwrite(self):
        widget = Widget("NewsAnalysis")
        release_a = threading.Event()
        a_started = threading.Event()

        def fetch(query):
            if query == "A":
                a_started.set()
                release_a.wait(timeout=5)
            return FetchResult.ok(f"report {query}")

        slow = threading.Thread(target=widget.run, args=("A", fetch))
        slow.start()
        assert a_started.wait(timeout=5)

        assert widget.run("B", fetch)
        release_a.set()
        slow.join(timeout=5)

        assert widget.query == "B"
        assert widget.result.data == "report B"
        assert widget.state is WidgetState.SUCCESS


class TestBoard:
    def test_one_widget_per_session_and_component(self):
        board = WidgetBoard()
        first = board.get("s1", "XAnalytics")
        assert board.get("s1", "XAnalytics") is first
        assert board.get("s2", "XAnalytics") is not first
        assert board.get("s1", "NewsAnalysis") is not first

    def test_find_does_not_create(self):
        board = WidgetBoard()
        assert board.find("s1", "XAnalytics") is None
        board.get("s1", "XAnalytics")
        assert board.find("s1", "XAnalytics") is not None

    def test_board_is_bounded(self):
        board = WidgetBoard(max_widgets=3)
        for n in range(10):
            board.get(f"session-{n}", "XAnalytics")
        assert len(board) == 3
        assert board.find("session-0", "XAnalytics") is None
        assert board.find("session-9", "XAnalytics") is not None

    def test_least_recently_used_is_evicted(self):
        board = WidgetBoard(max_widgets=2)
        kept = board.get("s1", "XAnalytics")
        board.get("s2", "XAnalytics")
        assert board.get("s1", "XAnalytics") is kept
        board.get("s3", "XAnalytics")

        assert board.find("s2", "XAnalytics") is None
        assert board.find("s1", "XAnalytics") is kept

    def test_cap_must_be_positive(self):
        with pytest.raises(ValueError):
            WidgetBoard(max_widgets=0)
