"""Per-widget fetch lifecycle: idle → loading → success | error.

Each ``begin`` hands out a generation token. A result is applied only when
its token is still the latest, so a slow response for an old query can never
overwrite the state of a newer one.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from enum import Enum
from typing import Any, Callable, Optional

from pulse.models import FetchResult

logger = logging.getLogger(__name__)

FetchFn = Callable[[str], FetchResult]


class WidgetState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class Widget:
    """State of one dashboard component."""

    def __init__(self, component: str) -> None:
        self.component = component
        self.state = WidgetState.IDLE
        self.query: Optional[str] = None
        self.result: Optional[FetchResult] = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def generation(self) -> int:
        return self._generation

    def begin(self, query: str) -> int:
        """Enter ``loading`` for *query* and return its generation token."""
        with self._lock:
            return self._begin_locked(query)

    def _begin_locked(self, query: str) -> int:
        self._generation += 1
        self.state = WidgetState.LOADING
        self.query = query
        self.result = None
        return self._generation

    def resolve(self, token: int, result: FetchResult) -> bool:
        """Apply *result* if *token* is current; return whether it was applied."""
        with self._lock:
            if token != self._generation:
                logger.info(
                    "%s: discarding stale response (token %d, current %d)",
                    self.component, token, self._generation,
                )
                return False
            self.result = result
            self.state = WidgetState.SUCCESS if result.success else WidgetState.ERROR
            return True

    def run(self, query: str, fetch: FetchFn) -> bool:
        return self._fetch(self.begin(query), query, fetch)

    def _fetch(self, token: int, query: str, fetch: FetchFn) -> bool:
        try:
            result = fetch(query)
        except Exception as exc:  # noqa: BLE001
            logger.exception("%s: fetch raised", self.component)
            result = FetchResult.fail(str(exc) or "Unknown error occurred")
        return self.resolve(token, result)

    def retry(self, fetch: FetchFn) -> bool:
        """Re-run the last query from the error state.

        The state check and the new generation happen under one lock, so two
        concurrent retries cannot both start.
        """
        with self._lock:
            if self.state is not WidgetState.ERROR or self.query is None:
                raise ValueError(f"{self.component} has nothing to retry")
            query = self.query
            token = self._begin_locked(query)
        return self._fetch(token, query, fetch)

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "component": self.component,
                "state": self.state.value,
                "query": self.query,
                "generation": self._generation,
                "result": self.result.envelope() if self.result is not None else None,
            }


class WidgetBoard:
    """One ``Widget`` per (dashboard session, component).

    At most ``max_widgets`` are kept; the least recently used one is evicted
    when a new key would exceed the cap.
    """

    def __init__(self, max_widgets: int = 500) -> None:
        if max_widgets < 1:
            raise ValueError("max_widgets must be at least 1")
        self.max_widgets = max_widgets
        self._widgets: OrderedDict[tuple[str, str], Widget] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._widgets)

    def get(self, session: str, component: str) -> Widget:
        key = (session, component)
        with self._lock:
            widget = self._widgets.get(key)
            if widget is None:
                widget = self._widgets[key] = Widget(component)
                while len(self._widgets) > self.max_widgets:
                    evicted, _ = self._widgets.popitem(last=False)
                    logger.debug("Evicted widget %s", evicted)
            else:
                self._widgets.move_to_end(key)
            return widget

    def find(self, session: str, component: str) -> Optional[Widget]:
        key = (session, component)
        with self._lock:
            widget = self._widgets.get(key)
            if widget is not None:
                self._widgets.move_to_end(key)
            return widget
