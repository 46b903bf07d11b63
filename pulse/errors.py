"""Exception taxonomy for the aggregation pipeline.

Every class maps to one failure category of a report fetch. They are raised
inside sources, the completion client and the result parser, and converted
to a ``FetchResult`` failure at ``Pipeline.run`` so nothing crosses the
pipeline boundary.
"""

from __future__ import annotations

from typing import Optional


class PipelineError(Exception):
    """Base class; ``str(exc)`` is the user-facing message."""


class ConfigurationError(PipelineError):
    """Required credentials are missing. Raised before any network call."""

    def __init__(self, message: str = "API keys not configured") -> None:
        super().__init__(message)


class TransportError(PipelineError):
    """An upstream API answered with a non-2xx status."""

    def __init__(self, service: str, status: Optional[int], detail: str = "") -> None:
        self.service = service
        self.status = status
        message = f"{service} API error: {status}"
        if detail:
            message += f" - {detail}"
        super().__init__(message)


class RequestTimedOut(PipelineError):
    """The request exceeded the configured total timeout."""

    def __init__(self) -> None:
        super().__init__("Request timed out")


class EmptyResultError(PipelineError):
    """The upstream produced no usable items (or the filter removed them all)."""

    def __init__(self, message: str = "No relevant items found") -> None:
        super().__init__(message)


class SynthesisError(PipelineError):
    """The completion endpoint failed or returned no content."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Analysis generation failed: {detail}")


class ReportParseError(PipelineError):
    """The completion text is not valid JSON or does not match the report shape."""

    def __init__(self, detail: str, raw: str = "") -> None:
        self.raw = raw
        super().__init__(f"Failed to parse analysis result: {detail}")
