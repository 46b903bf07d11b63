"""
Pydantic models shared across the Market Pulse core.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Generic, Optional, TypeVar, Union

from pydantic import BaseModel, Field, SerializeAsAny, model_validator

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SourceItem(BaseModel):
    """A normalized unit of content fetched from an upstream API.

    Created fresh on every fetch and never persisted.
    """

    source: str
    body: str
    title: str = ""
    author: str = ""
    url: str = ""
    upvotes: int = 0
    likes: int = 0
    comments: int = 0
    ratio: float = 0.0
    published_at: str = ""
    captured_at: datetime = Field(default_factory=lambda: _utcnow())
    #: Source-specific extras (subreddit, hashtags, top comments, …).
    metadata: dict[str, Any] = Field(default_factory=dict)


@dataclass(frozen=True)
class ShapeMismatch:
    """A raw upstream item that could not be read as a SourceItem."""

    source: str
    reason: str
    raw: Any = None


#: Outcome of normalizing one raw upstream item.
Normalized = Union[SourceItem, ShapeMismatch]


class FetchResult(BaseModel, Generic[T]):
    """``{success: true, data}`` or ``{success: false, error}`` envelope."""

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def _check_branch(self) -> "FetchResult[T]":
        if self.success and self.error is not None:
            raise ValueError("a successful result carries no error")
        if not self.success and not self.error:
            raise ValueError("a failed result needs an error message")
        return self

    @classmethod
    def ok(cls, data: T) -> "FetchResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "FetchResult[T]":
        return cls(success=False, error=error)

    def envelope(self) -> dict[str, Any]:
        """JSON-ready dict holding only the keys of the active branch."""
        if self.success:
            data = self.data.model_dump(mode="json") if isinstance(self.data, BaseModel) else self.data
            return {"success": True, "data": data}
        return {"success": False, "error": self.error}


class SourceReport(BaseModel):
    """Payload of a successful report fetch, handed to the rendering layer."""

    query: str
    source: str
    model: str
    items: list[SourceItem]
    report: SerializeAsAny[BaseModel]
    timestamp: datetime = Field(default_factory=lambda: _utcnow())


class SavedSearch(BaseModel):
    """A search a user chose to keep, persisted in SQLite."""

    id: int
    user_id: str
    query: str
    active_components: list[str]
    created_at: datetime


class ApiModel(BaseModel):
    """Row of the model configuration table."""

    api_name: str
    model_name: str
    updated_at: Optional[datetime] = None
