"""
Domain Entity: SearchResult

The canonical record every source adapter produces. Adapters create it,
the merger and ranker only ever rewrite ``score``.
"""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .source import CategoryType, SourceType


def new_result_id() -> str:
    """Opaque per-request identifier."""
    return uuid.uuid4().hex


def parse_timestamp(value: str | None) -> datetime | None:
    """
    Parse an ISO-8601 timestamp.

    Naive values are treated as UTC. Returns None for missing or
    unparseable input.
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def clamp_score(value: float) -> float:
    """Clamp a score into [0, 1]."""
    return max(0.0, min(1.0, value))


@dataclass
class SearchResult:
    """
    Unified search result from any source.

    Attributes:
        title: Display title
        url: Absolute URL of the item
        source: Source that produced the result
        category: Category of that source
        description: Short summary, truncated by adapters
        timestamp: ISO-8601 publication or update time
        score: Relevance in [0, 1] once set
        metadata: Source-specific extras
        favicon: Optional icon URL
        id: Opaque per-request identifier
    """

    title: str
    url: str
    source: SourceType
    category: CategoryType
    description: str = ""
    timestamp: str | None = None
    score: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    favicon: str | None = None
    id: str = field(default_factory=new_result_id)

    @property
    def published_at(self) -> datetime | None:
        return parse_timestamp(self.timestamp)

    def copy(self) -> SearchResult:
        """Deep copy so cached snapshots never share mutable state."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "source": self.source.value,
            "category": self.category.value,
        }
        if self.timestamp:
            result["timestamp"] = self.timestamp
        if self.score is not None:
            result["score"] = round(self.score, 4)
        if self.metadata:
            result["metadata"] = self.metadata
        if self.favicon:
            result["favicon"] = self.favicon
        return result
