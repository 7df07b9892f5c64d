"""
SourceAdapter - Uniform search capability over one upstream.

Contract:
    ``await adapter.search(query, limit)`` returns a list of SearchResult,
    empty for "nothing found" and for handled HTTP failures. Every result is
    stamped with the adapter's own ``source`` and ``category``.
"""

from __future__ import annotations

import html
import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

from federated_search.domain.entities import SearchResult, SourceConfig, clamp_score
from federated_search.shared.async_utils import get_rate_limiter

from .base_client import BaseAPIClient

logger = logging.getLogger(__name__)

DESCRIPTION_LIMIT = 300

_TAG_PATTERN = re.compile(r"<[^>]+>")
_WHITESPACE_PATTERN = re.compile(r"\s+")


def strip_html(text: str | None) -> str:
    """Remove tags, decode entities and collapse whitespace."""
    if not text:
        return ""
    text = html.unescape(_TAG_PATTERN.sub("", text))
    return _WHITESPACE_PATTERN.sub(" ", text).strip()


def truncate(text: str | None, limit: int = DESCRIPTION_LIMIT) -> str:
    if not text:
        return ""
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


def iso_from_epoch(seconds: float | int | None) -> str | None:
    """Unix seconds to an ISO-8601 UTC string."""
    if seconds is None:
        return None
    try:
        return datetime.fromtimestamp(float(seconds), tz=timezone.utc).isoformat()
    except (ValueError, OverflowError, OSError):
        return None


def join_parts(*parts: str | None) -> str:
    """Join the non-empty description fragments with a pipe."""
    return " | ".join(p for p in parts if p)


class SourceAdapter(BaseAPIClient, ABC):
    """
    Base class for source adapters.

    Subclasses implement ``search`` and build results through
    ``make_result`` so source, category, truncation and score clamping are
    applied uniformly.
    """

    def __init__(
        self,
        config: SourceConfig,
        *,
        base_url: str = "",
        headers: dict[str, str] | None = None,
        min_interval: float = 0.0,
        **kwargs: Any,
    ) -> None:
        self.config = config
        self._service_name = config.name
        rate_limiter = None
        if config.rate_limit:
            rate_limiter = get_rate_limiter(config.source.value, rate=config.rate_limit, per=60.0)
        super().__init__(
            base_url=base_url,
            timeout=config.timeout,
            min_interval=min_interval,
            headers=headers,
            rate_limiter=rate_limiter,
            **kwargs,
        )

    @property
    def source(self) -> str:
        return self.config.source.value

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    @abstractmethod
    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        """Search this source."""

    def make_result(
        self,
        *,
        title: str,
        url: str,
        description: str | None = "",
        score: float | None = None,
        timestamp: str | None = None,
        metadata: dict[str, Any] | None = None,
        favicon: str | None = None,
    ) -> SearchResult:
        return SearchResult(
            title=title,
            url=url,
            source=self.config.source,
            category=self.config.category,
            description=truncate(description),
            timestamp=timestamp,
            score=clamp_score(score) if score is not None else None,
            metadata={k: v for k, v in (metadata or {}).items() if v is not None},
            favicon=favicon,
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} source={self.source!r} enabled={self.enabled}>"
