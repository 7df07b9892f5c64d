"""
Domain Entities: fan-out outcomes and search responses
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .intent import QueryIntent
from .result import SearchResult
from .source import SourceType


@dataclass(frozen=True)
class FetchOutcome:
    """Result of calling one adapter during fan-out."""

    source: SourceType
    results: list[SearchResult] | None = None
    error: BaseException | None = None
    elapsed_ms: float = 0.0

    @property
    def succeeded(self) -> bool:
        """A source counts as successful only when it returned something."""
        return bool(self.results)

    @property
    def timed_out(self) -> bool:
        return isinstance(self.error, TimeoutError)


@dataclass
class FanOutResult:
    """Merged output of one fan-out."""

    results: list[SearchResult]
    sources_queried: int
    sources_succeeded: int
    elapsed_ms: float = 0.0
    outcomes: tuple[FetchOutcome, ...] = ()

    @property
    def failed_sources(self) -> list[SourceType]:
        return [o.source for o in self.outcomes if o.error is not None]


@dataclass
class SearchResponse:
    """What the ``search`` boundary operation returns."""

    results: list[SearchResult]
    query: str
    intent: QueryIntent
    total_sources: int
    successful_sources: int
    timing_ms: float
    cached: bool = False
    failed_sources: list[SourceType] = field(default_factory=list)

    def snapshot(self) -> SearchResponse:
        """Copy with independent result objects."""
        return SearchResponse(
            results=[r.copy() for r in self.results],
            query=self.query,
            intent=self.intent,
            total_sources=self.total_sources,
            successful_sources=self.successful_sources,
            timing_ms=self.timing_ms,
            cached=self.cached,
            failed_sources=list(self.failed_sources),
        )

    def to_dict(self) -> dict:
        return {
            "results": [r.to_dict() for r in self.results],
            "query": self.query,
            "intent": self.intent.to_dict(),
            "totalSources": self.total_sources,
            "successfulSources": self.successful_sources,
            "timing": round(self.timing_ms, 1),
            "cached": self.cached,
        }
