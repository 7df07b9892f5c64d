"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from federated_search.application.search.intent_classifier import IntentClassifier
from federated_search.application.search.orchestrator import FanOutOrchestrator
from federated_search.application.search.ranking import ResultRanker
from federated_search.application.search.service import FederatedSearchService
from federated_search.domain.entities import (
    CATEGORY_SOURCES,
    CategoryType,
    SearchResult,
    SourceConfig,
    SourceType,
)
from federated_search.infrastructure.cache import ResultCache
from federated_search.infrastructure.sources import SourceAdapter, SourceRegistry
from federated_search.shared.settings import Settings

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def _category_of(source: SourceType) -> CategoryType:
    for category, sources in CATEGORY_SOURCES.items():
        if source in sources:
            return category
    return CategoryType.WEB


# ============================================================
# Result Factories
# ============================================================


@pytest.fixture
def make_result():
    """Factory for SearchResult with sensible defaults."""

    def _make(
        title: str = "Result",
        url: str | None = None,
        source: SourceType = SourceType.GITHUB,
        *,
        description: str = "",
        score: float | None = 0.5,
        timestamp: str | None = None,
    ) -> SearchResult:
        return SearchResult(
            title=title,
            url=url or f"https://example.com/{title.lower().replace(' ', '-')}",
            source=source,
            category=_category_of(source),
            description=description,
            score=score,
            timestamp=timestamp,
        )

    return _make


# ============================================================
# Fake Adapters
# ============================================================


class FakeAdapter(SourceAdapter):
    """Adapter returning canned results, optionally slow or failing."""

    def __init__(
        self,
        source: SourceType,
        results: list[SearchResult] | None = None,
        *,
        delay: float = 0.0,
        error: Exception | None = None,
        timeout: float = 3.0,
        enabled: bool = True,
    ) -> None:
        super().__init__(
            SourceConfig(
                name=source.value.title(),
                source=source,
                category=_category_of(source),
                enabled=enabled,
                timeout=timeout,
            )
        )
        self.results = results or []
        self.delay = delay
        self.error = error
        self.calls: list[tuple[str, int]] = []

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        self.calls.append((query, limit))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return [r.copy() for r in self.results[:limit]]


@pytest.fixture
def fake_adapter():
    """The FakeAdapter class, for building ad-hoc registries."""
    return FakeAdapter


@pytest.fixture
def code_registry(make_result):
    """Registry with three code sources and one news source."""
    github = FakeAdapter(
        SourceType.GITHUB,
        [
            make_result("tokio-rs/tokio", "https://github.com/tokio-rs/tokio", SourceType.GITHUB,
                        description="A runtime for writing reliable asynchronous applications with Rust", score=0.9),
            make_result("async-std", "https://github.com/async-rs/async-std", SourceType.GITHUB,
                        description="Async version of the Rust standard library", score=0.7),
        ],
    )
    stackoverflow = FakeAdapter(
        SourceType.STACKOVERFLOW,
        [
            make_result("How do I use async in Rust?", "https://stackoverflow.com/q/1", SourceType.STACKOVERFLOW,
                        description="rust async await tokio", score=0.8),
        ],
    )
    pypi = FakeAdapter(SourceType.PYPI, [])
    hackernews = FakeAdapter(
        SourceType.HACKERNEWS,
        [
            make_result("Tokio 1.0 released", "https://tokio.rs/blog/2020-12-tokio-1-0", SourceType.HACKERNEWS,
                        description="The Rust async runtime hits 1.0", score=0.6),
        ],
    )
    return SourceRegistry([github, stackoverflow, pypi, hackernews])


@pytest.fixture
def search_service(code_registry):
    """Service over the fake registry, with no LLM strategies."""
    classifier = IntentClassifier()
    return FederatedSearchService(
        registry=code_registry,
        orchestrator=FanOutOrchestrator(code_registry),
        ranker=ResultRanker(now=FIXED_NOW),
        classifier=classifier,
        cache=ResultCache(max_size=50, ttl=60.0),
        settings=Settings(search_timeout=1.0, default_limit=10),
    )
