"""
FederatedSearchService - Boundary Facade

The single entry point used by the HTTP API and the MCP tools:

    search               classify -> fan-out -> rank -> diversify -> cut
    classify_intent      local or remote intent
    expand_query         abbreviation/full-form variants
    suggest              autocomplete and refinements
    list_sources         source descriptors
    search_one_source    one adapter, no fan-out and no ranking

Validation happens here, before any adapter runs. The service owns the
result cache; cached responses are snapshots so concurrent requests never
share mutable results.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence

from federated_search.application.suggestions.engine import (
    RemoteSuggestionEngine,
    SuggestionEngine,
)
from federated_search.domain.entities import (
    CategoryType,
    QueryIntent,
    SearchResponse,
    SearchResult,
    SourceDescriptor,
    SourceType,
    Suggestion,
)
from federated_search.infrastructure.cache import ResultCache, create_cache_key
from federated_search.infrastructure.sources import SourceRegistry
from federated_search.shared.exceptions import (
    InvalidParameterError,
    InvalidQueryError,
    SourceDisabledError,
    UnknownSourceError,
)
from federated_search.shared.settings import Settings

from .intent_classifier import IntentClassifier, RemoteIntentClassifier, expand_query
from .orchestrator import FanOutOrchestrator
from .ranking import ResultRanker, diversify

logger = logging.getLogger(__name__)

MAX_LIMIT = 100
MAX_SUGGESTIONS = 15
MAX_QUERY_LENGTH = 500
MAX_PER_SOURCE = 5


class FederatedSearchService:
    """
    Federated search over every registered source.

    Example:
        service = container.search_service()
        response = await service.search("CVE-2024-3094", categories=["osint"])
        for result in response.results:
            print(result.source.value, result.title)
    """

    def __init__(
        self,
        registry: SourceRegistry,
        orchestrator: FanOutOrchestrator,
        ranker: ResultRanker,
        classifier: IntentClassifier,
        remote_classifier: RemoteIntentClassifier | None = None,
        suggestion_engine: SuggestionEngine | None = None,
        remote_suggestion_engine: RemoteSuggestionEngine | None = None,
        cache: ResultCache | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.registry = registry
        self.orchestrator = orchestrator
        self.ranker = ranker
        self.classifier = classifier
        self.remote_classifier = remote_classifier
        self.suggestion_engine = suggestion_engine or SuggestionEngine(classifier)
        self.remote_suggestion_engine = remote_suggestion_engine
        self.settings = settings or Settings()
        self.cache = cache or ResultCache(max_size=self.settings.cache_size, ttl=self.settings.cache_ttl)

    # =========================================================================
    # Validation
    # =========================================================================

    @staticmethod
    def _validate_query(query: str | None) -> str:
        text = (query or "").strip()
        if not text:
            raise InvalidQueryError(query)
        if len(text) > MAX_QUERY_LENGTH:
            raise InvalidQueryError(text[:50] + "...", f"Query longer than {MAX_QUERY_LENGTH} characters")
        return text

    @staticmethod
    def _validate_limit(limit: int, maximum: int = MAX_LIMIT) -> int:
        if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= maximum:
            raise InvalidParameterError("limit", limit, f"an integer between 1 and {maximum}")
        return limit

    @staticmethod
    def _validate_categories(categories: Sequence[str] | None) -> list[CategoryType] | None:
        if not categories:
            return None
        validated = []
        for category in categories:
            try:
                validated.append(CategoryType(category))
            except ValueError as e:
                allowed = ", ".join(c.value for c in CategoryType)
                raise InvalidParameterError("categories", category, f"one of {allowed}") from e
        return validated

    def _validate_sources(self, sources: Sequence[str] | None) -> list[SourceType] | None:
        if not sources:
            return None
        validated = []
        for source in sources:
            adapter = self.registry.get(source)
            if adapter is None:
                raise UnknownSourceError(str(source))
            if not adapter.enabled:
                raise SourceDisabledError(str(source))
            validated.append(adapter.config.source)
        return validated

    # =========================================================================
    # Operations
    # =========================================================================

    async def search(
        self,
        query: str,
        *,
        categories: Sequence[str] | None = None,
        sources: Sequence[str] | None = None,
        limit: int | None = None,
        use_ai: bool = False,
        timeout: float | None = None,
    ) -> SearchResponse:
        """
        Federated search.

        Args:
            query: Free-text query
            categories: Category filter (web, code, osint, research, news, all)
            sources: Explicit source ids; take precedence over categories
            limit: Maximum results returned (1-100, default from settings)
            use_ai: Use the LLM for intent and embeddings for reranking
            timeout: Per-source deadline in seconds (default from settings)

        Returns:
            SearchResponse, ``cached=True`` when served from the cache

        Raises:
            InvalidQueryError, InvalidParameterError, UnknownSourceError,
            SourceDisabledError
        """
        started = time.perf_counter()
        text = self._validate_query(query)
        limit = self._validate_limit(self.settings.default_limit if limit is None else limit)
        category_filter = self._validate_categories(categories)
        source_filter = self._validate_sources(sources)
        deadline = self.settings.search_timeout if timeout is None else timeout
        if deadline <= 0:
            raise InvalidParameterError("timeout", timeout, "a positive number of seconds")

        cache_key = create_cache_key(
            "search",
            {
                "query": text,
                "categories": category_filter or [CategoryType.ALL],
                "sources": source_filter,
                "limit": limit,
                "ai": use_ai,
            },
        )
        cached = self.cache.get(cache_key)
        if cached is not None:
            response = cached.snapshot()
            response.cached = True
            response.timing_ms = (time.perf_counter() - started) * 1000
            return response

        intent = await self.classify_intent(text, use_remote=use_ai)
        fan_out = await self.orchestrator.search_all(
            text,
            sources=source_filter,
            categories=category_filter,
            limit=limit,
            timeout=deadline,
        )
        ranked = await self.ranker.rank_pipeline(
            text,
            fan_out.results,
            intent,
            use_embeddings=use_ai and self.settings.use_embeddings,
        )
        results = diversify(ranked, MAX_PER_SOURCE)[:limit]

        response = SearchResponse(
            results=results,
            query=text,
            intent=intent,
            total_sources=fan_out.sources_queried,
            successful_sources=fan_out.sources_succeeded,
            timing_ms=(time.perf_counter() - started) * 1000,
            failed_sources=fan_out.failed_sources,
        )
        self.cache.set(cache_key, response.snapshot())
        return response

    async def classify_intent(self, query: str, use_remote: bool = False) -> QueryIntent:
        text = self._validate_query(query)
        if use_remote and self.remote_classifier is not None:
            return await self.remote_classifier.classify(text)
        return self.classifier.classify(text)

    def expand_query(self, query: str) -> list[str]:
        return expand_query(query)

    async def suggest(self, query: str, limit: int = 8, use_remote: bool = False) -> list[Suggestion]:
        """Suggestions for a partial query; empty input yields trending queries."""
        limit = self._validate_limit(min(limit, MAX_SUGGESTIONS), MAX_SUGGESTIONS)
        if use_remote and self.remote_suggestion_engine is not None:
            return await self.remote_suggestion_engine.suggest(query or "", limit)
        return self.suggestion_engine.suggest(query or "", limit)

    def list_sources(self, category: str | None = None) -> list[SourceDescriptor]:
        categories = self._validate_categories([category] if category else None)
        return self.registry.descriptors(categories[0] if categories else None)

    async def search_one_source(self, source_id: str, query: str, limit: int = 10) -> list[SearchResult]:
        """
        Query one adapter directly, bounded by its own timeout.

        Raises:
            UnknownSourceError: ``source_id`` is not registered
            SourceDisabledError: the source exists but is disabled
            InvalidQueryError, InvalidParameterError
        """
        text = self._validate_query(query)
        limit = self._validate_limit(limit)
        adapter = self.registry.get(source_id)
        if adapter is None:
            raise UnknownSourceError(source_id)
        if not adapter.enabled:
            raise SourceDisabledError(source_id)

        try:
            results = await asyncio.wait_for(adapter.search(text, limit), adapter.config.timeout)
        except TimeoutError:
            logger.warning(f"{source_id} timed out after {adapter.config.timeout:.1f}s")
            return []
        return list(results)[:limit]

    async def close(self) -> None:
        await self.registry.close()
