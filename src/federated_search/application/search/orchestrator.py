"""
FanOutOrchestrator - Parallel Source Dispatch

Calls every selected adapter concurrently, bounds each call by its own
timeout and turns every failure into a FetchOutcome instead of an
exception. One slow or broken source never blocks the others.

Flow:
    resolve_sources -> gather(_fetch per adapter) -> merge_results -> cut
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable, Sequence

from federated_search.domain.entities import (
    CategoryType,
    FanOutResult,
    FetchOutcome,
    SourceType,
)
from federated_search.infrastructure.sources import SourceAdapter, SourceRegistry

from .result_merger import DEFAULT_DEDUP_CONFIG, DedupConfig, merge_results

logger = logging.getLogger(__name__)


class FanOutOrchestrator:
    """
    Concurrent multi-source search.

    Example:
        orchestrator = FanOutOrchestrator(registry)
        fan_out = await orchestrator.search_all("rust async", categories=["code"])
        print(fan_out.sources_succeeded, len(fan_out.results))
    """

    def __init__(
        self,
        registry: SourceRegistry,
        *,
        overfetch: int = 5,
        dedup_config: DedupConfig = DEFAULT_DEDUP_CONFIG,
    ) -> None:
        self.registry = registry
        self.overfetch = overfetch
        self.dedup_config = dedup_config

    def resolve_sources(
        self,
        sources: Sequence[SourceType | str] | None = None,
        categories: Sequence[CategoryType | str] | None = None,
    ) -> list[SourceAdapter]:
        """
        Pick the enabled adapters for a request.

        Explicit sources win; otherwise the ordered union of the categories'
        sources; otherwise (no categories, or ``all`` among them) everything.
        """
        if sources:
            selected = self._known(sources)
        elif categories and CategoryType.ALL not in {CategoryType(c) for c in categories}:
            selected = []
            for category in categories:
                selected.extend(self.registry.sources_for_category(category))
        else:
            selected = [adapter.config.source for adapter in self.registry]

        adapters = []
        for source in dict.fromkeys(selected):
            adapter = self.registry.get(source)
            if adapter is not None and adapter.enabled:
                adapters.append(adapter)
        return adapters

    def _known(self, sources: Iterable[SourceType | str]) -> list[SourceType]:
        known = []
        for source in sources:
            if source in self.registry:
                known.append(SourceType(source))
            else:
                logger.warning(f"Ignoring unknown source: {source}")
        return known

    async def search_all(
        self,
        query: str,
        *,
        sources: Sequence[SourceType | str] | None = None,
        categories: Sequence[CategoryType | str] | None = None,
        limit: int = 10,
        timeout: float | None = 5.0,
        overfetch: int | None = None,
    ) -> FanOutResult:
        """
        Query every selected source in parallel.

        Args:
            query: Search query passed verbatim to each adapter
            sources: Explicit source ids (takes precedence over categories)
            categories: Category filter
            limit: Per-source result limit
            timeout: Per-source deadline in seconds, capped by each adapter's
                own timeout; None uses the adapter timeout alone
            overfetch: Keep at most ``limit * overfetch`` merged results

        Returns:
            FanOutResult; never raises for source failures
        """
        started = time.perf_counter()
        adapters = self.resolve_sources(sources, categories)
        if not adapters:
            logger.warning(f"No enabled sources for query {query!r}")
            return FanOutResult(results=[], sources_queried=0, sources_succeeded=0)

        outcomes = await asyncio.gather(
            *(self._fetch(adapter, query, limit, timeout) for adapter in adapters)
        )

        merged = merge_results(
            (o.results for o in outcomes if o.results),
            self.dedup_config,
        )
        cap = limit * (overfetch if overfetch is not None else self.overfetch)
        succeeded = sum(1 for o in outcomes if o.succeeded)
        elapsed_ms = (time.perf_counter() - started) * 1000

        logger.info(
            f"Fan-out for {query!r}: {succeeded}/{len(adapters)} sources, "
            f"{len(merged)} merged results in {elapsed_ms:.0f}ms"
        )
        return FanOutResult(
            results=merged[:cap],
            sources_queried=len(adapters),
            sources_succeeded=succeeded,
            elapsed_ms=elapsed_ms,
            outcomes=tuple(outcomes),
        )

    async def _fetch(
        self,
        adapter: SourceAdapter,
        query: str,
        limit: int,
        timeout: float | None,
    ) -> FetchOutcome:
        """Run one adapter under its deadline; failures become outcomes."""
        source = adapter.config.source
        deadline = adapter.config.timeout if timeout is None else min(timeout, adapter.config.timeout)
        started = time.perf_counter()
        try:
            results = await asyncio.wait_for(adapter.search(query, limit), deadline)
        except TimeoutError as e:
            logger.warning(f"{source.value} timed out after {deadline:.1f}s")
            return FetchOutcome(source=source, error=e, elapsed_ms=_elapsed_ms(started))
        except Exception as e:
            logger.warning(f"{source.value} failed: {type(e).__name__}: {e}")
            return FetchOutcome(source=source, error=e, elapsed_ms=_elapsed_ms(started))

        return FetchOutcome(source=source, results=list(results), elapsed_ms=_elapsed_ms(started))


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000
