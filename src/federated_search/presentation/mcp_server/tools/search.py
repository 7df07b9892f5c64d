"""
Search Tools - Fan-out and single-source search.

Tools:
- federated_search: Query every matching source in parallel, ranked
- search_single_source: Query one source directly, unranked
"""

from __future__ import annotations

import logging
from collections import Counter

from mcp.server.fastmcp import FastMCP

from federated_search.application.search.service import FederatedSearchService
from federated_search.shared.exceptions import FederatedSearchError

from ._common import ResponseFormatter, format_results, split_list

logger = logging.getLogger(__name__)


def register_search_tools(mcp: FastMCP, service: FederatedSearchService):
    """Register fan-out and single-source search tools."""

    @mcp.tool()
    async def federated_search(
        query: str,
        categories: str | list[str] | None = None,
        sources: str | list[str] | None = None,
        limit: int = 10,
        use_ai: bool = False,
        timeout: float | None = None,
    ) -> str:
        """
        Search many sources at once and return one ranked list.

        Sources are queried in parallel; slow or failing sources are
        skipped. Results are de-duplicated, scored for the query's intent
        and capped at 5 per source.

        Args:
            query: Free text. Typed queries route automatically:
                   "8.8.8.8" (IP), "example.com" (domain), "CVE-2024-3094",
                   "10.1038/nature12373" (DOI), "@torvalds" (username).
            categories: web, code, osint, research, news or all
                        (comma-separated string or list; default all).
            sources: Explicit source ids (see list_search_sources);
                     overrides categories.
            limit: Maximum results (1-100, default 10).
            use_ai: Use the LLM for intent and embeddings for reranking
                    when an OpenAI key is configured.
            timeout: Per-source deadline in seconds (default from settings).

        Returns:
            Ranked results as Markdown.
        """
        logger.info(f"Federated search: {query!r} categories={categories} sources={sources}")
        try:
            response = await service.search(
                query,
                categories=split_list(categories),
                sources=split_list(sources),
                limit=limit,
                use_ai=use_ai,
                timeout=timeout,
            )
        except FederatedSearchError as e:
            return e.to_agent_message()
        except Exception as e:
            logger.exception(f"Federated search failed: {e}")
            return ResponseFormatter.error(
                error="Search failed",
                suggestion="Retry, or narrow the search with sources=",
                tool_name="federated_search",
            )

        if not response.results:
            return ResponseFormatter.no_results(
                query=response.query,
                suggestions=[
                    "Broaden the query or drop the category filter",
                    "Use suggest_queries for alternatives",
                ],
            )

        intent = response.intent
        by_source = Counter(r.source.value for r in response.results)
        output = [
            "## 🔍 Federated Search Results\n",
            f"**Query**: {response.query}",
            f"**Intent**: {intent.type.value} ({intent.confidence:.0%})",
            f"**Sources**: {response.successful_sources}/{response.total_sources} responded | "
            + ", ".join(f"{src} ({n})" for src, n in by_source.most_common()),
        ]
        if response.failed_sources:
            output.append(f"**Failed**: {', '.join(s.value for s in response.failed_sources)}")
        cached = " (cached)" if response.cached else ""
        output.append(f"**Timing**: {response.timing_ms:.0f} ms{cached}\n")
        output.append(format_results(response.results))
        return "\n".join(output)

    @mcp.tool()
    async def search_single_source(source: str, query: str, limit: int = 10) -> str:
        """
        Query exactly one source, without ranking or de-duplication.

        Args:
            source: Source id, e.g. "github", "arxiv", "cve", "whois".
            query: Search text.
            limit: Maximum results (1-100, default 10).

        Returns:
            Results as Markdown.
        """
        source_id = source.strip().lower()
        try:
            results = await service.search_one_source(source_id, query, limit)
        except FederatedSearchError as e:
            return e.to_agent_message()
        except Exception as e:
            logger.exception(f"Single-source search failed: {e}")
            return ResponseFormatter.error(
                error=f"Search on {source_id} failed",
                suggestion="Try federated_search to query several sources",
                tool_name="search_single_source",
            )

        if not results:
            return ResponseFormatter.no_results(
                query=f"{query} on {source_id}",
                suggestions=["The source may be rate limited or slow; try again later"],
            )
        return f"📚 **{source_id}** ({len(results)} results)\n\n" + format_results(results)
